"""Tests for auto_tester.transport."""

from unittest import mock

import pytest
import requests

from auto_tester.transport import (
    AutoTestHttpClient,
    RetryPolicy,
    aggressive_retry_policy,
    default_retry_policy,
    no_retry_policy,
    resolve_retry_policy,
)


def response(status_code=200, payload=None):
    resp = mock.Mock(spec=requests.Response)
    resp.status_code = status_code
    resp.json.return_value = payload or {}
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status_code} error")
    else:
        resp.raise_for_status.return_value = None
    return resp


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def client(sleeps):
    client = AutoTestHttpClient("http://target:51321/", sleep=sleeps.append)
    client._session = mock.Mock()
    return client


class TestRetryPolicy:
    def test_backoff(self):
        policy = default_retry_policy()
        assert list(policy.delays()) == [1.0, 2.0, 4.0]
        assert policy.get_delay(10) == 30.0

    def test_presets(self):
        assert aggressive_retry_policy().max_retries == 5
        assert not no_retry_policy().can_retry(0)

    def test_retry_statuses(self):
        policy = RetryPolicy()
        assert policy.should_retry_status(503)
        assert not policy.should_retry_status(404)

    def test_from_preset_name(self):
        assert RetryPolicy.from_options("aggressive") == aggressive_retry_policy()
        assert RetryPolicy.from_options(None) == default_retry_policy()
        with pytest.raises(ValueError, match="Unknown retry preset"):
            RetryPolicy.from_options("forever")

    def test_from_fields(self):
        policy = RetryPolicy.from_options({"max_retries": 1, "retry_statuses": [503]})

        assert policy.max_retries == 1
        assert policy.retry_statuses == frozenset({503})
        with pytest.raises(ValueError, match="jitter"):
            RetryPolicy.from_options({"jitter": 0.1})

    def test_resolve_keeps_policy(self):
        policy = no_retry_policy()
        assert resolve_retry_policy(policy) is policy


class TestAutoTestHttpClient:
    def test_post_run(self, client):
        client._session.request.return_value = response(200, {"session_id": 7, "status": "running"})

        session = client.post_run("Geography", ["Map"], "automatic")

        assert session.session_id == "7"
        client._session.request.assert_called_once_with(
            "POST",
            "http://target:51321/autotest/run",
            json={"test": "Geography", "variants": ["Map"], "mode": "automatic"},
            timeout=10,
        )

    def test_get_result(self, client):
        client._session.request.return_value = response(200, {
            "status": "completed",
            "results": [
                {"variant": "Map", "passed": True, "duration_ms": 250, "actual": "m.png"},
                {"variant": "Globe", "passed": False, "details": "diff 3%"},
            ],
        })

        result = client.get_result("7")

        assert [o.variant for o in result.outcomes] == ["Map", "Globe"]
        assert result.outcomes[0].actual == "m.png"
        assert result.outcomes[1].details == "diff 3%"
        assert result.error is None

    def test_retries_server_errors(self, client, sleeps):
        client._session.request.side_effect = [
            response(503),
            response(502),
            response(200, {"status": "running"}),
        ]

        status = client.get_status("7")

        assert status.is_running
        assert sleeps == [1.0, 2.0]

    def test_gives_up_after_retries(self, client, sleeps):
        client._session.request.return_value = response(500)

        with pytest.raises(requests.HTTPError):
            client.get_status("7")

        assert client._session.request.call_count == 4
        assert sleeps == [1.0, 2.0, 4.0]

    def test_client_errors_not_retried(self, client, sleeps):
        client._session.request.return_value = response(404)

        with pytest.raises(requests.HTTPError):
            client.get_status("7")

        assert sleeps == []

    def test_connection_errors_retried(self, client, sleeps):
        client._session.request.side_effect = [
            requests.ConnectionError("refused"),
            response(200, {"status": "completed"}),
        ]

        assert client.get_status("7").is_completed
        assert sleeps == [1.0]

    def test_poll_until_complete(self, client, sleeps):
        client._session.request.side_effect = [
            response(200, {"status": "running", "progress": 0.5}),
            response(200, {"status": "failed"}),
            response(200, {"status": "failed", "results": [], "error": "crashed"}),
        ]
        progress = []

        result = client.poll_until_complete("7", poll_interval=0.5, on_progress=progress.append)

        assert result.error == "crashed"
        assert [s.status for s in progress] == ["running", "failed"]
        assert sleeps == [0.5]

    def test_poll_timeout(self, client):
        client._session.request.return_value = response(200, {"status": "running"})

        with pytest.raises(TimeoutError):
            client.poll_until_complete("7", timeout=0)

    def test_health_check(self, client):
        client._session.get.return_value = response(200)
        assert client.health_check()

        client._session.get.side_effect = requests.ConnectionError("refused")
        assert not client.health_check()
