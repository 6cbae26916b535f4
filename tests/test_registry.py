"""Tests for auto_tester.registry."""

from pathlib import Path

import pytest

from auto_tester.cases import CommandTestCase, RemoteTestCase
from auto_tester.errors import IndexOutOfRange, NoSuchVariant
from auto_tester.registry import (
    TestCaseDescriptor,
    TestRegistry,
    Variant,
    parse_registry,
    parse_registry_data,
    validate_registry_data,
)


class TestVariant:
    @pytest.mark.parametrize("value", ["Map", "map", " MAP ", Variant.MAP])
    def test_parse_map(self, value):
        assert Variant.parse(value) is Variant.MAP

    @pytest.mark.parametrize("value", ["Terrain", "", None, 1])
    def test_parse_unknown(self, value):
        with pytest.raises(NoSuchVariant):
            Variant.parse(value)


class TestTestRegistry:
    def make(self):
        return TestRegistry([
            TestCaseDescriptor(name="Geography", case=None, capture_delay=5),
            TestCaseDescriptor(name="Vectors", case=None, capture_delay=3),
        ])

    def test_order_and_count(self):
        registry = self.make()
        assert registry.count == 2
        assert len(registry) == 2
        assert registry.names == ["Geography", "Vectors"]
        assert [d.capture_delay for d in registry] == [5, 3]

    def test_get_in_range(self):
        registry = self.make()
        assert registry.get(1).name == "Vectors"
        assert registry[0].name == "Geography"

    @pytest.mark.parametrize("index", [-1, 2])
    def test_get_out_of_range(self, index):
        with pytest.raises(IndexOutOfRange) as exc_info:
            self.make().get(index)
        assert exc_info.value.index == index
        assert exc_info.value.count == 2

    def test_get_rejects_non_int(self):
        with pytest.raises(TypeError):
            self.make().get("0")

    def test_index_of(self):
        registry = self.make()
        assert registry.index_of("Vectors") == 1
        assert "Vectors" in registry
        with pytest.raises(KeyError):
            registry.index_of("Stars")

    def test_duplicate_names(self):
        with pytest.raises(ValueError, match="Duplicate"):
            TestRegistry([
                TestCaseDescriptor(name="Vectors", case=None),
                TestCaseDescriptor(name="Vectors", case=None),
            ])

    def test_descriptor_is_immutable(self):
        descriptor = self.make().get(0)
        with pytest.raises(AttributeError):
            descriptor.capture_delay = 1


REGISTRY_DATA = {
    "defaults": {"url": "http://target:51321"},
    "tests": [
        {"name": "Geography", "kind": "remote", "capture_delay": 5},
        {
            "name": "Vectors",
            "kind": "command",
            "command": "./render.sh --{variant}",
            "capture_delay": 3,
            "description": "Vector overlays",
        },
    ],
}


class TestParser:
    def test_parse_data(self, tmp_path):
        registry = parse_registry_data(REGISTRY_DATA, base_dir=tmp_path)

        assert registry.names == ["Geography", "Vectors"]
        geography, vectors = registry
        assert isinstance(geography.case, RemoteTestCase)
        assert geography.case.base_url == "http://target:51321"
        assert geography.capture_delay == 5
        assert isinstance(vectors.case, CommandTestCase)
        assert vectors.case.cwd == tmp_path / "."
        assert vectors.description == "Vector overlays"

    def test_parse_file(self, tmp_path):
        path = tmp_path / "tests.yaml"
        path.write_text(
            "tests:\n"
            "  - name: Vectors\n"
            "    kind: command\n"
            "    command: echo {variant}\n"
            "    capture_delay: 3\n",
            encoding="utf-8",
        )

        registry = parse_registry(path)

        assert registry.get(0).case.cwd == tmp_path / "."

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            parse_registry(tmp_path / "missing.yaml")

    def test_wrong_suffix(self, tmp_path):
        path = tmp_path / "tests.json"
        path.write_text("{}", encoding="utf-8")
        with pytest.raises(ValueError, match=".yaml"):
            parse_registry(path)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "tests.yaml"
        path.write_text("", encoding="utf-8")
        with pytest.raises(ValueError, match="Empty"):
            parse_registry(path)

    def test_missing_kind(self):
        with pytest.raises(ValueError, match="kind"):
            parse_registry_data({"tests": [{"name": "Vectors"}]})

    def test_unknown_kind(self):
        with pytest.raises(ValueError, match="Unknown test kind"):
            parse_registry_data({"tests": [{"name": "Vectors", "kind": "shader"}]})

    def test_remote_requires_url(self):
        with pytest.raises(ValueError, match="url"):
            parse_registry_data({"tests": [{"name": "Geography", "kind": "remote"}]})

    def test_remote_retry_option(self):
        registry = parse_registry_data({"tests": [
            {"name": "Geography", "kind": "remote", "url": "http://target:51321", "retry": "none"},
        ]})

        assert registry.get(0).case.retry_policy.max_retries == 0

    def test_unexpected_option(self):
        with pytest.raises(ValueError, match="Invalid options"):
            parse_registry_data({"tests": [
                {"name": "Vectors", "kind": "command", "command": "true", "colour": "red"},
            ]})


class TestValidator:
    def test_valid(self):
        result = validate_registry_data(REGISTRY_DATA)
        assert result.valid
        assert result.summary() is None

    def test_not_a_mapping(self):
        result = validate_registry_data(["Vectors"])
        assert not result.valid

    def test_no_tests_warns(self):
        result = validate_registry_data({"tests": []})
        assert result.valid
        assert result.warnings[0].path == "tests"

    def test_errors(self):
        result = validate_registry_data({"tests": [
            {"name": "Vectors", "kind": "command", "command": "run {variant}"},
            {"name": "Vectors", "kind": "command", "command": "run {variant}", "capture_delay": -1},
            {"kind": "remote", "capture_delay": "soon"},
            {"name": "Stars", "kind": "shader"},
        ]})

        paths = {e.path for e in result.errors}
        assert not result.valid
        assert "tests[1].name" in paths
        assert "tests[1].capture_delay" in paths
        assert "tests[2].name" in paths
        assert "tests[2].capture_delay" in paths
        assert "tests[2].url" in paths
        assert "tests[3].kind" in paths
        assert "Duplicate" in result.summary()

    def test_warnings(self):
        result = validate_registry_data({"tests": [
            {"name": "Vectors", "kind": "command", "command": "run"},
        ]})

        assert result.valid
        assert {w.path for w in result.warnings} == {
            "tests[0].capture_delay", "tests[0].command",
        }
        assert str(result) == "Valid (2 warnings)"
