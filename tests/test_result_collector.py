"""Tests for auto_tester.runner.result_collector."""

import pytest

from auto_tester.errors import NoSuchVariant
from auto_tester.registry import Variant
from auto_tester.runner import ResultAggregator, ResultEntry, result_key


class TestResultKey:
    def test_joins_name_and_variant(self):
        assert result_key("Vectors", "Map") == "Vectors - Map"
        assert result_key("Vectors", Variant.GLOBE) == "Vectors - Globe"

    def test_variant_name_is_case_insensitive(self):
        assert result_key("Vectors", "globe") == "Vectors - Globe"

    def test_unknown_variant(self):
        with pytest.raises(NoSuchVariant):
            result_key("Vectors", "Sphere")


class TestResultAggregator:
    def test_reset_empties_snapshot(self):
        aggregator = ResultAggregator()
        aggregator.record("T", "Map", 1)
        aggregator.reset()
        assert aggregator.snapshot() == []
        assert len(aggregator) == 0

    def test_last_write_wins(self):
        aggregator = ResultAggregator()
        aggregator.record("T", "Map", "v1")
        aggregator.record("T", "Map", "v2")
        assert aggregator.snapshot() == [ResultEntry("T - Map", "v2")]

    def test_snapshot_sorted_by_key(self):
        aggregator = ResultAggregator()
        aggregator.record("B", "Map", 1)
        aggregator.record("A", "Globe", 2)
        aggregator.record("A", "Map", 3)
        assert [e.key for e in aggregator.snapshot()] == ["A - Globe", "A - Map", "B - Map"]

    def test_record_returns_key(self):
        aggregator = ResultAggregator()
        assert aggregator.record("T", Variant.GLOBE, 1) == "T - Globe"
        assert "T - Globe" in aggregator
        assert aggregator.get("T", "Globe") == 1
        assert aggregator.get("T", "Map") is None

    def test_record_unknown_variant_leaves_contents(self):
        aggregator = ResultAggregator()
        aggregator.record("T", "Map", 1)
        with pytest.raises(NoSuchVariant):
            aggregator.record("T", "Terrain", 2)
        assert aggregator.keys == ["T - Map"]
