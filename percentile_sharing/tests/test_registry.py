"""Tests for AccumulatorRegistry."""

import pytest

from percentile_sharing.collector import to_array, to_list
from percentile_sharing.exceptions import ConfigurationError
from percentile_sharing.interpolation import ceiling, floor, half_up, linear
from percentile_sharing.ranking import percentile
from percentile_sharing.reduction import collect, compose
from percentile_sharing.registry import AccumulatorRegistry
from percentile_sharing.shared import SharedAccumulator, View
from percentile_sharing.sorting import build_sorter


def _by_value(row):
    return row[1]


class TestShareIds:
    """Share id validation."""

    @pytest.mark.parametrize("share_id", ["", "   ", None])
    def test_blank_id_rejected(self, registry, share_id):
        with pytest.raises(ConfigurationError) as exc_info:
            registry.share(share_id, to_list())
        assert isinstance(exc_info.value, ValueError)
        assert len(registry) == 0

    def test_distinct_ids_get_distinct_owners(self, registry):
        first = registry.share("a", to_list())
        second = registry.share("b", to_list())
        assert isinstance(first, SharedAccumulator)
        assert isinstance(second, SharedAccumulator)
        assert first is not second
        assert registry.ids == ["a", "b"]
        assert "a" in registry
        assert "c" not in registry
        assert list(registry) == ["a", "b"]


class TestRegistration:
    """Owner and view registration."""

    def test_first_is_owner_then_views(self, registry):
        sorter = build_sorter()
        owner = registry.share("values", to_list(), sorter, percentile(0.5, floor))
        view = registry.share("values", to_list(), sorter, percentile(0.5, linear))
        assert isinstance(owner, SharedAccumulator)
        assert isinstance(view, View)
        assert view.owner is owner
        assert registry.get("values") is owner
        assert owner.view_count == 2
        assert len(registry) == 1

    def test_end_to_end(self, registry, shuffled_values):
        sorter = build_sorter()
        collectors = [
            registry.share("A", to_list(), sorter, percentile(0.5, policy))
            for policy in (floor, half_up, linear, ceiling)
        ]
        assert collect(shuffled_values, compose(*collectors)) == (40.0, 50.0, 45.0, 50.0)
        assert registry.get("A").uniform

    def test_keyed_records(self, registry, named_values):
        sorter = build_sorter(_by_value)
        collectors = [
            registry.share("rows", to_list(), sorter, percentile(0.5, policy))
            for policy in (floor, half_up, ceiling)
        ]
        result = collect(list(reversed(named_values)), compose(*collectors))
        assert result == (("Forty", 40.0), ("Fifty", 50.0), ("Fifty", 50.0))


class TestMismatch:
    """Views must match the owner's mapper and collector kind."""

    def test_mapper_mismatch(self, registry):
        owner = registry.share("v", to_list(), mapper=_by_value)
        with pytest.raises(ConfigurationError, match="mapper") as exc_info:
            registry.share("v", to_list(), mapper=lambda row: row[1])
        assert exc_info.value.share_id == "v"
        assert len(exc_info.value.issues) == 1
        assert owner.view_count == 1
        assert owner.uniform

    def test_identity_mapper_vs_custom(self, registry):
        registry.share("v", to_list())
        with pytest.raises(ConfigurationError):
            registry.share("v", to_list(), mapper=_by_value)

    def test_same_mapper_accepted(self, registry):
        registry.share("v", to_list(), mapper=_by_value)
        assert isinstance(registry.share("v", to_list(), mapper=_by_value), View)

    def test_collector_mismatch(self, registry):
        owner = registry.share("v", to_list())
        with pytest.raises(ConfigurationError) as exc_info:
            registry.share("v", to_array())
        message = str(exc_info.value)
        assert "ArrayCollector" in message
        assert "ListCollector" in message
        assert owner.view_count == 1

    def test_both_mismatches_reported(self, registry):
        registry.share("v", to_list())
        with pytest.raises(ConfigurationError, match="2 issues") as exc_info:
            registry.share("v", to_array(), mapper=_by_value)
        assert len(exc_info.value.issues) == 2

    def test_rejection_leaves_uniform_flag(self, registry):
        sorter = build_sorter()
        owner = registry.share("v", to_list(), sorter)
        with pytest.raises(ConfigurationError):
            registry.share("v", to_array(), build_sorter(_by_value))
        assert owner.uniform
