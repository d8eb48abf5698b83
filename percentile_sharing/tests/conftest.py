"""Pytest configuration and shared fixtures."""

import pytest

from percentile_sharing.registry import AccumulatorRegistry


@pytest.fixture
def demo_values():
    """Ten evenly spaced values, already sorted."""
    return [float(v) for v in range(0, 100, 10)]


@pytest.fixture
def shuffled_values():
    """The demo values in a scrambled order."""
    return [70.0, 10.0, 90.0, 0.0, 40.0, 60.0, 20.0, 80.0, 30.0, 50.0]


@pytest.fixture
def named_values():
    """(name, value) records sorted by value."""
    names = ["Zero", "Ten", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy", "Eighty", "Ninety"]
    return [(name, float(i * 10)) for i, name in enumerate(names)]


@pytest.fixture
def registry():
    """Fresh registry for one reduction run."""
    return AccumulatorRegistry()
