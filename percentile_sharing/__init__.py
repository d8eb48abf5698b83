"""Percentile Sharing"""

from ._version import __version__

# Use lazy imports to avoid import issues during test discovery
# Names are resolved from their modules only when accessed

__all__ = [
    "__version__",
    "AccumulatorRegistry",
    "Collector",
    "ConfigurationError",
    "ExecutionConfig",
    "InvalidPercentileError",
    "PercentileConfig",
    "PercentileRequest",
    "SharedAccumulator",
    "SortCache",
    "View",
    "build_sorter",
    "collect",
    "compose",
    "compute_percentiles",
    "percentile",
    "percentile_table",
    "resolve_rank",
    "to_array",
    "to_list",
]

_LAZY_IMPORTS = {
    "AccumulatorRegistry": "registry",
    "Collector": "collector",
    "to_array": "collector",
    "to_list": "collector",
    "ConfigurationError": "exceptions",
    "InvalidPercentileError": "exceptions",
    "ExecutionConfig": "config",
    "PercentileConfig": "config",
    "PercentileRequest": "config",
    "SharedAccumulator": "shared",
    "View": "shared",
    "SortCache": "sorting",
    "build_sorter": "sorting",
    "collect": "reduction",
    "compose": "reduction",
    "compute_percentiles": "percentiles",
    "percentile_table": "percentiles",
    "percentile": "ranking",
    "resolve_rank": "ranking",
}


def __getattr__(name):
    """Lazy import modules to avoid circular dependencies during test discovery."""
    if name in _LAZY_IMPORTS:
        from importlib import import_module

        module = import_module(f".{_LAZY_IMPORTS[name]}", __name__)
        return getattr(module, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
