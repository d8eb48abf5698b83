"""Version information for percentile_sharing."""

__version__ = "0.1.0"
