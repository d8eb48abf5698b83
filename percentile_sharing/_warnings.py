"""Custom warning classes for the percentile_sharing package.

These warning classes allow users to programmatically filter, suppress,
or capture warnings using Python's standard ``warnings`` module.

Example:
    Turn data-quality warnings into errors in a test suite::

        import warnings
        from percentile_sharing._warnings import DataQualityWarning

        warnings.filterwarnings("error", category=DataQualityWarning)
"""


class PercentileSharingWarning(UserWarning):
    """Base class for all percentile-sharing warnings."""


class DataQualityWarning(PercentileSharingWarning):
    """Runtime data-quality observations.

    Raised when a natural-order sort meets values such as NaN that have no
    defined position, so percentile results depend on input order.
    """
