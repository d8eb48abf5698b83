"""Exceptions raised by percentile_sharing.

All exceptions derive from :class:`PercentileSharingError`.  Argument
problems additionally derive from :class:`ValueError` so callers that only
know the standard library hierarchy can still catch them.
"""

from typing import Any, List, Optional


class PercentileSharingError(Exception):
    """Base class for all percentile-sharing errors."""


class ConfigurationError(PercentileSharingError, ValueError):
    """Raised when a sharing or percentile request is mis-configured.

    Covers blank share ids, views whose mapper or base collector does not
    match the owner registered under the same id, unknown interpolation
    policy names, and duplicate result labels.

    Attributes:
        issues: List of specific configuration problems found.
        share_id: Share id the problems relate to, if any.

    Examples:
        Catching and inspecting issues::

            try:
                registry.share("prices", to_list(), mapper=other_mapper)
            except ConfigurationError as e:
                for issue in e.issues:
                    print(f"  - {issue}")
    """

    def __init__(self, issues: List[str], share_id: Optional[str] = None) -> None:
        self.issues = issues
        self.share_id = share_id
        subject = f"Share id {share_id!r}" if share_id is not None else "Configuration"
        bullet_list = "\n".join(f"  - {issue}" for issue in issues)
        super().__init__(
            f"{subject} has {len(issues)} "
            f"{'issue' if len(issues) == 1 else 'issues'}:\n{bullet_list}"
        )


class InvalidPercentileError(PercentileSharingError, ValueError):
    """Raised when a percentile fraction lies outside ``[0, 1]``.

    Attributes:
        percentile: The rejected value.
    """

    def __init__(self, percentile: Any) -> None:
        self.percentile = percentile
        super().__init__(f"Percentile must be a number within [0, 1], got {percentile!r}")


class UnresolvedShareError(PercentileSharingError, RuntimeError):
    """Raised when a view is finished before the accumulator that owns it."""
