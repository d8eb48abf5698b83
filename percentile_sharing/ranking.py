"""Rank resolution for percentiles of sorted sequences.

A percentile ``p`` of ``n`` sorted elements is located at the zero-based
fractional position ``n * p - 0.5``.  The position is rounded to six
decimal places first, so that e.g. ``10 * 0.7`` lands exactly on ``7.0``
instead of ``7.000000000000001``.  Positions outside the sequence clamp to
the first or last element; a fractional position yields the two bracketing
elements and the weight between them, which an interpolation policy then
turns into a single value.
"""

from dataclasses import dataclass
import math
import numbers
from typing import Any, Generic, Optional, Sequence, TypeVar

from .exceptions import InvalidPercentileError
from .interpolation import InterpolationPolicy, floor

T = TypeVar("T")

RANK_PRECISION = 1_000_000


def format_quantile_key(q: float) -> str:
    """Format a quantile value as a dictionary key using per-mille resolution.

    Args:
        q: Quantile value in range [0, 1].

    Returns:
        Formatted key string, e.g. ``q0250`` for the 25th percentile,
        ``q0005`` for the 0.5th percentile.
    """
    return f"q{round(q * 1000):04d}"


def validate_percentile(percentile: Any) -> float:
    """Return *percentile* as a float, rejecting values outside ``[0, 1]``.

    Raises:
        InvalidPercentileError: If *percentile* is not a real number in
            ``[0, 1]`` (NaN and booleans included).
    """
    if isinstance(percentile, bool) or not isinstance(percentile, numbers.Real):
        raise InvalidPercentileError(percentile)
    value = float(percentile)
    if not 0.0 <= value <= 1.0:
        raise InvalidPercentileError(percentile)
    return value


@dataclass(frozen=True)
class RankIndex:
    """Zero-based ranks bracketing a percentile.

    Attributes:
        lower: Rank at or below the target position.
        upper: Rank at or above the target position; equal to *lower* for
            an exact rank.
        fraction: Weight of *upper*, ``0.0`` for an exact rank.
    """

    lower: int
    upper: int
    fraction: float = 0.0

    @property
    def is_exact(self) -> bool:
        """True when no interpolation is needed."""
        return self.lower == self.upper


@dataclass(frozen=True)
class RankedPair(Generic[T]):
    """The two elements bracketing a percentile and the weight between them."""

    lower: T
    upper: T
    fraction: float = 0.0

    def resolve(self, policy: InterpolationPolicy) -> T:
        """Apply *policy* unless both elements are equal.

        Equal elements are returned directly, so non-numeric elements work
        with any policy as long as they coincide.
        """
        if self.lower == self.upper:
            return self.lower
        return policy(self.lower, self.upper, self.fraction)  # type: ignore[no-any-return]


def resolve_rank(count: int, percentile: float) -> Optional[RankIndex]:
    """Resolve the ranks for *percentile* within *count* sorted elements.

    Args:
        count: Number of elements, ``>= 0``.
        percentile: Fraction in ``[0, 1]``.

    Returns:
        ``None`` for an empty sequence, else the bracketing :class:`RankIndex`.

    Raises:
        InvalidPercentileError: If *percentile* is outside ``[0, 1]``.
        ValueError: If *count* is negative.

    Examples:
        >>> resolve_rank(10, 0.5)
        RankIndex(lower=4, upper=5, fraction=0.5)
        >>> resolve_rank(10, 0.55)
        RankIndex(lower=5, upper=5, fraction=0.0)
    """
    p = validate_percentile(percentile)
    if count < 0:
        raise ValueError(f"count must be non-negative, got {count}")
    if count == 0:
        return None
    last = count - 1
    if count == 1 or p == 0.0:
        return RankIndex(0, 0)
    if p == 1.0:
        return RankIndex(last, last)

    # Round half up to 6 decimals, then centre between ranks
    position = math.floor(count * p * RANK_PRECISION + 0.5) / RANK_PRECISION - 0.5
    index = math.floor(position)
    if index >= last:
        return RankIndex(last, last)
    if index < 0:
        return RankIndex(0, 0)
    fraction = position - index
    if fraction == 0.0:
        return RankIndex(index, index)
    return RankIndex(index, index + 1, fraction)


def rank_pair(values: Sequence[T], percentile: float) -> Optional[RankedPair[T]]:
    """Fetch the elements of *values* bracketing *percentile*.

    Args:
        values: Sequence already sorted in the desired order.
        percentile: Fraction in ``[0, 1]``.

    Returns:
        ``None`` for an empty sequence, else a :class:`RankedPair`.
    """
    rank = resolve_rank(len(values), percentile)
    if rank is None:
        return None
    lower = values[rank.lower]
    if rank.is_exact:
        return RankedPair(lower, lower)
    return RankedPair(lower, values[rank.upper], rank.fraction)


class PercentileFinisher:
    """Finishing step mapping a sorted sequence to one percentile value.

    The percentile is validated on construction, so a bad request fails
    when it is built rather than at the end of the reduction.
    """

    def __init__(self, percentile: float, policy: InterpolationPolicy = floor):
        self.percentile = validate_percentile(percentile)
        self.policy = policy

    def __call__(self, values: Sequence[T]) -> Optional[T]:
        pair = rank_pair(values, self.percentile)
        if pair is None:
            return None
        return pair.resolve(self.policy)

    def __repr__(self) -> str:
        policy = getattr(self.policy, "__name__", repr(self.policy))
        return f"PercentileFinisher(percentile={self.percentile!r}, policy={policy})"


def percentile(p: float, policy: InterpolationPolicy = floor) -> PercentileFinisher:
    """Build a finisher returning the *p* percentile of a sorted sequence.

    Args:
        p: Fraction in ``[0, 1]``.
        policy: Interpolation policy used between ranks.

    Returns:
        A callable ``sorted_values -> value | None``.

    Raises:
        InvalidPercentileError: If *p* is outside ``[0, 1]``.
    """
    return PercentileFinisher(p, policy)
