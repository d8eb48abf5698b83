"""Memoized sort operators for accumulated sequences.

Percentile views decide whether they can share one sorted list by comparing
their post-process operators with ``is``.  :func:`build_sorter` therefore
hands out exactly one sorter object per ``(key, comparator)`` pair, with a
pre-built singleton for the common identity/natural-order case.

Sorters reorder their input in place when it is mutable and fall back to a
fresh copy otherwise, so a frozen snapshot is never modified.

Example:
    >>> from percentile_sharing.sorting import build_sorter
    >>> by_score = build_sorter(key=lambda row: row[1])
    >>> by_score([("b", 2), ("a", 1)])
    [('a', 1), ('b', 2)]
"""

from functools import cmp_to_key
import logging
import threading
from typing import Any, Callable, Dict, Optional, Sequence
import warnings

import numpy as np

from ._warnings import DataQualityWarning
from .collector import identity

logger = logging.getLogger(__name__)

Comparator = Callable[[Any, Any], int]
Sorter = Callable[[Sequence[Any]], Sequence[Any]]


def natural_order(left: Any, right: Any) -> int:
    """Three-way comparison using the elements' own ``<`` and ``>``."""
    return (left > right) - (left < right)


def reverse_order(left: Any, right: Any) -> int:
    """Three-way comparison giving descending order."""
    return (right > left) - (right < left)


class SortSpec:
    """A ``(key, comparator)`` pair compared by identity, not behaviour.

    Two specs are equal only when both callables are the very same objects,
    which is what lets equal requests be detected in O(1).

    Attributes:
        key: Key extractor applied to every element before comparing.
        comparator: Three-way comparison function applied to the keys.
    """

    __slots__ = ("key", "comparator")

    def __init__(
        self,
        key: Optional[Callable[[Any], Any]] = None,
        comparator: Optional[Comparator] = None,
    ):
        self.key = identity if key is None else key
        self.comparator = natural_order if comparator is None else comparator

    @classmethod
    def of(
        cls,
        key: Optional[Callable[[Any], Any]] = None,
        comparator: Optional[Comparator] = None,
    ) -> "SortSpec":
        """Return :data:`NATURAL` for identity/natural order, else a new spec."""
        spec = cls(key, comparator)
        if spec.is_natural:
            return NATURAL
        return spec

    @property
    def is_natural(self) -> bool:
        """True for the identity key with natural ordering."""
        return self.key is identity and self.comparator is natural_order

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SortSpec):
            return NotImplemented
        return self.key is other.key and self.comparator is other.comparator

    def __hash__(self) -> int:
        return hash((id(self.key), id(self.comparator)))

    def __repr__(self) -> str:
        key = getattr(self.key, "__name__", repr(self.key))
        comparator = getattr(self.comparator, "__name__", repr(self.comparator))
        return f"SortSpec(key={key}, comparator={comparator})"


NATURAL = SortSpec()


def _ensure_mutable(values: Sequence[Any]) -> Sequence[Any]:
    """Return *values* if it accepts item assignment, else a mutable copy."""
    try:
        values[0] = values[0]  # type: ignore[index]
    except (TypeError, ValueError):
        logger.debug("Sorting a copy of immutable %s", type(values).__name__)
        if isinstance(values, np.ndarray):
            return np.array(values)
        return list(values)
    return values


def _warn_on_nan(values: Sequence[Any]) -> None:
    if isinstance(values, np.ndarray):
        has_nan = values.dtype.kind in "fc" and bool(np.isnan(values).any())
    else:
        # NaN is the only value not equal to itself
        has_nan = any(v != v for v in values)  # pylint: disable=comparison-with-itself
    if has_nan:
        warnings.warn(
            "NaN values found while sorting; their position and the percentiles "
            "derived from the sort are undefined",
            DataQualityWarning,
            stacklevel=4,
        )


def _build_sort_function(spec: SortSpec) -> Sorter:
    """Create the sorter for *spec*."""
    reverse = False
    sort_key: Optional[Callable[[Any], Any]]
    if spec.comparator is natural_order or spec.comparator is reverse_order:
        sort_key = None if spec.key is identity else spec.key
        reverse = spec.comparator is reverse_order
    else:
        compare_key = cmp_to_key(spec.comparator)
        if spec.key is identity:
            sort_key = compare_key
        else:
            extract = spec.key

            def sort_key(item: Any) -> Any:
                return compare_key(extract(item))

    check_nan = sort_key is None

    def sort_sequence(values: Sequence[Any]) -> Sequence[Any]:
        if len(values) <= 1:
            return values
        values = _ensure_mutable(values)
        if check_nan:
            _warn_on_nan(values)
        if isinstance(values, np.ndarray):
            if sort_key is None and reverse:
                # Stable ascending sort of the reversed input, read backwards,
                # keeps ties in input order like list.sort(reverse=True)
                backwards = values[::-1]
                values[:] = backwards[np.argsort(backwards, kind="stable")][::-1]
            elif sort_key is None:
                values.sort(kind="stable")
            else:
                order = sorted(
                    range(len(values)), key=lambda i: sort_key(values[i]), reverse=reverse
                )
                values[:] = values[order]
            return values
        if hasattr(values, "sort"):
            values.sort(key=sort_key, reverse=reverse)  # type: ignore[attr-defined]
            return values
        return sorted(values, key=sort_key, reverse=reverse)

    sort_sequence.__qualname__ = f"sort_sequence[{spec!r}]"
    return sort_sequence


NATURAL_SORTER: Sorter = _build_sort_function(NATURAL)


class SortCache:
    """Cache of sorter functions keyed by :class:`SortSpec`.

    Entries are never evicted: evicting would hand out a second, different
    sorter object for the same pair and defeat identity-based sharing.
    """

    def __init__(self) -> None:
        self._sorters: Dict[SortSpec, Sorter] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(
        self,
        key: Optional[Callable[[Any], Any]] = None,
        comparator: Optional[Comparator] = None,
    ) -> Sorter:
        """Return the sorter for ``(key, comparator)``, creating it once.

        Args:
            key: Key extractor; ``None`` or :func:`identity` for the element itself.
            comparator: Three-way comparator; ``None`` for natural order.

        Returns:
            The same function object for every call with the same pair.
        """
        spec = SortSpec.of(key, comparator)
        if spec is NATURAL:
            return NATURAL_SORTER
        with self._lock:
            sorter = self._sorters.get(spec)
            if sorter is None:
                self.misses += 1
                sorter = _build_sort_function(spec)
                self._sorters[spec] = sorter
                logger.debug("Created sorter for %r", spec)
            else:
                self.hits += 1
        return sorter

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate.

        Returns:
            Hit rate as percentage.
        """
        total = self.hits + self.misses
        return (self.hits / total * 100) if total > 0 else 0.0

    def clear(self) -> None:
        """Clear the cache."""
        with self._lock:
            self._sorters.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        return len(self._sorters)


_DEFAULT_CACHE = SortCache()


def build_sorter(
    key: Optional[Callable[[Any], Any]] = None,
    comparator: Optional[Comparator] = None,
) -> Sorter:
    """Return the process-wide memoized sorter for ``(key, comparator)``.

    Args:
        key: Key extractor; ``None`` sorts the elements themselves.
        comparator: Three-way comparator such as :func:`reverse_order`;
            ``None`` uses natural order.

    Returns:
        A function that sorts a sequence (in place when possible) and returns it.
    """
    return _DEFAULT_CACHE.get(key, comparator)


def default_cache() -> SortCache:
    """Return the process-wide cache used by :func:`build_sorter`."""
    return _DEFAULT_CACHE
