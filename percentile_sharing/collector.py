"""Reduction-stage contract shared by every collector in the package.

A collector describes one reduction in five parts: ``supplier`` creates an
empty accumulation state, ``accumulate`` folds one element into a state,
``combine`` merges two partial states produced on separate chunks,
``finish`` turns the final state into a result, and ``traits`` tells the
driver which optimisations are safe.

Example:
    >>> from percentile_sharing.collector import to_list
    >>> collector = to_list()
    >>> state = collector.supplier()
    >>> for value in (3, 1, 2):
    ...     state = collector.accumulate(state, value)
    >>> collector.finish(state)
    [3, 1, 2]
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, FrozenSet, Generic, Iterable, List, Optional, TypeVar

import numpy as np

T = TypeVar("T")
A = TypeVar("A")
R = TypeVar("R")


def identity(value: T) -> T:
    """Return *value* unchanged.

    Used as the default mapper, key extractor and post-process operator.
    Collectors and sorters recognise it by identity and skip the call.
    """
    return value


def is_identity(func: Optional[Callable]) -> bool:
    """Check whether *func* is ``None`` or the module's :func:`identity`."""
    return func is None or func is identity


class Characteristics(Enum):
    """Hints a collector gives to the driver."""

    CONCURRENT = "concurrent"
    UNORDERED = "unordered"
    IDENTITY_FINISH = "identity_finish"


class Collector(ABC, Generic[T, A, R]):
    """Abstract reduction stage consumed by :func:`percentile_sharing.reduction.collect`."""

    @abstractmethod
    def supplier(self) -> A:
        """Create a new, empty accumulation state."""

    @abstractmethod
    def accumulate(self, state: A, element: T) -> A:
        """Fold *element* into *state* and return the updated state."""

    @abstractmethod
    def combine(self, left: A, right: A) -> A:
        """Merge two partial states, *left* holding the earlier elements."""

    @abstractmethod
    def finish(self, state: A) -> R:
        """Convert the final state into the collector's result."""

    @property
    def traits(self) -> FrozenSet[Characteristics]:
        """Characteristics of this collector (none by default)."""
        return frozenset()

    @staticmethod
    def of(
        supplier: Callable[[], Any],
        accumulate: Callable[[Any, Any], Any],
        combine: Callable[[Any, Any], Any],
        finish: Optional[Callable[[Any], Any]] = None,
        traits: Iterable[Characteristics] = (),
    ) -> "FunctionCollector":
        """Build a collector from plain functions.

        Args:
            supplier: Creates an empty state.
            accumulate: Folds one element into a state.
            combine: Merges two partial states.
            finish: Converts the final state; ``None`` means identity.
            traits: Characteristics of the collector.

        Returns:
            A :class:`FunctionCollector`.
        """
        return FunctionCollector(supplier, accumulate, combine, finish, traits)


class FunctionCollector(Collector[Any, Any, Any]):
    """Collector assembled from user supplied functions."""

    def __init__(
        self,
        supplier: Callable[[], Any],
        accumulate: Callable[[Any, Any], Any],
        combine: Callable[[Any, Any], Any],
        finish: Optional[Callable[[Any], Any]] = None,
        traits: Iterable[Characteristics] = (),
    ):
        self._supplier = supplier
        self._accumulate = accumulate
        self._combine = combine
        self._finish = identity if finish is None else finish
        traits = frozenset(traits)
        if is_identity(finish):
            traits |= {Characteristics.IDENTITY_FINISH}
        self._traits = traits

    def supplier(self) -> Any:
        return self._supplier()

    def accumulate(self, state: Any, element: Any) -> Any:
        return self._accumulate(state, element)

    def combine(self, left: Any, right: Any) -> Any:
        return self._combine(left, right)

    def finish(self, state: Any) -> Any:
        return self._finish(state)

    @property
    def traits(self) -> FrozenSet[Characteristics]:
        return self._traits


class ListCollector(Collector[T, List[T], List[T]]):
    """Collect elements into a ``list`` in encounter order."""

    def supplier(self) -> List[T]:
        return []

    def accumulate(self, state: List[T], element: T) -> List[T]:
        state.append(element)
        return state

    def combine(self, left: List[T], right: List[T]) -> List[T]:
        left.extend(right)
        return left

    def finish(self, state: List[T]) -> List[T]:
        return state

    @property
    def traits(self) -> FrozenSet[Characteristics]:
        return frozenset({Characteristics.IDENTITY_FINISH})


class ArrayCollector(Collector[Any, List[Any], np.ndarray]):
    """Collect elements into a ``numpy`` array.

    Elements are buffered in a list and converted once in :meth:`finish`,
    which keeps ``accumulate`` O(1).
    """

    def __init__(self, dtype: Any = None):
        """Initialize array collector.

        Args:
            dtype: Optional numpy dtype for the resulting array.
        """
        self.dtype = dtype

    def supplier(self) -> List[Any]:
        return []

    def accumulate(self, state: List[Any], element: Any) -> List[Any]:
        state.append(element)
        return state

    def combine(self, left: List[Any], right: List[Any]) -> List[Any]:
        left.extend(right)
        return left

    def finish(self, state: List[Any]) -> np.ndarray:
        return np.array(state, dtype=self.dtype)


def to_list() -> ListCollector:
    """Collector producing a list of all elements."""
    return ListCollector()


def to_array(dtype: Any = None) -> ArrayCollector:
    """Collector producing a numpy array of all elements.

    Args:
        dtype: Optional numpy dtype, e.g. ``float``.

    Returns:
        A new :class:`ArrayCollector`.
    """
    return ArrayCollector(dtype=dtype)
