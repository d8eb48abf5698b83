"""Collectors that share one accumulation between several result columns.

A :class:`SharedAccumulator` wraps a base collector (e.g. :func:`to_list`)
and owns the only real accumulation.  Further columns are registered as
:class:`View` objects: finishing-only collectors that read the owner's
reduced value instead of accumulating their own copy.

Each column supplies a *post-process* operator (typically a sorter from
:func:`percentile_sharing.sorting.build_sorter`) and a *finish* function
(typically a :func:`percentile_sharing.ranking.percentile` finisher).  While
every column registers the very same post-process object, the accumulator
runs it once and hands the result to all of them.  As soon as one column
registers a different operator, the reduced value is frozen before any
post-processing and every column applies its own operator to the frozen
snapshot, so no column can observe another's reordering.

Example:
    >>> from percentile_sharing import interpolation
    >>> from percentile_sharing.collector import to_list
    >>> from percentile_sharing.ranking import percentile
    >>> from percentile_sharing.reduction import collect, compose
    >>> from percentile_sharing.sorting import build_sorter
    >>> sort = build_sorter()
    >>> owner = SharedAccumulator(to_list(), sort, percentile(0.5, interpolation.floor))
    >>> median = owner.share(sort, percentile(0.5, interpolation.linear))
    >>> collect([30, 10, 20, 40], compose(owner, median))
    (20, 25.0)

Note:
    Registration is not thread-safe.  All views must be registered before
    the reduction finishes, and the owner must be finished before its views.
"""

from dataclasses import dataclass
import logging
from types import MappingProxyType
from typing import Any, Callable, FrozenSet, Generic, Optional, TypeVar, Union

import numpy as np

from .collector import Characteristics, Collector, identity, is_identity
from .exceptions import UnresolvedShareError

logger = logging.getLogger(__name__)

T = TypeVar("T")
U = TypeVar("U")
A = TypeVar("A")
R = TypeVar("R")
RR = TypeVar("RR")


def freeze(value: Any) -> Any:
    """Return a read-only counterpart of *value*.

    Lists become tuples, numpy arrays become non-writeable views, dicts
    become ``MappingProxyType`` and sets become ``frozenset``.  Anything
    else is returned unchanged.
    """
    if isinstance(value, list):
        return tuple(value)
    if isinstance(value, np.ndarray):
        view = value.view()
        view.setflags(write=False)
        return view
    if isinstance(value, dict):
        return MappingProxyType(value)
    if isinstance(value, set):
        return frozenset(value)
    return value


class _Unresolved:
    def __repr__(self) -> str:
        return "UNRESOLVED"


UNRESOLVED = _Unresolved()


@dataclass(frozen=True)
class Resolved:
    """Reduced value fixed by the owner's first ``finish`` call.

    Attributes:
        value: The post-processed value shared by all columns when
            *uniform*, otherwise the frozen value before post-processing.
        uniform: Whether all columns registered the same post-process.
    """

    value: Any
    uniform: bool


class SharedAccumulator(Collector[T, A, RR], Generic[T, U, A, R, RR]):
    """Owner collector performing the real accumulation for a share group.

    Type parameters follow the data: elements ``T`` are mapped to ``U`` and
    accumulated in state ``A``; the base collector reduces that to ``R``,
    which each column post-processes (``R -> R``) and finishes (``R -> RR``).
    """

    def __init__(
        self,
        collector: Collector[U, A, R],
        post_process: Optional[Callable[[R], R]] = None,
        finish: Optional[Callable[[R], RR]] = None,
        mapper: Optional[Callable[[T], U]] = None,
    ):
        """Initialize the owner of a share group.

        Args:
            collector: Base collector doing the real accumulation.
            post_process: Operator applied to the reduced value, e.g. a sorter.
            finish: Converts the post-processed value into this column's result.
            mapper: Applied to every element before accumulation.
        """
        self.mapper: Callable[[T], U] = identity if mapper is None else mapper
        self.collector = collector
        self.post_process: Callable[[R], R] = identity if post_process is None else post_process
        self._finish: Callable[[R], RR] = identity if finish is None else finish
        self._maps = not is_identity(mapper)
        self._uniform = True
        self._view_count = 1
        self._resolution: Union[_Unresolved, Resolved] = UNRESOLVED

    @classmethod
    def of(
        cls,
        collector: Collector[Any, Any, Any],
        post_process: Optional[Callable[[Any], Any]] = None,
        finish: Optional[Callable[[Any], Any]] = None,
        mapper: Optional[Callable[[Any], Any]] = None,
    ) -> "SharedAccumulator":
        """Alternate constructor mirroring :meth:`Collector.of`."""
        return cls(collector, post_process, finish, mapper=mapper)

    @property
    def uniform(self) -> bool:
        """True while every registered column uses the owner's post-process."""
        return self._uniform

    @property
    def view_count(self) -> int:
        """Number of columns registered, the owner included."""
        return self._view_count

    @property
    def resolution(self) -> Union[_Unresolved, Resolved]:
        """:data:`UNRESOLVED` until the owner finishes, then :class:`Resolved`."""
        return self._resolution

    @property
    def is_resolved(self) -> bool:
        return isinstance(self._resolution, Resolved)

    def register_view(
        self,
        post_process: Optional[Callable[[R], R]] = None,
        finish: Optional[Callable[[R], RR]] = None,
    ) -> "View":
        """Register another column over this accumulation.

        The caller is responsible for the mapper and base collector being
        the ones this accumulator was created with;
        :class:`percentile_sharing.registry.AccumulatorRegistry` checks that.

        Args:
            post_process: Operator applied to the reduced value.
            finish: Converts the post-processed value into the column's result.

        Returns:
            A finishing-only :class:`View`.
        """
        post_process = identity if post_process is None else post_process
        if self.is_resolved:
            logger.debug("View registered after resolution of %r", self)
        elif self._uniform and post_process is not self.post_process:
            self._uniform = False
            logger.debug(
                "Post-process %r differs from %r; columns will read a frozen copy",
                post_process,
                self.post_process,
            )
        self._view_count += 1
        return View(self, post_process, finish)

    share = register_view

    def supplier(self) -> A:
        return self.collector.supplier()

    def accumulate(self, state: A, element: T) -> A:
        if self._maps:
            return self.collector.accumulate(state, self.mapper(element))
        return self.collector.accumulate(state, element)  # type: ignore[arg-type]

    def combine(self, left: A, right: A) -> A:
        return self.collector.combine(left, right)

    def finish(self, state: A) -> RR:
        self._resolve(state)
        return self.read_view(self.post_process, self._finish)

    @property
    def traits(self) -> FrozenSet[Characteristics]:
        return self.collector.traits - {Characteristics.IDENTITY_FINISH}

    def _resolve(self, state: A) -> Resolved:
        if isinstance(self._resolution, Resolved):
            return self._resolution
        reduced = self.collector.finish(state)
        if self._uniform:
            resolution = Resolved(self.post_process(reduced), uniform=True)
        else:
            resolution = Resolved(freeze(reduced), uniform=False)
        self._resolution = resolution
        logger.debug(
            "Resolved %d column(s) over %s (uniform=%s)",
            self._view_count,
            type(reduced).__name__,
            resolution.uniform,
        )
        return resolution

    def read_view(self, post_process: Callable[[R], R], finish: Callable[[R], RR]) -> RR:
        """Produce one column's result from the resolved value.

        Args:
            post_process: The column's post-process operator.
            finish: The column's finish function.

        Returns:
            The column's result.

        Raises:
            UnresolvedShareError: If the owner has not been finished yet.
        """
        resolution = self._resolution
        if not isinstance(resolution, Resolved):
            raise UnresolvedShareError(
                "View finished before its owning accumulator; finish the owner first"
            )
        if not resolution.uniform:
            return finish(post_process(resolution.value))
        if post_process is self.post_process:
            return finish(resolution.value)
        # Registered after resolution with a different operator
        return finish(post_process(freeze(resolution.value)))

    def __repr__(self) -> str:
        return (
            f"SharedAccumulator(collector={type(self.collector).__name__}, "
            f"views={self._view_count}, uniform={self._uniform})"
        )


class View(Collector[Any, None, Any]):
    """Finishing-only column reading its owner's reduced value."""

    def __init__(
        self,
        owner: SharedAccumulator,
        post_process: Callable[[Any], Any],
        finish: Optional[Callable[[Any], Any]] = None,
    ):
        self.owner = owner
        self.post_process = post_process
        self._finish = identity if finish is None else finish

    def supplier(self) -> None:
        return None

    def accumulate(self, state: None, element: Any) -> None:
        return None

    def combine(self, left: None, right: None) -> None:
        return None

    def finish(self, state: None) -> Any:
        return self.owner.read_view(self.post_process, self._finish)

    def __repr__(self) -> str:
        return f"View(owner={self.owner!r})"
