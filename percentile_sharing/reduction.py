"""Reduction driver running collectors over a data sequence.

:func:`collect` performs supplier -> accumulate -> (combine) -> finish for
one collector, either sequentially or by accumulating chunks of the input
on worker threads and combining the partial states in input order.
:func:`compose` runs several collectors in the same pass, which is how
several percentile columns are computed from one accumulation.

Example:
    >>> from percentile_sharing.collector import to_list
    >>> from percentile_sharing.config import ExecutionConfig
    >>> collect(range(5), to_list(), ExecutionConfig(n_workers=2, chunk_size=2))
    [0, 1, 2, 3, 4]
"""

from concurrent.futures import ThreadPoolExecutor
from functools import reduce
import logging
import math
from typing import Any, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from tqdm import tqdm

from .collector import Characteristics, Collector
from .config import ExecutionConfig

logger = logging.getLogger(__name__)

TARGET_CHUNKS_PER_WORKER = 4


class CompositeCollector(Collector[Any, List[Any], Tuple[Any, ...]]):
    """Run several collectors side by side over one pass.

    Members are finished in the order given, so a shared accumulator must be
    listed before the views registered on it.
    """

    def __init__(self, collectors: Iterable[Collector[Any, Any, Any]]):
        self.collectors: Tuple[Collector[Any, Any, Any], ...] = tuple(collectors)

    def supplier(self) -> List[Any]:
        return [collector.supplier() for collector in self.collectors]

    def accumulate(self, state: List[Any], element: Any) -> List[Any]:
        for i, collector in enumerate(self.collectors):
            state[i] = collector.accumulate(state[i], element)
        return state

    def combine(self, left: List[Any], right: List[Any]) -> List[Any]:
        return [
            collector.combine(a, b) for collector, a, b in zip(self.collectors, left, right)
        ]

    def finish(self, state: List[Any]) -> Tuple[Any, ...]:
        return tuple(collector.finish(s) for collector, s in zip(self.collectors, state))

    @property
    def traits(self) -> FrozenSet[Characteristics]:
        if not self.collectors:
            return frozenset()
        common = frozenset.intersection(*(c.traits for c in self.collectors))
        return common - {Characteristics.IDENTITY_FINISH}


def compose(*collectors: Collector[Any, Any, Any]) -> CompositeCollector:
    """Combine *collectors* into one whose result is a tuple of theirs."""
    return CompositeCollector(collectors)


def _accumulate_chunk(collector: Collector[Any, Any, Any], chunk: Sequence[Any]) -> Any:
    state = collector.supplier()
    for element in chunk:
        state = collector.accumulate(state, element)
    return state


def _create_chunks(items: Sequence[Any], chunk_size: int) -> List[Sequence[Any]]:
    """Split *items* into consecutive chunks of at most *chunk_size*."""
    return [items[i : i + chunk_size] for i in range(0, len(items), chunk_size)]


def _chunk_size(n_items: int, execution: ExecutionConfig) -> int:
    if execution.chunk_size is not None:
        return execution.chunk_size
    return max(1, math.ceil(n_items / (execution.n_workers * TARGET_CHUNKS_PER_WORKER)))


def collect(
    values: Iterable[Any],
    collector: Collector[Any, Any, Any],
    execution: Optional[ExecutionConfig] = None,
) -> Any:
    """Reduce *values* with *collector*.

    Args:
        values: Elements to reduce.  Materialized into a list when run on
            more than one worker.
        collector: Collector to drive, typically from :func:`compose`.
        execution: Worker, chunking and progress settings; sequential by
            default.

    Returns:
        The collector's result.
    """
    execution = execution or ExecutionConfig()

    if execution.n_workers <= 1:
        return collector.finish(_accumulate_chunk(collector, values))  # type: ignore[arg-type]

    items = values if isinstance(values, (list, tuple)) else list(values)
    chunks = _create_chunks(items, _chunk_size(len(items), execution))
    if not chunks:
        return collector.finish(collector.supplier())

    logger.debug(
        "Accumulating %d items in %d chunks on %d workers",
        len(items),
        len(chunks),
        execution.n_workers,
    )
    with ThreadPoolExecutor(max_workers=execution.n_workers) as pool:
        partials = list(
            tqdm(
                pool.map(lambda chunk: _accumulate_chunk(collector, chunk), chunks),
                total=len(chunks),
                desc="Collecting",
                disable=not execution.progress_bar,
            )
        )
    state = reduce(collector.combine, partials)
    return collector.finish(state)
