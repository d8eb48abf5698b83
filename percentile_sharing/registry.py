"""Per-run registry routing column requests to shared accumulators.

Requests are matched by a caller-chosen id.  The first request for an id
creates the :class:`SharedAccumulator` and receives it as the owner; later
requests for the same id receive :class:`View` objects over it, provided
they use the very same mapper and the same kind of base collector.

Create one registry per reduction run and discard it afterwards; reusing a
registry across runs would hand later runs views over an already resolved
accumulator.
"""

import logging
from typing import Any, Callable, Dict, Iterator, List, Optional

from .collector import Collector, identity
from .exceptions import ConfigurationError
from .shared import SharedAccumulator

logger = logging.getLogger(__name__)


class AccumulatorRegistry:
    """Mapping from share id to :class:`SharedAccumulator` for one run.

    Not thread-safe; register every column from one thread before the
    reduction starts.
    """

    def __init__(self) -> None:
        self._accumulators: Dict[str, SharedAccumulator] = {}

    def share(
        self,
        share_id: str,
        collector: Collector[Any, Any, Any],
        post_process: Optional[Callable[[Any], Any]] = None,
        finish: Optional[Callable[[Any], Any]] = None,
        mapper: Optional[Callable[[Any], Any]] = None,
    ) -> Collector[Any, Any, Any]:
        """Return a collector for one column of the share group *share_id*.

        Args:
            share_id: Non-blank id of the share group.
            collector: Base collector; only the first request's instance is
                used, later ones are checked for type only.
            post_process: Operator applied to the reduced value, e.g. a sorter.
            finish: Converts the post-processed value into the column result.
            mapper: Applied to every element before accumulation.

        Returns:
            The owning :class:`SharedAccumulator` for the first request of an
            id, a :class:`View` for every later one.

        Raises:
            ConfigurationError: If *share_id* is blank, or *mapper* or the
                type of *collector* differ from the owner's.  The registry
                and the accumulator are left unchanged.
        """
        if not isinstance(share_id, str) or not share_id.strip():
            raise ConfigurationError([f"Blank share id {share_id!r}"])

        accumulator = self._accumulators.get(share_id)
        if accumulator is None:
            accumulator = SharedAccumulator(collector, post_process, finish, mapper=mapper)
            self._accumulators[share_id] = accumulator
            logger.debug("Created shared accumulator %r for %s", share_id, accumulator)
            return accumulator

        mapper = identity if mapper is None else mapper
        issues: List[str] = []
        if mapper is not accumulator.mapper:
            issues.append(f"mapper {mapper!r} not {accumulator.mapper!r}")
        if type(collector) is not type(accumulator.collector):
            issues.append(
                f"collector {type(collector).__name__} not a "
                f"{type(accumulator.collector).__name__}"
            )
        if issues:
            raise ConfigurationError(issues, share_id=share_id)
        return accumulator.register_view(post_process, finish)

    def get(self, share_id: str) -> Optional[SharedAccumulator]:
        """Return the accumulator registered under *share_id*, if any."""
        return self._accumulators.get(share_id)

    @property
    def ids(self) -> List[str]:
        """Share ids in registration order."""
        return list(self._accumulators)

    def __contains__(self, share_id: object) -> bool:
        return share_id in self._accumulators

    def __len__(self) -> int:
        return len(self._accumulators)

    def __iter__(self) -> Iterator[str]:
        return iter(self._accumulators)
