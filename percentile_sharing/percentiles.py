"""High-level percentile computation over one pass of the data.

Every request is turned into a collector through an
:class:`AccumulatorRegistry`, using the memoized sorter for the requested
ordering.  Requests with the same share id therefore accumulate the input
once and sort it once, however many percentiles and policies are asked for.

Example:
    >>> from percentile_sharing.percentiles import percentile_table
    >>> table = percentile_table(range(0, 100, 10), [0.25, 0.5])
    >>> table.loc[0.5, "linear"]
    45.0
"""

from collections import Counter
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

import pandas as pd
from pydantic import ValidationError

from .collector import Collector, to_list
from .config import DEFAULT_POLICIES, ExecutionConfig, PercentileConfig, PercentileRequest
from .exceptions import ConfigurationError
from .interpolation import get_policy
from .ranking import percentile
from .reduction import collect, compose
from .registry import AccumulatorRegistry
from .sorting import Comparator, build_sorter

logger = logging.getLogger(__name__)


def build_collectors(
    requests: Sequence[PercentileRequest],
    registry: Optional[AccumulatorRegistry] = None,
    *,
    key: Optional[Callable[[Any], Any]] = None,
    comparator: Optional[Comparator] = None,
    mapper: Optional[Callable[[Any], Any]] = None,
    collector_factory: Callable[[], Collector[Any, Any, Any]] = to_list,
) -> List[Collector[Any, Any, Any]]:
    """Create one collector per request, sharing work by ``share_id``.

    Args:
        requests: Percentile requests, in result order.
        registry: Registry for this run; a new one is created if omitted.
        key: Key extractor used for sorting, e.g. ``lambda row: row.price``.
        comparator: Three-way comparator; ``None`` for natural order.
        mapper: Applied to every element before accumulation.
        collector_factory: Creates the base collector for each request.

    Returns:
        Collectors in request order; the first of each share group is the
        owning accumulator.
    """
    registry = registry if registry is not None else AccumulatorRegistry()
    sorter = build_sorter(key, comparator)
    return [
        registry.share(
            request.share_id,
            collector_factory(),
            sorter,
            percentile(request.percentile, get_policy(request.policy)),
            mapper=mapper,
        )
        for request in requests
    ]


def compute_percentiles(
    values: Iterable[Any],
    requests: Sequence[PercentileRequest],
    *,
    key: Optional[Callable[[Any], Any]] = None,
    comparator: Optional[Comparator] = None,
    mapper: Optional[Callable[[Any], Any]] = None,
    execution: Optional[ExecutionConfig] = None,
) -> Dict[str, Any]:
    """Compute every requested percentile in a single pass over *values*.

    Args:
        values: Elements to summarise.
        requests: Percentile requests.
        key: Key extractor used for sorting.
        comparator: Three-way comparator; ``None`` for natural order.
        mapper: Applied to every element before accumulation.
        execution: Reduction settings.

    Returns:
        Mapping from request label to result (``None`` for empty input).

    Raises:
        ConfigurationError: If two requests share a label.
    """
    counts = Counter(request.label for request in requests)
    duplicates = sorted(label for label, count in counts.items() if count > 1)
    if duplicates:
        raise ConfigurationError([f"Duplicate request labels: {duplicates}"])

    collectors = build_collectors(
        requests, AccumulatorRegistry(), key=key, comparator=comparator, mapper=mapper
    )
    results = collect(values, compose(*collectors), execution)
    logger.debug("Computed %d percentile(s)", len(results))
    return {request.label: result for request, result in zip(requests, results)}


def compute_from_config(
    values: Iterable[Any],
    config: PercentileConfig,
    **kwargs: Any,
) -> Dict[str, Any]:
    """Run :func:`compute_percentiles` with the requests and execution of *config*."""
    return compute_percentiles(values, config.requests, execution=config.execution, **kwargs)


def percentile_table(
    values: Iterable[Any],
    percentiles: Sequence[float],
    policies: Sequence[str] = DEFAULT_POLICIES,
    *,
    key: Optional[Callable[[Any], Any]] = None,
    comparator: Optional[Comparator] = None,
    mapper: Optional[Callable[[Any], Any]] = None,
    execution: Optional[ExecutionConfig] = None,
) -> pd.DataFrame:
    """Tabulate percentiles against interpolation policies.

    All cells come from one accumulation and one sort.

    Args:
        values: Elements to summarise.
        percentiles: Percentile fractions, one row each.
        policies: Policy names, one column each.
        key: Key extractor used for sorting.
        comparator: Three-way comparator; ``None`` for natural order.
        mapper: Applied to every element before accumulation.
        execution: Reduction settings.

    Returns:
        DataFrame indexed by ``percentile`` with one column per policy.

    Raises:
        ConfigurationError: If a percentile is outside ``[0, 1]`` or a
            policy name is unknown.
    """
    percentiles = list(dict.fromkeys(percentiles))
    policies = list(dict.fromkeys(policies))
    try:
        # Named by repr so percentiles closer than the per-mille key stay distinct
        requests = [
            PercentileRequest(percentile=p, policy=policy, name=f"{p!r}_{policy}")
            for p in percentiles
            for policy in policies
        ]
    except ValidationError as e:
        raise ConfigurationError([error["msg"] for error in e.errors()]) from e

    results = iter(
        compute_percentiles(
            values,
            requests,
            key=key,
            comparator=comparator,
            mapper=mapper,
            execution=execution,
        ).values()
    )
    rows = []
    for p in percentiles:
        row: Dict[str, Any] = {"percentile": p}
        for policy in policies:
            row[policy] = next(results)
        rows.append(row)
    return pd.DataFrame(rows, columns=["percentile", *policies]).set_index("percentile")
