"""Rollup capability aggregation.

Capabilities answer "which jobs rolled up this index pattern, and which
aggregations can be run against each field of the result". They are derived
from job configurations only and rebuilt on every call from a snapshot of
the engine's metadata, so reads never block lifecycle changes.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from .engine.base import RollupEngine
from .schemas import (
    RollableIndexCaps,
    RollupFieldCaps,
    RollupJobCaps,
    RollupJobConfig,
)

logger = logging.getLogger(__name__)

_MATCH_ALL = {"_all", "*", ""}


def _is_all(pattern: Optional[str]) -> bool:
    return pattern is None or pattern.strip() in _MATCH_ALL


def _add(fields: Dict[str, RollupFieldCaps], name: str, agg: Dict[str, Any]) -> None:
    fields.setdefault(name, RollupFieldCaps()).aggs.append(agg)


def build_job_caps(config: RollupJobConfig) -> RollupJobCaps:
    """Field capabilities contributed by a single job.

    Order: date histogram field, histogram fields, terms fields, then
    metric fields with their functions in declared order.
    """
    fields: Dict[str, RollupFieldCaps] = {}
    groups = config.groups

    date_histogram = groups.date_histogram
    date_agg: Dict[str, Any] = {
        "agg": "date_histogram",
        date_histogram.interval_key: date_histogram.interval_value,
    }
    if date_histogram.delay is not None:
        date_agg["delay"] = date_histogram.delay
    date_agg["time_zone"] = date_histogram.time_zone
    _add(fields, date_histogram.field, date_agg)

    if groups.histogram is not None:
        for name in groups.histogram.fields:
            _add(
                fields,
                name,
                {"agg": "histogram", "interval": groups.histogram.interval},
            )

    if groups.terms is not None:
        for name in groups.terms.fields:
            _add(fields, name, {"agg": "terms"})

    for metric in config.metrics:
        for function in metric.metrics:
            _add(fields, metric.field, {"agg": function})

    return RollupJobCaps(
        job_id=config.id,
        rollup_index=config.rollup_index,
        index_pattern=config.index_pattern,
        fields=fields,
    )


def _group_caps(
    configs: Iterable[RollupJobConfig],
    key: Callable[[RollupJobConfig], str],
    wanted: Optional[str],
) -> Dict[str, RollableIndexCaps]:
    result: Dict[str, RollableIndexCaps] = {}
    match_all = _is_all(wanted)
    for config in configs:
        name = key(config)
        if not match_all and name != wanted:
            continue
        caps = result.get(name)
        if caps is None:
            caps = result[name] = RollableIndexCaps(index_name=name)
        caps.rollup_jobs.append(build_job_caps(config))
    return result


class CapabilityAggregator:
    def __init__(self, engine: RollupEngine) -> None:
        self.engine = engine

    def _snapshot(self) -> List[RollupJobConfig]:
        configs = self.engine.list_job_configs()
        logger.debug("Aggregating capabilities over %d job configs", len(configs))
        return configs

    def get_capabilities(
        self, index_pattern: Optional[str] = None
    ) -> Dict[str, RollableIndexCaps]:
        """Capabilities keyed by source index pattern.

        *index_pattern* is matched as an exact string; ``None``, ``"_all"``
        and ``"*"`` select every pattern. Jobs keep their metadata order and
        duplicate descriptors from different jobs are all kept.
        """
        return _group_caps(
            self._snapshot(), lambda config: config.index_pattern, index_pattern
        )

    def get_rollup_index_capabilities(
        self, rollup_index: Optional[str] = None
    ) -> Dict[str, RollableIndexCaps]:
        """Capabilities keyed by the rollup index the jobs write to."""
        return _group_caps(
            self._snapshot(), lambda config: config.rollup_index, rollup_index
        )
