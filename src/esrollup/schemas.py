from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .utils.timevalue import (
    is_calendar_interval,
    is_date_histogram_interval,
    is_time_value,
)

SUPPORTED_METRICS: Tuple[str, ...] = ("min", "max", "sum", "avg", "value_count")

_WILDCARD_CHARS = ("*", "?")

# Timeout Elasticsearch applies (and reports back) when a job has none.
ENGINE_DEFAULT_TIMEOUT = "20s"


def _require_text(value: str, name: str) -> str:
    if value is None or not str(value).strip():
        raise ValueError(f"{name} must not be empty")
    return value


def _unique_fields(fields: Tuple[str, ...], name: str) -> Tuple[str, ...]:
    if not fields:
        raise ValueError(f"{name} must list at least one field")
    seen: List[str] = []
    for field_name in fields:
        _require_text(field_name, f"{name} field")
        if field_name in seen:
            raise ValueError(f"{name} field [{field_name}] is listed twice")
        seen.append(field_name)
    return tuple(seen)


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


# ── Group / metric config set ───────────────────────────────────


class DateHistogramGroupConfig(_Frozen):
    field: str
    interval: Optional[str] = None
    calendar_interval: Optional[str] = None
    fixed_interval: Optional[str] = None
    delay: Optional[str] = None
    time_zone: str = "UTC"

    @field_validator("field", "time_zone")
    @classmethod
    def _not_blank(cls, value: str, info) -> str:
        return _require_text(value, f"date_histogram {info.field_name}")

    @field_validator("delay")
    @classmethod
    def _valid_delay(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not is_time_value(value):
            raise ValueError(f"date_histogram delay [{value}] is not a time value")
        return value

    @model_validator(mode="after")
    def _one_interval(self) -> "DateHistogramGroupConfig":
        given = [
            (key, value)
            for key, value in (
                ("interval", self.interval),
                ("calendar_interval", self.calendar_interval),
                ("fixed_interval", self.fixed_interval),
            )
            if value is not None
        ]
        if len(given) != 1:
            raise ValueError(
                "date_histogram requires exactly one of interval, "
                "calendar_interval or fixed_interval"
            )
        key, value = given[0]
        if key == "fixed_interval":
            ok = is_time_value(value)
        elif key == "calendar_interval":
            ok = is_calendar_interval(value)
        else:
            ok = is_date_histogram_interval(value)
        if not ok:
            raise ValueError(f"date_histogram {key} [{value}] is not valid")
        return self

    @property
    def interval_key(self) -> str:
        if self.calendar_interval is not None:
            return "calendar_interval"
        if self.fixed_interval is not None:
            return "fixed_interval"
        return "interval"

    @property
    def interval_value(self) -> str:
        return getattr(self, self.interval_key)

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "field": self.field,
            self.interval_key: self.interval_value,
        }
        if self.delay is not None:
            body["delay"] = self.delay
        body["time_zone"] = self.time_zone
        return body


class TermsGroupConfig(_Frozen):
    fields: Tuple[str, ...]

    @field_validator("fields")
    @classmethod
    def _fields(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        return _unique_fields(value, "terms")

    def to_body(self) -> Dict[str, Any]:
        return {"fields": list(self.fields)}


class HistogramGroupConfig(_Frozen):
    interval: int
    fields: Tuple[str, ...]

    @field_validator("interval")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("histogram interval must be > 0")
        return value

    @field_validator("fields")
    @classmethod
    def _fields(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        return _unique_fields(value, "histogram")

    def to_body(self) -> Dict[str, Any]:
        return {"interval": self.interval, "fields": list(self.fields)}


class GroupConfig(_Frozen):
    date_histogram: DateHistogramGroupConfig
    histogram: Optional[HistogramGroupConfig] = None
    terms: Optional[TermsGroupConfig] = None

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"date_histogram": self.date_histogram.to_body()}
        if self.histogram is not None:
            body["histogram"] = self.histogram.to_body()
        if self.terms is not None:
            body["terms"] = self.terms.to_body()
        return body


class MetricConfig(_Frozen):
    field: str
    metrics: Tuple[str, ...]

    @field_validator("field")
    @classmethod
    def _field(cls, value: str) -> str:
        return _require_text(value, "metric field")

    @field_validator("metrics")
    @classmethod
    def _metrics(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        if not value:
            raise ValueError("metric must list at least one aggregation")
        ordered: List[str] = []
        for name in value:
            if name not in SUPPORTED_METRICS:
                raise ValueError(
                    f"unsupported metric [{name}], expected one of "
                    f"{', '.join(SUPPORTED_METRICS)}"
                )
            if name not in ordered:
                ordered.append(name)
        return tuple(ordered)

    def to_body(self) -> Dict[str, Any]:
        return {"field": self.field, "metrics": list(self.metrics)}


# ── Job configuration ───────────────────────────────────────────


class RollupJobConfig(_Frozen):
    id: str
    index_pattern: str
    rollup_index: str
    cron: str
    page_size: int
    groups: GroupConfig
    metrics: Tuple[MetricConfig, ...] = ()
    timeout: Optional[str] = None

    @field_validator("id", "index_pattern", "rollup_index", "cron")
    @classmethod
    def _not_blank(cls, value: str, info) -> str:
        return _require_text(value, info.field_name)

    @field_validator("page_size")
    @classmethod
    def _page_size(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("page_size must be > 0")
        return value

    @field_validator("rollup_index")
    @classmethod
    def _concrete_rollup_index(cls, value: str) -> str:
        if any(char in value for char in _WILDCARD_CHARS):
            raise ValueError("rollup_index must not contain wildcards")
        return value

    @field_validator("timeout")
    @classmethod
    def _timeout(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not is_time_value(value):
            raise ValueError(f"timeout [{value}] is not a time value")
        if value == ENGINE_DEFAULT_TIMEOUT:
            return None
        return value

    @model_validator(mode="after")
    def _distinct_indices(self) -> "RollupJobConfig":
        if self.rollup_index == self.index_pattern:
            raise ValueError("rollup_index must differ from index_pattern")
        return self

    def to_body(self) -> Dict[str, Any]:
        """Request body for the put-job API (the id travels in the URL)."""
        body: Dict[str, Any] = {
            "index_pattern": self.index_pattern,
            "rollup_index": self.rollup_index,
            "cron": self.cron,
            "page_size": self.page_size,
            "groups": self.groups.to_body(),
            "metrics": [metric.to_body() for metric in self.metrics],
        }
        if self.timeout is not None:
            body["timeout"] = self.timeout
        return body

    @classmethod
    def from_wire(cls, payload: Dict[str, Any]) -> "RollupJobConfig":
        """Build a config from the engine's JSON shape.

        Engine responses echo ``timeout`` with a default of ``20s``, which
        reads back as ``None``, and may carry extra keys; only the known
        keys are kept.
        """
        groups = payload.get("groups") or {}
        return cls(
            id=payload["id"],
            index_pattern=payload["index_pattern"],
            rollup_index=payload["rollup_index"],
            cron=payload["cron"],
            page_size=payload["page_size"],
            groups=GroupConfig(
                date_histogram=_pick(
                    DateHistogramGroupConfig, groups.get("date_histogram")
                ),
                histogram=_pick(HistogramGroupConfig, groups.get("histogram")),
                terms=_pick(TermsGroupConfig, groups.get("terms")),
            ),
            metrics=tuple(
                MetricConfig(field=item["field"], metrics=tuple(item["metrics"]))
                for item in payload.get("metrics") or []
            ),
            timeout=payload.get("timeout"),
        )


def _pick(model: type, payload: Optional[Dict[str, Any]]):
    if payload is None:
        return None
    known = {key: value for key, value in payload.items() if key in model.model_fields}
    return model(**known)


# ── Status / stats ──────────────────────────────────────────────


class JobState(str, Enum):
    STOPPED = "stopped"
    STARTED = "started"
    INDEXING = "indexing"
    STOPPING = "stopping"
    ABORTING = "aborting"

    @property
    def is_running(self) -> bool:
        return self in (JobState.STARTED, JobState.INDEXING)


class RollupJobStatus(BaseModel):
    job_state: JobState = JobState.STOPPED
    current_position: Optional[Dict[str, Any]] = None
    upgraded_doc_id: bool = False


class RollupIndexerJobStats(BaseModel):
    pages_processed: int = 0
    documents_processed: int = 0
    rollups_indexed: int = 0
    trigger_count: int = 0
    index_time_in_ms: int = 0
    index_total: int = 0
    index_failures: int = 0
    search_time_in_ms: int = 0
    search_total: int = 0
    search_failures: int = 0
    processing_time_in_ms: int = 0
    processing_total: int = 0


class RollupJob(BaseModel):
    config: RollupJobConfig
    status: RollupJobStatus = Field(default_factory=RollupJobStatus)
    stats: RollupIndexerJobStats = Field(default_factory=RollupIndexerJobStats)

    @property
    def job_id(self) -> str:
        return self.config.id

    @property
    def state(self) -> JobState:
        return self.status.job_state

    @classmethod
    def from_wire(cls, payload: Dict[str, Any]) -> "RollupJob":
        status = dict(payload.get("status") or {})
        stats = payload.get("stats") or {}
        return cls(
            config=RollupJobConfig.from_wire(payload["config"]),
            status=RollupJobStatus(
                job_state=status.get("job_state", JobState.STOPPED.value),
                current_position=status.get("current_position"),
                upgraded_doc_id=bool(status.get("upgraded_doc_id", False)),
            ),
            stats=RollupIndexerJobStats(
                **{
                    key: value
                    for key, value in stats.items()
                    if key in RollupIndexerJobStats.model_fields
                }
            ),
        )


class AcknowledgedResponse(BaseModel):
    acknowledged: bool = True


# ── Capabilities ────────────────────────────────────────────────


class RollupFieldCaps(BaseModel):
    aggs: List[Dict[str, Any]] = Field(default_factory=list)


class RollupJobCaps(BaseModel):
    job_id: str
    rollup_index: str
    index_pattern: str
    fields: Dict[str, RollupFieldCaps] = Field(default_factory=dict)


class RollableIndexCaps(BaseModel):
    index_name: str
    rollup_jobs: List[RollupJobCaps] = Field(default_factory=list)
