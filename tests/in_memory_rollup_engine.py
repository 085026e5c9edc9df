from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from esrollup.engine.base import RollupEngine
from esrollup.errors import (
    EngineUnavailableError,
    JobAlreadyExistsError,
    JobAlreadyStartedError,
    JobNotFoundError,
    JobStillRunningError,
)
from esrollup.schemas import (
    DateHistogramGroupConfig,
    GroupConfig,
    HistogramGroupConfig,
    JobState,
    MetricConfig,
    RollupJob,
    RollupJobConfig,
    TermsGroupConfig,
)


def make_job_config(job_id: str = "job_1", **overrides: Any) -> RollupJobConfig:
    """The job used throughout the rollup documentation examples."""
    values: Dict[str, Any] = {
        "id": job_id,
        "index_pattern": "docs",
        "rollup_index": "rollup",
        "cron": "*/1 * * * * ?",
        "page_size": 100,
        "groups": GroupConfig(
            date_histogram=DateHistogramGroupConfig(
                field="timestamp", interval="1h", delay="7d", time_zone="UTC"
            ),
            histogram=HistogramGroupConfig(
                interval=5, fields=("load", "net_in", "net_out")
            ),
            terms=TermsGroupConfig(fields=("hostname", "datacenter")),
        ),
        "metrics": (
            MetricConfig(field="temperature", metrics=("min", "max", "sum")),
            MetricConfig(field="voltage", metrics=("avg", "value_count")),
        ),
        "timeout": None,
    }
    values.update(overrides)
    return RollupJobConfig(**values)


@dataclass
class InMemoryRollupEngine(RollupEngine):
    jobs: Dict[str, RollupJob] = field(default_factory=dict)
    # Survives deletion, like rollup index metadata.
    metadata: Dict[str, RollupJobConfig] = field(default_factory=dict)
    stop_completes: bool = True
    unavailable: bool = False
    calls: List[Tuple[str, Optional[str]]] = field(default_factory=list)

    def _record(self, name: str, job_id: Optional[str]) -> None:
        self.calls.append((name, job_id))
        if self.unavailable:
            raise EngineUnavailableError(f"{name} failed: engine unavailable")

    def _existing(self, job_id: str) -> RollupJob:
        job = self.jobs.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def set_state(self, job_id: str, state: JobState) -> None:
        self._existing(job_id).status.job_state = state

    def put_job(self, config: RollupJobConfig) -> None:
        self._record("put", config.id)
        if config.id in self.jobs:
            raise JobAlreadyExistsError(config.id)
        self.jobs[config.id] = RollupJob(config=config)
        self.metadata[config.id] = config

    def get_jobs(self, job_id: Optional[str] = None) -> List[RollupJob]:
        self._record("get", job_id)
        if job_id is None:
            return [job.model_copy(deep=True) for job in self.jobs.values()]
        job = self.jobs.get(job_id)
        return [job.model_copy(deep=True)] if job else []

    def start_job(self, job_id: str) -> None:
        self._record("start", job_id)
        job = self._existing(job_id)
        if job.state != JobState.STOPPED:
            raise JobAlreadyStartedError(job_id, job.state.value)
        job.status.job_state = JobState.STARTED
        job.stats.trigger_count += 1

    def stop_job(self, job_id: str) -> None:
        self._record("stop", job_id)
        job = self._existing(job_id)
        if job.state == JobState.STOPPED:
            return
        job.status.job_state = (
            JobState.STOPPED if self.stop_completes else JobState.STOPPING
        )

    def delete_job(self, job_id: str) -> None:
        self._record("delete", job_id)
        job = self._existing(job_id)
        if job.state != JobState.STOPPED:
            raise JobStillRunningError(job_id, job.state.value)
        del self.jobs[job_id]

    def list_job_configs(self) -> List[RollupJobConfig]:
        self._record("list", None)
        return list(self.metadata.values())
