"""Rollup job configuration building and lifecycle control.

:func:`build_job_config` is the validating constructor callers use to turn
plain values into an immutable :class:`RollupJobConfig`.
:class:`JobLifecycleController` drives a job through
``stopped → started → stopping → stopped`` against a :class:`RollupEngine`.

The controller keeps no state and takes no per-job locks. Two concurrent
lifecycle calls on the same id race inside the engine, and the loser sees
one of the typed errors (``JobAlreadyStartedError``, ``JobNotFoundError``,
``JobStillRunningError``) according to the engine's ordering.
"""

from __future__ import annotations

import logging
import time
from typing import Iterable, List, Optional, Union

from pydantic import ValidationError

from .config import Settings, get_settings
from .engine.base import RollupEngine
from .errors import (
    JobAlreadyStartedError,
    JobNotFoundError,
    JobStillRunningError,
    JobTimeoutError,
    JobValidationError,
)
from .schemas import (
    AcknowledgedResponse,
    GroupConfig,
    JobState,
    MetricConfig,
    RollupJob,
    RollupJobConfig,
)
from .utils.timevalue import TimeValue, to_seconds

logger = logging.getLogger(__name__)

ALL_JOBS = "_all"


def _describe(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()))
        message = str(error.get("msg", "invalid value"))
        if message.startswith("Value error, "):
            message = message[len("Value error, ") :]
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)


def build_job_config(
    *,
    id: str,
    index_pattern: str,
    rollup_index: str,
    cron: str,
    page_size: int,
    groups: Optional[Union[GroupConfig, dict]],
    metrics: Optional[Iterable[Union[MetricConfig, dict]]] = (),
    timeout: Optional[str] = None,
) -> RollupJobConfig:
    """Validate and assemble a rollup job configuration.

    Raises :class:`JobValidationError` listing every rejected field.
    """
    if groups is None:
        raise JobValidationError(
            "groups: a date_histogram group is required", job_id=id or None
        )
    try:
        return RollupJobConfig(
            id=id,
            index_pattern=index_pattern,
            rollup_index=rollup_index,
            cron=cron,
            page_size=page_size,
            groups=groups,
            metrics=tuple(metrics or ()),
            timeout=timeout,
        )
    except ValidationError as exc:
        raise JobValidationError(_describe(exc), job_id=id or None) from exc


class JobLifecycleController:
    def __init__(
        self, engine: RollupEngine, settings: Optional[Settings] = None
    ) -> None:
        self.engine = engine
        self.settings = settings or get_settings()

    def create(self, config: RollupJobConfig) -> AcknowledgedResponse:
        if not isinstance(config, RollupJobConfig):
            raise JobValidationError(
                f"expected a RollupJobConfig, got {type(config).__name__}"
            )
        self.engine.put_job(config)
        logger.info(
            "Created rollup job %s (%s -> %s)",
            config.id,
            config.index_pattern,
            config.rollup_index,
        )
        return AcknowledgedResponse(acknowledged=True)

    def get(self, job_id: Optional[str] = None) -> List[RollupJob]:
        if job_id is None or job_id == ALL_JOBS:
            return self.engine.get_jobs(None)
        jobs = [job for job in self.engine.get_jobs(job_id) if job.job_id == job_id]
        if not jobs:
            raise JobNotFoundError(job_id)
        return jobs

    def _require(self, job_id: str) -> RollupJob:
        return self.get(job_id)[0]

    def start(self, job_id: str) -> AcknowledgedResponse:
        job = self._require(job_id)
        if job.state != JobState.STOPPED:
            raise JobAlreadyStartedError(job_id, job.state.value)
        self.engine.start_job(job_id)
        logger.info("Started rollup job %s", job_id)
        return AcknowledgedResponse(acknowledged=True)

    def stop(
        self,
        job_id: str,
        wait_for_completion: bool = False,
        timeout: Optional[TimeValue] = None,
    ) -> AcknowledgedResponse:
        """Ask the engine to stop *job_id*.

        With *wait_for_completion*, block until the job reports ``stopped``
        or *timeout* elapses (``settings.stop_timeout_seconds`` when not
        given). A timeout raises :class:`JobTimeoutError` and leaves the job
        in whatever state the engine reports.
        """
        if wait_for_completion:
            try:
                limit = to_seconds(
                    timeout if timeout is not None else self.settings.stop_timeout_seconds
                )
            except ValueError as exc:
                raise JobValidationError(str(exc), job_id=job_id) from exc
        self.engine.stop_job(job_id)
        logger.info("Stop requested for rollup job %s", job_id)
        if wait_for_completion:
            self._wait_until_stopped(job_id, limit)
        return AcknowledgedResponse(acknowledged=True)

    def _wait_until_stopped(self, job_id: str, limit: float) -> None:
        deadline = time.monotonic() + limit
        poll = self.settings.stop_poll_interval_seconds
        while True:
            state = self._require(job_id).state
            if state == JobState.STOPPED:
                logger.info("Rollup job %s stopped", job_id)
                return
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                logger.warning(
                    "Rollup job %s still %s after %.3fs", job_id, state.value, limit
                )
                raise JobTimeoutError(job_id, limit, state.value)
            logger.debug("Rollup job %s is %s, waiting", job_id, state.value)
            time.sleep(min(poll, remaining))

    def delete(self, job_id: str) -> AcknowledgedResponse:
        job = self._require(job_id)
        if job.state != JobState.STOPPED:
            raise JobStillRunningError(job_id, job.state.value)
        self.engine.delete_job(job_id)
        logger.info("Deleted rollup job %s", job_id)
        return AcknowledgedResponse(acknowledged=True)

