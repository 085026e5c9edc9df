"""Client facade for rollup jobs.

:class:`RollupClient` exposes each operation in a blocking form and an
``*_async`` form that takes an :class:`ActionListener` and returns a
:class:`PendingOperation`. Both forms share the same semantics and errors.
:class:`AsyncRollupClient` offers awaitable variants for asyncio callers.

The facade adds no validation of its own and never retries; retries are
configured on the Elasticsearch transport.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional

from .capabilities import CapabilityAggregator
from .config import Settings, get_settings, validate_settings
from .engine.base import RollupEngine
from .engine.factory import create_rollup_engine
from .jobs import JobLifecycleController
from .operations import ActionListener, OperationRunner, PendingOperation
from .schemas import AcknowledgedResponse, RollableIndexCaps, RollupJob, RollupJobConfig
from .utils.timevalue import TimeValue

logger = logging.getLogger(__name__)


class RollupClient:
    def __init__(
        self,
        engine: RollupEngine,
        settings: Optional[Settings] = None,
        runner: Optional[OperationRunner] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.engine = engine
        self.jobs = JobLifecycleController(engine, self.settings)
        self.capabilities = CapabilityAggregator(engine)
        self._runner = runner or OperationRunner(max_workers=self.settings.async_workers)

    def __enter__(self) -> "RollupClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._runner.shutdown(wait=False)
        close = getattr(self.engine, "close", None)
        if callable(close):
            close()

    # ── blocking ────────────────────────────────────────────────

    def put_rollup_job(self, config: RollupJobConfig) -> AcknowledgedResponse:
        return self.jobs.create(config)

    def get_rollup_job(self, job_id: Optional[str] = None) -> List[RollupJob]:
        return self.jobs.get(job_id)

    def start_rollup_job(self, job_id: str) -> AcknowledgedResponse:
        return self.jobs.start(job_id)

    def stop_rollup_job(
        self,
        job_id: str,
        wait_for_completion: bool = False,
        timeout: Optional[TimeValue] = None,
    ) -> AcknowledgedResponse:
        return self.jobs.stop(
            job_id, wait_for_completion=wait_for_completion, timeout=timeout
        )

    def delete_rollup_job(self, job_id: str) -> AcknowledgedResponse:
        return self.jobs.delete(job_id)

    def get_rollup_capabilities(
        self, index_pattern: Optional[str] = None
    ) -> Dict[str, RollableIndexCaps]:
        return self.capabilities.get_capabilities(index_pattern)

    def get_rollup_index_capabilities(
        self, rollup_index: Optional[str] = None
    ) -> Dict[str, RollableIndexCaps]:
        return self.capabilities.get_rollup_index_capabilities(rollup_index)

    # ── listener-based ──────────────────────────────────────────

    def put_rollup_job_async(
        self, config: RollupJobConfig, listener: Optional[ActionListener] = None
    ) -> PendingOperation:
        return self._runner.submit(
            f"put rollup job [{getattr(config, 'id', '?')}]",
            self.put_rollup_job,
            listener,
            config,
        )

    def get_rollup_job_async(
        self,
        job_id: Optional[str] = None,
        listener: Optional[ActionListener] = None,
    ) -> PendingOperation:
        return self._runner.submit(
            f"get rollup job [{job_id or '_all'}]",
            self.get_rollup_job,
            listener,
            job_id,
        )

    def start_rollup_job_async(
        self, job_id: str, listener: Optional[ActionListener] = None
    ) -> PendingOperation:
        return self._runner.submit(
            f"start rollup job [{job_id}]", self.start_rollup_job, listener, job_id
        )

    def stop_rollup_job_async(
        self,
        job_id: str,
        listener: Optional[ActionListener] = None,
        wait_for_completion: bool = False,
        timeout: Optional[TimeValue] = None,
    ) -> PendingOperation:
        return self._runner.submit(
            f"stop rollup job [{job_id}]",
            self.stop_rollup_job,
            listener,
            job_id,
            wait_for_completion=wait_for_completion,
            timeout=timeout,
        )

    def delete_rollup_job_async(
        self, job_id: str, listener: Optional[ActionListener] = None
    ) -> PendingOperation:
        return self._runner.submit(
            f"delete rollup job [{job_id}]", self.delete_rollup_job, listener, job_id
        )

    def get_rollup_capabilities_async(
        self,
        index_pattern: Optional[str] = None,
        listener: Optional[ActionListener] = None,
    ) -> PendingOperation:
        return self._runner.submit(
            f"get rollup caps [{index_pattern or '_all'}]",
            self.get_rollup_capabilities,
            listener,
            index_pattern,
        )

    def get_rollup_index_capabilities_async(
        self,
        rollup_index: Optional[str] = None,
        listener: Optional[ActionListener] = None,
    ) -> PendingOperation:
        return self._runner.submit(
            f"get rollup index caps [{rollup_index or '_all'}]",
            self.get_rollup_index_capabilities,
            listener,
            rollup_index,
        )


class AsyncRollupClient:
    """Awaitable wrappers running the blocking client in worker threads.

    Cancelling the awaiting task abandons the wait only; the thread finishes
    its engine call in the background.
    """

    def __init__(self, client: RollupClient) -> None:
        self.client = client

    async def put_rollup_job(self, config: RollupJobConfig) -> AcknowledgedResponse:
        return await asyncio.to_thread(self.client.put_rollup_job, config)

    async def get_rollup_job(self, job_id: Optional[str] = None) -> List[RollupJob]:
        return await asyncio.to_thread(self.client.get_rollup_job, job_id)

    async def start_rollup_job(self, job_id: str) -> AcknowledgedResponse:
        return await asyncio.to_thread(self.client.start_rollup_job, job_id)

    async def stop_rollup_job(
        self,
        job_id: str,
        wait_for_completion: bool = False,
        timeout: Optional[TimeValue] = None,
    ) -> AcknowledgedResponse:
        return await asyncio.to_thread(
            self.client.stop_rollup_job,
            job_id,
            wait_for_completion,
            timeout,
        )

    async def delete_rollup_job(self, job_id: str) -> AcknowledgedResponse:
        return await asyncio.to_thread(self.client.delete_rollup_job, job_id)

    async def get_rollup_capabilities(
        self, index_pattern: Optional[str] = None
    ) -> Dict[str, RollableIndexCaps]:
        return await asyncio.to_thread(self.client.get_rollup_capabilities, index_pattern)

    async def get_rollup_index_capabilities(
        self, rollup_index: Optional[str] = None
    ) -> Dict[str, RollableIndexCaps]:
        return await asyncio.to_thread(
            self.client.get_rollup_index_capabilities, rollup_index
        )


def create_rollup_client(settings: Optional[Settings] = None) -> RollupClient:
    settings = validate_settings(settings or get_settings())
    logging.basicConfig(level=settings.log_level)
    engine = create_rollup_engine(settings)
    logger.info("Rollup client configured for %s", ", ".join(settings.elastic_hosts_list))
    return RollupClient(engine, settings)
