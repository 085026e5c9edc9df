from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from elasticsearch import NotFoundError

from ...schemas import RollupJob, RollupJobConfig
from ..base import RollupEngine
from ._helpers import _ElasticBase, _translate_errors

logger = logging.getLogger(__name__)

_ALL = "_all"


class ElasticRollupEngine(_ElasticBase, RollupEngine):
    def __init__(
        self,
        hosts: List[str],
        username: Optional[str] = None,
        password: Optional[str] = None,
        verify_certs: bool = True,
        timeout: float = 30.0,
        max_retries: int = 3,
        retry_on_timeout: bool = False,
        metadata_index_pattern: str = "*",
    ) -> None:
        super().__init__(
            hosts,
            username,
            password,
            verify_certs,
            timeout=timeout,
            max_retries=max_retries,
            retry_on_timeout=retry_on_timeout,
        )
        self.metadata_index_pattern = metadata_index_pattern

    def put_job(self, config: RollupJobConfig) -> None:
        with _translate_errors("put", config.id):
            self.client.rollup.put_job(id=config.id, **config.to_body())

    def get_jobs(self, job_id: Optional[str] = None) -> List[RollupJob]:
        with _translate_errors("get", None):
            try:
                response = self.client.rollup.get_jobs(id=job_id or _ALL)
            except NotFoundError:
                # Some versions answer 404 for an unknown id instead of [].
                if job_id:
                    return []
                raise
        jobs: List[RollupJob] = []
        for item in _body(response).get("jobs", []) or []:
            try:
                jobs.append(RollupJob.from_wire(item))
            except (KeyError, ValueError):
                logger.warning(
                    "Skipping unreadable rollup job %s",
                    (item.get("config") or {}).get("id"),
                    exc_info=True,
                )
        return jobs

    def start_job(self, job_id: str) -> None:
        with _translate_errors("start", job_id):
            self.client.rollup.start_job(id=job_id)

    def stop_job(self, job_id: str) -> None:
        with _translate_errors("stop", job_id):
            self.client.rollup.stop_job(id=job_id, wait_for_completion=False)

    def delete_job(self, job_id: str) -> None:
        with _translate_errors("delete", job_id):
            self.client.rollup.delete_job(id=job_id)

    def list_job_configs(self) -> List[RollupJobConfig]:
        """Read job configs from rollup index mappings.

        Each rollup index stores the configs of the jobs writing to it under
        ``_meta._rollup.<job_id>``, so configs remain visible after their job
        is deleted. Indices are scanned in name order and jobs in the order
        their metadata lists them.
        """
        with _translate_errors("list job metadata"):
            response = self.client.indices.get_mapping(
                index=self.metadata_index_pattern,
                allow_no_indices=True,
                ignore_unavailable=True,
                expand_wildcards="open",
            )
        configs: List[RollupJobConfig] = []
        for index_name in sorted(_body(response)):
            mappings = (_body(response)[index_name] or {}).get("mappings") or {}
            rollup_meta = (mappings.get("_meta") or {}).get("_rollup") or {}
            for job_id, payload in rollup_meta.items():
                if not isinstance(payload, dict):
                    continue
                try:
                    configs.append(RollupJobConfig.from_wire({"id": job_id, **payload}))
                except (KeyError, ValueError):
                    logger.warning(
                        "Skipping unreadable rollup metadata for job %s in %s",
                        job_id,
                        index_name,
                        exc_info=True,
                    )
        return configs


def _body(response: Any) -> Dict[str, Any]:
    body = getattr(response, "body", response)
    return body if isinstance(body, dict) else {}
