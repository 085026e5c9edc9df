from __future__ import annotations

from typing import TYPE_CHECKING

from .base import RollupEngine
from .elastic import ElasticRollupEngine

if TYPE_CHECKING:
    from ..config import Settings


def create_rollup_engine(settings: "Settings") -> RollupEngine:
    return ElasticRollupEngine(
        hosts=settings.elastic_hosts_list,
        username=settings.elastic_user,
        password=settings.elastic_password,
        verify_certs=settings.elastic_verify_certs,
        timeout=settings.elastic_timeout_seconds,
        max_retries=settings.elastic_max_retries,
        retry_on_timeout=settings.elastic_retry_on_timeout,
        metadata_index_pattern=settings.metadata_index_pattern,
    )
