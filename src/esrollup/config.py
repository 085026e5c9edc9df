from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List


def _env_bool(name: str, default: str = "0") -> bool:
    value = os.getenv(name, default)
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    elastic_hosts: str = os.getenv("ELASTICSEARCH_HOST", "http://127.0.0.1:9200")
    elastic_user: str = os.getenv("ELASTICSEARCH_USER", "")
    elastic_password: str = os.getenv("ELASTICSEARCH_PASSWORD", "")
    elastic_verify_certs: bool = _env_bool("ELASTICSEARCH_VERIFY_CERTS", "1")
    elastic_timeout_seconds: float = float(os.getenv("ELASTICSEARCH_TIMEOUT", "30"))
    elastic_max_retries: int = int(os.getenv("ELASTICSEARCH_MAX_RETRIES", "3"))
    elastic_retry_on_timeout: bool = _env_bool("ELASTICSEARCH_RETRY_ON_TIMEOUT", "0")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # ── Rollup client behaviour ─────────────────────────────
    async_workers: int = int(os.getenv("ROLLUP_ASYNC_WORKERS", "4"))
    stop_timeout_seconds: float = float(
        os.getenv("ROLLUP_STOP_TIMEOUT_SECONDS", "30")
    )
    stop_poll_interval_seconds: float = float(
        os.getenv("ROLLUP_STOP_POLL_INTERVAL_SECONDS", "0.5")
    )
    # Indices whose mappings are scanned for rollup job metadata.
    metadata_index_pattern: str = os.getenv("ROLLUP_METADATA_INDEX_PATTERN", "*")

    @property
    def elastic_hosts_list(self) -> List[str]:
        return [host.strip() for host in self.elastic_hosts.split(",") if host.strip()]


def get_settings() -> Settings:
    return Settings()


def validate_settings(settings: Settings) -> Settings:
    if not settings.elastic_hosts_list:
        raise ValueError("ELASTICSEARCH_HOST must list at least one host")
    if settings.elastic_timeout_seconds <= 0:
        raise ValueError("ELASTICSEARCH_TIMEOUT must be > 0")
    if settings.elastic_max_retries < 0:
        raise ValueError("ELASTICSEARCH_MAX_RETRIES must be >= 0")
    if settings.async_workers < 1:
        raise ValueError("ROLLUP_ASYNC_WORKERS must be >= 1")
    if settings.stop_timeout_seconds <= 0:
        raise ValueError("ROLLUP_STOP_TIMEOUT_SECONDS must be > 0")
    if settings.stop_poll_interval_seconds <= 0:
        raise ValueError("ROLLUP_STOP_POLL_INTERVAL_SECONDS must be > 0")
    if not settings.metadata_index_pattern.strip():
        raise ValueError("ROLLUP_METADATA_INDEX_PATTERN must not be empty")
    return settings
