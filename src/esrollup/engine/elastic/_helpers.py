from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from elasticsearch import ApiError, BadRequestError, ConflictError
from elasticsearch import ConnectionError as ESConnectionError
from elasticsearch import ConnectionTimeout, Elasticsearch, NotFoundError
from elasticsearch import TransportError as ESTransportError

from ...errors import (
    EngineUnavailableError,
    JobAlreadyStartedError,
    JobAlreadyExistsError,
    JobNotFoundError,
    JobStillRunningError,
    TransportFailureError,
)

logger = logging.getLogger(__name__)

_UNAVAILABLE_STATUSES = (429, 502, 503, 504)


def _create_client(
    hosts: List[str],
    username: Optional[str],
    password: Optional[str],
    verify_certs: bool,
    timeout: float = 30.0,
    max_retries: int = 3,
    retry_on_timeout: bool = False,
) -> Elasticsearch:
    # Retries live in the transport; the rollup client never retries itself.
    kwargs: Dict[str, Any] = {
        "hosts": hosts,
        "verify_certs": verify_certs,
        "request_timeout": timeout,
        "max_retries": max_retries,
        "retry_on_timeout": retry_on_timeout,
    }
    if username:
        kwargs["basic_auth"] = (username, password or "")
    return Elasticsearch(**kwargs)


def _error_type(exc: ApiError) -> str:
    body = getattr(exc, "body", None)
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("type"):
            return str(error["type"])
    return str(getattr(exc, "message", "") or "")


def _error_reason(exc: ApiError) -> str:
    body = getattr(exc, "body", None)
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("reason"):
            return str(error["reason"])
    return str(exc)


def _status_code(exc: ApiError) -> Optional[int]:
    try:
        return int(exc.status_code)
    except (AttributeError, TypeError, ValueError):
        return None


@contextmanager
def _translate_errors(operation: str, job_id: Optional[str] = None) -> Iterator[None]:
    """Re-raise ``elasticsearch`` exceptions as rollup client errors.

    Mapping:
    - NotFoundError → JobNotFoundError (when a job id is in play)
    - resource_already_exists_exception → JobAlreadyExistsError
    - ConflictError on start → JobAlreadyStartedError
    - ConflictError on delete → JobStillRunningError
    - connection errors, timeouts, 429/5xx gateway codes → EngineUnavailableError
    - anything else the engine reports → TransportFailureError
    """
    try:
        yield
    except NotFoundError as exc:
        if job_id is not None:
            raise JobNotFoundError(job_id) from exc
        raise TransportFailureError(
            f"{operation} failed: {_error_reason(exc)}", status_code=404
        ) from exc
    except (BadRequestError, ConflictError) as exc:
        error_type = _error_type(exc)
        reason = _error_reason(exc)
        if job_id is not None and (
            error_type == "resource_already_exists_exception"
            or "already exists" in reason
        ):
            raise JobAlreadyExistsError(job_id) from exc
        if job_id is not None and isinstance(exc, ConflictError):
            if operation == "start":
                raise JobAlreadyStartedError(job_id, "unknown") from exc
            if operation == "delete":
                raise JobStillRunningError(job_id, "unknown") from exc
        raise TransportFailureError(
            f"{operation} failed: {reason}",
            job_id=job_id,
            status_code=_status_code(exc),
        ) from exc
    except ApiError as exc:
        status = _status_code(exc)
        if status in _UNAVAILABLE_STATUSES:
            raise EngineUnavailableError(
                f"{operation} failed: engine unavailable ({status})",
                job_id=job_id,
                status_code=status,
            ) from exc
        if job_id is not None and _error_type(exc) == "resource_not_found_exception":
            raise JobNotFoundError(job_id) from exc
        raise TransportFailureError(
            f"{operation} failed: {_error_reason(exc)}",
            job_id=job_id,
            status_code=status,
        ) from exc
    except (ESConnectionError, ConnectionTimeout) as exc:
        logger.debug("%s: cannot reach Elasticsearch: %s", operation, exc)
        raise EngineUnavailableError(
            f"{operation} failed: cannot reach Elasticsearch ({type(exc).__name__})",
            job_id=job_id,
        ) from exc
    except ESTransportError as exc:
        raise TransportFailureError(
            f"{operation} failed: {exc}", job_id=job_id
        ) from exc


class _ElasticBase:
    def __init__(
        self,
        hosts: List[str],
        username: Optional[str],
        password: Optional[str],
        verify_certs: bool,
        timeout: float = 30.0,
        max_retries: int = 3,
        retry_on_timeout: bool = False,
    ) -> None:
        if not hosts:
            raise ValueError("At least one Elasticsearch host is required")
        self.client = _create_client(
            hosts,
            username,
            password,
            verify_certs,
            timeout=timeout,
            max_retries=max_retries,
            retry_on_timeout=retry_on_timeout,
        )

    def close(self) -> None:
        self.client.close()
