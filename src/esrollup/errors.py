"""Exception hierarchy raised by the rollup client.

Every error the client surfaces derives from :class:`RollupError`, so a
caller that wants a best-effort cleanup path can catch that one type.
Errors carrying a job id expose it as ``job_id``.
"""

from __future__ import annotations

from typing import Optional


class RollupError(Exception):
    """Base class for rollup client errors."""

    def __init__(self, message: str, job_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.job_id = job_id


class JobValidationError(RollupError, ValueError):
    """A job configuration was rejected before reaching the engine."""


class JobNotFoundError(RollupError):
    def __init__(self, job_id: str) -> None:
        super().__init__(f"rollup job [{job_id}] not found", job_id)


class JobAlreadyExistsError(RollupError):
    def __init__(self, job_id: str) -> None:
        super().__init__(f"rollup job [{job_id}] already exists", job_id)


class JobAlreadyStartedError(RollupError):
    def __init__(self, job_id: str, state: str) -> None:
        super().__init__(
            f"rollup job [{job_id}] cannot be started from state [{state}]", job_id
        )
        self.state = state


class JobStillRunningError(RollupError):
    def __init__(self, job_id: str, state: str) -> None:
        super().__init__(
            f"rollup job [{job_id}] is [{state}]; it must be stopped before deletion",
            job_id,
        )
        self.state = state


class JobTimeoutError(RollupError):
    def __init__(self, job_id: str, timeout_seconds: float, state: str) -> None:
        super().__init__(
            f"rollup job [{job_id}] did not stop within {timeout_seconds:g}s "
            f"(last state [{state}])",
            job_id,
        )
        self.timeout_seconds = timeout_seconds
        self.state = state


class TransportFailureError(RollupError):
    """The engine answered with an error the client has no specific type for."""

    def __init__(
        self,
        message: str,
        job_id: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message, job_id)
        self.status_code = status_code


class EngineUnavailableError(TransportFailureError):
    """The engine could not be reached or refused the request as overloaded."""


class OperationCancelledError(RollupError):
    def __init__(self, operation: str) -> None:
        super().__init__(f"{operation} was cancelled by the caller")
        self.operation = operation
