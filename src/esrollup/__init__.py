"""Client for Elasticsearch rollup jobs and rollup capabilities."""

from .capabilities import CapabilityAggregator
from .client import AsyncRollupClient, RollupClient, create_rollup_client
from .errors import (
    EngineUnavailableError,
    JobAlreadyExistsError,
    JobAlreadyStartedError,
    JobNotFoundError,
    JobStillRunningError,
    JobTimeoutError,
    JobValidationError,
    OperationCancelledError,
    RollupError,
    TransportFailureError,
)
from .jobs import JobLifecycleController, build_job_config
from .operations import ActionListener, PendingOperation
from .schemas import (
    DateHistogramGroupConfig,
    GroupConfig,
    HistogramGroupConfig,
    JobState,
    MetricConfig,
    RollableIndexCaps,
    RollupJob,
    RollupJobCaps,
    RollupJobConfig,
    TermsGroupConfig,
)

__all__ = [
    "ActionListener",
    "AsyncRollupClient",
    "CapabilityAggregator",
    "DateHistogramGroupConfig",
    "EngineUnavailableError",
    "GroupConfig",
    "HistogramGroupConfig",
    "JobAlreadyExistsError",
    "JobAlreadyStartedError",
    "JobLifecycleController",
    "JobNotFoundError",
    "JobState",
    "JobStillRunningError",
    "JobTimeoutError",
    "JobValidationError",
    "MetricConfig",
    "OperationCancelledError",
    "PendingOperation",
    "RollableIndexCaps",
    "RollupClient",
    "RollupError",
    "RollupJob",
    "RollupJobCaps",
    "RollupJobConfig",
    "TermsGroupConfig",
    "TransportFailureError",
    "build_job_config",
    "create_rollup_client",
]
