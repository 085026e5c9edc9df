from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from ..schemas import RollupJob, RollupJobConfig


class RollupEngine(ABC):
    """Boundary to the cluster that stores job metadata and runs rollups.

    Implementations translate their own failures into the
    :mod:`esrollup.errors` taxonomy: a missing job raises
    ``JobNotFoundError``, a duplicate id ``JobAlreadyExistsError``, an
    unreachable cluster ``EngineUnavailableError``. Operations on a single
    job id are serialized by the engine, not by callers.
    """

    @abstractmethod
    def put_job(self, config: RollupJobConfig) -> None:
        raise NotImplementedError

    @abstractmethod
    def get_jobs(self, job_id: Optional[str] = None) -> List[RollupJob]:
        """Return the job with *job_id*, or every job when it is ``None``.

        An unknown id yields an empty list rather than an error.
        """
        raise NotImplementedError

    @abstractmethod
    def start_job(self, job_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def stop_job(self, job_id: str) -> None:
        """Request a stop; returns once the request is accepted, not when stopped."""
        raise NotImplementedError

    @abstractmethod
    def delete_job(self, job_id: str) -> None:
        raise NotImplementedError

    def list_job_configs(self) -> List[RollupJobConfig]:
        """Job configs recorded in the engine's metadata.

        Engines that keep rollup metadata apart from the live job list
        (so capabilities outlive a deleted job) override this.
        """
        return [job.config for job in self.get_jobs()]

    def get_job(self, job_id: str) -> Optional[RollupJob]:
        jobs = self.get_jobs(job_id)
        for job in jobs:
            if job.config.id == job_id:
                return job
        return None
