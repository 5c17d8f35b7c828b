"""
In-memory job store.

In production this writes the jobs table of the CRM database; deleting a
job there also removes its mirrored calendar event.
"""

import logging
import uuid
from typing import Optional

from booking_engine.schemas.job_schema import JobRecord

logger = logging.getLogger(__name__)


class InMemoryJobStore:
    def __init__(self) -> None:
        self._jobs: dict[str, JobRecord] = {}

    def insert(self, record: JobRecord) -> str:
        job_id = f"JOB-{uuid.uuid4().hex[:8].upper()}"
        self._jobs[job_id] = record
        logger.info("Job stored: %s at %s", job_id, record.booking_datetime.isoformat())
        return job_id

    def update(self, job_id: str, record: JobRecord) -> str:
        if job_id not in self._jobs:
            raise KeyError(f"Job {job_id} not found")
        self._jobs[job_id] = record
        logger.info("Job updated: %s", job_id)
        return job_id

    def get(self, job_id: str) -> Optional[JobRecord]:
        return self._jobs.get(job_id)

    def delete(self, job_id: str) -> bool:
        removed = self._jobs.pop(job_id, None) is not None
        if removed:
            logger.info("Job deleted: %s", job_id)
        return removed

    def list_jobs(self) -> list[tuple[str, JobRecord]]:
        return list(self._jobs.items())

    def reset(self) -> None:
        """Clear all jobs. Used by test fixtures for isolation."""
        self._jobs.clear()
