import logging
import threading
import time
from typing import Dict, Optional

import redis

from core.errors import JobNotFoundError
from models.document import IngestionJob, IngestionStatus
from storage.base import JobStore
from config.settings import settings, WorkerConfig

logger = logging.getLogger(__name__)


class InMemoryJobStore(JobStore):
    """
    Process-local job records.
    Finished jobs are forgotten job_retention_seconds after reaching a terminal state.
    """

    def __init__(self, config: Optional[WorkerConfig] = None):
        self.config = config or settings.worker
        self._jobs: Dict[str, IngestionJob] = {}
        self._expires_at: Dict[str, float] = {}
        self._lock = threading.Lock()

    def _purge_expired(self) -> None:
        now = time.monotonic()
        expired = [job_id for job_id, deadline in self._expires_at.items() if deadline <= now]
        for job_id in expired:
            self._jobs.pop(job_id, None)
            self._expires_at.pop(job_id, None)
        if expired:
            logger.info(f"Pruned {len(expired)} finished ingestion jobs")

    def create(self, job: IngestionJob) -> IngestionJob:
        if job.status != IngestionStatus.pending:
            raise ValueError("New jobs must start in the pending state")
        with self._lock:
            self._purge_expired()
            if job.job_id in self._jobs:
                raise ValueError(f"Duplicate job id {job.job_id}")
            self._jobs[job.job_id] = job.model_copy()
        return job.model_copy()

    def get(self, job_id: str) -> IngestionJob:
        with self._lock:
            self._purge_expired()
            job = self._jobs.get(job_id)
            if job is None:
                raise JobNotFoundError(f"Job {job_id} not found")
            return job.model_copy()

    def transition(self,
                   job_id: str,
                   status: IngestionStatus,
                   error: Optional[str] = None,
                   chunk_count: Optional[int] = None) -> IngestionJob:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                raise JobNotFoundError(f"Job {job_id} not found")
            job.transition_to(status, error=error, chunk_count=chunk_count)
            if job.is_terminal:
                self._expires_at[job_id] = time.monotonic() + self.config.job_retention_seconds
            return job.model_copy()


class RedisJobStore(JobStore):
    """
    Job records shared across processes, one JSON string per job.
    Transitions use WATCH/MULTI so a read-validate-write never races.
    Terminal records get a TTL of job_retention_seconds.
    """

    def __init__(self, client: redis.Redis, config: Optional[WorkerConfig] = None):
        self.client = client
        self.config = config or settings.worker

    def _key(self, job_id: str) -> str:
        return f"{self.config.job_key_prefix}:{job_id}"

    def create(self, job: IngestionJob) -> IngestionJob:
        if job.status != IngestionStatus.pending:
            raise ValueError("New jobs must start in the pending state")
        created = self.client.set(self._key(job.job_id), job.model_dump_json(), nx=True)
        if not created:
            raise ValueError(f"Duplicate job id {job.job_id}")
        return job.model_copy()

    def get(self, job_id: str) -> IngestionJob:
        raw = self.client.get(self._key(job_id))
        if raw is None:
            raise JobNotFoundError(f"Job {job_id} not found")
        return IngestionJob.model_validate_json(raw)

    def transition(self,
                   job_id: str,
                   status: IngestionStatus,
                   error: Optional[str] = None,
                   chunk_count: Optional[int] = None) -> IngestionJob:
        key = self._key(job_id)

        def _apply(pipe) -> IngestionJob:
            raw = pipe.get(key)
            if raw is None:
                raise JobNotFoundError(f"Job {job_id} not found")
            job = IngestionJob.model_validate_json(raw)
            job.transition_to(status, error=error, chunk_count=chunk_count)
            pipe.multi()
            if job.is_terminal:
                pipe.set(key, job.model_dump_json(), ex=self.config.job_retention_seconds)
            else:
                pipe.set(key, job.model_dump_json())
            return job

        return self.client.transaction(_apply, key, value_from_callable=True)
