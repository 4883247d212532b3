import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional
from core.pipeline.ingestion import IngestionPipeline
from models.document import IngestionJob, IngestionStatus
from storage.base import JobStore
from config.settings import settings, WorkerConfig

logger = logging.getLogger(__name__)


class IngestionWorker:
    """
    Bounded pool that executes ingestion jobs and is the only writer of job state.

    pending -> processing -> completed | failed

    A job that gets picked up always leaves execute() in a terminal state unless
    the job store itself is unreachable; pipeline errors never escape a worker thread.
    """

    def __init__(self,
                 pipeline: IngestionPipeline,
                 job_store: JobStore,
                 config: Optional[WorkerConfig] = None):
        self.pipeline = pipeline
        self.job_store = job_store
        self.config = config or settings.worker
        self.executor = ThreadPoolExecutor(
            max_workers=self.config.max_concurrency,
            thread_name_prefix="ingest-worker"
        )

    def submit(self, job: IngestionJob) -> Future:
        """Schedules a pending job. The returned future resolves to the final job record."""
        try:
            return self.executor.submit(self.execute, job.job_id)
        except RuntimeError as e:
            # Executor already shut down
            self._fail(job.job_id, e)
            raise

    def execute(self, job_id: str) -> Optional[IngestionJob]:
        try:
            job = self.job_store.transition(job_id, IngestionStatus.processing)
        except Exception:
            logger.exception(f"Job {job_id} could not be picked up")
            return None

        logger.info(f"Job {job_id} processing '{job.original_filename}' for user {job.user_id}")
        try:
            chunk_count = self.pipeline.run(job)
            final = self.job_store.transition(job_id, IngestionStatus.completed, chunk_count=chunk_count)
        except Exception as e:
            logger.exception(f"Worker job {job_id} failed")
            return self._fail(job_id, e)

        logger.info(f"Job {job_id} completed with {chunk_count} chunks")
        return final

    def _fail(self, job_id: str, error: Exception) -> Optional[IngestionJob]:
        reason = str(error) or type(error).__name__
        try:
            return self.job_store.transition(job_id, IngestionStatus.failed, error=reason)
        except Exception:
            logger.exception(f"Job {job_id} failure could not be recorded")
            return None

    def shutdown(self, wait: bool = True) -> None:
        self.executor.shutdown(wait=wait)


def wait_for_job(job_store: JobStore,
                 job_id: str,
                 timeout: float,
                 interval: float) -> IngestionJob:
    """
    Long-poll helper: returns as soon as the job is terminal or the timeout elapses.
    Raises JobNotFoundError if the id is unknown.
    """
    deadline = time.monotonic() + max(timeout, 0.0)
    job = job_store.get(job_id)
    while not job.is_terminal and time.monotonic() < deadline:
        time.sleep(min(interval, max(deadline - time.monotonic(), 0.0)))
        job = job_store.get(job_id)
    return job
