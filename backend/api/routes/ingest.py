import logging
import uuid
from typing import Optional
from fastapi import APIRouter, UploadFile, File, Form, Query, Depends, HTTPException, Request
from starlette.concurrency import run_in_threadpool

from core.errors import JobNotFoundError
from core.pipeline.worker import IngestionWorker, wait_for_job
from models.document import IngestionJob, UploadResponse, JobStatusResponse
from storage.base import FileStore, JobStore
from config.settings import settings

router = APIRouter()
logger = logging.getLogger(__name__)

# Dependencies to get components from app state
def get_file_store(request: Request) -> FileStore:
    return request.app.state.file_store

def get_job_store(request: Request) -> JobStore:
    return request.app.state.job_store

def get_worker(request: Request) -> IngestionWorker:
    return request.app.state.worker

@router.post("/upload", response_model=UploadResponse, summary="Upload a PDF and queue it for ingestion")
async def upload_file(
    request: Request,
    file: Optional[UploadFile] = File(None),
    user_id: Optional[str] = Form(None, alias="userId"),
    file_store: FileStore = Depends(get_file_store),
    job_store: JobStore = Depends(get_job_store),
    worker: IngestionWorker = Depends(get_worker)
):
    """
    1. Validates userId (form field or query parameter) and the file.
    2. Saves the file to the origin store.
    3. Creates a pending job and hands it to the worker pool.
    Returns immediately; clients poll /upload-status with the jobId.
    """
    user_id = user_id or request.query_params.get("userId")
    if not user_id:
        raise HTTPException(status_code=400, detail="userId is required")
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")

    try:
        file_bytes = await file.read()
        # Disk and job-store writes block; keep them off the event loop
        source = await run_in_threadpool(file_store.save_upload, file.filename, file_bytes)
    except Exception:
        logger.exception(f"Upload failed for {file.filename}")
        raise HTTPException(status_code=500, detail="Upload failed")
    finally:
        await file.close()

    try:
        job = await run_in_threadpool(job_store.create, IngestionJob(
            job_id=str(uuid.uuid4()),
            source_ref=source,
            user_id=user_id,
            original_filename=file.filename,
            mime_type=file.content_type,
            size_bytes=len(file_bytes)
        ))
    except Exception:
        logger.exception(f"Could not create ingestion job for {file.filename}")
        await run_in_threadpool(_discard_upload, file_store, source)
        raise HTTPException(status_code=500, detail="Upload failed")

    logger.info(f"Queued '{file.filename}' ({len(file_bytes)} bytes) for user {user_id} as job {job.job_id}")
    try:
        # A dispatch failure marks the job failed, so the file stays with its job record
        worker.submit(job)
    except Exception:
        logger.exception(f"Could not dispatch job {job.job_id}")
        raise HTTPException(status_code=500, detail="Upload failed")

    return UploadResponse(job_id=job.job_id, filename=file.filename, source=source)

def _discard_upload(file_store: FileStore, source: str) -> None:
    try:
        file_store.delete(source)
    except Exception as e:
        logger.warning(f"Could not remove orphaned upload {source}: {e}")

@router.get(
    "/upload-status",
    response_model=JobStatusResponse,
    response_model_exclude_none=True,
    summary="Get the status of an ingestion job"
)
def get_upload_status(
    job_id: Optional[str] = Query(None, alias="jobId"),
    wait: Optional[float] = Query(None, ge=0, description="Long-poll for up to this many seconds"),
    job_store: JobStore = Depends(get_job_store)
):
    if not job_id:
        raise HTTPException(status_code=400, detail="Job ID required")

    try:
        if wait:
            job = wait_for_job(
                job_store,
                job_id,
                timeout=min(wait, settings.worker.max_status_wait_seconds),
                interval=settings.worker.status_poll_interval
            )
        else:
            job = job_store.get(job_id)
    except JobNotFoundError:
        raise HTTPException(status_code=404, detail={"status": "not found"})

    return JobStatusResponse(job_id=job.job_id, status=job.status, error=job.error)
