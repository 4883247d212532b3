from datetime import datetime, timezone
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field

from core.errors import IllegalTransitionError

class IngestionStatus(str, Enum):
    pending = "pending"
    processing = "processing"
    completed = "completed"
    failed = "failed"

# The only legal edges of the job state machine. Terminal states have none.
ALLOWED_TRANSITIONS: dict[IngestionStatus, frozenset[IngestionStatus]] = {
    IngestionStatus.pending: frozenset({IngestionStatus.processing, IngestionStatus.failed}),
    IngestionStatus.processing: frozenset({IngestionStatus.completed, IngestionStatus.failed}),
    IngestionStatus.completed: frozenset(),
    IngestionStatus.failed: frozenset(),
}

TERMINAL_STATUSES = frozenset({IngestionStatus.completed, IngestionStatus.failed})

def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()

class IngestionJob(BaseModel):
    job_id: str
    source_ref: str
    user_id: str
    original_filename: str
    mime_type: str | None = None
    size_bytes: int = 0
    status: IngestionStatus = IngestionStatus.pending
    error: str | None = None         # set only when status == failed
    chunk_count: int | None = None   # set only when status == completed
    created_at: str = Field(default_factory=utc_now)
    updated_at: str = Field(default_factory=utc_now)
    completed_at: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def transition_to(self,
                      status: IngestionStatus,
                      error: str | None = None,
                      chunk_count: int | None = None) -> "IngestionJob":
        """
        Moves the job along one edge of the state machine, in place.
        Raises IllegalTransitionError for any edge not in ALLOWED_TRANSITIONS.
        """
        status = IngestionStatus(status)
        if status not in ALLOWED_TRANSITIONS[self.status]:
            raise IllegalTransitionError(
                f"Job {self.job_id}: illegal transition {self.status.value} -> {status.value}"
            )

        now = utc_now()
        self.status = status
        self.updated_at = now
        if status == IngestionStatus.failed:
            self.error = error or "Unknown ingestion error"
        if status == IngestionStatus.completed:
            self.chunk_count = chunk_count
        if status in TERMINAL_STATUSES:
            self.completed_at = now
        return self

class DocumentRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    filename: str
    upload_date: str = Field(alias="uploadDate")
    source: str

# --- API payloads -------------------------------------------------------

class UploadResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    job_id: str = Field(alias="jobId")
    filename: str
    source: str
    message: str = "File uploaded successfully"

class JobStatusResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    job_id: str = Field(alias="jobId")
    status: IngestionStatus
    error: str | None = None

class DocumentListResponse(BaseModel):
    success: bool = True
    documents: list[DocumentRecord]

class DeleteDocumentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str | None = Field(default=None, alias="userId")
    filename: str | None = None

class DeleteDocumentResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    deleted_chunks: int = Field(alias="deletedChunks")
