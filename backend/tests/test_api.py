import asyncio
from unittest.mock import MagicMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.routes import ingest, query, documents
from core.errors import DocumentNotFoundError, JobNotFoundError
from models.chunk import SourceChunk, ChunkMetadata
from models.document import IngestionJob, IngestionStatus, DocumentRecord
from models.query import QueryResponse
from config.settings import settings

@pytest.fixture
def app():
    app = FastAPI()
    app.include_router(ingest.router, prefix="/api")
    app.include_router(query.router, prefix="/api")
    app.include_router(documents.router, prefix="/api")

    app.state.file_store = MagicMock()
    app.state.file_store.save_upload.return_value = "/uploads/file-1-notes.pdf"
    app.state.job_store = MagicMock()
    app.state.job_store.create.side_effect = lambda job: job
    app.state.worker = MagicMock()
    app.state.retrieval_pipeline = MagicMock()
    app.state.catalog = MagicMock()
    return app

@pytest.fixture
def client(app):
    return TestClient(app)

# --- Upload ---------------------------------------------------------------

def test_upload_queues_job(client, app):
    response = client.post(
        "/api/upload",
        data={"userId": "alice"},
        files={"file": ("notes.pdf", b"%PDF-1.4", "application/pdf")}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["filename"] == "notes.pdf"
    assert body["source"] == "/uploads/file-1-notes.pdf"
    assert body["message"] == "File uploaded successfully"

    job = app.state.worker.submit.call_args[0][0]
    assert body["jobId"] == job.job_id
    assert job.user_id == "alice"
    assert job.status == IngestionStatus.pending
    assert job.size_bytes == 8

def test_upload_accepts_user_id_in_query(client, app):
    response = client.post(
        "/api/upload?userId=bob",
        files={"file": ("notes.pdf", b"%PDF-1.4", "application/pdf")}
    )

    assert response.status_code == 200
    assert app.state.worker.submit.call_args[0][0].user_id == "bob"

def test_upload_without_user_has_no_side_effects(client, app):
    response = client.post("/api/upload", files={"file": ("notes.pdf", b"%PDF-1.4", "application/pdf")})

    assert response.status_code == 400
    app.state.file_store.save_upload.assert_not_called()
    app.state.job_store.create.assert_not_called()
    app.state.worker.submit.assert_not_called()

def test_upload_without_file(client):
    response = client.post("/api/upload", data={"userId": "alice"})
    assert response.status_code == 400

def test_upload_storage_runs_off_event_loop(client, app):
    loop_seen = []

    def record_loop(*args):
        try:
            asyncio.get_running_loop()
            loop_seen.append(True)
        except RuntimeError:
            loop_seen.append(False)

    app.state.file_store.save_upload.side_effect = lambda *args: record_loop() or "/uploads/file-1-notes.pdf"
    app.state.job_store.create.side_effect = lambda job: record_loop() or job

    response = client.post(
        "/api/upload",
        data={"userId": "alice"},
        files={"file": ("notes.pdf", b"%PDF-1.4", "application/pdf")}
    )

    assert response.status_code == 200
    assert loop_seen == [False, False]

def test_failed_job_creation_discards_upload(client, app):
    app.state.job_store.create.side_effect = ConnectionError("redis down")

    response = client.post(
        "/api/upload",
        data={"userId": "alice"},
        files={"file": ("notes.pdf", b"%PDF-1.4", "application/pdf")}
    )

    assert response.status_code == 500
    app.state.file_store.delete.assert_called_once_with("/uploads/file-1-notes.pdf")
    app.state.worker.submit.assert_not_called()

def test_failed_cleanup_still_reports_upload_failure(client, app):
    app.state.job_store.create.side_effect = ConnectionError("redis down")
    app.state.file_store.delete.side_effect = OSError("read-only filesystem")

    response = client.post(
        "/api/upload",
        data={"userId": "alice"},
        files={"file": ("notes.pdf", b"%PDF-1.4", "application/pdf")}
    )

    assert response.status_code == 500
    assert response.json() == {"detail": "Upload failed"}

def test_failed_dispatch_keeps_file_for_job_record(client, app):
    app.state.worker.submit.side_effect = RuntimeError("pool shut down")

    response = client.post(
        "/api/upload",
        data={"userId": "alice"},
        files={"file": ("notes.pdf", b"%PDF-1.4", "application/pdf")}
    )

    assert response.status_code == 500
    app.state.file_store.delete.assert_not_called()

# --- Status ---------------------------------------------------------------

def test_status_requires_job_id(client):
    assert client.get("/api/upload-status").status_code == 400

def test_status_unknown_job(client, app):
    app.state.job_store.get.side_effect = JobNotFoundError("missing")
    assert client.get("/api/upload-status", params={"jobId": "missing"}).status_code == 404

def test_status_reports_failure_cause(client, app):
    job = IngestionJob(job_id="j1", source_ref="s", user_id="alice", original_filename="a.pdf")
    job.transition_to(IngestionStatus.failed, error="No content extracted from PDF")
    app.state.job_store.get.return_value = job

    response = client.get("/api/upload-status", params={"jobId": "j1"})

    assert response.status_code == 200
    assert response.json() == {"jobId": "j1", "status": "failed", "error": "No content extracted from PDF"}

def test_status_omits_error_while_processing(client, app):
    job = IngestionJob(job_id="j1", source_ref="s", user_id="alice", original_filename="a.pdf")
    app.state.job_store.get.return_value = job

    assert client.get("/api/upload-status", params={"jobId": "j1"}).json() == {"jobId": "j1", "status": "pending"}

def test_status_wait_is_capped(client):
    job = IngestionJob(job_id="j1", source_ref="s", user_id="alice", original_filename="a.pdf")

    with patch("api.routes.ingest.wait_for_job", return_value=job) as mock_wait:
        response = client.get("/api/upload-status", params={"jobId": "j1", "wait": 600})

    assert response.status_code == 200
    assert mock_wait.call_args.kwargs["timeout"] == settings.worker.max_status_wait_seconds
    assert settings.worker.max_status_wait_seconds <= 10

# --- Query ----------------------------------------------------------------

def test_info_requires_question_and_user(client):
    assert client.get("/api/info", params={"q": "hi"}).status_code == 400
    assert client.get("/api/info", params={"userId": "alice"}).status_code == 400

def test_info_returns_answer_and_sources(client, app):
    source = SourceChunk(
        page_content="chunk",
        metadata=ChunkMetadata(
            chunk_id="c1", user_id="alice", filename="a.pdf", upload_date="2024-01-01",
            source="/uploads/a.pdf", page_number=1, chunk_index=0, total_chunks=1
        )
    )
    app.state.retrieval_pipeline.run.return_value = QueryResponse(answer="Yes.<br/>Indeed.", sources=[source])

    response = client.get("/api/info", params={"q": "Is it?", "userId": "alice"})

    assert response.status_code == 200
    body = response.json()
    assert body["answer"] == "Yes.<br/>Indeed."
    assert body["sources"][0]["pageContent"] == "chunk"
    app.state.retrieval_pipeline.run.assert_called_once_with("Is it?", "alice")

def test_info_hides_internal_errors(client, app):
    app.state.retrieval_pipeline.run.side_effect = RuntimeError("qdrant at 10.0.0.3 refused connection")

    response = client.get("/api/info", params={"q": "Is it?", "userId": "alice"})

    assert response.status_code == 500
    assert response.json() == {"detail": "Internal server error"}

# --- Documents --------------------------------------------------------------

def test_user_pdfs(client, app):
    app.state.catalog.list_documents.return_value = [
        DocumentRecord(filename="a.pdf", upload_date="2024-03-01T00:00:00+00:00", source="/uploads/a.pdf")
    ]

    response = client.get("/api/user-pdfs", params={"userId": "alice"})

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "documents": [{"filename": "a.pdf", "uploadDate": "2024-03-01T00:00:00+00:00", "source": "/uploads/a.pdf"}]
    }

def test_user_pdfs_requires_user(client):
    response = client.get("/api/user-pdfs")
    assert response.status_code == 400
    assert response.json()["success"] is False

def test_delete_document(client, app):
    app.state.catalog.delete_document.return_value = 4

    response = client.request("DELETE", "/api/delete-document", json={"userId": "alice", "filename": "a.pdf"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["deletedChunks"] == 4
    app.state.catalog.delete_document.assert_called_once_with("alice", "a.pdf")

def test_delete_document_validation(client, app):
    response = client.request("DELETE", "/api/delete-document", json={"userId": "alice"})

    assert response.status_code == 400
    assert response.json()["success"] is False
    app.state.catalog.delete_document.assert_not_called()

def test_delete_unknown_document(client, app):
    app.state.catalog.delete_document.side_effect = DocumentNotFoundError("nope.pdf")

    response = client.request("DELETE", "/api/delete-document", json={"userId": "alice", "filename": "nope.pdf"})

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Document not found"}

def test_delete_index_failure(client, app):
    app.state.catalog.delete_document.side_effect = ConnectionError("qdrant down")

    response = client.request("DELETE", "/api/delete-document", json={"userId": "alice", "filename": "a.pdf"})

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Failed to delete document"}
