import logging
from typing import Optional
from fastapi import APIRouter, Body, Depends, Query, Request
from fastapi.responses import JSONResponse

from core.catalog.document_catalog import DocumentCatalog
from core.errors import DocumentNotFoundError
from models.document import DocumentListResponse, DeleteDocumentRequest, DeleteDocumentResponse

router = APIRouter()
logger = logging.getLogger(__name__)

def get_catalog(request: Request) -> DocumentCatalog:
    return request.app.state.catalog

def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})

@router.get("/user-pdfs", response_model=DocumentListResponse, summary="List the documents a user has uploaded")
def list_user_documents(
    user_id: Optional[str] = Query(None, alias="userId"),
    catalog: DocumentCatalog = Depends(get_catalog)
):
    if not user_id:
        return _error(400, "userId is required")

    return DocumentListResponse(documents=catalog.list_documents(user_id))

@router.delete("/delete-document", response_model=DeleteDocumentResponse,
               summary="Delete a document's chunks and its origin file")
def delete_document(
    payload: Optional[DeleteDocumentRequest] = Body(None),
    catalog: DocumentCatalog = Depends(get_catalog)
):
    """
    1. Finds every chunk of (userId, filename) and removes them from the vector index.
    2. Deletes the origin file(s) best-effort; a failure there is logged, not returned.
    """
    if payload is None or not payload.user_id or not payload.filename:
        return _error(400, "userId and filename are required")

    logger.info(f"Deleting '{payload.filename}' for user {payload.user_id}")
    try:
        deleted = catalog.delete_document(payload.user_id, payload.filename)
    except DocumentNotFoundError:
        return _error(404, "Document not found")
    except Exception:
        logger.exception(f"Error deleting document '{payload.filename}' for user {payload.user_id}")
        return _error(500, "Failed to delete document")

    return DeleteDocumentResponse(
        message=f"Document '{payload.filename}' deleted successfully",
        deleted_chunks=deleted
    )
