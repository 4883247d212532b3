import logging
from typing import List, Dict, Optional
from storage.base import VectorStore, FileStore
from models.document import DocumentRecord
from core.errors import DocumentNotFoundError, ValidationError
from config.settings import settings, RetrievalConfig

logger = logging.getLogger(__name__)


class DocumentCatalog:
    """
    Per-user view of documents, derived from the chunks sharing (user_id, filename).
    There is no separate document table: listing and deletion both read the vector index.
    """

    def __init__(self,
                 vector_store: VectorStore,
                 file_store: FileStore,
                 config: Optional[RetrievalConfig] = None):
        self.vector_store = vector_store
        self.file_store = file_store
        self.config = config or settings.retrieval

    def list_documents(self, user_id: str) -> List[DocumentRecord]:
        """One entry per filename, newest upload first. Index errors yield an empty list."""
        if not user_id:
            raise ValidationError("user_id is required to list documents")

        try:
            points = self.vector_store.scroll(
                filters={"user_id": user_id},
                limit=self.config.catalog_scan_limit
            )
        except Exception:
            logger.exception(f"Error fetching documents for user {user_id}")
            return []

        latest: Dict[str, DocumentRecord] = {}
        for point in points:
            payload = point.get("payload") or {}
            if payload.get("user_id") != user_id:
                continue
            filename = payload.get("filename")
            if not filename:
                continue
            record = DocumentRecord(
                filename=filename,
                upload_date=payload.get("upload_date") or "",
                source=payload.get("source") or ""
            )
            # Re-uploads under the same name: keep the most recent
            current = latest.get(filename)
            if current is None or record.upload_date > current.upload_date:
                latest[filename] = record

        documents = sorted(latest.values(), key=lambda r: r.upload_date, reverse=True)
        logger.info(f"Found {len(documents)} documents for user {user_id}")
        return documents

    def delete_document(self, user_id: str, filename: str) -> int:
        """
        Removes every chunk of (user_id, filename) from the index, then the origin files.
        Returns the number of chunks deleted; raises DocumentNotFoundError if there were none.
        """
        if not user_id or not filename:
            raise ValidationError("user_id and filename are required to delete a document")

        points = [
            p for p in self.vector_store.scroll(filters={"user_id": user_id, "filename": filename})
            if (p.get("payload") or {}).get("user_id") == user_id
        ]
        if not points:
            raise DocumentNotFoundError(f"Document not found: {filename}")

        self.vector_store.delete([p["chunk_id"] for p in points])
        logger.info(f"Deleted {len(points)} chunks of '{filename}' for user {user_id}")

        sources = {p["payload"].get("source") for p in points if p["payload"].get("source")}
        for source in sources:
            try:
                self.file_store.delete(source)
            except Exception as e:
                logger.warning(f"Could not delete origin file {source}: {e}")

        return len(points)
