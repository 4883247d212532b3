import uuid
from datetime import datetime, timezone
from typing import List, Optional
from models.chunk import DocumentChunk
from core.errors import ValidationError

class MetadataBuilder:
    """
    Stamps document-level provenance onto freshly cut chunks.
    Every chunk gets its own uuid4 chunk_id, which also serves as its vector point id.
    """

    def finalize_chunks(self,
                        chunks: List[DocumentChunk],
                        user_id: str,
                        filename: str,
                        source: str,
                        upload_date: Optional[str] = None) -> List[DocumentChunk]:
        """
        Populates identity and provenance fields in place and returns the chunks.
        """
        if not user_id:
            raise ValidationError("user_id is required on every chunk")

        upload_date = upload_date or datetime.now(timezone.utc).isoformat()
        total_chunks = len(chunks)

        for i, chunk in enumerate(chunks):
            meta = chunk.metadata
            meta.chunk_id = str(uuid.uuid4())
            meta.user_id = user_id
            meta.filename = filename
            meta.source = source
            meta.upload_date = upload_date
            meta.chunk_index = i
            meta.total_chunks = total_chunks

        return chunks
