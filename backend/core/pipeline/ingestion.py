import logging
import os
import tempfile
from typing import Optional
from core.parse.pdf_parser import PDFParser
from core.chunk.chunker import Chunker
from core.chunk.metadata_builder import MetadataBuilder
from core.embed.embedder import Embedder
from core.errors import EmptyDocumentError
from storage.base import VectorStore, FileStore
from models.document import IngestionJob

logger = logging.getLogger(__name__)

class IngestionPipeline:
    """
    Orchestrates the ingestion of one uploaded PDF:
    fetch -> extract -> chunk -> build_metadata -> embed -> index

    Stages run strictly in sequence. The local working copy lives in a
    temporary directory that is removed on every exit path.
    """

    def __init__(self,
                 vector_store: VectorStore,
                 file_store: FileStore,
                 embedder: Optional[Embedder] = None,
                 parser: Optional[PDFParser] = None,
                 chunker: Optional[Chunker] = None,
                 metadata_builder: Optional[MetadataBuilder] = None):
        self.vector_store = vector_store
        self.file_store = file_store

        # Initialize components
        self.parser = parser or PDFParser()
        self.chunker = chunker or Chunker()
        self.metadata_builder = metadata_builder or MetadataBuilder()
        self.embedder = embedder or Embedder()

    def run(self, job: IngestionJob) -> int:
        """
        Runs the full ingestion pipeline for a single job.
        Returns the number of chunks written to the vector index.
        """
        def update_progress(progress: int, message: str):
            logger.info(f"[{job.job_id}] {progress}%: {message}")

        update_progress(5, f"Starting processing of '{job.original_filename}' for user {job.user_id}")

        with tempfile.TemporaryDirectory(prefix="ingest-") as tmp_dir:
            # 1. Fetch
            local_path = self.file_store.fetch(job.source_ref, os.path.join(tmp_dir, "document.pdf"))
            update_progress(10, "PDF downloaded to temporary storage")

            # 2. Extraction
            pages = self.parser.parse(local_path)
            if not pages:
                raise EmptyDocumentError("No content extracted from PDF")
            update_progress(25, f"Extracted text from {len(pages)} pages")

            # 3. Chunking
            chunks = self.chunker.chunk_pages(pages)
            if not chunks:
                raise EmptyDocumentError("No valid content chunks generated from PDF")
            update_progress(40, f"Generated {len(chunks)} chunks")

            # 4. Metadata
            chunks = self.metadata_builder.finalize_chunks(
                chunks,
                user_id=job.user_id,
                filename=job.original_filename,
                source=job.source_ref,
                upload_date=job.created_at
            )

            # 5. Embedding
            update_progress(55, "Generating embeddings (this may take a moment)")
            chunks = self.embedder.embed_chunks(chunks)
            update_progress(85, "Embedding complete")

            # 6. Indexing
            written = self.vector_store.upsert(chunks)
            update_progress(100, f"Indexed {written} chunks")

        return written
