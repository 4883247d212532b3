from abc import ABC, abstractmethod
from typing import List, Dict, Optional
from models.chunk import DocumentChunk
from models.document import IngestionJob, IngestionStatus
from models.query import ConversationTurn

class VectorStore(ABC):
    @abstractmethod
    def upsert(self, chunks: List[DocumentChunk]) -> int:
        """Creates the collection on first use. Returns the number of points written."""
        pass

    @abstractmethod
    def search(self, vector: List[float], top_k: int, filters: Optional[Dict] = None) -> List[Dict]:
        pass

    @abstractmethod
    def scroll(self, filters: Optional[Dict] = None, limit: Optional[int] = None) -> List[Dict]:
        """Non-similarity scan of stored payloads. limit=None pages through every match."""
        pass

    @abstractmethod
    def delete(self, chunk_ids: List[str]) -> None:
        pass

    @abstractmethod
    def collection_exists(self) -> bool:
        pass

class FileStore(ABC):
    @abstractmethod
    def save_upload(self, filename: str, file_bytes: bytes) -> str:
        """Persists an uploaded file and returns its durable locator."""
        pass

    @abstractmethod
    def fetch(self, source_ref: str, dest_path: str) -> str:
        """Copies the file behind source_ref to dest_path and returns dest_path."""
        pass

    @abstractmethod
    def delete(self, source_ref: str) -> None:
        pass

class JobStore(ABC):
    @abstractmethod
    def create(self, job: IngestionJob) -> IngestionJob:
        pass

    @abstractmethod
    def get(self, job_id: str) -> IngestionJob:
        """Raises JobNotFoundError for unknown or expired ids."""
        pass

    @abstractmethod
    def transition(self,
                   job_id: str,
                   status: IngestionStatus,
                   error: Optional[str] = None,
                   chunk_count: Optional[int] = None) -> IngestionJob:
        """Applies one state-machine edge. Only the ingestion worker calls this."""
        pass

class ConversationMemory(ABC):
    @abstractmethod
    def get_history(self, user_id: str) -> List[ConversationTurn]:
        pass

    @abstractmethod
    def append(self, user_id: str, question: str, answer: str) -> None:
        pass

    @abstractmethod
    def clear(self, user_id: str) -> None:
        pass
