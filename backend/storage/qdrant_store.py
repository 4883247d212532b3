import logging
import threading
from typing import List, Dict, Optional
from qdrant_client import QdrantClient
from qdrant_client.http import models as rest
from models.chunk import DocumentChunk
from storage.base import VectorStore
from config.settings import settings, QdrantConfig

logger = logging.getLogger(__name__)

SCROLL_PAGE_SIZE = 256
INDEXED_FIELDS = ("user_id", "filename")


class QdrantStore(VectorStore):
    """
    Implements VectorStore on Qdrant.
    mode "memory" runs in-process, "local" persists to local_path, "remote" talks to a server.
    Every point carries its owner's user_id so reads can be scoped per user.
    """

    def __init__(self,
                 config: Optional[QdrantConfig] = None,
                 vector_dim: Optional[int] = None,
                 client: Optional[QdrantClient] = None):
        self.config = config or settings.qdrant
        self.vector_dim = vector_dim or settings.embedding.vector_dim
        self.client = client or self._build_client()
        self._create_lock = threading.Lock()

    def _build_client(self) -> QdrantClient:
        if self.config.mode == "memory":
            return QdrantClient(location=":memory:")
        if self.config.mode == "remote":
            return QdrantClient(
                url=self.config.url,
                api_key=self.config.api_key,
                timeout=int(self.config.timeout)
            )
        return QdrantClient(path=self.config.local_path)

    def _ensure_collection(self):
        if self.collection_exists():
            return
        with self._create_lock:
            if self.collection_exists():
                return
            logger.info(f"Creating Qdrant collection: {self.config.collection_name}")
            try:
                self.client.create_collection(
                    collection_name=self.config.collection_name,
                    vectors_config=rest.VectorParams(
                        size=self.vector_dim,
                        distance=rest.Distance.COSINE
                    )
                )
            except Exception:
                # Another worker process may have won the race
                if not self.collection_exists():
                    raise
                return
            # Create payload indexes for the ownership/provenance filters
            for field in INDEXED_FIELDS:
                self.client.create_payload_index(
                    collection_name=self.config.collection_name,
                    field_name=field,
                    field_schema=rest.PayloadSchemaType.KEYWORD
                )

    def collection_exists(self) -> bool:
        collections = self.client.get_collections().collections
        return any(c.name == self.config.collection_name for c in collections)

    def upsert(self, chunks: List[DocumentChunk]) -> int:
        points = []
        for chunk in chunks:
            if chunk.embedding is None:
                continue

            payload = chunk.metadata.model_dump()
            payload["text"] = chunk.text

            points.append(rest.PointStruct(
                id=chunk.metadata.chunk_id,
                vector=chunk.embedding,
                payload=payload
            ))

        if not points:
            return 0

        # Collection is created as part of the first upsert rather than failing
        self._ensure_collection()
        self.client.upsert(
            collection_name=self.config.collection_name,
            points=points,
            wait=True
        )
        return len(points)

    @staticmethod
    def _build_filter(filters: Optional[Dict]) -> Optional[rest.Filter]:
        if not filters:
            return None
        must_clauses = []
        for key, value in filters.items():
            if value is None:
                continue
            if isinstance(value, list):
                must_clauses.append(rest.FieldCondition(
                    key=key,
                    match=rest.MatchAny(any=value)
                ))
            else:
                must_clauses.append(rest.FieldCondition(
                    key=key,
                    match=rest.MatchValue(value=value)
                ))
        return rest.Filter(must=must_clauses) if must_clauses else None

    def search(self, vector: List[float], top_k: int, filters: Optional[Dict] = None) -> List[Dict]:
        if not self.collection_exists():
            return []

        results = self.client.query_points(
            collection_name=self.config.collection_name,
            query=vector,
            limit=top_k,
            query_filter=self._build_filter(filters),
            with_payload=True
        ).points

        return [
            {
                "chunk_id": str(r.id),
                "score": r.score,
                "payload": r.payload or {}
            }
            for r in results
        ]

    def scroll(self, filters: Optional[Dict] = None, limit: Optional[int] = None) -> List[Dict]:
        if not self.collection_exists():
            return []

        query_filter = self._build_filter(filters)
        collected: List[Dict] = []
        offset = None
        while True:
            page_size = SCROLL_PAGE_SIZE
            if limit is not None:
                page_size = min(page_size, limit - len(collected))
                if page_size <= 0:
                    break

            points, offset = self.client.scroll(
                collection_name=self.config.collection_name,
                scroll_filter=query_filter,
                limit=page_size,
                offset=offset,
                with_payload=True,
                with_vectors=False
            )
            collected.extend(
                {"chunk_id": str(p.id), "payload": p.payload or {}}
                for p in points
            )
            if offset is None:
                break

        return collected

    def delete(self, chunk_ids: List[str]) -> None:
        if not chunk_ids:
            return
        self.client.delete(
            collection_name=self.config.collection_name,
            points_selector=rest.PointIdsList(points=list(chunk_ids)),
            wait=True
        )
