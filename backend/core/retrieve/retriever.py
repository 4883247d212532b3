import logging
from typing import List, Dict, Optional
import pydantic
from storage.base import VectorStore
from core.embed.embedder import Embedder
from models.chunk import SourceChunk
from core.errors import ValidationError
from config.settings import settings, RetrievalConfig

logger = logging.getLogger(__name__)


class UserScopedRetriever:
    """
    Top-k similarity search restricted to one user's chunks.

    Stage 1: server-side user_id filter, top_k.
    Fallback A (stage 1 empty): unfiltered search over fallback_top_k, filtered here.
    Fallback B (stage 1 raised): same recovery as fallback A.

    Results from every stage pass an ownership check before leaving this class;
    an unfiltered index result is never trusted on its own.
    """

    def __init__(self,
                 vector_store: VectorStore,
                 embedder: Embedder,
                 config: Optional[RetrievalConfig] = None):
        self.vector_store = vector_store
        self.embedder = embedder
        self.config = config or settings.retrieval

    def retrieve(self, query: str, user_id: str) -> List[SourceChunk]:
        if not user_id:
            raise ValidationError("user_id is required for retrieval")

        query_vector = self.embedder.embed_query(query)

        try:
            hits = self.vector_store.search(
                vector=query_vector,
                top_k=self.config.top_k,
                filters={"user_id": user_id}
            )
        except Exception:
            logger.exception(f"Filtered search failed for user {user_id}; recovering with unfiltered search")
            return self._unfiltered_search(query_vector, user_id)

        results = self._owned_by(hits, user_id)
        logger.info(f"Found {len(results)} results with filter for user {user_id}")
        if results:
            return results[:self.config.top_k]

        logger.info("No results found with filter, trying manual filtering...")
        return self._unfiltered_search(query_vector, user_id)

    def _unfiltered_search(self, query_vector: List[float], user_id: str) -> List[SourceChunk]:
        hits = self.vector_store.search(
            vector=query_vector,
            top_k=self.config.fallback_top_k
        )
        results = self._owned_by(hits, user_id)[:self.config.top_k]
        logger.info(f"Found {len(results)} of {len(hits)} unfiltered results owned by user {user_id}")
        return results

    @staticmethod
    def _owned_by(hits: List[Dict], user_id: str) -> List[SourceChunk]:
        owned = []
        for hit in hits:
            payload = hit.get("payload") or {}
            if payload.get("user_id") != user_id:
                continue
            try:
                owned.append(SourceChunk.from_payload(payload, score=hit.get("score")))
            except pydantic.ValidationError:
                logger.warning(f"Skipping chunk {hit.get('chunk_id')} with malformed payload")
        return owned
