import logging
import threading
from typing import Dict, List, Optional
from sentence_transformers import SentenceTransformer
from models.chunk import DocumentChunk
from config.settings import settings, EmbeddingConfig

logger = logging.getLogger(__name__)

class Embedder:
    """
    Text -> vector for document chunks and user queries.
    - One SentenceTransformer per model name, shared by every worker thread.
    - Loading is guarded so concurrent ingestion jobs never load a model twice.
    - The model's output dimension must match the vector index dimension.
    """

    _models: Dict[str, SentenceTransformer] = {}
    _load_lock = threading.Lock()

    def __init__(self, config: Optional[EmbeddingConfig] = None):
        self.config = config or settings.embedding
        self.model = self._load_model(self.config.model_name)
        self._check_dimension()

    @classmethod
    def _load_model(cls, model_name: str) -> SentenceTransformer:
        with cls._load_lock:
            if model_name not in cls._models:
                logger.info(f"Loading embedding model: {model_name}...")
                cls._models[model_name] = SentenceTransformer(model_name, device="cpu")
            return cls._models[model_name]

    def _check_dimension(self):
        dim = self.model.get_sentence_embedding_dimension()
        if dim is not None and dim != self.config.vector_dim:
            raise ValueError(
                f"Embedding model {self.config.model_name} produces {dim}-d vectors "
                f"but the index is configured for {self.config.vector_dim}"
            )

    def embed_texts(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []
        vectors = self.model.encode(
            texts,
            batch_size=self.config.batch_size,
            show_progress_bar=False,
            normalize_embeddings=self.config.normalise
        )
        return [v.tolist() for v in vectors]

    def embed_chunks(self, chunks: List[DocumentChunk]) -> List[DocumentChunk]:
        """Fills chunk.embedding in place, one vector per chunk."""
        vectors = self.embed_texts([c.text for c in chunks])
        for chunk, vector in zip(chunks, vectors):
            chunk.embedding = vector
        return chunks

    def embed_query(self, query: str) -> List[float]:
        # BGE retrieval models expect an instruction prefix on the query side only
        return self.embed_texts([f"{self.config.query_prefix}{query}"])[0]
