import os
import sys

# Add backend to sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import fakeredis
import pytest

from config.settings import QdrantConfig
from storage.qdrant_store import QdrantStore
from storage.file_store import LocalFileStore
from create_sample_pdf import create_sample_pdf, create_blank_pdf

VECTOR_DIM = 4


class FakeEmbedder:
    """Deterministic 4-d vectors: one dimension per vocabulary word, never all-zero."""

    VOCAB = ("rag", "architecture", "benefits", "hallucinations")

    def _vector(self, text):
        lower = text.lower()
        return [float(lower.count(word)) + 0.1 for word in self.VOCAB]

    def embed_texts(self, texts):
        return [self._vector(t) for t in texts]

    def embed_chunks(self, chunks):
        for chunk in chunks:
            chunk.embedding = self._vector(chunk.text)
        return chunks

    def embed_query(self, query):
        return self._vector(query)


@pytest.fixture
def fake_embedder():
    return FakeEmbedder()


@pytest.fixture
def sample_pdf(tmp_path):
    path = tmp_path / "sample.pdf"
    create_sample_pdf(str(path))
    return str(path)


@pytest.fixture
def blank_pdf(tmp_path):
    path = tmp_path / "blank.pdf"
    create_blank_pdf(str(path))
    return str(path)


@pytest.fixture
def redis_client():
    client = fakeredis.FakeRedis(decode_responses=True)
    yield client
    client.flushall()


@pytest.fixture
def qdrant_store():
    return QdrantStore(
        QdrantConfig(mode="memory", collection_name="test-pdf-docs"),
        vector_dim=VECTOR_DIM
    )


@pytest.fixture
def file_store(tmp_path):
    return LocalFileStore(uploads_path=str(tmp_path / "uploads"))
