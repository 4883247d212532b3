import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import settings
from storage.qdrant_store import QdrantStore
from storage.file_store import LocalFileStore
from storage.redis_client import build_redis_client
from storage.redis_memory import RedisConversationMemory
from storage.job_store import InMemoryJobStore, RedisJobStore
from core.embed.embedder import Embedder
from core.generate.llm_client import LLMClient
from core.retrieve.retriever import UserScopedRetriever
from core.pipeline.ingestion import IngestionPipeline
from core.pipeline.retrieval import RetrievalPipeline
from core.pipeline.worker import IngestionWorker
from core.catalog.document_catalog import DocumentCatalog

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("urllib3").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # --- Startup: Initialize singletons ---
    logger.info("Initializing DocuMind backend storage and pipelines...")

    # 1. Storage
    vector_store = QdrantStore()
    file_store = LocalFileStore()
    redis_client = build_redis_client(password=settings.redis_password)
    memory = RedisConversationMemory(redis_client)
    if settings.worker.job_backend == "redis":
        job_store = RedisJobStore(redis_client)
    else:
        job_store = InMemoryJobStore()

    # 2. Models (embedding model is loaded once and shared)
    embedder = Embedder()
    llm_client = LLMClient()

    # 3. Pipelines
    ingestion_pipeline = IngestionPipeline(
        vector_store=vector_store,
        file_store=file_store,
        embedder=embedder
    )
    worker = IngestionWorker(ingestion_pipeline, job_store)
    retriever = UserScopedRetriever(vector_store, embedder)
    retrieval_pipeline = RetrievalPipeline(retriever, llm_client, memory)
    catalog = DocumentCatalog(vector_store, file_store)

    # 4. Store in app.state for dependency injection
    app.state.vector_store = vector_store
    app.state.file_store = file_store
    app.state.job_store = job_store
    app.state.memory = memory
    app.state.worker = worker
    app.state.retrieval_pipeline = retrieval_pipeline
    app.state.catalog = catalog

    logger.info(f"Initialization complete. Job backend: {settings.worker.job_backend}")

    yield

    # --- Shutdown: let running ingestion jobs finish ---
    logger.info("Shutting down DocuMind backend...")
    worker.shutdown(wait=True)
    redis_client.close()

# Create FastAPI instance
app = FastAPI(
    title="DocuMind RAG API",
    description="Chat with your PDFs: per-user ingestion, retrieval and grounded answers",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/health", tags=["System"])
def health_check():
    return {"status": "ok"}

from api.routes import ingest, query, documents

app.include_router(ingest.router, prefix="/api", tags=["Ingestion"])
app.include_router(query.router, prefix="/api", tags=["Retrieval"])
app.include_router(documents.router, prefix="/api", tags=["Documents"])

@app.get("/", tags=["System"])
def root():
    return {"message": "DocuMind RAG API is running."}
