from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, model_validator
import yaml
import os

class ChunkingConfig(BaseModel):
    chunk_size: int = 1000
    chunk_overlap: int = 200
    separators: list[str] = ["\n\n", "\n", " ", ""]

    @model_validator(mode="after")
    def _check_overlap(self):
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError("chunk_overlap must be smaller than chunk_size")
        return self

class EmbeddingConfig(BaseModel):
    model_name: str = "BAAI/bge-large-en-v1.5"
    batch_size: int = 32
    vector_dim: int = 1024
    query_prefix: str = "Represent this sentence for searching relevant passages: "
    normalise: bool = True

class QdrantConfig(BaseModel):
    mode: str = "local"                  # "memory" | "local" | "remote"
    local_path: str = "./data/qdrant_store"
    url: str = "http://localhost:6333"
    api_key: str | None = None
    collection_name: str = "pdf-docs"
    timeout: float = 30.0

class RetrievalConfig(BaseModel):
    top_k: int = 5
    fallback_top_k: int = 10
    catalog_scan_limit: int = 1000

class LLMConfig(BaseModel):
    provider: str = "openrouter"
    base_url: str = "https://openrouter.ai/api/v1"
    model: str = "google/gemini-2.0-flash-001"
    fallback_model: str = "mistralai/mistral-7b-instruct"
    max_tokens: int = 1024
    temperature: float = 0.2
    max_retries: int = 3
    base_delay: float = 2.0
    timeout: float = 60.0

class RedisConfig(BaseModel):
    host: str = "localhost"
    port: int = 6379
    db: int = 0
    socket_timeout: float = 2.0
    history_key_prefix: str = "chat_history"
    history_max_turns: int = 15
    history_ttl_seconds: int = 86400

class WorkerConfig(BaseModel):
    max_concurrency: int = 100
    job_backend: str = "memory"          # "memory" | "redis"
    job_key_prefix: str = "ingest_job"
    job_retention_seconds: int = 3600
    # Each long-poll occupies one of FastAPI's ~40 sync threadpool workers for up to this long
    max_status_wait_seconds: float = 10.0
    status_poll_interval: float = 0.5

class StorageConfig(BaseModel):
    uploads_path: str = "./data/uploads"
    download_timeout: float = 60.0

class AppSettings(BaseSettings):
    chunking: ChunkingConfig = ChunkingConfig()
    embedding: EmbeddingConfig = EmbeddingConfig()
    qdrant: QdrantConfig = QdrantConfig()
    retrieval: RetrievalConfig = RetrievalConfig()
    llm: LLMConfig = LLMConfig()
    redis: RedisConfig = RedisConfig()
    worker: WorkerConfig = WorkerConfig()
    storage: StorageConfig = StorageConfig()
    openrouter_api_key: str = ""
    redis_password: str | None = None
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

def load_settings(config_path: str = "backend/config/config.yaml") -> AppSettings:
    """Loads settings from config.yaml and applies env overrides."""

    # Try multiple paths for convenience during testing vs running
    paths_to_try = [
        os.environ.get("DOCUMIND_CONFIG", ""),
        config_path,
        "config.yaml",
        "config/config.yaml",
        os.path.join(os.path.dirname(__file__), "config.yaml")
    ]

    yaml_data = {}
    for path in paths_to_try:
        if path and os.path.exists(path):
            with open(path, "r", encoding="utf-8") as f:
                yaml_data = yaml.safe_load(f) or {}
            break

    # Manually map yaml sections to our sub-models
    return AppSettings(
        chunking=ChunkingConfig(**yaml_data.get("chunking", {})),
        embedding=EmbeddingConfig(**yaml_data.get("embedding", {})),
        qdrant=QdrantConfig(**yaml_data.get("qdrant", {})),
        retrieval=RetrievalConfig(**yaml_data.get("retrieval", {})),
        llm=LLMConfig(**yaml_data.get("llm", {})),
        redis=RedisConfig(**yaml_data.get("redis", {})),
        worker=WorkerConfig(**yaml_data.get("worker", {})),
        storage=StorageConfig(**yaml_data.get("storage", {}))
    )

# Global settings instance
settings = load_settings()
