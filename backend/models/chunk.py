from pydantic import BaseModel, ConfigDict, Field

class ParsedPage(BaseModel):
    text: str
    page_number: int                 # 1-based

class ChunkMetadata(BaseModel):
    # Identity
    chunk_id: str                    # uuid4, doubles as the vector point id
    user_id: str                     # owner; every read filters on it
    # Provenance (constant across one document)
    filename: str
    upload_date: str                 # ISO 8601 UTC
    source: str                      # origin store locator
    # Position
    page_number: int
    chunk_index: int                 # absolute position in document
    total_chunks: int

class DocumentChunk(BaseModel):
    metadata: ChunkMetadata
    text: str
    embedding: list[float] | None = None    # None before embedding step

class SourceChunk(BaseModel):
    """A retrieved chunk as returned to API consumers."""
    model_config = ConfigDict(populate_by_name=True)

    page_content: str = Field(alias="pageContent")
    metadata: ChunkMetadata
    score: float | None = None

    @classmethod
    def from_payload(cls, payload: dict, score: float | None = None) -> "SourceChunk":
        meta = {k: v for k, v in payload.items() if k != "text"}
        return cls(page_content=payload.get("text", ""), metadata=ChunkMetadata(**meta), score=score)
