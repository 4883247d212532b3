from pydantic import BaseModel
from models.chunk import SourceChunk

class ConversationTurn(BaseModel):
    user: str                        # question text
    bot: str                         # raw model answer (not display-formatted)

class QueryResponse(BaseModel):
    answer: str                      # display-formatted answer
    sources: list[SourceChunk]
