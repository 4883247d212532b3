import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request, HTTPException

from models.query import QueryResponse
from core.pipeline.retrieval import RetrievalPipeline

router = APIRouter()
logger = logging.getLogger(__name__)

# Dependency to get RetrievalPipeline from app state
def get_retrieval_pipeline(request: Request) -> RetrievalPipeline:
    return request.app.state.retrieval_pipeline

@router.get("/info", response_model=QueryResponse, response_model_by_alias=True,
            summary="Ask a question about the user's uploaded documents")
def ask_question(
    q: Optional[str] = Query(None, description="The user's question"),
    user_id: Optional[str] = Query(None, alias="userId"),
    pipeline: RetrievalPipeline = Depends(get_retrieval_pipeline)
):
    """
    Sync def: retrieval and the LLM call block, so FastAPI runs this in its threadpool.
    """
    if not q or not user_id:
        raise HTTPException(status_code=400, detail="Both q and userId are required")

    try:
        return pipeline.run(q, user_id)
    except Exception:
        logger.exception(f"Query pipeline execution failed for user {user_id}")
        raise HTTPException(status_code=500, detail="Internal server error")
