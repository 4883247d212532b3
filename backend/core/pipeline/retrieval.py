import logging
from typing import List, Optional
from models.query import QueryResponse, ConversationTurn
from core.retrieve.retriever import UserScopedRetriever
from core.generate.prompt_builder import PromptBuilder, format_answer
from core.generate.llm_client import LLMClient
from storage.base import ConversationMemory

logger = logging.getLogger(__name__)

class RetrievalPipeline:
    """
    Orchestrator for one conversational question:
    load_history -> retrieve -> build_prompt -> call_llm -> format -> remember

    The turn is written to memory only after the LLM call succeeds, and the
    stored answer is the raw model text, not the display-formatted one.
    """

    def __init__(self,
                 retriever: UserScopedRetriever,
                 llm_client: LLMClient,
                 memory: ConversationMemory,
                 prompt_builder: Optional[PromptBuilder] = None):
        self.retriever = retriever
        self.llm_client = llm_client
        self.memory = memory
        self.prompt_builder = prompt_builder or PromptBuilder()

    def run(self, question: str, user_id: str) -> QueryResponse:
        logger.info(f"Starting retrieval pipeline for user {user_id}: '{question}'")

        # 1. Conversation history
        history = self._load_history(user_id)

        # 2. User-scoped retrieval
        sources = self.retriever.retrieve(question, user_id)
        if not sources:
            logger.info(f"No context found for user {user_id}; answering from history only")

        # 3. Prompt
        messages = self.prompt_builder.build_messages(question, sources, history)

        # 4. LLM
        raw_answer = self.llm_client.generate(messages)

        # 5. Remember the exchange, then format for display
        self._remember(user_id, question, raw_answer)

        return QueryResponse(
            answer=format_answer(raw_answer),
            sources=sources
        )

    def _load_history(self, user_id: str) -> List[ConversationTurn]:
        try:
            return self.memory.get_history(user_id)
        except Exception:
            logger.exception(f"Could not load chat history for user {user_id}; continuing without it")
            return []

    def _remember(self, user_id: str, question: str, answer: str) -> None:
        try:
            self.memory.append(user_id, question, answer)
        except Exception:
            logger.exception(f"Could not save chat history for user {user_id}")
