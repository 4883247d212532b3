import json
from models.chunk import SourceChunk
from models.query import ConversationTurn

INSTRUCTIONS = """You are a helpful and intelligent assistant that answers user questions based on the context provided from the user's PDF documents, along with their previous conversation history.

Instructions:
- Answer based strictly on the PDF content and prior conversation context.
- If the user's question is related to the PDF, respond accurately and helpfully.
- If the user asks for a little more detail, elaborate just enough to give a clearer explanation, but stay concise and on-topic.
- If a question can't be answered from the PDF or previous chat history, politely inform the user.
- Use chat history to maintain context across multiple questions and provide continuity in responses.
- If the user greets you (e.g., "Hi", "Hello"), respond politely and maintain a friendly, professional tone."""

NO_ANSWER_MESSAGE = (
    "I'm sorry, I couldn't find an answer to that in your documents or our conversation. "
    "Could you rephrase the question or upload a document that covers it?"
)

class PromptBuilder:
    @staticmethod
    def serialize_sources(sources: list[SourceChunk]) -> str:
        return json.dumps(
            [s.model_dump(by_alias=True, exclude={"score"}) for s in sources],
            ensure_ascii=False
        )

    @staticmethod
    def serialize_history(history: list[ConversationTurn]) -> str:
        """Oldest turn first."""
        return "\n".join(f"User: {t.user}\nAssistant: {t.bot}" for t in history)

    @classmethod
    def build_prompt(cls,
                     question: str,
                     sources: list[SourceChunk],
                     history: list[ConversationTurn]) -> str:
        return (
            f"{INSTRUCTIONS}\n\n"
            f"PDF Context:\n{cls.serialize_sources(sources)}\n\n"
            f"Chat History:\n{cls.serialize_history(history)}\n\n"
            f"Current User Question:\n{question}\n"
        )

    @classmethod
    def build_messages(cls,
                       question: str,
                       sources: list[SourceChunk],
                       history: list[ConversationTurn]) -> list[dict]:
        """A single grounded user message; the instructions travel inside it."""
        return [{"role": "user", "content": cls.build_prompt(question, sources, history)}]

def format_answer(raw_text: str) -> str:
    """Display form for the web client: line breaks become <br/>."""
    text = (raw_text or "").strip()
    if not text:
        text = NO_ANSWER_MESSAGE
    return text.replace("\r\n", "\n").replace("\n", "<br/>")
