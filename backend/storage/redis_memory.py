import logging
from typing import List, Optional

import redis

from models.query import ConversationTurn
from storage.base import ConversationMemory
from config.settings import settings, RedisConfig

logger = logging.getLogger(__name__)


class RedisConversationMemory(ConversationMemory):
    """
    Per-user short-term chat history stored as a Redis list.

    Key:   chat_history:<user_id>
    Value: JSON-encoded ConversationTurn per element, oldest first.

    append() runs RPUSH + LTRIM + EXPIRE inside one MULTI/EXEC block, so the
    turn cap and the rolling TTL are applied atomically with the write.
    """

    def __init__(self, client: redis.Redis, config: Optional[RedisConfig] = None):
        self.client = client
        self.config = config or settings.redis

    def _key(self, user_id: str) -> str:
        return f"{self.config.history_key_prefix}:{user_id}"

    def get_history(self, user_id: str) -> List[ConversationTurn]:
        raw_turns = self.client.lrange(self._key(user_id), 0, -1)
        return [ConversationTurn.model_validate_json(raw) for raw in raw_turns]

    def append(self, user_id: str, question: str, answer: str) -> None:
        key = self._key(user_id)
        entry = ConversationTurn(user=question, bot=answer).model_dump_json()

        with self.client.pipeline(transaction=True) as pipe:
            pipe.rpush(key, entry)
            pipe.ltrim(key, -self.config.history_max_turns, -1)
            pipe.expire(key, self.config.history_ttl_seconds)
            pipe.execute()

        logger.debug(f"Appended turn to {key}")

    def clear(self, user_id: str) -> None:
        self.client.delete(self._key(user_id))
