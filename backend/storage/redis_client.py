import logging
from typing import Optional

import redis

from config.settings import settings, RedisConfig

logger = logging.getLogger(__name__)


def build_redis_client(config: Optional[RedisConfig] = None,
                       password: Optional[str] = None) -> redis.Redis:
    """
    Creates the shared Redis/Valkey client used for conversation memory
    and, when configured, the ingestion job store.
    """
    config = config or settings.redis
    client = redis.Redis(
        host=config.host,
        port=config.port,
        db=config.db,
        password=password if password is not None else settings.redis_password,
        decode_responses=True,
        socket_timeout=config.socket_timeout,
        socket_connect_timeout=config.socket_timeout,
    )
    logger.info(f"Redis client configured for {config.host}:{config.port}/{config.db}")
    return client
