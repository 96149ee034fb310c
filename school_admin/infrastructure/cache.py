import json
from typing import Any, Optional

import redis
import structlog

from ..config import settings

logger = structlog.get_logger(__name__)

# общий префикс ключей сервиса в Redis
KEY_PREFIX = "school"

_redis_client: Optional[redis.Redis] = None


def get_redis() -> redis.Redis:
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True
        )
    return _redis_client


def cache_key(*parts: Any) -> str:
    return ":".join([KEY_PREFIX, *(str(p) for p in parts)])


def get_cache(key: str) -> Optional[Any]:
    """Получить значение из кэша. Недоступный Redis = промах."""
    try:
        value = get_redis().get(key)
        if value:
            return json.loads(value)
    except (redis.RedisError, ValueError) as exc:
        logger.warning("cache_get_failed", key=key, error=str(exc))
    return None


def set_cache(key: str, value: Any, ttl: int | None = None) -> bool:
    try:
        get_redis().setex(key, ttl or settings.CACHE_TTL, json.dumps(value, ensure_ascii=False))
        return True
    except (redis.RedisError, TypeError) as exc:
        logger.warning("cache_set_failed", key=key, error=str(exc))
        return False


def delete_cache_pattern(pattern: str) -> int:
    """Удалить все ключи по паттерну (инвалидация после записи)."""
    try:
        client = get_redis()
        keys = list(client.scan_iter(match=pattern))
        if keys:
            return client.delete(*keys)
        return 0
    except redis.RedisError as exc:
        logger.warning("cache_invalidate_failed", pattern=pattern, error=str(exc))
        return 0
