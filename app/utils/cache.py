import json
import logging
from typing import Any, Optional
from redis.asyncio import Redis

logger = logging.getLogger(__name__)

# Redis is optional: every helper is a no-op when the client is None, and a
# failing Redis degrades to a cache miss instead of failing the request.

async def cache_get(redis: Optional[Redis], key: str) -> Any:
    if redis is None:
        return None
    try:
        if val := await redis.get(key):
            return json.loads(val)
    except Exception as e:
        logger.warning("cache get error key=%s err=%s", key, e)
    return None

async def cache_set(redis: Optional[Redis], key: str, value: Any, ex: int = 60) -> None:
    if redis is None:
        return
    try:
        await redis.set(key, json.dumps(value, default=str), ex=ex)
    except Exception as e:
        logger.warning("cache set error key=%s err=%s", key, e)

async def cache_delete(redis: Optional[Redis], key: str) -> None:
    if redis is None:
        return
    try:
        await redis.delete(key)
    except Exception as e:
        logger.warning("cache delete error key=%s err=%s", key, e)
