from redis import asyncio as aioredis
from app.core.config import settings

_client = None


def get_redis() -> aioredis.Redis:
    """Shared Redis client; connections are opened lazily on first command."""
    global _client
    if _client is None:
        _client = aioredis.from_url(str(settings.REDIS_URL), decode_responses=True)
    return _client


async def close_redis():
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
