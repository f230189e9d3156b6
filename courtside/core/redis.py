import redis.asyncio as redis
from courtside.core.config import REDIS_URL, SERVICE_NAME

# The projection, audit and notification writes all happen after the ledger commit
# and are best-effort, so a stalled Redis must fail fast instead of holding the request.
PROJECTION_SOCKET_TIMEOUT = 2
PROJECTION_CONNECT_TIMEOUT = 2


async def create_redis() -> redis.Redis:
    return redis.from_url(
        REDIS_URL,
        encoding="utf-8",
        decode_responses=True,
        client_name=SERVICE_NAME,
        health_check_interval=30,
        retry_on_timeout=False,
        socket_connect_timeout=PROJECTION_CONNECT_TIMEOUT,
        socket_timeout=PROJECTION_SOCKET_TIMEOUT,
        socket_keepalive=True
    )
