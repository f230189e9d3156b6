"""Fire-and-forget hand-off of issued tickets to the push/SMS dispatcher."""
import json
import logging
from typing import Iterable
from redis.exceptions import RedisError
from courtside.core.config import NOTIFICATION_STREAM
from courtside.core.ctx import get_redis, get_request_id

logger = logging.getLogger("courtside.notifications")


async def notify_tickets_issued(
        uid: str,
        tickets: Iterable[dict],
        event_title: str | None,
        order_id: str
) -> str | None:
    r = get_redis()
    if not r:
        return None

    payload = {
        "request_id": get_request_id(),
        "uid": uid,
        "tickets": list(tickets),
        "event_title": event_title,
        "order_id": order_id,
    }
    try:
        return await r.xadd(NOTIFICATION_STREAM, {"json": json.dumps(payload, default=str)})
    except RedisError:
        logger.warning("Ticket notification dropped order_id=%s uid=%s", order_id, uid, exc_info=True)
        return None
