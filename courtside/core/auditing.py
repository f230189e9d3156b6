import json
import time
import logging
from datetime import timezone, datetime
from typing import Any, Mapping
from redis.exceptions import RedisError
from courtside.core.config import AUDIT_STREAM
from courtside.core.ctx import get_redis, actor_context
from sqlalchemy.exc import IntegrityError

logger = logging.getLogger("courtside.audit")


class AuditStatus:
    SUCCESS = "SUCCESS"
    FAIL = "FAIL"


async def audit_emit(
    *,
    scope: str,
    action: str,
    status: str,
    object_type: str | None = None,
    object_id: str | None = None,
    event_id: str | None = None,
    order_id: str | None = None,
    reason: str | None = None,
    meta: Mapping[str, Any] | None = None
) -> str | None:
    r = get_redis()
    if not r:
        return None

    payload = {
        **actor_context(),
        "scope": scope,
        "action": action,
        "status": status,
        "object_type": object_type,
        "object_id": object_id,
        "event_id": event_id,
        "order_id": order_id,
        "reason": reason,
        "meta": dict(meta or {}),
    }
    try:
        return await r.xadd(AUDIT_STREAM, {"json": json.dumps(payload, default=str)})
    except RedisError:
        logger.warning("Audit emit failed scope=%s action=%s", scope, action, exc_info=True)
        return None


def _reason_from_exception(exception: BaseException | None) -> str | None:
    if exception is None:
        return None
    if isinstance(exception, IntegrityError):
        return "Integrity error"
    return str(exception)


class AuditSpan:
    def __init__(self, *, scope: str, action: str,
                 object_type: str | None = None, object_id: str | None = None,
                 event_id: str | None = None, order_id: str | None = None,
                 meta: Mapping[str, Any] | None = None):
        self.scope = scope
        self.action = action
        self.object_type = object_type
        self.object_id = object_id
        self.event_id = event_id
        self.order_id = order_id
        self.meta = dict(meta or {})
        self._t0 = 0.0

    async def __aenter__(self):
        self._t0 = time.perf_counter()
        started = datetime.now(timezone.utc)
        self.meta.setdefault("occurred_at", started.isoformat(timespec="milliseconds").replace("+00:00", "Z"))
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.meta["duration_ms"] = int((time.perf_counter() - self._t0) * 1000)
        status = AuditStatus.FAIL if exc else AuditStatus.SUCCESS
        await audit_emit(
            scope=self.scope, action=self.action, status=status,
            object_type=self.object_type, object_id=self.object_id,
            event_id=self.event_id, order_id=self.order_id,
            reason=_reason_from_exception(exc), meta=self.meta
        )
        return False
