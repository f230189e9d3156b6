from contextvars import ContextVar
from typing import Any

REQUEST_ID_CTX: ContextVar[str | None] = ContextVar("request_id", default=None)
ROUTE_CTX: ContextVar[str | None] = ContextVar("route", default=None)
CLIENT_IP_CTX: ContextVar[str | None] = ContextVar("client_ip", default=None)
# Projection/audit/notification client; unset outside the HTTP lifespan, which turns those writes into no-ops
REDIS_CTX: ContextVar[Any] = ContextVar("redis", default=None)
# IdP subject, not a local user id
AUTH_USER_ID_CTX: ContextVar[str | None] = ContextVar("auth_user_id", default=None)
AUTH_ROLES_CTX: ContextVar[tuple[str, ...]] = ContextVar("auth_roles", default=())


def get_request_id() -> str | None:
    return REQUEST_ID_CTX.get()


def get_redis() -> Any:
    return REDIS_CTX.get()


def actor_context() -> dict[str, Any]:
    """Who did it and through which request; stamped on audit entries."""
    return {
        "request_id": REQUEST_ID_CTX.get(),
        "actor_user_id": AUTH_USER_ID_CTX.get(),
        "actor_roles": list(AUTH_ROLES_CTX.get() or ()),
        "actor_ip": CLIENT_IP_CTX.get(),
        "route": ROUTE_CTX.get(),
    }
