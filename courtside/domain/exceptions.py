from typing import Iterable
from courtside.core.utils.serialization import normalize_ctx


class AppError(Exception):
    def __init__(self, message: str = "", *, ctx: dict | None = None) -> None:
        super().__init__(message or self.__class__.__name__)
        self.ctx = normalize_ctx(ctx or {})


class NotFound(AppError):
    pass
class Unauthorized(AppError):
    pass
class Forbidden(AppError):
    pass
class Conflict(AppError):
    pass
class InvalidInput(AppError):
    pass


class PermissionDenied(Forbidden):
    """Store-level authorization rejected a write (projection side only)."""


class SeatConflict(Conflict):
    """
    One or more requested seats are already issued to another owner.
    Carries every conflicting seat, not only the first one found.
    """

    def __init__(self, event_id: str, seat_ids: Iterable[str], message: str = "Seats already taken") -> None:
        self.event_id = event_id
        self.seat_ids = list(seat_ids)
        super().__init__(message, ctx={"event_id": event_id, "seat_ids": self.seat_ids})
