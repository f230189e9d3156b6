from datetime import datetime
from typing import Literal
from pydantic import BaseModel, ConfigDict, Field, field_validator
from courtside.domain.tickets.models import TicketStatus, OwnerKind


def _strip_seat_ids(v):
    if isinstance(v, list):
        return [s.strip() if isinstance(s, str) else s for s in v]
    return v


class TicketMetadata(BaseModel):
    """Denormalized onto each ticket at claim time."""
    model_config = ConfigDict(extra='forbid')

    event_title: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    owner_email: str | None = None
    owner_name: str | None = None


class ClaimSeatsRequestDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    seat_ids: list[str] = Field(min_length=1, max_length=50)

    _strip_seat_ids = field_validator("seat_ids", mode="before")(_strip_seat_ids)


class AdminHoldRequestDTO(ClaimSeatsRequestDTO):
    hold: Literal["RESERVED", "UNAVAILABLE"]


class ClaimResultDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra='forbid')

    order_id: str
    created_seats: list[str]
    reused_seats: list[str]


class AvailabilityRequestDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    seat_ids: list[str] = Field(min_length=1, max_length=500)

    _strip_seat_ids = field_validator("seat_ids", mode="before")(_strip_seat_ids)


class AvailabilityReadDTO(BaseModel):
    unavailable: list[str]


class TakenSeatsReadDTO(BaseModel):
    event_id: str
    seat_ids: list[str]


class TicketReadDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra='forbid')

    id: str
    event_id: str
    seat_id: str
    section: str
    order_id: str
    status: TicketStatus
    qr_payload: str | None
    event_title: str | None
    start_time: datetime | None
    end_time: datetime | None
    created_at: datetime
    revoked_at: datetime | None = None
    invalid_reason: str | None = None


class AdminTicketReadDTO(TicketReadDTO):
    owner_kind: OwnerKind
    owner_uid: str | None
    owner_email: str | None
    owner_name: str | None


class SectionTicketsDTO(BaseModel):
    section: str
    total: int
    tickets: list[AdminTicketReadDTO]


class InvalidationStatsDTO(BaseModel):
    tickets_invalidated: int
    batches: int
