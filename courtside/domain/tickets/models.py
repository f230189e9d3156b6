from courtside.core.database import Base
from enum import Enum
from datetime import datetime
from typing import NamedTuple
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Text, TIMESTAMP, func, Enum as SQLEnum, CheckConstraint, Index, text

TICKET_KEY_SEPARATOR = "_"


class TicketStatus(str, Enum):
    ISSUED = "ISSUED"
    REVOKED = "REVOKED"
    INVALID = "INVALID"


class OwnerKind(str, Enum):
    USER = "USER"
    ADMIN_RESERVED = "ADMIN_RESERVED"
    ADMIN_UNAVAILABLE = "ADMIN_UNAVAILABLE"


class Owner(NamedTuple):
    kind: OwnerKind
    uid: str | None = None

    @classmethod
    def user(cls, uid: str) -> "Owner":
        return cls(OwnerKind.USER, uid)

    @classmethod
    def admin_reserved(cls) -> "Owner":
        return cls(OwnerKind.ADMIN_RESERVED)

    @classmethod
    def admin_unavailable(cls) -> "Owner":
        return cls(OwnerKind.ADMIN_UNAVAILABLE)

    @property
    def is_sentinel(self) -> bool:
        return self.kind != OwnerKind.USER

    def __str__(self) -> str:
        return self.uid if self.kind == OwnerKind.USER else self.kind.value


def ticket_key(event_id: str, seat_id: str) -> str:
    return f"{event_id}{TICKET_KEY_SEPARATOR}{seat_id}"


class Ticket(Base):
    __tablename__ = "tickets"

    # {event_id}_{seat_id}; the primary key is what makes a seat claim first-writer-wins
    id: Mapped[str] = mapped_column(Text, primary_key=True)
    event_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    seat_id: Mapped[str] = mapped_column(Text, nullable=False)
    section: Mapped[str] = mapped_column(Text, nullable=False)
    owner_kind: Mapped[OwnerKind] = mapped_column(SQLEnum(OwnerKind, name="owner_kind"), nullable=False)
    owner_uid: Mapped[str | None] = mapped_column(Text, nullable=True, index=True)
    owner_email: Mapped[str | None] = mapped_column(Text, nullable=True)
    owner_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[TicketStatus] = mapped_column(
        SQLEnum(TicketStatus, name="ticket_status"),
        nullable=False,
        server_default=TicketStatus.ISSUED.value
    )
    order_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    qr_payload: Mapped[str | None] = mapped_column(Text, nullable=True)
    event_title: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_time: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    end_time: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    invalid_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )
    revoked_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "(owner_kind = 'USER') = (owner_uid IS NOT NULL)",
            name="chk_ticket_owner_uid_matches_kind"
        ),
        Index("ix_tickets_event_status", "event_id", "status"),
        Index(
            "ix_tickets_event_issued_section",
            "event_id",
            "section",
            postgresql_where=text("status = 'ISSUED'")
        ),
    )

    @property
    def owner(self) -> Owner:
        return Owner(self.owner_kind, self.owner_uid)

    @property
    def is_active(self) -> bool:
        return self.status == TicketStatus.ISSUED
