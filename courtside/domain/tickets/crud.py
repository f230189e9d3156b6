from typing import Iterable, Sequence
from sqlalchemy import select, func, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession
from .models import Ticket, TicketStatus, OwnerKind, ticket_key


async def get_ticket(db: AsyncSession, event_id: str, seat_id: str, *, for_update: bool = False) -> Ticket | None:
    stmt = select(Ticket).where(Ticket.id == ticket_key(event_id, seat_id))
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    return result.scalars().first()


async def get_active_ticket(db: AsyncSession, event_id: str, seat_id: str) -> Ticket | None:
    stmt = select(Ticket).where(
        Ticket.id == ticket_key(event_id, seat_id),
        Ticket.status == TicketStatus.ISSUED
    )
    result = await db.execute(stmt)
    return result.scalars().first()


async def list_tickets_for_event(db: AsyncSession, event_id: str) -> Sequence[Ticket]:
    stmt = select(Ticket).where(Ticket.event_id == event_id).order_by(Ticket.section, Ticket.seat_id)
    result = await db.execute(stmt)
    return result.scalars().all()


async def list_tickets_for_user(db: AsyncSession, uid: str) -> Sequence[Ticket]:
    stmt = (
        select(Ticket)
        .where(Ticket.owner_kind == OwnerKind.USER, Ticket.owner_uid == uid)
        .order_by(Ticket.created_at.desc(), Ticket.id)
    )
    result = await db.execute(stmt)
    return result.scalars().all()


async def list_taken_seat_ids(
        db: AsyncSession,
        event_id: str,
        seat_ids: Iterable[str] | None = None
) -> set[str]:
    stmt = select(Ticket.seat_id).where(Ticket.event_id == event_id, Ticket.status == TicketStatus.ISSUED)
    if seat_ids is not None:
        stmt = stmt.where(Ticket.seat_id.in_(list(seat_ids)))
    result = await db.scalars(stmt)
    return set(result.all())


async def lock_tickets(db: AsyncSession, keys: Iterable[str]) -> dict[str, Ticket]:
    """
    Row-lock every existing ticket at the given keys.
    Keys are locked in sorted order so overlapping batches cannot deadlock.
    """
    stmt = (
        select(Ticket)
        .where(Ticket.id.in_(sorted(set(keys))))
        .order_by(Ticket.id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    result = await db.execute(stmt)
    return {t.id: t for t in result.scalars().all()}


async def insert_tickets_if_absent(db: AsyncSession, rows: list[dict]) -> set[str]:
    """Insert rows whose key is still free. Returns the keys actually inserted."""
    if not rows:
        return set()
    stmt = (
        insert(Ticket)
        .values(rows)
        .on_conflict_do_nothing(index_elements=[Ticket.id])
        .returning(Ticket.id)
    )
    result = await db.scalars(stmt)
    return set(result.all())


async def delete_ticket(db: AsyncSession, ticket: Ticket) -> None:
    await db.delete(ticket)
    await db.flush()


async def count_active_by_section(db: AsyncSession, event_id: str) -> list[tuple[str, OwnerKind, int]]:
    result = await db.execute(
        select(Ticket.section, Ticket.owner_kind, func.count(Ticket.id))
        .where(Ticket.event_id == event_id, Ticket.status == TicketStatus.ISSUED)
        .group_by(Ticket.section, Ticket.owner_kind)
    )
    return [(section, kind, int(cnt)) for section, kind, cnt in result.all()]


async def lock_next_invalidation_batch(db: AsyncSession, event_id: str, limit: int) -> list[str]:
    ids = await db.scalars(
        select(Ticket.id)
        .where(Ticket.event_id == event_id, Ticket.status != TicketStatus.INVALID)
        .order_by(Ticket.id)
        .with_for_update()
        .limit(limit)
    )
    return list(ids)


async def mark_invalid(db: AsyncSession, ticket_ids: list[str], reason: str) -> int:
    result = await db.execute(
        update(Ticket)
        .where(Ticket.id.in_(ticket_ids))
        .values(status=TicketStatus.INVALID, invalid_reason=reason, updated_at=func.now())
    )
    return int(result.rowcount or 0)

