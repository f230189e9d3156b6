import logging
import secrets
from datetime import datetime, timezone
from typing import Iterable, NamedTuple
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from courtside.core.auditing import AuditSpan
from courtside.core.notifications import notify_tickets_issued
from courtside.domain.events import crud as events_crud
from courtside.domain.events.models import Event
from courtside.domain.exceptions import NotFound, InvalidInput, SeatConflict
from courtside.domain.tickets import crud
from courtside.domain.tickets.models import Ticket, TicketStatus, Owner, OwnerKind, ticket_key
from courtside.domain.tickets.schemas import TicketMetadata
from courtside.domain.venue.layout import parse_seat_id, seat_exists, canonical_seat_id
from courtside.services import inventory_service

logger = logging.getLogger("courtside.claims")

ORDER_ID_PREFIX = "ord_"


class ClaimResult(NamedTuple):
    order_id: str
    created_seats: list[str]
    reused_seats: list[str]


def _new_order_id() -> str:
    return f"{ORDER_ID_PREFIX}{secrets.token_hex(6)}"


def _qr_payload(order_id: str, seat_id: str, event_id: str) -> str:
    return f"ticket:{order_id}:{seat_id}:{event_id}"


def normalize_seat_ids(event_id: str, seat_ids: Iterable[str] | None) -> list[str]:
    """
    Validate a requested seat batch before any I/O.
    Returns canonical seat IDs, duplicates collapsed, request order kept.
    """
    if not isinstance(event_id, str) or not event_id.strip():
        raise InvalidInput("Missing event id")

    seat_ids = list(seat_ids or [])
    if not seat_ids:
        raise InvalidInput("No seats requested", ctx={"event_id": event_id})

    canonical: list[str] = []
    malformed: list[str] = []
    for raw in seat_ids:
        ref = parse_seat_id(raw.strip()) if isinstance(raw, str) else None
        if ref is None or not seat_exists(ref):
            malformed.append(str(raw))
            continue
        canonical.append(canonical_seat_id(ref))

    if malformed:
        raise InvalidInput("Unknown or malformed seat ids", ctx={"event_id": event_id, "seat_ids": malformed})
    return list(dict.fromkeys(canonical))


async def _require_event(db: AsyncSession, event_id: str) -> Event:
    event = await events_crud.get_event_by_id(db, event_id, key_share=True)
    if not event:
        raise NotFound("Event not found", ctx={"event_id": event_id})
    return event


def _resolve_metadata(event: Event, metadata: TicketMetadata | None) -> TicketMetadata:
    metadata = metadata or TicketMetadata()
    return metadata.model_copy(update={
        "event_title": metadata.event_title or event.title,
        "start_time": metadata.start_time or event.start_time,
        "end_time": metadata.end_time or event.end_time,
    })


def _classify(
        event_id: str,
        seat_ids: list[str],
        existing: dict[str, Ticket],
        owner: Owner
) -> tuple[list[str], list[str], list[str]]:
    claimable, reused, conflicts = [], [], []
    for seat_id in seat_ids:
        ticket = existing.get(ticket_key(event_id, seat_id))
        if ticket is None or ticket.status != TicketStatus.ISSUED:
            claimable.append(seat_id)
        elif ticket.owner == owner:
            reused.append(seat_id)
        else:
            conflicts.append(seat_id)
    return claimable, reused, conflicts


def _ticket_values(
        event_id: str,
        seat_id: str,
        owner: Owner,
        metadata: TicketMetadata,
        order_id: str,
        now: datetime
) -> dict:
    real_user = owner.kind == OwnerKind.USER
    return {
        "id": ticket_key(event_id, seat_id),
        "event_id": event_id,
        "seat_id": seat_id,
        "section": parse_seat_id(seat_id).section,
        "owner_kind": owner.kind,
        "owner_uid": owner.uid if real_user else None,
        "owner_email": metadata.owner_email if real_user else None,
        "owner_name": metadata.owner_name if real_user else None,
        "status": TicketStatus.ISSUED,
        "order_id": order_id,
        "qr_payload": _qr_payload(order_id, seat_id, event_id) if real_user else None,
        "event_title": metadata.event_title,
        "start_time": metadata.start_time,
        "end_time": metadata.end_time,
        "invalid_reason": None,
        "revoked_at": None,
        "created_at": now,
        "updated_at": now,
    }


def _reissue(ticket: Ticket, values: dict) -> None:
    for k, v in values.items():
        if k != "id":
            setattr(ticket, k, v)


async def _claim_in_transaction(
        db: AsyncSession,
        event_id: str,
        seat_ids: list[str],
        owner: Owner,
        metadata: TicketMetadata
) -> ClaimResult:
    # Part 1 - lock every existing row at the deterministic keys and classify
    existing = await crud.lock_tickets(db, [ticket_key(event_id, s) for s in seat_ids])
    claimable, reused, conflicts = _classify(event_id, seat_ids, existing, owner)
    if conflicts:
        raise SeatConflict(event_id, conflicts)

    # Part 2 - overwrite non-blocking rows in place, insert the missing ones
    order_id = _new_order_id()
    now = datetime.now(timezone.utc)
    to_insert = []
    for seat_id in claimable:
        values = _ticket_values(event_id, seat_id, owner, metadata, order_id, now)
        ticket = existing.get(values["id"])
        if ticket is None:
            to_insert.append(values)
        else:
            _reissue(ticket, values)

    # Same key order as the row locks, so overlapping batches queue instead of deadlocking on unique keys
    to_insert.sort(key=lambda row: row["id"])
    inserted = await crud.insert_tickets_if_absent(db, to_insert)

    # Part 3 - a row inserted by a concurrent claim after our lock query is classified again
    skipped = {row["id"] for row in to_insert} - inserted
    raced = [s for s in claimable if ticket_key(event_id, s) in skipped]
    if raced:
        late = await crud.lock_tickets(db, [ticket_key(event_id, s) for s in raced])
        late_claimable, late_reused, late_conflicts = _classify(event_id, raced, late, owner)
        if late_conflicts:
            raise SeatConflict(event_id, late_conflicts)
        for seat_id in late_claimable:
            _reissue(late[ticket_key(event_id, seat_id)],
                     _ticket_values(event_id, seat_id, owner, metadata, order_id, now))
        reused = reused + late_reused
        existing.update(late)

    await db.flush()

    reused_set = set(reused)
    if len(reused_set) == len(seat_ids):
        # Nothing new was written; report the order the seats already belong to
        order_id = existing[ticket_key(event_id, seat_ids[0])].order_id
    return ClaimResult(
        order_id=order_id,
        created_seats=[s for s in seat_ids if s not in reused_set],
        reused_seats=[s for s in seat_ids if s in reused_set],
    )


async def claim_seats(
        db: AsyncSession,
        event_id: str,
        seat_ids: Iterable[str],
        owner: Owner,
        metadata: TicketMetadata | None = None
) -> ClaimResult:
    """
    Assign a batch of seats to one owner for one event, all or nothing.
    - Seats issued to the same owner are reused, not duplicated
    - Seats issued to another owner abort the whole batch with SeatConflict listing every one of them
    - Inventory projection and notification run after commit and never fail the claim
    """
    seat_ids = normalize_seat_ids(event_id, seat_ids)

    async with AuditSpan(
        scope="SEATS",
        action="CLAIM",
        object_type="ticket",
        event_id=event_id,
        meta={"seat_ids": seat_ids, "owner_kind": owner.kind.value}
    ) as span:
        event = await _require_event(db, event_id)
        metadata = _resolve_metadata(event, metadata)
        try:
            result = await _claim_in_transaction(db, event_id, seat_ids, owner, metadata)
            await db.commit()
        except SeatConflict as e:
            await db.rollback()
            span.meta["conflicts"] = e.seat_ids
            raise
        except IntegrityError as e:
            await db.rollback()
            raise SeatConflict(event_id, seat_ids, "Seats were claimed concurrently") from e

        span.order_id = result.order_id
        span.meta["created"] = len(result.created_seats)
        span.meta["reused"] = len(result.reused_seats)

    if result.created_seats:
        await inventory_service.record_claim(event_id, result.created_seats, owner)
        if not owner.is_sentinel:
            await notify_tickets_issued(
                owner.uid,
                [
                    {
                        "ticket_id": ticket_key(event_id, s),
                        "seat_id": s,
                        "qr_payload": _qr_payload(result.order_id, s, event_id),
                    }
                    for s in result.created_seats
                ],
                metadata.event_title,
                result.order_id,
            )
    return result


async def hold_seats(db: AsyncSession, event_id: str, seat_ids: Iterable[str], hold: str) -> ClaimResult:
    owner = Owner.admin_unavailable() if hold == "UNAVAILABLE" else Owner.admin_reserved()
    return await claim_seats(db, event_id, seat_ids, owner)


async def release_seat(db: AsyncSession, event_id: str, seat_id: str, owner: Owner) -> bool:
    """Hard-delete the owner's active ticket. Returns False when there is nothing of theirs to release."""
    seat_id = normalize_seat_ids(event_id, [seat_id])[0]

    async with AuditSpan(
        scope="SEATS",
        action="RELEASE",
        object_type="ticket",
        object_id=ticket_key(event_id, seat_id),
        event_id=event_id
    ) as span:
        ticket = await crud.get_ticket(db, event_id, seat_id, for_update=True)
        if ticket is None or not ticket.is_active or ticket.owner != owner:
            span.meta["released"] = False
            return False

        span.order_id = ticket.order_id
        await crud.delete_ticket(db, ticket)
        await db.commit()
        span.meta["released"] = True

    await inventory_service.record_release(event_id, [seat_id], owner)
    return True


async def revoke_ticket(db: AsyncSession, event_id: str, seat_id: str) -> Ticket | None:
    seat_id = normalize_seat_ids(event_id, [seat_id])[0]

    async with AuditSpan(
        scope="SEATS",
        action="REVOKE",
        object_type="ticket",
        object_id=ticket_key(event_id, seat_id),
        event_id=event_id
    ) as span:
        ticket = await crud.get_ticket(db, event_id, seat_id, for_update=True)
        if ticket is None:
            span.meta["revoked"] = False
            return None
        if not ticket.is_active:
            span.meta["revoked"] = False
            return ticket

        previous_owner = ticket.owner
        now = datetime.now(timezone.utc)
        ticket.status = TicketStatus.REVOKED
        ticket.qr_payload = None
        ticket.revoked_at = now
        ticket.updated_at = now
        await db.commit()
        span.order_id = ticket.order_id
        span.meta["revoked"] = True

    await inventory_service.record_release(event_id, [seat_id], previous_owner)
    return ticket
