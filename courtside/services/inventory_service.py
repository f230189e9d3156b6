import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Iterable
from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession
from courtside.core.ctx import get_redis
from courtside.domain.exceptions import PermissionDenied
from courtside.domain.inventory import store
from courtside.domain.inventory.schemas import EventInventoryDTO, SectionInventoryDTO
from courtside.domain.inventory.store import SectionDelta
from courtside.domain.tickets import crud
from courtside.domain.tickets.models import Owner, OwnerKind
from courtside.domain.venue.layout import section_of, total_seats_for_section, empty_section_counters

logger = logging.getLogger("courtside.inventory")


def _deltas_for(seat_ids: Iterable[str], owner: Owner, sign: int) -> tuple[dict[str, SectionDelta], int]:
    per_section = Counter(section_of(seat_id) for seat_id in seat_ids)
    if owner.is_sentinel:
        return {s: SectionDelta(unavailable=sign * n) for s, n in per_section.items()}, 0
    deltas = {s: SectionDelta(taken=sign * n) for s, n in per_section.items()}
    return deltas, sign * sum(per_section.values())


async def _apply_best_effort(event_id: str, seat_ids: list[str], owner: Owner, sign: int, action: str) -> bool:
    """
    Push counter deltas after the ledger has committed.
    Never raises: the ledger is the source of truth, the projection may lag.
    """
    if not seat_ids:
        return False
    r = get_redis()
    if not r:
        logger.debug("No projection store bound; skipping %s event_id=%s", action, event_id)
        return False

    deltas, sold_delta = _deltas_for(seat_ids, owner, sign)
    try:
        await store.apply_deltas(r, event_id, deltas, sold_delta)
        return True
    except PermissionDenied:
        logger.warning(
            "Inventory projection write rejected (permission denied) action=%s event_id=%s seats=%s",
            action, event_id, seat_ids
        )
    except RedisError:
        logger.warning(
            "Inventory projection write failed action=%s event_id=%s seats=%s",
            action, event_id, seat_ids, exc_info=True
        )
    return False


async def record_claim(event_id: str, seat_ids: list[str], owner: Owner) -> bool:
    return await _apply_best_effort(event_id, seat_ids, owner, +1, "claim")


async def record_release(event_id: str, seat_ids: list[str], owner: Owner) -> bool:
    return await _apply_best_effort(event_id, seat_ids, owner, -1, "release")


async def compute_from_ledger(db: AsyncSession, event_id: str) -> EventInventoryDTO:
    counts = empty_section_counters()
    sold = 0
    for section, kind, cnt in await crud.count_active_by_section(db, event_id):
        entry = counts.setdefault(
            section, {"taken": 0, "unavailable": 0, "total": total_seats_for_section(section)}
        )
        if kind == OwnerKind.USER:
            entry["taken"] += cnt
            sold += cnt
        else:
            entry["unavailable"] += cnt

    return EventInventoryDTO(
        event_id=event_id,
        sections={
            section: SectionInventoryDTO(**entry)
            for section, entry in sorted(counts.items())
        },
        total_seats_sold=sold,
        updated_at=datetime.now(timezone.utc),
        source="ledger",
    )


async def _overwrite_best_effort(snapshot: EventInventoryDTO) -> bool:
    r = get_redis()
    if not r:
        return False
    try:
        await store.overwrite(r, snapshot)
        return True
    except RedisError:
        logger.warning("Inventory projection overwrite failed event_id=%s", snapshot.event_id, exc_info=True)
        return False


async def get_event_inventory_snapshot(db: AsyncSession, event_id: str) -> EventInventoryDTO:
    r = get_redis()
    if r:
        try:
            snapshot = await store.read(r, event_id)
            if snapshot is not None:
                return snapshot
        except RedisError:
            logger.warning("Inventory projection read failed event_id=%s; using ledger", event_id, exc_info=True)
            return await compute_from_ledger(db, event_id)

    snapshot = await compute_from_ledger(db, event_id)
    if any(s.taken or s.unavailable for s in snapshot.sections.values()):
        await _overwrite_best_effort(snapshot)
    return snapshot


async def reconcile_inventory(db: AsyncSession, event_id: str) -> EventInventoryDTO:
    """Recount the ledger and replace the projection for one event."""
    previous = None
    r = get_redis()
    if r:
        try:
            previous = await store.read(r, event_id)
        except RedisError:
            logger.warning("Inventory projection read failed event_id=%s", event_id, exc_info=True)

    snapshot = await compute_from_ledger(db, event_id)
    if previous is not None and _drifted(previous, snapshot):
        logger.warning(
            "Inventory drift corrected event_id=%s projection_sold=%d ledger_sold=%d",
            event_id, previous.total_seats_sold, snapshot.total_seats_sold
        )
    await _overwrite_best_effort(snapshot)
    return snapshot


def _drifted(projection: EventInventoryDTO, ledger: EventInventoryDTO) -> bool:
    if projection.total_seats_sold != ledger.total_seats_sold:
        return True
    sections = set(projection.sections) | set(ledger.sections)
    empty = SectionInventoryDTO()
    for section in sections:
        a = projection.sections.get(section, empty)
        b = ledger.sections.get(section, empty)
        if (a.taken, a.unavailable) != (b.taken, b.unavailable):
            return True
    return False


async def drop_event_inventory(event_id: str) -> bool:
    r = get_redis()
    if not r:
        return False
    try:
        await store.drop(r, event_id)
        return True
    except RedisError:
        logger.warning("Inventory projection drop failed event_id=%s", event_id, exc_info=True)
        return False
