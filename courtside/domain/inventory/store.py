"""
Redis-backed aggregated inventory projection.

One hash per event::

    inventory:{event_id}
        section:{section}:taken        active real-user tickets
        section:{section}:unavailable  active admin-held tickets
        section:{section}:total        seats in the section (from venue geometry)
        totalSeatsSold
        updatedAt

Counters are advisory. They are written after the ledger commits and may lag
or drift; ``overwrite`` replaces the whole hash when the ledger is recounted.
"""
from datetime import datetime, timezone
from typing import Mapping, NamedTuple
import redis.asyncio as redis
from redis.exceptions import NoPermissionError
from courtside.core.config import INVENTORY_KEY_PREFIX
from courtside.domain.exceptions import PermissionDenied
from courtside.domain.venue.layout import total_seats_for_section, empty_section_counters
from courtside.domain.inventory.schemas import EventInventoryDTO, SectionInventoryDTO

TOTAL_SOLD_FIELD = "totalSeatsSold"
UPDATED_AT_FIELD = "updatedAt"
COUNTERS = ("taken", "unavailable", "total")


class SectionDelta(NamedTuple):
    taken: int = 0
    unavailable: int = 0


def inventory_key(event_id: str) -> str:
    return f"{INVENTORY_KEY_PREFIX}:{event_id}"


def section_field(section: str, counter: str) -> str:
    return f"section:{section}:{counter}"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


async def apply_deltas(
        r: redis.Redis,
        event_id: str,
        deltas: Mapping[str, SectionDelta],
        sold_delta: int = 0
) -> None:
    key = inventory_key(event_id)
    async with r.pipeline(transaction=True) as pipe:
        for section, delta in deltas.items():
            if delta.taken:
                pipe.hincrby(key, section_field(section, "taken"), delta.taken)
            if delta.unavailable:
                pipe.hincrby(key, section_field(section, "unavailable"), delta.unavailable)
            pipe.hset(key, section_field(section, "total"), total_seats_for_section(section))
        if sold_delta:
            pipe.hincrby(key, TOTAL_SOLD_FIELD, sold_delta)
        pipe.hset(key, UPDATED_AT_FIELD, _now_iso())
        try:
            await pipe.execute()
        except NoPermissionError as e:
            raise PermissionDenied("Inventory projection write rejected", ctx={"key": key}) from e


async def overwrite(r: redis.Redis, snapshot: EventInventoryDTO) -> None:
    key = inventory_key(snapshot.event_id)
    mapping: dict[str, int | str] = {
        TOTAL_SOLD_FIELD: snapshot.total_seats_sold,
        UPDATED_AT_FIELD: _now_iso(),
    }
    for section, entry in snapshot.sections.items():
        mapping[section_field(section, "taken")] = entry.taken
        mapping[section_field(section, "unavailable")] = entry.unavailable
        mapping[section_field(section, "total")] = entry.total

    async with r.pipeline(transaction=True) as pipe:
        pipe.delete(key)
        pipe.hset(key, mapping=mapping)
        await pipe.execute()


async def read(r: redis.Redis, event_id: str) -> EventInventoryDTO | None:
    raw = await r.hgetall(inventory_key(event_id))
    if not raw:
        return None
    return parse_snapshot(event_id, raw)


async def drop(r: redis.Redis, event_id: str) -> None:
    await r.delete(inventory_key(event_id))


def parse_snapshot(event_id: str, raw: Mapping[str, str]) -> EventInventoryDTO:
    sections = empty_section_counters()
    for field, value in raw.items():
        parts = field.split(":")
        if len(parts) != 3 or parts[0] != "section" or parts[2] not in COUNTERS:
            continue
        _, section, counter = parts
        entry = sections.setdefault(
            section, {"taken": 0, "unavailable": 0, "total": total_seats_for_section(section)}
        )
        entry[counter] = int(value)

    updated_at = raw.get(UPDATED_AT_FIELD)
    return EventInventoryDTO(
        event_id=event_id,
        sections={s: SectionInventoryDTO(**counters) for s, counters in sorted(sections.items())},
        total_seats_sold=int(raw.get(TOTAL_SOLD_FIELD) or 0),
        updated_at=datetime.fromisoformat(updated_at) if updated_at else None,
        source="projection",
    )
