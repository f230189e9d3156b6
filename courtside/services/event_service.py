import logging
from sqlalchemy.ext.asyncio import AsyncSession
from courtside.core.auditing import AuditSpan
from courtside.core.config import INVALIDATE_BATCH_LIMIT
from courtside.domain.events import crud as events_crud
from courtside.domain.exceptions import NotFound
from courtside.domain.tickets import crud as tickets_crud
from courtside.services import inventory_service

logger = logging.getLogger("courtside.events")

CANCELLED_REASON = "The Event has been cancelled"


async def _invalidate_batches(db: AsyncSession, event_id: str, batch_size: int, *, commit_each: bool) -> dict:
    stats = {"tickets_invalidated": 0, "batches": 0}
    while True:
        ids = await tickets_crud.lock_next_invalidation_batch(db, event_id, batch_size)
        if not ids:
            return stats
        stats["tickets_invalidated"] += await tickets_crud.mark_invalid(db, ids, CANCELLED_REASON)
        stats["batches"] += 1
        if commit_each:
            await db.commit()
        logger.info("Invalidated batch event_id=%s size=%d total=%d", event_id, len(ids), stats["tickets_invalidated"])


async def invalidate_all_for_event(
        db: AsyncSession,
        event_id: str,
        batch_size: int = INVALIDATE_BATCH_LIMIT,
        *,
        refresh_projection: bool = True
) -> dict:
    """
    Mark every ticket of the event INVALID, one committed batch at a time.
    Batches never exceed INVALIDATE_BATCH_LIMIT rows; larger requests are chunked.
    The event stays claimable, so its projection is recounted from the ledger afterwards.
    """
    batch_size = max(1, min(int(batch_size), INVALIDATE_BATCH_LIMIT))
    async with AuditSpan(
        scope="EVENTS",
        action="INVALIDATE_TICKETS",
        object_type="event",
        object_id=event_id,
        event_id=event_id,
        meta={"batch_size": batch_size}
    ) as span:
        stats = await _invalidate_batches(db, event_id, batch_size, commit_each=True)
        span.meta.update(stats)

    if refresh_projection:
        await inventory_service.reconcile_inventory(db, event_id)
    return stats


async def delete_event(db: AsyncSession, event_id: str) -> dict:
    async with AuditSpan(
        scope="EVENTS",
        action="DELETE",
        object_type="event",
        object_id=event_id,
        event_id=event_id
    ) as span:
        event = await events_crud.get_event_by_id(db, event_id)
        if not event:
            raise NotFound("Event not found", ctx={"event_id": event_id})

        stats = await invalidate_all_for_event(db, event_id, refresh_projection=False)

        # Claims that committed between the last batch and the delete are swept in the same transaction
        await events_crud.delete_event(db, event_id)
        late = await _invalidate_batches(db, event_id, INVALIDATE_BATCH_LIMIT, commit_each=False)
        await db.commit()

        stats = {
            "tickets_invalidated": stats["tickets_invalidated"] + late["tickets_invalidated"],
            "batches": stats["batches"] + late["batches"],
        }
        span.meta.update(stats)

    await inventory_service.drop_event_inventory(event_id)
    return stats
