from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from .models import Event


async def get_event_by_id(db: AsyncSession, event_id: str, *, key_share: bool = False) -> Event | None:
    stmt = select(Event).where(Event.id == event_id)
    if key_share:
        # Blocks a concurrent delete of the event until this transaction ends
        stmt = stmt.with_for_update(read=True, key_share=True)
    result = await db.execute(stmt)
    return result.scalars().first()


async def delete_event(db: AsyncSession, event_id: str) -> int:
    result = await db.execute(delete(Event).where(Event.id == event_id))
    return int(result.rowcount or 0)
