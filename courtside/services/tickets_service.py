from itertools import groupby
from typing import Iterable
from sqlalchemy.ext.asyncio import AsyncSession
from courtside.domain.tickets import crud
from courtside.domain.tickets.models import Ticket
from courtside.domain.tickets.schemas import SectionTicketsDTO, AdminTicketReadDTO
from courtside.domain.venue.layout import total_seats_for_section
from courtside.services.claim_service import normalize_seat_ids


async def get_active_ticket(db: AsyncSession, event_id: str, seat_id: str) -> Ticket | None:
    seat_id = normalize_seat_ids(event_id, [seat_id])[0]
    return await crud.get_active_ticket(db, event_id, seat_id)


async def check_unavailable(db: AsyncSession, event_id: str, seat_ids: Iterable[str]) -> list[str]:
    """
    Advisory pre-check: requested seats that are already issued.
    A clear result does not guarantee the claim will succeed.
    """
    seat_ids = normalize_seat_ids(event_id, seat_ids)
    taken = await crud.list_taken_seat_ids(db, event_id, seat_ids)
    return [s for s in seat_ids if s in taken]


async def list_taken_seat_ids(db: AsyncSession, event_id: str) -> list[str]:
    return sorted(await crud.list_taken_seat_ids(db, event_id))


async def list_user_tickets(db: AsyncSession, uid: str) -> list[Ticket]:
    return list(await crud.list_tickets_for_user(db, uid))


async def list_event_tickets_by_section(db: AsyncSession, event_id: str) -> list[SectionTicketsDTO]:
    tickets = await crud.list_tickets_for_event(db, event_id)
    return [
        SectionTicketsDTO(
            section=section,
            total=total_seats_for_section(section),
            tickets=[AdminTicketReadDTO.model_validate(t) for t in group],
        )
        for section, group in groupby(tickets, key=lambda t: t.section)
    ]
