from fastapi import APIRouter, Depends, Query, status
from typing import Annotated
from sqlalchemy.ext.asyncio import AsyncSession
from courtside.core.config import INVALIDATE_BATCH_LIMIT
from courtside.core.database import get_db
from courtside.core.dependencies.auth import get_current_user_with_roles
from courtside.domain.exceptions import NotFound
from courtside.domain.inventory.schemas import EventInventoryDTO
from courtside.domain.tickets.schemas import AdminHoldRequestDTO, ClaimResultDTO, AdminTicketReadDTO, \
    SectionTicketsDTO, InvalidationStatsDTO
from courtside.services import claim_service, tickets_service, inventory_service, event_service


router = APIRouter(
    prefix="/admin/events/{event_id}",
    tags=["admin"],
    dependencies=[Depends(get_current_user_with_roles("ADMIN"))]
)
db_dependency = Annotated[AsyncSession, Depends(get_db)]


@router.post(
    "/holds",
    status_code=status.HTTP_201_CREATED,
    response_model=ClaimResultDTO
)
async def hold_seats(event_id: str, schema: AdminHoldRequestDTO, db: db_dependency):
    result = await claim_service.hold_seats(db, event_id, schema.seat_ids, schema.hold)
    return ClaimResultDTO(**result._asdict())


@router.post(
    "/seats/{seat_id}/revoke",
    status_code=status.HTTP_200_OK,
    response_model=AdminTicketReadDTO
)
async def revoke_ticket(event_id: str, seat_id: str, db: db_dependency):
    ticket = await claim_service.revoke_ticket(db, event_id, seat_id)
    if ticket is None:
        raise NotFound("Ticket not found", ctx={"event_id": event_id, "seat_id": seat_id})
    return ticket


@router.get(
    "/tickets",
    status_code=status.HTTP_200_OK,
    response_model=list[SectionTicketsDTO]
)
async def list_event_tickets(event_id: str, db: db_dependency):
    return await tickets_service.list_event_tickets_by_section(db, event_id)


@router.post(
    "/inventory/reconcile",
    status_code=status.HTTP_200_OK,
    response_model=EventInventoryDTO
)
async def reconcile_inventory(event_id: str, db: db_dependency):
    return await inventory_service.reconcile_inventory(db, event_id)


@router.post(
    "/tickets/invalidate",
    status_code=status.HTTP_200_OK,
    response_model=InvalidationStatsDTO
)
async def invalidate_tickets(
        event_id: str,
        db: db_dependency,
        batch_size: int = Query(INVALIDATE_BATCH_LIMIT, ge=1, le=INVALIDATE_BATCH_LIMIT)
):
    return await event_service.invalidate_all_for_event(db, event_id, batch_size=batch_size)


@router.delete(
    "",
    status_code=status.HTTP_200_OK,
    response_model=InvalidationStatsDTO
)
async def delete_event(event_id: str, db: db_dependency):
    return await event_service.delete_event(db, event_id)
