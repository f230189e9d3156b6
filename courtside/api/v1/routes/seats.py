from fastapi import APIRouter, Depends, Response, status
from typing import Annotated
from sqlalchemy.ext.asyncio import AsyncSession
from courtside.core.config import POLL_INTERVAL_SECONDS
from courtside.core.database import get_db
from courtside.core.dependencies.auth import get_current_user_with_roles, CurrentUser
from courtside.domain.exceptions import NotFound
from courtside.domain.inventory.schemas import EventInventoryDTO
from courtside.domain.tickets.schemas import ClaimSeatsRequestDTO, ClaimResultDTO, AvailabilityRequestDTO, \
    AvailabilityReadDTO, TakenSeatsReadDTO, TicketMetadata
from courtside.services import claim_service, tickets_service, inventory_service


router = APIRouter(prefix="/events/{event_id}", tags=["seats"])
db_dependency = Annotated[AsyncSession, Depends(get_db)]
customer_dependency = Annotated[CurrentUser, Depends(get_current_user_with_roles("CUSTOMER", "ADMIN"))]


def _poll_headers(response: Response) -> None:
    response.headers["X-Poll-Interval"] = str(POLL_INTERVAL_SECONDS)
    response.headers["Cache-Control"] = "no-store"


@router.get(
    "/seats/taken",
    status_code=status.HTTP_200_OK,
    response_model=TakenSeatsReadDTO
)
async def list_taken_seats(event_id: str, db: db_dependency, response: Response):
    _poll_headers(response)
    seat_ids = await tickets_service.list_taken_seat_ids(db, event_id)
    return TakenSeatsReadDTO(event_id=event_id, seat_ids=seat_ids)


@router.post(
    "/seats/availability",
    status_code=status.HTTP_200_OK,
    response_model=AvailabilityReadDTO
)
async def check_availability(event_id: str, schema: AvailabilityRequestDTO, db: db_dependency):
    unavailable = await tickets_service.check_unavailable(db, event_id, schema.seat_ids)
    return AvailabilityReadDTO(unavailable=unavailable)


@router.post(
    "/claims",
    status_code=status.HTTP_201_CREATED,
    response_model=ClaimResultDTO
)
async def claim_seats(
        event_id: str,
        schema: ClaimSeatsRequestDTO,
        db: db_dependency,
        user: customer_dependency,
        response: Response,
):
    result = await claim_service.claim_seats(
        db=db,
        event_id=event_id,
        seat_ids=schema.seat_ids,
        owner=user.owner,
        metadata=TicketMetadata(owner_email=user.email, owner_name=user.name),
    )
    response.headers["Location"] = "/users/me/tickets"
    return ClaimResultDTO(**result._asdict())


@router.delete(
    "/claims/{seat_id}",
    status_code=status.HTTP_204_NO_CONTENT
)
async def release_seat(event_id: str, seat_id: str, db: db_dependency, user: customer_dependency):
    released = await claim_service.release_seat(db, event_id, seat_id, user.owner)
    if not released:
        raise NotFound("No active ticket of yours on this seat", ctx={"event_id": event_id, "seat_id": seat_id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/inventory",
    status_code=status.HTTP_200_OK,
    response_model=EventInventoryDTO
)
async def get_inventory(event_id: str, db: db_dependency, response: Response):
    _poll_headers(response)
    return await inventory_service.get_event_inventory_snapshot(db, event_id)
