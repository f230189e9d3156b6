from typing import Annotated
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from courtside.core.database import get_db
from courtside.core.dependencies.auth import get_current_user_with_roles, CurrentUser
from courtside.domain.tickets.schemas import TicketReadDTO
from courtside.services import tickets_service


router = APIRouter(tags=["tickets"])
db_dependency = Annotated[AsyncSession, Depends(get_db)]


@router.get(
    "/users/me/tickets",
    status_code=status.HTTP_200_OK,
    response_model=list[TicketReadDTO],
    response_model_exclude_none=True
)
async def list_user_tickets(
        db: db_dependency,
        user: Annotated[CurrentUser, Depends(get_current_user_with_roles())]
):
    return await tickets_service.list_user_tickets(db, user.uid)
