from fastapi import APIRouter, Depends
from sqlmodel import Session
from uuid import UUID
from typing import List, Optional

from ..core.database import get_session
from ..core.security import get_current_principal
from ..models.types import JoinRequestStatus
from ..models.users import User
from ..schemas.join_requests import JoinRequestCreate, JoinRequestDecision, JoinRequestRead
from ..services import join_request_service


router = APIRouter()


@router.post("", response_model=JoinRequestRead, status_code=201)
async def request_to_join(
    request_data: JoinRequestCreate,
    current_user: User = Depends(get_current_principal),
    session: Session = Depends(get_session)
):
    return join_request_service.request_to_join(
        session, current_user, request_data.company_id, request_data.message
    )


@router.get("/company/{company_id}", response_model=List[JoinRequestRead])
async def list_join_requests(
    company_id: UUID,
    status: Optional[JoinRequestStatus] = JoinRequestStatus.PENDING,
    current_user: User = Depends(get_current_principal),
    session: Session = Depends(get_session)
):
    return join_request_service.list_join_requests(session, current_user, company_id, status)


@router.post("/{request_id}/approve", response_model=JoinRequestRead)
async def approve_join_request(
    request_id: UUID,
    decision: JoinRequestDecision,
    current_user: User = Depends(get_current_principal),
    session: Session = Depends(get_session)
):
    return join_request_service.approve_join_request(
        session, current_user, request_id, decision.response_message
    )


@router.post("/{request_id}/reject", response_model=JoinRequestRead)
async def reject_join_request(
    request_id: UUID,
    decision: JoinRequestDecision,
    current_user: User = Depends(get_current_principal),
    session: Session = Depends(get_session)
):
    return join_request_service.reject_join_request(
        session, current_user, request_id, decision.response_message
    )
