from fastapi import APIRouter, Depends
from sqlmodel import Session
from uuid import UUID
from typing import List, Optional

from ..core.database import get_session
from ..core.security import get_current_principal
from ..models.types import RegistrationStatus
from ..models.users import User
from ..schemas.documents import RegistrationCreate, RegistrationDecision, RegistrationRead
from ..services import registration_service


router = APIRouter()


@router.post("/rfps/{rfp_id}", response_model=RegistrationRead)
async def register_interest(
    rfp_id: UUID,
    registration_data: RegistrationCreate,
    current_user: User = Depends(get_current_principal),
    session: Session = Depends(get_session)
):
    return registration_service.register_interest(session, current_user, rfp_id, registration_data.notes)


@router.get("", response_model=List[RegistrationRead])
async def list_registrations(
    status: Optional[RegistrationStatus] = RegistrationStatus.PENDING,
    rfp_id: Optional[UUID] = None,
    current_user: User = Depends(get_current_principal),
    session: Session = Depends(get_session)
):
    return registration_service.list_registrations(session, current_user, status, rfp_id)


@router.post("/{registration_id}/approve", response_model=RegistrationRead)
async def approve_registration(
    registration_id: UUID,
    decision: RegistrationDecision,
    current_user: User = Depends(get_current_principal),
    session: Session = Depends(get_session)
):
    return registration_service.approve_registration(session, current_user, registration_id, decision.notes)


@router.post("/{registration_id}/reject", response_model=RegistrationRead)
async def reject_registration(
    registration_id: UUID,
    decision: RegistrationDecision,
    current_user: User = Depends(get_current_principal),
    session: Session = Depends(get_session)
):
    return registration_service.reject_registration(session, current_user, registration_id, decision.notes)
