"""
Invitations API

Endpoints
- `POST /invitations/company/{company_id}` invite an email; sends the invitation email
- `GET /invitations/company/{company_id}` the company's invitations, admins only
- `DELETE /invitations/{invitation_id}` cancel a pending invitation; notifies the invitee
- `GET /invitations/me` pending invitations addressed to the caller
- `POST /invitations/accept` redeem a token; repeating an accepted redemption is harmless
- `POST /invitations/decline` decline a token
"""
from fastapi import APIRouter, BackgroundTasks, Depends
from sqlmodel import Session
from uuid import UUID
from typing import List, Optional

from ..core.database import get_session
from ..core.security import get_current_principal
from ..models.types import InvitationStatus
from ..models.users import User
from ..schemas.invitations import (
    InvitationAccept, InvitationCreate, InvitationResponse, RedemptionResult
)
from ..services import invitation_service
from ..services.company_service import get_company_or_404
from ..services.email_services import email_service


router = APIRouter()


@router.post("/company/{company_id}", response_model=InvitationResponse, status_code=201)
async def create_invitation(
    company_id: UUID,
    invitation_data: InvitationCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_principal),
    session: Session = Depends(get_session)
):
    invitation = invitation_service.issue_invitation(
        session, current_user, company_id, invitation_data.email, invitation_data.role
    )
    company = get_company_or_404(session, company_id)

    background_tasks.add_task(
        email_service.send_invitation_email,
        to_email=invitation.email,
        company_name=company.name,
        inviter_name=current_user.full_name or current_user.email,
        invitation_token=invitation.token,
        role=invitation.role,
        custom_message=invitation_data.message,
    )
    return invitation


@router.get("/company/{company_id}", response_model=List[InvitationResponse])
async def list_company_invitations(
    company_id: UUID,
    status: Optional[InvitationStatus] = None,
    current_user: User = Depends(get_current_principal),
    session: Session = Depends(get_session)
):
    return invitation_service.list_company_invitations(session, current_user, company_id, status)


@router.delete("/{invitation_id}", response_model=InvitationResponse)
async def cancel_invitation(
    invitation_id: UUID,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_principal),
    session: Session = Depends(get_session)
):
    invitation = invitation_service.cancel_invitation(session, current_user, invitation_id)
    company = get_company_or_404(session, invitation.company_id)
    background_tasks.add_task(
        email_service.send_invitation_cancelled_email,
        to_email=invitation.email,
        company_name=company.name,
    )
    return invitation


@router.get("/me", response_model=List[InvitationResponse])
async def list_my_invitations(
    current_user: User = Depends(get_current_principal),
    session: Session = Depends(get_session)
):
    return invitation_service.list_invitations_for(session, current_user)


@router.post("/accept", response_model=RedemptionResult)
async def accept_invitation(
    accept_data: InvitationAccept,
    current_user: User = Depends(get_current_principal),
    session: Session = Depends(get_session)
):
    return invitation_service.redeem_invitation(session, accept_data.token, current_user)


@router.post("/decline", response_model=InvitationResponse)
async def decline_invitation(
    decline_data: InvitationAccept,
    current_user: User = Depends(get_current_principal),
    session: Session = Depends(get_session)
):
    return invitation_service.decline_invitation(session, decline_data.token, current_user)
