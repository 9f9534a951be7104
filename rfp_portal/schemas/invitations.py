from datetime import datetime
from typing import Optional
from uuid import UUID
from sqlmodel import SQLModel
from ..models.types import CompanyRole, InvitationStatus


class InvitationCreate(SQLModel):
    email: str
    role: CompanyRole = CompanyRole.MEMBER
    message: Optional[str] = None


class InvitationResponse(SQLModel):
    id: UUID
    company_id: UUID
    email: str
    role: CompanyRole
    status: InvitationStatus
    expires_at: datetime
    created_at: datetime


class InvitationAccept(SQLModel):
    token: str


class RedemptionResult(SQLModel):
    invitation_id: UUID
    company_id: UUID
    company_name: str
    role: CompanyRole
    accepted_at: datetime
    already_accepted: bool = False
