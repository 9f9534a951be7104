from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4
from sqlmodel import Field
from .base import TimestampModel
from .types import CompanyRole, InvitationStatus


class Invitation(TimestampModel, table=True):
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    company_id: UUID = Field(foreign_key="company.id", index=True)
    email: str = Field(index=True)
    role: CompanyRole
    token: str = Field(unique=True, index=True)
    status: InvitationStatus = Field(default=InvitationStatus.PENDING, index=True)
    inviter_id: UUID = Field(foreign_key="user.id")
    accepted_by: Optional[UUID] = Field(default=None, foreign_key="user.id")
    accepted_at: Optional[datetime] = None
    expires_at: datetime

    def is_past_deadline(self, now: datetime) -> bool:
        return now >= self.expires_at
