from typing import Optional
from uuid import UUID, uuid4
from sqlmodel import Field
from .base import TimestampModel
from .types import JoinRequestStatus


class JoinRequest(TimestampModel, table=True):
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    company_id: UUID = Field(foreign_key="company.id", index=True)
    user_id: UUID = Field(foreign_key="user.id", index=True)
    message: Optional[str] = None
    status: JoinRequestStatus = Field(default=JoinRequestStatus.PENDING, index=True)
    response_message: Optional[str] = None
    resolved_by: Optional[UUID] = Field(default=None, foreign_key="user.id")
