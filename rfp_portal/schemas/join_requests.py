from datetime import datetime
from typing import Optional
from uuid import UUID
from sqlmodel import SQLModel
from ..models.types import JoinRequestStatus


class JoinRequestCreate(SQLModel):
    company_id: UUID
    message: Optional[str] = None


class JoinRequestDecision(SQLModel):
    response_message: Optional[str] = None


class JoinRequestRead(SQLModel):
    id: UUID
    company_id: UUID
    user_id: UUID
    message: Optional[str] = None
    status: JoinRequestStatus
    response_message: Optional[str] = None
    created_at: datetime
