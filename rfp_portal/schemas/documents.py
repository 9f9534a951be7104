from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID
from sqlmodel import SQLModel
from ..models.types import DenialReason, NotificationType, RegistrationStatus


class DocumentAccess(SQLModel):
    id: UUID
    rfp_id: UUID
    title: str
    requires_nda: bool
    requires_approval: bool
    granted: bool
    reason: Optional[DenialReason] = None


class DownloadLink(SQLModel):
    document_id: UUID
    url: str
    expires_in: int


class RegistrationCreate(SQLModel):
    notes: Optional[str] = None


class RegistrationDecision(SQLModel):
    notes: Optional[str] = None


class RegistrationRead(SQLModel):
    id: UUID
    rfp_id: UUID
    company_id: UUID
    user_id: UUID
    notes: Optional[str] = None
    status: RegistrationStatus
    created_at: datetime
    is_duplicate: bool = False


class NotificationRead(SQLModel):
    id: UUID
    event_type: NotificationType
    title: str
    reference_id: Optional[UUID] = None
    payload: Dict[str, Any]
    is_read: bool
    created_at: datetime


class MarkRead(SQLModel):
    notification_ids: List[UUID]
