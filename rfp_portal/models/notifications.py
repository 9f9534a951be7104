from typing import Optional
from uuid import UUID, uuid4
from sqlmodel import Field, Column, JSON
from .base import TimestampModel
from .types import NotificationType


class Notification(TimestampModel, table=True):
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(foreign_key="user.id", index=True)
    event_type: NotificationType
    reference_id: Optional[UUID] = None
    title: str
    payload: dict = Field(default_factory=dict, sa_column=Column(JSON))
    is_read: bool = Field(default=False)
