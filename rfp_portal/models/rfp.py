from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4
from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint
from .base import TimestampModel
from .types import RegistrationStatus


class RFP(TimestampModel, table=True):
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    title: str


class DocumentBase(SQLModel):
    title: str
    file_path: str
    requires_nda: bool = False
    requires_approval: bool = False


class Document(DocumentBase, TimestampModel, table=True):
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    rfp_id: UUID = Field(foreign_key="rfp.id", index=True)

    @property
    def is_protected(self) -> bool:
        return self.requires_nda or self.requires_approval


class RFPRegistration(TimestampModel, table=True):
    """A company's registered interest in an RFP, approved by a platform admin."""
    __tablename__ = "rfp_registration"
    __table_args__ = (
        UniqueConstraint("rfp_id", "company_id", name="uq_rfp_registration_company"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    rfp_id: UUID = Field(foreign_key="rfp.id", index=True)
    company_id: UUID = Field(foreign_key="company.id", index=True)
    user_id: UUID = Field(foreign_key="user.id")
    notes: Optional[str] = None
    status: RegistrationStatus = Field(default=RegistrationStatus.PENDING)
    resolved_by: Optional[UUID] = Field(default=None, foreign_key="user.id")
    resolved_at: Optional[datetime] = None
