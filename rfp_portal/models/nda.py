from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4
from sqlmodel import Field, Column, JSON
from sqlalchemy import CheckConstraint, UniqueConstraint
from .base import TimestampModel, utcnow
from .types import NDAScope, NDAStatus, NDAAuditAction


class NDARecord(TimestampModel, table=True):
    """
    A signed NDA for one RFP, scoped either to a single user or to a whole
    company. Exactly one of `user_id` / `company_id` is set, and each scope
    key holds at most one record per RFP.
    """
    __tablename__ = "nda_record"
    __table_args__ = (
        UniqueConstraint("rfp_id", "user_id", name="uq_nda_individual"),
        UniqueConstraint("rfp_id", "company_id", name="uq_nda_company"),
        CheckConstraint(
            "(user_id IS NULL) <> (company_id IS NULL)",
            name="ck_nda_single_scope"
        ),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    rfp_id: UUID = Field(foreign_key="rfp.id", index=True)
    scope: NDAScope
    user_id: Optional[UUID] = Field(default=None, foreign_key="user.id", index=True)
    company_id: Optional[UUID] = Field(default=None, foreign_key="company.id", index=True)

    # Signature
    signed_by: UUID = Field(foreign_key="user.id")
    full_name: Optional[str] = None
    title: Optional[str] = None
    signature_data: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    status: NDAStatus = Field(default=NDAStatus.SIGNED, index=True)
    signed_at: datetime = Field(default_factory=utcnow)

    # Countersignature / rejection
    countersigned_at: Optional[datetime] = None
    countersigned_by: Optional[UUID] = Field(default=None, foreign_key="user.id")
    countersigner_name: Optional[str] = None
    countersigner_title: Optional[str] = None
    rejection_by: Optional[UUID] = Field(default=None, foreign_key="user.id")
    rejection_reason: Optional[str] = None
    rejected_at: Optional[datetime] = None


class NDAAuditEntry(TimestampModel, table=True):
    __tablename__ = "nda_audit_entry"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    nda_id: UUID = Field(foreign_key="nda_record.id", index=True)
    action: NDAAuditAction
    created_by: UUID = Field(foreign_key="user.id")
    details: dict = Field(default_factory=dict, sa_column=Column(JSON))
