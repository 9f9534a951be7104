from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID
from pydantic import BaseModel, field_validator
from ..models.types import NDAScope, NDAStatus, NDADecision, NDAAuditAction


class NDASignature(BaseModel):
    """What a signer submits: their name, title and the captured signature."""
    full_name: str
    title: Optional[str] = None
    signature_data: Dict[str, Any] = {}

    @field_validator("full_name")
    def validate_full_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Full name is required to sign an NDA")
        return v.strip()


class CompanyNDASign(NDASignature):
    company_id: UUID


class CountersignRequest(BaseModel):
    decision: NDADecision
    reason: Optional[str] = None
    countersigner_name: Optional[str] = None
    countersigner_title: Optional[str] = None


class NDARead(BaseModel):
    id: UUID
    rfp_id: UUID
    scope: NDAScope
    user_id: Optional[UUID] = None
    company_id: Optional[UUID] = None
    status: NDAStatus
    full_name: Optional[str] = None
    signed_at: datetime
    countersigned_at: Optional[datetime] = None
    countersigned_by: Optional[UUID] = None
    rejection_by: Optional[UUID] = None
    rejection_reason: Optional[str] = None

    class Config:
        from_attributes = True


class NDAStatusResponse(BaseModel):
    rfp_id: UUID
    individual: Optional[NDARead] = None
    company: Optional[NDARead] = None


class NDAAuditRead(BaseModel):
    id: UUID
    nda_id: UUID
    action: NDAAuditAction
    created_by: UUID
    details: Dict[str, Any]
    created_at: datetime

    class Config:
        from_attributes = True


class NDAReviewList(BaseModel):
    items: List[NDARead]
