from typing import Optional
from datetime import datetime
from uuid import UUID
from sqlmodel import SQLModel
from ..models.types import CompanyRole, VerificationStatus


class CompanyCreate(SQLModel):
    name: str
    industry: Optional[str] = None
    website: Optional[str] = None
    description: Optional[str] = None


class CompanyRead(SQLModel):
    id: UUID
    name: str
    industry: Optional[str] = None
    website: Optional[str] = None
    email_domain: Optional[str] = None
    verification_status: VerificationStatus
    created_at: datetime


class CompanySummary(SQLModel):
    id: UUID
    name: str
    industry: Optional[str] = None
    website: Optional[str] = None
    email_domain: Optional[str] = None
    verification_status: VerificationStatus
    member_count: int = 0


class CompanySuggestion(CompanySummary):
    suggested_reason: str


class MemberInfo(SQLModel):
    user_id: UUID
    email: str
    full_name: Optional[str] = None
    role: CompanyRole
    joined_at: datetime


class MembershipRead(SQLModel):
    company_id: UUID
    company_name: str
    role: CompanyRole
    joined_at: datetime


class VerificationReview(SQLModel):
    approve: bool
