from datetime import datetime
from typing import List, Optional, TYPE_CHECKING
from uuid import UUID, uuid4
from sqlmodel import SQLModel, Field, Relationship
from .base import TimestampModel, utcnow
from .types import CompanyRole, VerificationStatus

if TYPE_CHECKING:
    from .users import User


class CompanyBase(SQLModel):
    name: str = Field(index=True)
    industry: Optional[str] = None
    website: Optional[str] = None
    description: Optional[str] = None


class Company(CompanyBase, TimestampModel, table=True):
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email_domain: Optional[str] = Field(default=None, index=True)
    verification_status: VerificationStatus = Field(default=VerificationStatus.UNVERIFIED)
    created_by: UUID = Field(foreign_key="user.id")

    members: List["Membership"] = Relationship(back_populates="company")


class Membership(SQLModel, table=True):
    """
    A principal's single company affiliation. `user_id` is the primary key,
    so a principal can never hold two memberships at once.
    """
    user_id: UUID = Field(foreign_key="user.id", primary_key=True)
    company_id: UUID = Field(foreign_key="company.id", index=True)
    role: CompanyRole = Field(default=CompanyRole.MEMBER)
    joined_at: datetime = Field(default_factory=utcnow)

    company: Company = Relationship(back_populates="members")
    user: "User" = Relationship(back_populates="membership")

    @property
    def is_active(self) -> bool:
        return self.role in (CompanyRole.ADMIN, CompanyRole.MEMBER)
