from typing import Optional, TYPE_CHECKING
from uuid import UUID, uuid4
from sqlmodel import SQLModel, Field, Relationship
from .base import TimestampModel
from .types import PlatformRole

if TYPE_CHECKING:
    from .company import Membership


class UserBase(SQLModel):
    email: str = Field(unique=True, index=True)
    full_name: Optional[str] = None
    platform_role: PlatformRole = Field(default=PlatformRole.BIDDER)


class User(UserBase, TimestampModel, table=True):
    """An authenticated principal as known to the identity store."""
    id: UUID = Field(default_factory=uuid4, primary_key=True)

    membership: Optional["Membership"] = Relationship(
        back_populates="user",
        sa_relationship_kwargs={"uselist": False}
    )

    @property
    def email_domain(self) -> str:
        return self.email.rsplit("@", 1)[-1].lower() if "@" in self.email else ""
