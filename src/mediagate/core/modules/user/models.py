from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, Field

from mediagate.core.db import MongoModel


class UserRole(StrEnum):
    ADMIN = "admin"
    USER = "user"


class User(MongoModel):
    """User domain model with credentials."""

    email: str
    password_hash: str  # bcrypt hash
    role: UserRole = UserRole.USER

    @property
    def subject_id(self) -> str:
        return str(self.id)


class UserView(BaseModel):
    """User account information (API representation)."""

    id: UUID = Field(..., description="User ID")
    email: str = Field(..., description="Email address")
    role: UserRole = Field(..., description="Role")

    @classmethod
    def from_domain(cls, user: User) -> "UserView":
        """Create view model from domain model."""
        return cls(id=user.id, email=user.email, role=user.role)
