"""Profile model: the application record of an authenticated principal."""

import uuid
from datetime import datetime
from enum import StrEnum

from sqlmodel import Field, SQLModel

from hotelhub.models.base import TimestampMixin


class UserRole(StrEnum):
    MASTER_ADMIN = "master_admin"
    CLIENT = "client"
    HOTEL_STAFF = "hotel_staff"


class Profile(TimestampMixin, SQLModel, table=True):
    __tablename__ = "profiles"

    # Same value as the auth provider's principal id (1:1)
    id: uuid.UUID = Field(primary_key=True)
    email: str = Field(max_length=320, nullable=False, index=True)
    full_name: str = Field(default="", max_length=255)
    role: UserRole = Field(default=UserRole.CLIENT)

    # NULL for master_admin, required otherwise. Not a DB-level foreign key:
    # a dangling reference must still let the owner sign in.
    hotel_id: uuid.UUID | None = Field(default=None, index=True)

    phone: str | None = Field(default=None, max_length=50)
    is_active: bool = Field(default=True)


# ── Pydantic schemas ─────────────────────────────────────────

class ProfileUpdate(SQLModel):
    full_name: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=50)


class ProfileRead(SQLModel):
    id: uuid.UUID
    email: str
    full_name: str
    role: UserRole
    hotel_id: uuid.UUID | None
    phone: str | None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class ScopedUser(ProfileRead):
    """A profile with its tenant scope attached."""
    hotel_name: str | None = None
    hotel_status: str | None = None

    @property
    def is_platform_scope(self) -> bool:
        return self.hotel_id is None
