"""Failed sign-in counters for the local auth provider."""

import uuid
from datetime import datetime

from sqlmodel import Field, SQLModel

from hotelhub.models.base import TimestampMixin, new_uuid


class LoginAttempt(TimestampMixin, SQLModel, table=True):
    __tablename__ = "login_attempts"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    email: str = Field(max_length=320, unique=True, nullable=False, index=True)
    failed_count: int = Field(default=0, nullable=False)
    first_failed_at: datetime | None = Field(default=None)
    last_failed_at: datetime | None = Field(default=None)
    locked_until: datetime | None = Field(default=None)
