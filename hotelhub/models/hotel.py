"""Hotel model: the tenant isolation boundary."""

import re
import uuid
from datetime import datetime
from enum import StrEnum

from pydantic import field_validator
from sqlmodel import Field, SQLModel

from hotelhub.models.base import TimestampMixin, new_uuid

SLUG_RE = re.compile(r"[a-z0-9\-]+")


class HotelStatus(StrEnum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    PENDING_SETUP = "pending_setup"
    CANCELLED = "cancelled"


# Statuses that lock a hotel's staff out of the client console
BLOCKED_STATUSES = frozenset({HotelStatus.SUSPENDED, HotelStatus.CANCELLED})


class Hotel(TimestampMixin, SQLModel, table=True):
    __tablename__ = "hotels"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    name: str = Field(max_length=255, nullable=False)
    slug: str = Field(max_length=100, unique=True, nullable=False, index=True)
    status: HotelStatus = Field(default=HotelStatus.ACTIVE)

    # Address / contact
    address: str | None = Field(default=None, max_length=500)
    city: str | None = Field(default=None, max_length=120)
    state: str | None = Field(default=None, max_length=120)
    country: str = Field(default="BR", max_length=2)
    postal_code: str | None = Field(default=None, max_length=20)
    phone: str | None = Field(default=None, max_length=50)
    email: str | None = Field(default=None, max_length=320)

    # Operational settings
    check_in_time: str = Field(default="14:00", max_length=5)
    check_out_time: str = Field(default="12:00", max_length=5)
    currency: str = Field(default="BRL", max_length=3)
    timezone: str = Field(default="America/Sao_Paulo", max_length=64)


# ── Pydantic schemas (read / create) ─────────────────────────

class HotelCreate(SQLModel):
    name: str = Field(max_length=255)
    slug: str = Field(max_length=100)
    address: str | None = Field(default=None, max_length=500)
    city: str | None = Field(default=None, max_length=120)
    state: str | None = Field(default=None, max_length=120)
    country: str = Field(default="BR", max_length=2)
    postal_code: str | None = Field(default=None, max_length=20)
    phone: str | None = Field(default=None, max_length=50)
    email: str | None = Field(default=None, max_length=320)
    check_in_time: str = Field(default="14:00", max_length=5)
    check_out_time: str = Field(default="12:00", max_length=5)
    currency: str = Field(default="BRL", max_length=3)
    timezone: str = Field(default="America/Sao_Paulo", max_length=64)

    @field_validator("slug")
    @classmethod
    def _check_slug(cls, value: str) -> str:
        if not SLUG_RE.fullmatch(value):
            raise ValueError("slug may only contain lowercase letters, digits and '-'")
        return value


class HotelRead(SQLModel):
    id: uuid.UUID
    name: str
    slug: str
    status: HotelStatus
    address: str | None
    city: str | None
    state: str | None
    country: str
    postal_code: str | None
    phone: str | None
    email: str | None
    check_in_time: str
    check_out_time: str
    currency: str
    timezone: str
    created_at: datetime
    updated_at: datetime


class HotelStats(SQLModel):
    total: int = 0
    active: int = 0
    suspended: int = 0
    pending_setup: int = 0
    cancelled: int = 0
