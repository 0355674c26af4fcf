"""Principal model: identities owned by the local auth provider."""

import uuid

from sqlalchemy import Text
from sqlmodel import Column, Field, SQLModel

from hotelhub.models.base import TimestampMixin, new_uuid


class Principal(TimestampMixin, SQLModel, table=True):
    __tablename__ = "principals"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    email: str = Field(max_length=320, unique=True, nullable=False, index=True)
    password_hash: str = Field(nullable=False)
    email_confirmed: bool = Field(default=True)

    # Free-form signup metadata, e.g. {"full_name": ..., "hotel_name": ...}
    metadata_json: str = Field(default="{}", sa_column=Column(Text, nullable=False, server_default="{}"))
