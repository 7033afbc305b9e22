from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import EmailStr, Field, field_validator

from doorlist.api.v1.schemas.events import SchemaBase, assume_utc
from doorlist.models.guest import InvitationChannel


class GuestCreate(SchemaBase):
    name: str = Field(max_length=200)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=32)
    category: str = Field(default="General", max_length=50)
    plus_ones: int = Field(default=0, ge=0, le=50)
    is_walkin: bool = False

    @field_validator("phone", mode="before")
    @classmethod
    def _blank_phone(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("email", mode="before")
    @classmethod
    def _blank_email(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class GuestUpdate(SchemaBase):
    name: str | None = Field(default=None, max_length=200)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=32)
    category: str | None = Field(default=None, max_length=50)
    plus_ones: int | None = Field(default=None, ge=0, le=50)

    @field_validator("plus_ones", mode="after")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError("field cannot be null")
        return value


class GuestOut(SchemaBase):
    id: UUID
    event_id: UUID | None = None
    name: str
    email: str | None = None
    phone: str | None = None
    category: str
    plus_ones: int
    is_walkin: bool
    check_in_token: str
    checked_in: bool
    checked_in_time: str | None = None
    checked_in_by: str | None = None
    checked_in_at: datetime | None = None
    invitation_sent: bool
    invitation_sent_at: datetime | None = None
    invitation_sent_via: InvitationChannel | None = None
    invitation_opened: bool
    invitation_opened_at: datetime | None = None
    invitation_open_count: int
    created_at: datetime

    @field_validator(
        "checked_in_at", "invitation_sent_at", "invitation_opened_at", "created_at", mode="before"
    )
    @classmethod
    def _assume_utc(cls, value):
        return assume_utc(value)


class GuestListOut(SchemaBase):
    items: list[GuestOut]
    total: int = Field(ge=0)


class CredentialOut(SchemaBase):
    guest_id: UUID
    check_in_token: str
    qr_code_url: str
    check_in_link: str
