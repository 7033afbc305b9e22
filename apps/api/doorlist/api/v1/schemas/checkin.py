from __future__ import annotations

from pydantic import Field

from doorlist.api.v1.schemas.events import SchemaBase
from doorlist.api.v1.schemas.guests import GuestOut


class CheckInIn(SchemaBase):
    token: str = Field(max_length=64)
    scanner_name: str | None = Field(default=None, max_length=100)


class CheckInOut(SchemaBase):
    success: bool = True
    already_checked_in: bool
    message: str
    event_name: str | None = None
    guest: GuestOut


class ManualCheckInIn(SchemaBase):
    scanner_name: str | None = Field(default=None, max_length=100)
