from __future__ import annotations

from datetime import date as date_type, datetime, time, timezone
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from doorlist.models.event import DeletedBy, EventStatus


def _ensure_tzaware(value: datetime | None) -> datetime | None:
    if value is None:
        return value
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        raise ValueError("datetime must be timezone-aware")
    return value


def assume_utc(value):
    # SQLite hands back naive datetimes; everything is stored in UTC
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SchemaBase(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra="ignore")


class EventCreate(SchemaBase):
    name: str = Field(max_length=200)
    date: date_type
    time_start: time | None = None
    time_end: time | None = None
    host_id: UUID
    venue_id: UUID | None = None
    venue_name: str | None = Field(default=None, max_length=200)
    expected_guests: int = Field(default=0, ge=0)
    color: str = Field(default="purple", max_length=32)
    wristband_color: str | None = Field(default=None, max_length=32)


class EventUpdate(SchemaBase):
    name: str | None = Field(default=None, max_length=200)
    date: date_type | None = None
    time_start: time | None = None
    time_end: time | None = None
    venue_name: str | None = Field(default=None, max_length=200)
    expected_guests: int | None = Field(default=None, ge=0)
    color: str | None = Field(default=None, max_length=32)
    wristband_color: str | None = Field(default=None, max_length=32)

    @field_validator("date", "expected_guests", "color", mode="after")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError("field cannot be null")
        return value


class EventOut(SchemaBase):
    id: UUID
    name: str
    date: date_type
    time_start: time | None = None
    time_end: time | None = None
    host_id: UUID
    venue_id: UUID | None = None
    venue_name: str | None = None
    expected_guests: int
    color: str
    wristband_color: str | None = None
    status: EventStatus
    deleted_by: DeletedBy | None = None
    deleted_at: datetime | None = None
    cancelled_before_event: bool = False
    created_at: datetime
    updated_at: datetime

    @field_validator("deleted_at", "created_at", "updated_at", mode="before")
    @classmethod
    def _assume_utc(cls, value):
        return assume_utc(value)

    @field_validator("deleted_at", "created_at", "updated_at", mode="after")
    @classmethod
    def _validate_tzaware(cls, value: datetime | None) -> datetime | None:
        return _ensure_tzaware(value)


class EventListOut(SchemaBase):
    items: list[EventOut]
    total: int = Field(ge=0)


class SmartDeleteIn(SchemaBase):
    deleted_by: DeletedBy


class SmartDeleteOut(SchemaBase):
    action: str
    guest_count: int
    checked_in_count: int
    message: str
    cancelled_before_event: bool | None = None


class RestoreOut(SchemaBase):
    event: EventOut
    restored_status: EventStatus


class EventStatsOut(SchemaBase):
    guest_count: int
    checked_in_count: int
    plus_ones: int
    checked_in_plus_ones: int
    invited_count: int
    opened_count: int
    total_expected_people: int
    total_arrived_people: int


class HardDeleteOut(SchemaBase):
    detached_guests: int
