from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date as date_type, datetime, time
from enum import Enum
from typing import Union

import sqlalchemy as sa
from sqlalchemy import Boolean, Date, DateTime, Integer, String, Time
from sqlalchemy.orm import Mapped, mapped_column

from doorlist.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, enum_column


class EventStatus(str, Enum):
    CREATED = "created"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class DeletedBy(str, Enum):
    HOST = "host"
    VENUE = "venue"
    SYSTEM = "system"


@dataclass(frozen=True)
class Created:
    status = EventStatus.CREATED


@dataclass(frozen=True)
class Completed:
    status = EventStatus.COMPLETED


@dataclass(frozen=True)
class Archived:
    deleted_by: DeletedBy
    deleted_at: datetime
    cancelled_before_event: bool

    status = EventStatus.ARCHIVED


EventState = Union[Created, Completed, Archived]


class Event(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "events"
    __table_args__ = (
        sa.CheckConstraint(
            "(status = 'archived') = (deleted_at IS NOT NULL)",
            name="ck_events_deleted_at_iff_archived",
        ),
        sa.CheckConstraint(
            "(status = 'archived') = (deleted_by IS NOT NULL)",
            name="ck_events_deleted_by_iff_archived",
        ),
        sa.CheckConstraint("expected_guests >= 0", name="ck_events_expected_guests_nonneg"),
        sa.Index("ix_events_host_id_date", "host_id", "date"),
        sa.Index("ix_events_venue_id_date", "venue_id", "date"),
        sa.Index("ix_events_status", "status"),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    date: Mapped[date_type] = mapped_column(Date, nullable=False)
    time_start: Mapped[time | None] = mapped_column(Time, nullable=True)
    time_end: Mapped[time | None] = mapped_column(Time, nullable=True)

    host_id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, nullable=False)
    venue_id: Mapped[uuid.UUID | None] = mapped_column(sa.Uuid, nullable=True)
    venue_name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    expected_guests: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    color: Mapped[str] = mapped_column(String(32), nullable=False, default="purple")
    wristband_color: Mapped[str | None] = mapped_column(String(32), nullable=True)

    status: Mapped[EventStatus] = mapped_column(
        enum_column(EventStatus, "event_status"),
        nullable=False,
        default=EventStatus.CREATED,
        server_default=EventStatus.CREATED.value,
    )

    # Only populated while archived
    deleted_by: Mapped[DeletedBy | None] = mapped_column(
        enum_column(DeletedBy, "event_deleted_by"), nullable=True
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_before_event: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=sa.false()
    )

    @property
    def state(self) -> EventState:
        if self.status == EventStatus.ARCHIVED:
            return Archived(
                deleted_by=self.deleted_by,
                deleted_at=self.deleted_at,
                cancelled_before_event=self.cancelled_before_event,
            )
        if self.status == EventStatus.COMPLETED:
            return Completed()
        return Created()

    @property
    def is_archived(self) -> bool:
        return self.status == EventStatus.ARCHIVED
