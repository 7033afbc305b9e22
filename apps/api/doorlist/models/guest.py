from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum

import sqlalchemy as sa
from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from doorlist.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, enum_column
from doorlist.models.event import Event


class InvitationChannel(str, Enum):
    EMAIL = "email"
    SMS = "sms"
    BOTH = "both"


class Guest(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "guests"
    __table_args__ = (
        sa.CheckConstraint("plus_ones >= 0", name="ck_guests_plus_ones_nonneg"),
        sa.CheckConstraint(
            "checked_in = false OR checked_in_time IS NOT NULL",
            name="ck_guests_checked_in_time_set",
        ),
        sa.CheckConstraint(
            "invitation_open_count >= 0", name="ck_guests_open_count_nonneg"
        ),
        sa.Index("ix_guests_check_in_token", "check_in_token", unique=True),
        sa.Index("ix_guests_invite_token", "invite_token", unique=True),
        sa.Index("ix_guests_event_id_created_at", "event_id", "created_at"),
    )

    # Nulled when the parent event is purged or hard-deleted
    event_id: Mapped[uuid.UUID | None] = mapped_column(
        sa.Uuid,
        ForeignKey("events.id", ondelete="SET NULL"),
        nullable=True,
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    category: Mapped[str] = mapped_column(String(50), nullable=False, default="General")
    plus_ones: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_walkin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    check_in_token: Mapped[str] = mapped_column(String(32), nullable=False)
    invite_token: Mapped[str | None] = mapped_column(String(128), nullable=True)

    checked_in: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=sa.false()
    )
    checked_in_time: Mapped[str | None] = mapped_column(String(16), nullable=True)
    checked_in_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    checked_in_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    invitation_sent: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=sa.false()
    )
    invitation_sent_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    invitation_sent_via: Mapped[InvitationChannel | None] = mapped_column(
        enum_column(InvitationChannel, "invitation_channel"), nullable=True
    )
    invitation_opened: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=sa.false()
    )
    invitation_opened_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    invitation_open_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )

    event: Mapped[Event | None] = relationship(Event, lazy="joined")
