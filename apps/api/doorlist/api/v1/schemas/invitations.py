from __future__ import annotations

from datetime import date, time
from typing import Literal
from uuid import UUID

from pydantic import Field, model_validator

from doorlist.api.v1.schemas.events import SchemaBase
from doorlist.services.invitations_service import (
    AllGuests,
    Category,
    Channels,
    ExplicitIds,
    GuestSelection,
    NotCheckedIn,
    NotInvited,
)


class ChannelsIn(SchemaBase):
    email: bool = True
    sms: bool = False

    def to_channels(self) -> Channels:
        return Channels(email=self.email, sms=self.sms)


class SendInvitationsIn(SchemaBase):
    event_id: UUID
    channels: ChannelsIn = Field(default_factory=ChannelsIn)
    filter: Literal["all", "not_invited", "not_checked_in", "category", "selected"] = "all"
    category: str | None = Field(default=None, max_length=50)
    guest_ids: list[UUID] = Field(default_factory=list)

    @model_validator(mode="after")
    def _validate_filter_args(self):
        if self.filter == "category" and not (self.category or "").strip():
            raise ValueError("category is required for the category filter")
        if self.filter == "selected" and not self.guest_ids:
            raise ValueError("guest_ids is required for the selected filter")
        return self

    def to_selection(self) -> GuestSelection:
        if self.filter == "not_invited":
            return NotInvited()
        if self.filter == "not_checked_in":
            return NotCheckedIn()
        if self.filter == "category":
            return Category(self.category or "")
        if self.filter == "selected":
            return ExplicitIds(frozenset(self.guest_ids))
        return AllGuests()


class ResendInvitationIn(SchemaBase):
    channels: ChannelsIn = Field(default_factory=ChannelsIn)


class ChannelTallyOut(SchemaBase):
    sent: int
    failed: int


class DeliveryFailureOut(SchemaBase):
    guest_id: UUID
    channel: str
    error: str


class DispatchResultOut(SchemaBase):
    email: ChannelTallyOut
    sms: ChannelTallyOut
    failures: list[DeliveryFailureOut]
    guests_matched: int
    guests_invited: int
    aborted: bool


class DispatchQueuedOut(SchemaBase):
    task_id: str
    event_id: UUID


class DispatchAbortOut(SchemaBase):
    event_id: UUID
    abort_requested: bool = True


class InvitationViewOut(SchemaBase):
    guest_name: str
    category: str
    plus_ones: int
    check_in_token: str
    qr_code_url: str
    checked_in: bool
    event_name: str
    event_date: date
    time_start: time | None = None
    time_end: time | None = None
    venue_name: str | None = None
    color: str
    wristband_color: str | None = None
