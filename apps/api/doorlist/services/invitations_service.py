from __future__ import annotations

import time
import uuid
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Union

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from doorlist.core.metrics import INVITATION_SENDS
from doorlist.models import Event, Guest
from doorlist.models.guest import InvitationChannel
from doorlist.notifications.base import EmailSender, SendResult, SmsSender
from doorlist.notifications.messages import (
    InvitationLinks,
    invitation_sms_vars,
    invitation_subject,
    render_invitation_email,
)
from doorlist.services.credentials import generate_invite_token, with_unique_tokens
from doorlist.services.error_codes import ErrorCode
from doorlist.services.exceptions import ConflictError, NotFoundError, ValidationError
from doorlist.services.guests_service import invitation_link, qr_code_url
from doorlist.services.policy import CredentialPolicy
from doorlist.services.schedule import as_utc, utcnow

logger = structlog.get_logger(__name__)


# Guest selection: a closed set of variants resolved by selection_criteria()


@dataclass(frozen=True)
class AllGuests:
    pass


@dataclass(frozen=True)
class NotInvited:
    pass


@dataclass(frozen=True)
class NotCheckedIn:
    pass


@dataclass(frozen=True)
class Category:
    value: str


@dataclass(frozen=True)
class ExplicitIds:
    ids: frozenset[uuid.UUID]


GuestSelection = Union[AllGuests, NotInvited, NotCheckedIn, Category, ExplicitIds]


def selection_criteria(selection: GuestSelection) -> list[Any]:
    if isinstance(selection, AllGuests):
        return []
    if isinstance(selection, NotInvited):
        return [Guest.invitation_sent.is_(False)]
    if isinstance(selection, NotCheckedIn):
        return [Guest.checked_in.is_(False)]
    if isinstance(selection, Category):
        return [func.lower(Guest.category) == selection.value.strip().lower()]
    if isinstance(selection, ExplicitIds):
        return [Guest.id.in_(selection.ids)]
    raise TypeError(f"unknown guest selection: {selection!r}")


@dataclass(frozen=True)
class Channels:
    email: bool = True
    sms: bool = False


@dataclass
class ChannelTally:
    sent: int = 0
    failed: int = 0


@dataclass(frozen=True)
class DeliveryFailure:
    guest_id: uuid.UUID
    channel: str
    error: str


@dataclass
class DispatchResult:
    email: ChannelTally = field(default_factory=ChannelTally)
    sms: ChannelTally = field(default_factory=ChannelTally)
    failures: list[DeliveryFailure] = field(default_factory=list)
    guests_matched: int = 0
    guests_invited: int = 0
    aborted: bool = False

    def as_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["failures"] = [
            {"guest_id": str(f.guest_id), "channel": f.channel, "error": f.error}
            for f in self.failures
        ]
        return data


@dataclass(frozen=True)
class OpenedInvitation:
    guest: Guest
    event: Event


class _Pacer:
    """Sleeps between consecutive provider calls, never before the first."""

    def __init__(self, seconds: float, sleep: Callable[[float], None]) -> None:
        self._seconds = seconds
        self._sleep = sleep
        self._calls = 0

    def wait(self) -> None:
        if self._calls and self._seconds > 0:
            self._sleep(self._seconds)
        self._calls += 1


def _deliver(channel: str, guest: Guest, send: Callable[[], SendResult]) -> SendResult:
    try:
        outcome = send()
    except Exception as exc:
        # Adapters report failures; anything raised is still one failed delivery
        logger.exception("invitation_sender_raised", channel=channel, guest_id=str(guest.id))
        outcome = SendResult(success=False, error=str(exc) or exc.__class__.__name__)
    INVITATION_SENDS.labels(channel=channel, outcome="sent" if outcome.success else "failed").inc()
    if not outcome.success:
        logger.warning(
            "invitation_send_failed",
            channel=channel,
            guest_id=str(guest.id),
            error=outcome.error,
        )
    return outcome


def _ensure_invite_token(db: Session, guest: Guest, policy: CredentialPolicy) -> str:
    if guest.invite_token:
        return guest.invite_token

    def _mint() -> str:
        guest.invite_token = generate_invite_token(policy)
        db.flush()
        return guest.invite_token

    token = with_unique_tokens(db, policy, _mint, label="invite token")
    db.commit()
    return token


def ensure_channels(channels: Channels) -> None:
    if not channels.email and not channels.sms:
        raise ValidationError(ErrorCode.NO_CHANNEL_SELECTED.value, "enable email and/or sms")


def dispatch_invitations(
    db: Session,
    event_id: Any,
    channels: Channels,
    selection: GuestSelection,
    email_sender: EmailSender,
    sms_sender: SmsSender,
    policy: CredentialPolicy,
    *,
    pacing_seconds: float = 0.0,
    should_abort: Callable[[], bool] | None = None,
    now: datetime | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> DispatchResult:
    ensure_channels(channels)

    event = db.get(Event, event_id, populate_existing=True)
    if not event:
        raise NotFoundError(ErrorCode.EVENT_NOT_FOUND.value, "event not found")
    if event.is_archived:
        raise ConflictError(ErrorCode.EVENT_ARCHIVED.value, "event is archived")

    guests = list(
        db.scalars(
            select(Guest)
            .where(Guest.event_id == event.id, *selection_criteria(selection))
            .order_by(Guest.created_at, Guest.name)
        ).all()
    )
    result = DispatchResult(guests_matched=len(guests))
    pacer = _Pacer(pacing_seconds, sleep)
    sent_at = as_utc(now or utcnow())

    logger.info(
        "invitation_dispatch_started",
        event_id=str(event.id),
        guests=len(guests),
        email=channels.email,
        sms=channels.sms,
    )

    for guest in guests:
        if should_abort is not None and should_abort():
            result.aborted = True
            logger.info("invitation_dispatch_aborted", event_id=str(event.id))
            break

        links = InvitationLinks(
            invitation_url=invitation_link(_ensure_invite_token(db, guest, policy)),
            qr_code_url=qr_code_url(guest.check_in_token),
        )
        delivered: list[InvitationChannel] = []

        if channels.email and guest.email:
            pacer.wait()
            html = render_invitation_email(guest, event, links)
            outcome = _deliver(
                "email",
                guest,
                lambda: email_sender.send(guest.email, invitation_subject(event), html),
            )
            if outcome.success:
                result.email.sent += 1
                delivered.append(InvitationChannel.EMAIL)
            else:
                result.email.failed += 1
                result.failures.append(DeliveryFailure(guest.id, "email", outcome.error or "unknown"))

        if channels.sms and guest.phone:
            pacer.wait()
            template_vars = invitation_sms_vars(guest, event, links)
            outcome = _deliver("sms", guest, lambda: sms_sender.send(guest.phone, template_vars))
            if outcome.success:
                result.sms.sent += 1
                delivered.append(InvitationChannel.SMS)
            else:
                result.sms.failed += 1
                result.failures.append(DeliveryFailure(guest.id, "sms", outcome.error or "unknown"))

        if delivered:
            via = delivered[0] if len(delivered) == 1 else InvitationChannel.BOTH
            db.execute(
                update(Guest)
                .where(Guest.id == guest.id)
                .values(invitation_sent=True, invitation_sent_at=sent_at, invitation_sent_via=via)
                .execution_options(synchronize_session=False)
            )
            db.commit()
            result.guests_invited += 1

    logger.info(
        "invitation_dispatch_finished",
        event_id=str(event.id),
        email_sent=result.email.sent,
        email_failed=result.email.failed,
        sms_sent=result.sms.sent,
        sms_failed=result.sms.failed,
        aborted=result.aborted,
    )
    return result


def resend_invitation(
    db: Session,
    guest_id: Any,
    channels: Channels,
    email_sender: EmailSender,
    sms_sender: SmsSender,
    policy: CredentialPolicy,
    *,
    now: datetime | None = None,
) -> DispatchResult:
    guest = db.get(Guest, guest_id, populate_existing=True)
    if not guest:
        raise NotFoundError(ErrorCode.GUEST_NOT_FOUND.value, "guest not found")
    if guest.event_id is None:
        raise ConflictError(ErrorCode.EVENT_NOT_FOUND.value, "guest is no longer attached to an event")
    return dispatch_invitations(
        db,
        guest.event_id,
        channels,
        ExplicitIds(frozenset({guest.id})),
        email_sender,
        sms_sender,
        policy,
        now=now,
    )


def open_invitation(db: Session, invite_token: str, now: datetime | None = None) -> OpenedInvitation:
    token = (invite_token or "").strip()
    guest = (
        db.scalar(
            select(Guest)
            .where(Guest.invite_token == token)
            .execution_options(populate_existing=True)
        )
        if token
        else None
    )
    if not guest or guest.event is None:
        raise NotFoundError(ErrorCode.INVITATION_NOT_FOUND.value, "invitation not found")

    now = as_utc(now or utcnow())
    db.execute(
        update(Guest)
        .where(Guest.id == guest.id)
        .values(
            invitation_open_count=Guest.invitation_open_count + 1,
            invitation_opened=True,
            invitation_opened_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    db.commit()
    db.refresh(guest)
    logger.info(
        "invitation_opened",
        guest_id=str(guest.id),
        open_count=guest.invitation_open_count,
    )
    return OpenedInvitation(guest=guest, event=guest.event)
