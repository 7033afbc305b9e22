from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

import structlog
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from doorlist.core.metrics import CHECKINS
from doorlist.models import Guest
from doorlist.services.credentials import normalize_token
from doorlist.services.error_codes import ErrorCode
from doorlist.services.exceptions import ConflictError, NotFoundError, ValidationError
from doorlist.services.policy import CredentialPolicy
from doorlist.services.schedule import as_utc, display_time, utcnow

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CheckInOutcome:
    guest: Guest
    already_checked_in: bool
    message: str
    event_name: str | None = None


def _party_label(guest: Guest) -> str:
    if guest.plus_ones:
        return f"{guest.name} +{guest.plus_ones}"
    return guest.name


def _admit(
    db: Session,
    guest: Guest,
    policy: CredentialPolicy,
    scanner_name: str | None,
    now: datetime | None,
) -> CheckInOutcome:
    event = guest.event
    if event is None or event.is_archived:
        CHECKINS.labels(outcome="rejected").inc()
        raise ConflictError(
            ErrorCode.EVENT_NOT_ACCEPTING_CHECKINS.value,
            "this event is not accepting check-ins",
        )

    now = as_utc(now or utcnow())
    station = (scanner_name or "").strip() or policy.default_scanner_label
    result = db.execute(
        update(Guest)
        .where(Guest.id == guest.id, Guest.checked_in.is_(False))
        .values(
            checked_in=True,
            checked_in_time=display_time(now, policy.timezone),
            checked_in_by=station,
            checked_in_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    db.commit()
    newly_checked_in = result.rowcount == 1

    # Re-read so both the winner and a racing duplicate report the stored time
    db.refresh(guest)

    if newly_checked_in:
        CHECKINS.labels(outcome="checked_in").inc()
        logger.info("guest_checked_in", guest_id=str(guest.id), checked_in_by=station)
        message = f"Welcome, {_party_label(guest)}!"
    else:
        CHECKINS.labels(outcome="already_checked_in").inc()
        logger.info("guest_already_checked_in", guest_id=str(guest.id))
        message = (
            f"{_party_label(guest)} already checked in at {guest.checked_in_time}"
            f" ({guest.checked_in_by})"
        )

    return CheckInOutcome(
        guest=guest,
        already_checked_in=not newly_checked_in,
        message=message,
        event_name=event.name,
    )


def redeem_check_in(
    db: Session,
    raw_token: str | None,
    policy: CredentialPolicy,
    scanner_name: str | None = None,
    now: datetime | None = None,
) -> CheckInOutcome:
    token = normalize_token(raw_token)
    if not token:
        raise ValidationError(ErrorCode.GUEST_TOKEN_REQUIRED.value, "token is required")

    guest = db.scalar(
        select(Guest)
        .where(Guest.check_in_token == token)
        .execution_options(populate_existing=True)
    )
    if not guest:
        CHECKINS.labels(outcome="not_found").inc()
        logger.info("check_in_token_not_found")
        raise NotFoundError(ErrorCode.GUEST_TOKEN_NOT_FOUND.value, "no guest matches this code")

    return _admit(db, guest, policy, scanner_name, now)


def check_in_guest(
    db: Session,
    guest_id: Any,
    policy: CredentialPolicy,
    scanner_name: str | None = None,
    now: datetime | None = None,
) -> CheckInOutcome:
    """Admit a guest picked from the list by door staff, without scanning a code."""
    guest = db.get(Guest, guest_id, populate_existing=True)
    if not guest:
        raise NotFoundError(ErrorCode.GUEST_NOT_FOUND.value, "guest not found")
    return _admit(db, guest, policy, scanner_name, now)
