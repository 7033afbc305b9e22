from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

import structlog
from sqlalchemy import select
from sqlalchemy.orm import Session

from doorlist.api.v1.schemas.guests import GuestCreate, GuestUpdate
from doorlist.core.config import settings
from doorlist.models import Event, Guest
from doorlist.services.credentials import (
    generate_check_in_token,
    generate_invite_token,
    with_unique_tokens,
)
from doorlist.services.error_codes import ErrorCode
from doorlist.services.exceptions import ConflictError, NotFoundError, ValidationError
from doorlist.services.policy import CredentialPolicy

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Credential:
    check_in_token: str
    qr_code_url: str
    check_in_link: str


def _get_guest(db: Session, guest_id: Any) -> Guest:
    guest = db.get(Guest, guest_id, populate_existing=True)
    if not guest:
        raise NotFoundError(ErrorCode.GUEST_NOT_FOUND.value, "guest not found")
    return guest


def get_guest(db: Session, guest_id: Any) -> Guest:
    return _get_guest(db, guest_id)


def list_guests(db: Session, event_id: Any) -> list[Guest]:
    if db.get(Event, event_id) is None:
        raise NotFoundError(ErrorCode.EVENT_NOT_FOUND.value, "event not found")
    stmt = select(Guest).where(Guest.event_id == event_id).order_by(Guest.created_at, Guest.name)
    return list(db.scalars(stmt).all())


def create_guest(
    db: Session,
    event_id: Any,
    payload: GuestCreate,
    policy: CredentialPolicy,
) -> Guest:
    name = payload.name.strip()
    if not name:
        raise ValidationError(ErrorCode.GUEST_NAME_REQUIRED.value, "name is required")

    event = db.scalar(
        select(Event)
        .where(Event.id == event_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    if not event:
        raise NotFoundError(ErrorCode.EVENT_NOT_FOUND.value, "event not found")
    if event.is_archived:
        raise ConflictError(ErrorCode.EVENT_ARCHIVED.value, "cannot add guests to an archived event")

    def _insert() -> Guest:
        guest = Guest(
            event_id=event.id,
            name=name,
            email=payload.email,
            phone=payload.phone,
            category=payload.category or "General",
            plus_ones=payload.plus_ones,
            is_walkin=payload.is_walkin,
            check_in_token=generate_check_in_token(policy),
            invite_token=generate_invite_token(policy),
        )
        db.add(guest)
        db.flush()
        return guest

    guest = with_unique_tokens(db, policy, _insert, label="guest credentials")
    db.commit()
    db.refresh(guest)
    logger.info("guest_created", guest_id=str(guest.id), event_id=str(event.id))
    return guest


def update_guest(db: Session, guest_id: Any, patch: GuestUpdate) -> Guest:
    guest = _get_guest(db, guest_id)
    patch_data = patch.model_dump(exclude_unset=True)
    if "name" in patch_data:
        name = (patch_data["name"] or "").strip()
        if not name:
            raise ValidationError(ErrorCode.GUEST_NAME_REQUIRED.value, "name is required")
        patch_data["name"] = name
    if "category" in patch_data and not patch_data["category"]:
        patch_data["category"] = "General"

    for key, value in patch_data.items():
        setattr(guest, key, value)

    db.add(guest)
    db.commit()
    db.refresh(guest)
    return guest


def delete_guest(db: Session, guest_id: Any) -> None:
    guest = _get_guest(db, guest_id)
    db.delete(guest)
    db.commit()
    logger.info("guest_deleted", guest_id=str(guest_id))


def regenerate_check_in_token(db: Session, guest_id: Any, policy: CredentialPolicy) -> Guest:
    """Replace the guest's check-in code. The previous code stops resolving."""
    guest = _get_guest(db, guest_id)
    previous = guest.check_in_token

    def _replace() -> Guest:
        guest.check_in_token = generate_check_in_token(policy)
        db.flush()
        return guest

    with_unique_tokens(db, policy, _replace, label="check-in token")
    db.commit()
    db.refresh(guest)
    logger.info(
        "check_in_token_regenerated",
        guest_id=str(guest.id),
        previous_suffix=previous[-4:],
    )
    return guest


def qr_code_url(check_in_token: str, size: int = 300) -> str:
    query = urlencode({"size": f"{size}x{size}", "data": check_in_token})
    return f"{settings.qr_renderer_url}?{query}"


def check_in_link(check_in_token: str) -> str:
    return f"{settings.frontend_base_url.rstrip('/')}/check-in?{urlencode({'token': check_in_token})}"


def invitation_link(invite_token: str) -> str:
    return f"{settings.frontend_base_url.rstrip('/')}/invite/{invite_token}"


def credential_for(guest: Guest) -> Credential:
    return Credential(
        check_in_token=guest.check_in_token,
        qr_code_url=qr_code_url(guest.check_in_token),
        check_in_link=check_in_link(guest.check_in_token),
    )
