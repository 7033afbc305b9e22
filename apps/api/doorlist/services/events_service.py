from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

import structlog
from sqlalchemy import and_, delete, func, or_, select, update
from sqlalchemy.orm import Session

from doorlist.api.v1.schemas.events import EventCreate, EventUpdate
from doorlist.core.metrics import LIFECYCLE_TRANSITIONS
from doorlist.models import Event, Guest
from doorlist.models.event import DeletedBy, EventStatus
from doorlist.services.error_codes import ErrorCode
from doorlist.services.exceptions import ConflictError, NotFoundError, ValidationError
from doorlist.services.policy import LifecyclePolicy
from doorlist.services.schedule import as_utc, has_ended, utcnow

logger = structlog.get_logger(__name__)

USER_DELETE_ACTORS = {DeletedBy.HOST, DeletedBy.VENUE}


class DeleteAction(str, Enum):
    DELETED = "deleted"
    ARCHIVED = "archived"


@dataclass(frozen=True)
class SmartDeleteOutcome:
    action: DeleteAction
    guest_count: int
    checked_in_count: int
    message: str
    cancelled_before_event: bool | None = None


@dataclass(frozen=True)
class RestoreOutcome:
    event: Event
    restored_status: EventStatus


@dataclass(frozen=True)
class EventStats:
    guest_count: int
    checked_in_count: int
    plus_ones: int
    checked_in_plus_ones: int
    invited_count: int
    opened_count: int


def _get_event(db: Session, event_id: Any, *, for_update: bool = False) -> Event:
    stmt = select(Event).where(Event.id == event_id).execution_options(populate_existing=True)
    if for_update:
        stmt = stmt.with_for_update()
    event = db.scalar(stmt)
    if not event:
        raise NotFoundError(ErrorCode.EVENT_NOT_FOUND.value, "event not found")
    return event


def _guest_counts(db: Session, event_id: Any) -> tuple[int, int]:
    row = db.execute(
        select(
            func.count(Guest.id),
            func.count(Guest.id).filter(Guest.checked_in.is_(True)),
        ).where(Guest.event_id == event_id)
    ).one()
    return int(row[0] or 0), int(row[1] or 0)


def _detach_guests(db: Session, event_id: Any) -> int:
    result = db.execute(
        update(Guest)
        .where(Guest.event_id == event_id)
        .values(event_id=None)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


def get_event(db: Session, event_id: Any) -> Event:
    return _get_event(db, event_id)


def create_event(db: Session, payload: EventCreate) -> Event:
    name = (payload.name or "").strip()
    if not name:
        raise ValidationError(ErrorCode.EVENT_NAME_REQUIRED.value, "name is required")
    if payload.venue_id is None and not (payload.venue_name or "").strip():
        raise ValidationError(
            ErrorCode.EVENT_VENUE_REQUIRED.value, "venue_id or venue_name is required"
        )

    event = Event(
        name=name,
        date=payload.date,
        time_start=payload.time_start,
        time_end=payload.time_end,
        host_id=payload.host_id,
        venue_id=payload.venue_id,
        venue_name=payload.venue_name,
        expected_guests=payload.expected_guests,
        color=payload.color,
        wristband_color=payload.wristband_color,
        status=EventStatus.CREATED,
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    logger.info("event_created", event_id=str(event.id), host_id=str(event.host_id))
    return event


def update_event(db: Session, event_id: Any, patch: EventUpdate) -> Event:
    event = _get_event(db, event_id, for_update=True)
    if event.is_archived:
        raise ConflictError(ErrorCode.EVENT_ARCHIVED.value, "archived events cannot be edited")

    patch_data = patch.model_dump(exclude_unset=True)
    if "name" in patch_data:
        name = (patch_data["name"] or "").strip()
        if not name:
            raise ValidationError(ErrorCode.EVENT_NAME_REQUIRED.value, "name is required")
        patch_data["name"] = name

    for key, value in patch_data.items():
        setattr(event, key, value)

    db.add(event)
    db.commit()
    db.refresh(event)
    return event


def event_stats(db: Session, event_id: Any) -> EventStats:
    _get_event(db, event_id)
    row = db.execute(
        select(
            func.count(Guest.id),
            func.count(Guest.id).filter(Guest.checked_in.is_(True)),
            func.coalesce(func.sum(Guest.plus_ones), 0),
            func.coalesce(func.sum(Guest.plus_ones).filter(Guest.checked_in.is_(True)), 0),
            func.count(Guest.id).filter(Guest.invitation_sent.is_(True)),
            func.count(Guest.id).filter(Guest.invitation_opened.is_(True)),
        ).where(Guest.event_id == event_id)
    ).one()
    return EventStats(
        guest_count=int(row[0] or 0),
        checked_in_count=int(row[1] or 0),
        plus_ones=int(row[2] or 0),
        checked_in_plus_ones=int(row[3] or 0),
        invited_count=int(row[4] or 0),
        opened_count=int(row[5] or 0),
    )


def list_host_events(db: Session, host_id: Any) -> list[Event]:
    stmt = (
        select(Event)
        .where(Event.host_id == host_id, Event.status != EventStatus.ARCHIVED)
        .order_by(Event.date.desc(), Event.time_start.desc())
    )
    return list(db.scalars(stmt).all())


def list_venue_events(
    db: Session,
    venue_id: Any,
    policy: LifecyclePolicy,
    now: datetime | None = None,
) -> list[Event]:
    """Live events plus pre-event cancellations from the visibility window."""
    now = as_utc(now or utcnow())
    window_start = now - policy.recently_cancelled
    stmt = (
        select(Event)
        .where(
            Event.venue_id == venue_id,
            or_(
                Event.status != EventStatus.ARCHIVED,
                and_(
                    Event.cancelled_before_event.is_(True),
                    Event.deleted_at >= window_start,
                ),
            ),
        )
        .order_by(Event.date.desc(), Event.time_start.desc())
    )
    return list(db.scalars(stmt).all())


def smart_delete_event(
    db: Session,
    event_id: Any,
    deleted_by: DeletedBy | str,
    policy: LifecyclePolicy,
    now: datetime | None = None,
) -> SmartDeleteOutcome:
    try:
        actor = DeletedBy(deleted_by)
    except ValueError:
        actor = None
    if actor not in USER_DELETE_ACTORS:
        raise ValidationError(
            ErrorCode.INVALID_DELETED_BY.value, "deleted_by must be 'host' or 'venue'"
        )

    now = as_utc(now or utcnow())
    event = _get_event(db, event_id, for_update=True)
    if event.is_archived:
        raise ConflictError(ErrorCode.EVENT_ARCHIVED.value, "event is already archived")

    guest_count, checked_in_count = _guest_counts(db, event.id)

    if guest_count == 0:
        db.execute(
            delete(Event)
            .where(Event.id == event.id, Event.status != EventStatus.ARCHIVED)
            .execution_options(synchronize_session=False)
        )
        db.commit()
        db.expunge(event)
        LIFECYCLE_TRANSITIONS.labels(transition="deleted").inc()
        logger.info("event_deleted", event_id=str(event_id), deleted_by=actor.value)
        return SmartDeleteOutcome(
            action=DeleteAction.DELETED,
            guest_count=0,
            checked_in_count=0,
            message="Event had no guests and was permanently deleted",
        )

    cancelled_before_event = not has_ended(event, policy.timezone, now)
    result = db.execute(
        update(Event)
        .where(Event.id == event.id, Event.status != EventStatus.ARCHIVED)
        .values(
            status=EventStatus.ARCHIVED,
            deleted_by=actor,
            deleted_at=now,
            cancelled_before_event=cancelled_before_event,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        raise ConflictError(ErrorCode.EVENT_ARCHIVED.value, "event is already archived")
    db.commit()

    LIFECYCLE_TRANSITIONS.labels(transition="archived").inc()
    logger.info(
        "event_archived",
        event_id=str(event.id),
        deleted_by=actor.value,
        cancelled_before_event=cancelled_before_event,
        guest_count=guest_count,
    )
    return SmartDeleteOutcome(
        action=DeleteAction.ARCHIVED,
        guest_count=guest_count,
        checked_in_count=checked_in_count,
        cancelled_before_event=cancelled_before_event,
        message=(
            f"Event archived with {guest_count} guest(s); "
            f"{checked_in_count} had checked in"
        ),
    )


def restore_event(
    db: Session,
    event_id: Any,
    policy: LifecyclePolicy,
    now: datetime | None = None,
) -> RestoreOutcome:
    now = as_utc(now or utcnow())
    event = _get_event(db, event_id)
    if not event.is_archived:
        raise ConflictError(ErrorCode.EVENT_NOT_ARCHIVED.value, "event is not archived")

    restored = EventStatus.COMPLETED if has_ended(event, policy.timezone, now) else EventStatus.CREATED
    result = db.execute(
        update(Event)
        .where(Event.id == event.id, Event.status == EventStatus.ARCHIVED)
        .values(
            status=restored,
            deleted_by=None,
            deleted_at=None,
            cancelled_before_event=False,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        raise ConflictError(ErrorCode.EVENT_NOT_ARCHIVED.value, "event is not archived")
    db.commit()
    db.refresh(event)

    LIFECYCLE_TRANSITIONS.labels(transition="restored").inc()
    logger.info("event_restored", event_id=str(event.id), restored_status=restored.value)
    return RestoreOutcome(event=event, restored_status=restored)


def hard_delete_event(db: Session, event_id: Any) -> int:
    """Remove the event immediately. Returns the number of detached guests."""
    event = _get_event(db, event_id, for_update=True)
    detached = _detach_guests(db, event.id)
    db.execute(
        delete(Event).where(Event.id == event.id).execution_options(synchronize_session=False)
    )
    db.commit()
    db.expunge(event)

    LIFECYCLE_TRANSITIONS.labels(transition="removed").inc()
    logger.info("event_removed", event_id=str(event_id), detached_guests=detached)
    return detached
