"""Time-driven event lifecycle transitions.

Every transition is a single conditional statement guarded on the status the
event was read with, so a sweep that loses a race against a user action (or
another sweep) simply updates zero rows. Each event is its own transaction:
a failure rolls back that event only and the pass continues.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any

import structlog
from sqlalchemy import Row, delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from doorlist.core.metrics import LIFECYCLE_TRANSITIONS
from doorlist.models import Event, Guest
from doorlist.models.event import DeletedBy, EventStatus
from doorlist.services.policy import LifecyclePolicy
from doorlist.services.schedule import as_utc, has_ended, start_of_day, utcnow

logger = structlog.get_logger(__name__)


@dataclass
class SweepResult:
    completed: int = 0
    archived: int = 0
    purged: int = 0
    failed: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


def retention_deadline(event: Any, policy: LifecyclePolicy) -> datetime:
    """Moment after which a completed event is archived by the sweep."""
    return start_of_day(event.date, policy.timezone) + policy.retention


def _complete(db: Session, event: Row) -> bool:
    result = db.execute(
        update(Event)
        .where(
            Event.id == event.id,
            Event.status == EventStatus.CREATED,
            Event.date == event.date,
        )
        .values(status=EventStatus.COMPLETED)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount == 1


def _archive(db: Session, event: Row, now: datetime) -> bool:
    result = db.execute(
        update(Event)
        .where(
            Event.id == event.id,
            Event.status == EventStatus.COMPLETED,
            Event.date == event.date,
        )
        .values(
            status=EventStatus.ARCHIVED,
            deleted_by=DeletedBy.SYSTEM,
            deleted_at=now,
            cancelled_before_event=False,
        )
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount == 1


def _purge(db: Session, event: Row, cutoff: datetime) -> bool:
    db.execute(
        update(Guest)
        .where(Guest.event_id == event.id)
        .values(event_id=None)
        .execution_options(synchronize_session=False)
    )
    result = db.execute(
        delete(Event)
        .where(
            Event.id == event.id,
            Event.status == EventStatus.ARCHIVED,
            Event.deleted_at < cutoff,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        # Restored or already gone: keep its guests attached
        db.rollback()
        return False
    db.commit()
    return True


def _candidates(db: Session, status: EventStatus, *criteria) -> list[Row]:
    stmt = (
        select(Event.id, Event.date, Event.time_start, Event.time_end)
        .where(Event.status == status, *criteria)
        .order_by(Event.date)
    )
    rows = list(db.execute(stmt).all())
    # Release the read transaction before the per-event writes start
    db.rollback()
    return rows


def run_sweep(
    db: Session,
    policy: LifecyclePolicy,
    now: datetime | None = None,
) -> SweepResult:
    now = as_utc(now or utcnow())
    local_today = now.astimezone(policy.timezone).date()
    result = SweepResult()

    for event in _candidates(db, EventStatus.CREATED, Event.date <= local_today):
        if not has_ended(event, policy.timezone, now):
            continue
        try:
            if _complete(db, event):
                result.completed += 1
                LIFECYCLE_TRANSITIONS.labels(transition="completed").inc()
        except SQLAlchemyError:
            db.rollback()
            result.failed += 1
            logger.exception("sweep_complete_failed", event_id=str(event.id))

    retention_day = (now - policy.retention).astimezone(policy.timezone).date()
    for event in _candidates(db, EventStatus.COMPLETED, Event.date <= retention_day):
        if now <= retention_deadline(event, policy):
            continue
        try:
            if _archive(db, event, now):
                result.archived += 1
                LIFECYCLE_TRANSITIONS.labels(transition="archived").inc()
        except SQLAlchemyError:
            db.rollback()
            result.failed += 1
            logger.exception("sweep_archive_failed", event_id=str(event.id))

    purge_cutoff = now - policy.purge_after
    for event in _candidates(db, EventStatus.ARCHIVED, Event.deleted_at < purge_cutoff):
        try:
            if _purge(db, event, purge_cutoff):
                result.purged += 1
                LIFECYCLE_TRANSITIONS.labels(transition="purged").inc()
        except SQLAlchemyError:
            db.rollback()
            result.failed += 1
            logger.exception("sweep_purge_failed", event_id=str(event.id))

    logger.info("sweep_completed", **result.as_dict())
    return result
