import uuid

from celery.utils.log import get_task_logger
from sqlalchemy.orm import Session

from doorlist.api.v1.schemas.invitations import ChannelsIn, SendInvitationsIn
from doorlist.core.config import settings
from doorlist.db import SessionLocal
from doorlist.notifications.factory import get_email_sender, get_sms_sender
from doorlist.redis_client import (
    clear_dispatch_abort,
    dispatch_abort_requested,
    sweep_lock,
)
from doorlist.services import invitations_service, sweep_service
from doorlist.services.policy import credential_policy, lifecycle_policy
from doorlist.worker.celery_app import celery_app

logger = get_task_logger(__name__)


@celery_app.task(name="doorlist.sweep_event_lifecycle")
def sweep_event_lifecycle() -> dict:
    lock = sweep_lock()
    if not lock.acquire(blocking=False):
        logger.info("sweep_event_lifecycle skipped: another sweep holds the lock")
        return {"skipped": True}

    db: Session = SessionLocal()
    try:
        result = sweep_service.run_sweep(db, lifecycle_policy())
        logger.info(
            "sweep_event_lifecycle completed=%s archived=%s purged=%s failed=%s",
            result.completed,
            result.archived,
            result.purged,
            result.failed,
        )
        return result.as_dict()
    finally:
        db.close()
        lock.release()


@celery_app.task(name="doorlist.dispatch_invitations")
def dispatch_invitations(
    event_id: str,
    email: bool,
    sms: bool,
    filter_name: str = "all",
    category: str | None = None,
    guest_ids: list[str] | None = None,
) -> dict:
    request = SendInvitationsIn(
        event_id=uuid.UUID(event_id),
        channels=ChannelsIn(email=email, sms=sms),
        filter=filter_name,
        category=category,
        guest_ids=[uuid.UUID(g) for g in guest_ids or []],
    )

    db: Session = SessionLocal()
    try:
        logger.info("dispatch_invitations started event_id=%s", event_id)
        result = invitations_service.dispatch_invitations(
            db,
            request.event_id,
            request.channels.to_channels(),
            request.to_selection(),
            get_email_sender(),
            get_sms_sender(),
            credential_policy(),
            pacing_seconds=settings.invitation_pacing_seconds,
            should_abort=lambda: dispatch_abort_requested(event_id),
        )
        logger.info(
            "dispatch_invitations finished event_id=%s aborted=%s", event_id, result.aborted
        )
        return result.as_dict()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
        clear_dispatch_abort(event_id)
