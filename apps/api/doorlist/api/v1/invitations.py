from __future__ import annotations

from uuid import UUID

import structlog
from fastapi import APIRouter, HTTPException
from redis.exceptions import RedisError

from doorlist.api.deps import Credentials, DBSession, Mailer, Texter
from doorlist.api.errors import http_error_from_service
from doorlist.api.v1.schemas.invitations import (
    DispatchAbortOut,
    DispatchQueuedOut,
    DispatchResultOut,
    InvitationViewOut,
    ResendInvitationIn,
    SendInvitationsIn,
)
from doorlist.core.config import settings
from doorlist.redis_client import clear_dispatch_abort, request_dispatch_abort
from doorlist.services import events_service, invitations_service
from doorlist.services.error_codes import ErrorCode
from doorlist.services.exceptions import ConflictError, ServiceError
from doorlist.services.guests_service import qr_code_url
from doorlist.worker.celery_app import celery_app

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/invitations", tags=["invitations"])


@router.post("/send", response_model=DispatchResultOut)
def send_invitations(
    payload: SendInvitationsIn,
    db: DBSession,
    policy: Credentials,
    email_sender: Mailer,
    sms_sender: Texter,
):
    try:
        result = invitations_service.dispatch_invitations(
            db,
            payload.event_id,
            payload.channels.to_channels(),
            payload.to_selection(),
            email_sender,
            sms_sender,
            policy,
            pacing_seconds=settings.invitation_pacing_seconds,
        )
    except ServiceError as err:
        raise http_error_from_service(err) from None
    return result.as_dict()


@router.post("/send-async", response_model=DispatchQueuedOut, status_code=202)
def send_invitations_async(payload: SendInvitationsIn, db: DBSession):
    # Reject up front what the worker would reject anyway
    try:
        invitations_service.ensure_channels(payload.channels.to_channels())
        event = events_service.get_event(db, payload.event_id)
        if event.is_archived:
            raise ConflictError(ErrorCode.EVENT_ARCHIVED.value, "event is archived")
    except ServiceError as err:
        raise http_error_from_service(err) from None

    try:
        clear_dispatch_abort(str(payload.event_id))
    except RedisError:
        logger.warning("dispatch_abort_clear_failed", event_id=str(payload.event_id))

    async_result = celery_app.send_task(
        "doorlist.dispatch_invitations",
        kwargs={
            "event_id": str(payload.event_id),
            "email": payload.channels.email,
            "sms": payload.channels.sms,
            "filter_name": payload.filter,
            "category": payload.category,
            "guest_ids": [str(g) for g in payload.guest_ids],
        },
    )
    logger.info("invitation_dispatch_queued", event_id=str(payload.event_id), task_id=async_result.id)
    return DispatchQueuedOut(task_id=async_result.id, event_id=payload.event_id)


@router.post("/resend/{guest_id}", response_model=DispatchResultOut)
def resend_invitation(
    guest_id: UUID,
    db: DBSession,
    policy: Credentials,
    email_sender: Mailer,
    sms_sender: Texter,
    payload: ResendInvitationIn | None = None,
):
    payload = payload or ResendInvitationIn()
    try:
        result = invitations_service.resend_invitation(
            db,
            guest_id,
            payload.channels.to_channels(),
            email_sender,
            sms_sender,
            policy,
        )
    except ServiceError as err:
        raise http_error_from_service(err) from None
    return result.as_dict()


@router.post("/{event_id}/abort", response_model=DispatchAbortOut)
def abort_dispatch(event_id: UUID):
    try:
        request_dispatch_abort(str(event_id))
    except RedisError:
        raise HTTPException(
            status_code=503,
            detail={
                "code": ErrorCode.DISPATCH_ABORT_UNAVAILABLE.value,
                "message": "could not record the abort request",
            },
        ) from None
    logger.info("invitation_dispatch_abort_requested", event_id=str(event_id))
    return DispatchAbortOut(event_id=event_id)


@router.get("/{invite_token}", response_model=InvitationViewOut)
def open_invitation(invite_token: str, db: DBSession):
    try:
        opened = invitations_service.open_invitation(db, invite_token)
    except ServiceError as err:
        raise http_error_from_service(err) from None

    guest, event = opened.guest, opened.event
    return InvitationViewOut(
        guest_name=guest.name,
        category=guest.category,
        plus_ones=guest.plus_ones,
        check_in_token=guest.check_in_token,
        qr_code_url=qr_code_url(guest.check_in_token),
        checked_in=guest.checked_in,
        event_name=event.name,
        event_date=event.date,
        time_start=event.time_start,
        time_end=event.time_end,
        venue_name=event.venue_name,
        color=event.color,
        wristband_color=event.wristband_color,
    )
