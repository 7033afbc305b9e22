from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter

from doorlist.api.deps import DBSession, Lifecycle
from doorlist.api.errors import http_error_from_service
from doorlist.api.v1.schemas.events import (
    EventCreate,
    EventListOut,
    EventOut,
    EventStatsOut,
    EventUpdate,
    HardDeleteOut,
    RestoreOut,
    SmartDeleteIn,
    SmartDeleteOut,
)
from doorlist.services import events_service
from doorlist.services.exceptions import ServiceError

router = APIRouter(prefix="/events", tags=["events"])


@router.post("", response_model=EventOut, status_code=201)
def create_event(payload: EventCreate, db: DBSession):
    try:
        return events_service.create_event(db, payload)
    except ServiceError as err:
        raise http_error_from_service(err) from None


@router.get("/host/{host_id}", response_model=EventListOut)
def list_host_events(host_id: UUID, db: DBSession):
    items = events_service.list_host_events(db, host_id)
    return EventListOut(items=[EventOut.model_validate(e) for e in items], total=len(items))


@router.get("/venue/{venue_id}", response_model=EventListOut)
def list_venue_events(venue_id: UUID, db: DBSession, policy: Lifecycle):
    items = events_service.list_venue_events(db, venue_id, policy)
    return EventListOut(items=[EventOut.model_validate(e) for e in items], total=len(items))


@router.get("/{event_id}", response_model=EventOut)
def get_event(event_id: UUID, db: DBSession):
    try:
        return events_service.get_event(db, event_id)
    except ServiceError as err:
        raise http_error_from_service(err) from None


@router.patch("/{event_id}", response_model=EventOut)
def update_event(event_id: UUID, payload: EventUpdate, db: DBSession):
    try:
        return events_service.update_event(db, event_id, payload)
    except ServiceError as err:
        raise http_error_from_service(err) from None


@router.delete("/{event_id}", response_model=HardDeleteOut)
def hard_delete_event(event_id: UUID, db: DBSession):
    try:
        detached = events_service.hard_delete_event(db, event_id)
    except ServiceError as err:
        raise http_error_from_service(err) from None
    return HardDeleteOut(detached_guests=detached)


@router.get("/{event_id}/stats", response_model=EventStatsOut)
def event_stats(event_id: UUID, db: DBSession):
    try:
        stats = events_service.event_stats(db, event_id)
    except ServiceError as err:
        raise http_error_from_service(err) from None
    return EventStatsOut(
        guest_count=stats.guest_count,
        checked_in_count=stats.checked_in_count,
        plus_ones=stats.plus_ones,
        checked_in_plus_ones=stats.checked_in_plus_ones,
        invited_count=stats.invited_count,
        opened_count=stats.opened_count,
        total_expected_people=stats.guest_count + stats.plus_ones,
        total_arrived_people=stats.checked_in_count + stats.checked_in_plus_ones,
    )


@router.post("/{event_id}/smart-delete", response_model=SmartDeleteOut)
def smart_delete_event(event_id: UUID, payload: SmartDeleteIn, db: DBSession, policy: Lifecycle):
    try:
        outcome = events_service.smart_delete_event(db, event_id, payload.deleted_by, policy)
    except ServiceError as err:
        raise http_error_from_service(err) from None
    return SmartDeleteOut(
        action=outcome.action.value,
        guest_count=outcome.guest_count,
        checked_in_count=outcome.checked_in_count,
        message=outcome.message,
        cancelled_before_event=outcome.cancelled_before_event,
    )


@router.post("/{event_id}/restore", response_model=RestoreOut)
def restore_event(event_id: UUID, db: DBSession, policy: Lifecycle):
    try:
        outcome = events_service.restore_event(db, event_id, policy)
    except ServiceError as err:
        raise http_error_from_service(err) from None
    return RestoreOut(
        event=EventOut.model_validate(outcome.event),
        restored_status=outcome.restored_status,
    )
