from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Response

from doorlist.api.deps import Credentials, DBSession
from doorlist.api.errors import http_error_from_service
from doorlist.api.v1.schemas.guests import (
    CredentialOut,
    GuestCreate,
    GuestListOut,
    GuestOut,
    GuestUpdate,
)
from doorlist.models import Guest
from doorlist.services import guests_service
from doorlist.services.exceptions import ServiceError

router = APIRouter(tags=["guests"])


def _credential_out(guest: Guest) -> CredentialOut:
    credential = guests_service.credential_for(guest)
    return CredentialOut(
        guest_id=guest.id,
        check_in_token=credential.check_in_token,
        qr_code_url=credential.qr_code_url,
        check_in_link=credential.check_in_link,
    )


@router.post("/events/{event_id}/guests", response_model=GuestOut, status_code=201)
def create_guest(event_id: UUID, payload: GuestCreate, db: DBSession, policy: Credentials):
    try:
        return guests_service.create_guest(db, event_id, payload, policy)
    except ServiceError as err:
        raise http_error_from_service(err) from None


@router.get("/events/{event_id}/guests", response_model=GuestListOut)
def list_guests(event_id: UUID, db: DBSession):
    try:
        items = guests_service.list_guests(db, event_id)
    except ServiceError as err:
        raise http_error_from_service(err) from None
    return GuestListOut(items=[GuestOut.model_validate(g) for g in items], total=len(items))


@router.get("/guests/{guest_id}", response_model=GuestOut)
def get_guest(guest_id: UUID, db: DBSession):
    try:
        return guests_service.get_guest(db, guest_id)
    except ServiceError as err:
        raise http_error_from_service(err) from None


@router.patch("/guests/{guest_id}", response_model=GuestOut)
def update_guest(guest_id: UUID, payload: GuestUpdate, db: DBSession):
    try:
        return guests_service.update_guest(db, guest_id, payload)
    except ServiceError as err:
        raise http_error_from_service(err) from None


@router.delete("/guests/{guest_id}", status_code=204)
def delete_guest(guest_id: UUID, db: DBSession):
    try:
        guests_service.delete_guest(db, guest_id)
    except ServiceError as err:
        raise http_error_from_service(err) from None
    return Response(status_code=204)


@router.get("/guests/{guest_id}/credential", response_model=CredentialOut)
def get_credential(guest_id: UUID, db: DBSession):
    try:
        guest = guests_service.get_guest(db, guest_id)
    except ServiceError as err:
        raise http_error_from_service(err) from None
    return _credential_out(guest)


@router.post("/guests/{guest_id}/regenerate-token", response_model=CredentialOut)
def regenerate_token(guest_id: UUID, db: DBSession, policy: Credentials):
    try:
        guest = guests_service.regenerate_check_in_token(db, guest_id, policy)
    except ServiceError as err:
        raise http_error_from_service(err) from None
    return _credential_out(guest)
