from uuid import UUID

from fastapi import APIRouter

from doorlist.api.deps import Credentials, DBSession
from doorlist.api.errors import http_error_from_service
from doorlist.api.v1.schemas.checkin import CheckInIn, CheckInOut, ManualCheckInIn
from doorlist.api.v1.schemas.guests import GuestOut
from doorlist.services import checkin_service
from doorlist.services.checkin_service import CheckInOutcome
from doorlist.services.exceptions import ServiceError

router = APIRouter(tags=["check-in"])


def _check_in_out(outcome: CheckInOutcome) -> CheckInOut:
    # A repeat scan is still a successful response
    return CheckInOut(
        success=True,
        already_checked_in=outcome.already_checked_in,
        message=outcome.message,
        event_name=outcome.event_name,
        guest=GuestOut.model_validate(outcome.guest),
    )


@router.post("/check-in", response_model=CheckInOut)
def check_in(payload: CheckInIn, db: DBSession, policy: Credentials):
    try:
        outcome = checkin_service.redeem_check_in(
            db, payload.token, policy, scanner_name=payload.scanner_name
        )
    except ServiceError as err:
        raise http_error_from_service(err) from None
    return _check_in_out(outcome)


@router.post("/guests/{guest_id}/check-in", response_model=CheckInOut)
def check_in_from_list(
    guest_id: UUID,
    db: DBSession,
    policy: Credentials,
    payload: ManualCheckInIn | None = None,
):
    scanner_name = payload.scanner_name if payload else None
    try:
        outcome = checkin_service.check_in_guest(db, guest_id, policy, scanner_name=scanner_name)
    except ServiceError as err:
        raise http_error_from_service(err) from None
    return _check_in_out(outcome)
