from __future__ import annotations

import threading
import uuid
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

import pytest

from doorlist.models import Guest
from doorlist.services import checkin_service, events_service
from doorlist.services.exceptions import ConflictError, NotFoundError, ValidationError
from tests.factories import make_event, make_guest

DOORS_OPEN = datetime(2025, 3, 1, 21, 5, tzinfo=timezone.utc)


def test_first_scan_checks_guest_in(db_session, credentials):
    event = make_event(db_session)
    guest = make_guest(db_session, event, name="Ada", plus_ones=2, check_in_token="CK-AB23CD45")

    outcome = checkin_service.redeem_check_in(
        db_session, "CK-AB23CD45", credentials, scanner_name="Door 1", now=DOORS_OPEN
    )

    assert outcome.already_checked_in is False
    assert outcome.message == "Welcome, Ada +2!"
    assert outcome.event_name == "Rooftop Launch"
    stored = db_session.get(Guest, guest.id)
    assert stored.checked_in is True
    assert stored.checked_in_time == "9:05 PM"
    assert stored.checked_in_by == "Door 1"


def test_token_lookup_is_case_insensitive(db_session, credentials):
    event = make_event(db_session)
    make_guest(db_session, event, check_in_token="CK-AB23CD45")

    outcome = checkin_service.redeem_check_in(db_session, "  ck-ab23cd45 ", credentials)

    assert outcome.already_checked_in is False


def test_repeat_scan_reports_original_check_in(db_session, credentials):
    event = make_event(db_session)
    make_guest(db_session, event, name="Ada", check_in_token="CK-AB23CD45")
    checkin_service.redeem_check_in(
        db_session, "CK-AB23CD45", credentials, scanner_name="Door 1", now=DOORS_OPEN
    )

    again = checkin_service.redeem_check_in(
        db_session, "CK-AB23CD45", credentials, scanner_name="Door 2", now=DOORS_OPEN
    )

    assert again.already_checked_in is True
    assert again.message == "Ada already checked in at 9:05 PM (Door 1)"
    assert again.guest.checked_in_by == "Door 1"


def test_missing_scanner_name_uses_default_label(db_session, credentials):
    event = make_event(db_session)
    make_guest(db_session, event, check_in_token="CK-AB23CD45")

    outcome = checkin_service.redeem_check_in(db_session, "CK-AB23CD45", credentials, scanner_name="  ")

    assert outcome.guest.checked_in_by == "Scanner"


@pytest.mark.parametrize("token", [None, "", "   "])
def test_blank_token_is_rejected(db_session, credentials, token):
    with pytest.raises(ValidationError) as exc:
        checkin_service.redeem_check_in(db_session, token, credentials)
    assert exc.value.code == "GUEST_TOKEN_REQUIRED"


def test_unknown_token_is_not_found(db_session, credentials):
    with pytest.raises(NotFoundError) as exc:
        checkin_service.redeem_check_in(db_session, "CK-ZZZZZZZZ", credentials)
    assert exc.value.code == "GUEST_TOKEN_NOT_FOUND"


def test_archived_event_rejects_check_in(db_session, credentials, lifecycle):
    event = make_event(db_session)
    guest = make_guest(db_session, event, check_in_token="CK-AB23CD45")
    events_service.smart_delete_event(db_session, event.id, "host", lifecycle)

    with pytest.raises(ConflictError) as exc:
        checkin_service.redeem_check_in(db_session, "CK-AB23CD45", credentials)

    assert exc.value.code == "EVENT_NOT_ACCEPTING_CHECKINS"
    db_session.expire_all()
    assert db_session.get(Guest, guest.id).checked_in is False


def test_detached_guest_rejects_check_in(db_session, credentials):
    make_guest(db_session, None, check_in_token="CK-AB23CD45")

    with pytest.raises(ConflictError):
        checkin_service.redeem_check_in(db_session, "CK-AB23CD45", credentials)


def test_concurrent_scans_check_in_exactly_once(session_factory, db_session, credentials):
    event = make_event(db_session)
    guest = make_guest(db_session, event, check_in_token="CK-AB23CD45")

    scanners = 4
    barrier = threading.Barrier(scanners)

    def _scan(label: str):
        db = session_factory()
        try:
            barrier.wait()
            return checkin_service.redeem_check_in(
                db, "CK-AB23CD45", credentials, scanner_name=label
            )
        finally:
            db.close()

    with ThreadPoolExecutor(max_workers=scanners) as pool:
        outcomes = list(pool.map(_scan, [f"Door {i}" for i in range(scanners)]))

    winners = [o for o in outcomes if not o.already_checked_in]
    assert len(winners) == 1
    winner_label = winners[0].guest.checked_in_by

    # Every scanner reports the stored check-in, not its own
    assert {o.guest.checked_in_by for o in outcomes} == {winner_label}
    db_session.expire_all()
    stored = db_session.get(Guest, guest.id)
    assert stored.checked_in is True
    assert stored.checked_in_by == winner_label


def test_manual_check_in_by_guest_id(db_session, credentials):
    event = make_event(db_session)
    guest = make_guest(db_session, event, name="Walk-in Wendy", plus_ones=1)

    outcome = checkin_service.check_in_guest(
        db_session, guest.id, credentials, scanner_name="Front desk", now=DOORS_OPEN
    )

    assert outcome.already_checked_in is False
    assert outcome.message == "Welcome, Walk-in Wendy +1!"
    stored = db_session.get(Guest, guest.id)
    assert stored.checked_in_time == "9:05 PM"
    assert stored.checked_in_by == "Front desk"


def test_manual_check_in_after_scan_reports_original_check_in(db_session, credentials):
    event = make_event(db_session)
    guest = make_guest(db_session, event, name="Ada", check_in_token="CK-AB23CD45")
    checkin_service.redeem_check_in(
        db_session, "CK-AB23CD45", credentials, scanner_name="Door 1", now=DOORS_OPEN
    )

    again = checkin_service.check_in_guest(db_session, guest.id, credentials, scanner_name="Front desk")

    assert again.already_checked_in is True
    assert again.message == "Ada already checked in at 9:05 PM (Door 1)"
    assert again.guest.checked_in_by == "Door 1"


def test_manual_check_in_rejects_archived_event(db_session, credentials, lifecycle):
    event = make_event(db_session)
    guest = make_guest(db_session, event)
    events_service.smart_delete_event(db_session, event.id, "host", lifecycle)

    with pytest.raises(ConflictError) as exc:
        checkin_service.check_in_guest(db_session, guest.id, credentials)

    assert exc.value.code == "EVENT_NOT_ACCEPTING_CHECKINS"
    db_session.expire_all()
    assert db_session.get(Guest, guest.id).checked_in is False


def test_manual_check_in_unknown_guest_is_not_found(db_session, credentials):
    with pytest.raises(NotFoundError) as exc:
        checkin_service.check_in_guest(db_session, uuid.uuid4(), credentials)
    assert exc.value.code == "GUEST_NOT_FOUND"
