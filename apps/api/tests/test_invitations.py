from __future__ import annotations

from datetime import datetime, timezone

import pytest

from doorlist.models import Guest
from doorlist.models.guest import InvitationChannel
from doorlist.services import invitations_service
from doorlist.services.exceptions import NotFoundError, ValidationError
from doorlist.services.invitations_service import (
    AllGuests,
    Category,
    Channels,
    ExplicitIds,
    NotCheckedIn,
    NotInvited,
)
from tests.factories import make_event, make_guest

SENT_AT = datetime(2025, 2, 20, 12, 0, tzinfo=timezone.utc)


def _dispatch(db, event, email_sender, sms_sender, credentials, selection=None, **kwargs):
    return invitations_service.dispatch_invitations(
        db,
        event.id,
        kwargs.pop("channels", Channels(email=True, sms=False)),
        selection or AllGuests(),
        email_sender,
        sms_sender,
        credentials,
        now=SENT_AT,
        **kwargs,
    )


def test_one_failed_email_does_not_stop_the_batch(db_session, email_sender, sms_sender, credentials):
    event = make_event(db_session)
    bounced = make_guest(db_session, event, name="A", email="a@example.com")
    delivered = make_guest(db_session, event, name="B", email="b@example.com")
    email_sender.fail_for.add("a@example.com")

    result = _dispatch(db_session, event, email_sender, sms_sender, credentials)

    assert result.email.sent == 1
    assert result.email.failed == 1
    assert [(f.guest_id, f.channel) for f in result.failures] == [(bounced.id, "email")]
    db_session.expire_all()
    assert db_session.get(Guest, bounced.id).invitation_sent is False
    sent = db_session.get(Guest, delivered.id)
    assert sent.invitation_sent is True
    assert sent.invitation_sent_via == InvitationChannel.EMAIL


def test_both_channels_mark_guest_sent_via_both(db_session, email_sender, sms_sender, credentials):
    event = make_event(db_session)
    guest = make_guest(db_session, event, phone="98765 43210")

    result = _dispatch(
        db_session, event, email_sender, sms_sender, credentials, channels=Channels(email=True, sms=True)
    )

    assert (result.email.sent, result.sms.sent) == (1, 1)
    phone, template_vars = sms_sender.sent[0]
    assert phone == "98765 43210"
    assert template_vars["event"] == "Rooftop Launch"
    assert template_vars["link"].startswith("https://doorlist.test/invite/")
    db_session.expire_all()
    assert db_session.get(Guest, guest.id).invitation_sent_via == InvitationChannel.BOTH


def test_guests_without_contact_details_are_skipped(db_session, email_sender, sms_sender, credentials):
    event = make_event(db_session)
    make_guest(db_session, event, email=None, phone=None)

    result = _dispatch(
        db_session, event, email_sender, sms_sender, credentials, channels=Channels(email=True, sms=True)
    )

    assert result.guests_matched == 1
    assert result.guests_invited == 0
    assert result.failures == []


def test_email_body_carries_credential_and_invitation_link(db_session, email_sender, sms_sender, credentials):
    event = make_event(db_session)
    guest = make_guest(db_session, event, category="VIP", plus_ones=1, check_in_token="CK-AB23CD45")

    _dispatch(db_session, event, email_sender, sms_sender, credentials)

    to, subject, html = email_sender.sent[0]
    assert to == guest.email
    assert subject == "You're invited to Rooftop Launch"
    assert "CK-AB23CD45" in html
    assert f"https://doorlist.test/invite/{guest.invite_token}" in html


def test_missing_invite_token_is_minted_lazily(db_session, email_sender, sms_sender, credentials):
    event = make_event(db_session)
    guest = make_guest(db_session, event, invite_token=None)

    _dispatch(db_session, event, email_sender, sms_sender, credentials)

    db_session.expire_all()
    stored = db_session.get(Guest, guest.id)
    assert stored.invite_token
    assert stored.invite_token in email_sender.sent[0][2]


def test_selection_variants(db_session, email_sender, sms_sender, credentials):
    event = make_event(db_session)
    vip = make_guest(db_session, event, name="Vip", email="vip@example.com", category="VIP")
    invited = make_guest(
        db_session, event, name="Invited", email="invited@example.com", invitation_sent=True
    )
    arrived = make_guest(
        db_session,
        event,
        name="Arrived",
        email="arrived@example.com",
        checked_in=True,
        checked_in_time="8:00 PM",
    )

    def recipients(selection):
        email_sender.sent.clear()
        _dispatch(db_session, event, email_sender, sms_sender, credentials, selection=selection)
        return {to for to, _, _ in email_sender.sent}

    assert recipients(Category("vip")) == {vip.email}
    assert recipients(ExplicitIds(frozenset({arrived.id}))) == {arrived.email}
    assert recipients(NotCheckedIn()) == {vip.email, invited.email}

    # Everything above marked guests as sent, so only a fresh guest remains
    fresh = make_guest(db_session, event, name="Fresh", email="fresh@example.com")
    assert recipients(NotInvited()) == {fresh.email}


def test_selection_is_scoped_to_the_event(db_session, email_sender, sms_sender, credentials):
    event = make_event(db_session)
    other = make_guest(db_session, make_event(db_session, name="Other"), email="other@example.com")

    _dispatch(
        db_session,
        event,
        email_sender,
        sms_sender,
        credentials,
        selection=ExplicitIds(frozenset({other.id})),
    )

    assert email_sender.sent == []


def test_abort_stops_between_guests(db_session, email_sender, sms_sender, credentials):
    event = make_event(db_session)
    for i in range(3):
        make_guest(db_session, event, name=f"Guest {i}", email=f"g{i}@example.com")
    checks = iter([False, True])

    result = _dispatch(
        db_session,
        event,
        email_sender,
        sms_sender,
        credentials,
        should_abort=lambda: next(checks, True),
    )

    assert result.aborted is True
    assert result.email.sent == 1


def test_pacing_sleeps_between_provider_calls(db_session, email_sender, sms_sender, credentials):
    event = make_event(db_session)
    for i in range(3):
        make_guest(db_session, event, name=f"Guest {i}", email=f"g{i}@example.com")
    naps = []

    _dispatch(
        db_session,
        event,
        email_sender,
        sms_sender,
        credentials,
        pacing_seconds=0.25,
        sleep=naps.append,
    )

    assert naps == [0.25, 0.25]


def test_sender_exception_counts_as_failure(db_session, sms_sender, credentials):
    class ExplodingSender:
        def send(self, to, subject, html_body):
            raise RuntimeError("connection reset")

    event = make_event(db_session)
    make_guest(db_session, event)

    result = _dispatch(db_session, event, ExplodingSender(), sms_sender, credentials)

    assert result.email.failed == 1
    assert result.failures[0].error == "connection reset"


def test_dispatch_requires_a_channel(db_session, email_sender, sms_sender, credentials):
    event = make_event(db_session)

    with pytest.raises(ValidationError) as exc:
        _dispatch(
            db_session, event, email_sender, sms_sender, credentials, channels=Channels(email=False, sms=False)
        )
    assert exc.value.code == "NO_CHANNEL_SELECTED"


def test_resend_targets_one_guest(db_session, email_sender, sms_sender, credentials):
    event = make_event(db_session)
    guest = make_guest(db_session, event, invitation_sent=True)
    make_guest(db_session, event, name="Other", email="other@example.com")

    result = invitations_service.resend_invitation(
        db_session, guest.id, Channels(), email_sender, sms_sender, credentials
    )

    assert result.email.sent == 1
    assert [to for to, _, _ in email_sender.sent] == [guest.email]


def test_open_invitation_counts_every_open(db_session):
    event = make_event(db_session)
    guest = make_guest(db_session, event)
    first_open = datetime(2025, 2, 21, 9, 0, tzinfo=timezone.utc)

    invitations_service.open_invitation(db_session, guest.invite_token, now=first_open)
    opened = invitations_service.open_invitation(db_session, guest.invite_token)

    assert opened.event.id == event.id
    assert opened.guest.invitation_opened is True
    assert opened.guest.invitation_open_count == 2


def test_open_invitation_unknown_or_detached(db_session):
    detached = make_guest(db_session, None)

    with pytest.raises(NotFoundError):
        invitations_service.open_invitation(db_session, "not-a-real-token")
    with pytest.raises(NotFoundError):
        invitations_service.open_invitation(db_session, detached.invite_token)
