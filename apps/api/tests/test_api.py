from __future__ import annotations

import uuid

from fastapi.testclient import TestClient

from doorlist.worker.celery_app import celery_app


def _create_event(client: TestClient, **overrides):
    payload = {
        "name": "Rooftop Launch",
        "date": "2099-06-01",
        "time_start": "20:00:00",
        "time_end": "23:00:00",
        "host_id": str(uuid.uuid4()),
        "venue_name": "Skyline Bar",
    }
    payload.update(overrides)
    return client.post("/v1/events", json=payload)


def _add_guest(client: TestClient, event_id: str, **overrides):
    payload = {"name": "Ada Lovelace", "email": "ada@example.com", "plus_ones": 1}
    payload.update(overrides)
    return client.post(f"/v1/events/{event_id}/guests", json=payload)


def test_health_and_root(client: TestClient):
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/").json()["status"] == "ok"


def test_event_crud(client: TestClient):
    created = _create_event(client)
    assert created.status_code == 201
    body = created.json()
    assert body["status"] == "created"
    assert body["color"] == "purple"
    assert body["deleted_at"] is None

    event_id = body["id"]
    patched = client.patch(f"/v1/events/{event_id}", json={"name": "Renamed", "expected_guests": 40})
    assert patched.status_code == 200
    assert patched.json()["name"] == "Renamed"
    assert patched.json()["expected_guests"] == 40

    listed = client.get(f"/v1/events/host/{body['host_id']}")
    assert listed.json()["total"] == 1

    missing = client.get(f"/v1/events/{uuid.uuid4()}")
    assert missing.status_code == 404
    assert missing.json()["detail"]["code"] == "EVENT_NOT_FOUND"


def test_event_requires_a_venue(client: TestClient):
    resp = _create_event(client, venue_name=None)

    assert resp.status_code == 422
    assert resp.json()["detail"]["code"] == "EVENT_VENUE_REQUIRED"


def test_smart_delete_and_restore_over_http(client: TestClient):
    event_id = _create_event(client).json()["id"]
    _add_guest(client, event_id)

    deleted = client.post(f"/v1/events/{event_id}/smart-delete", json={"deleted_by": "host"})
    assert deleted.status_code == 200
    assert deleted.json()["action"] == "archived"
    assert deleted.json()["cancelled_before_event"] is True

    again = client.post(f"/v1/events/{event_id}/smart-delete", json={"deleted_by": "venue"})
    assert again.status_code == 409

    restored = client.post(f"/v1/events/{event_id}/restore")
    assert restored.status_code == 200
    assert restored.json()["restored_status"] == "created"
    assert restored.json()["event"]["status"] == "created"


def test_smart_delete_rejects_system_actor(client: TestClient):
    event_id = _create_event(client).json()["id"]

    resp = client.post(f"/v1/events/{event_id}/smart-delete", json={"deleted_by": "system"})

    assert resp.status_code == 422


def test_guest_credential_and_check_in_flow(client: TestClient):
    event_id = _create_event(client).json()["id"]
    guest = _add_guest(client, event_id).json()

    credential = client.get(f"/v1/guests/{guest['id']}/credential").json()
    assert credential["check_in_token"] == guest["check_in_token"]
    assert credential["check_in_token"] in credential["qr_code_url"]

    first = client.post(
        "/v1/check-in",
        json={"token": credential["check_in_token"].lower(), "scanner_name": "Door 1"},
    )
    assert first.status_code == 200
    assert first.json()["success"] is True
    assert first.json()["already_checked_in"] is False
    assert first.json()["message"] == "Welcome, Ada Lovelace +1!"

    second = client.post("/v1/check-in", json={"token": credential["check_in_token"]})
    assert second.status_code == 200
    assert second.json()["already_checked_in"] is True
    assert second.json()["guest"]["checked_in_by"] == "Door 1"

    stats = client.get(f"/v1/events/{event_id}/stats").json()
    assert stats["checked_in_count"] == 1
    assert stats["total_arrived_people"] == 2


def test_check_in_errors(client: TestClient):
    assert client.post("/v1/check-in", json={"token": "  "}).status_code == 422
    unknown = client.post("/v1/check-in", json={"token": "CK-ZZZZZZZZ"})
    assert unknown.status_code == 404
    assert unknown.json()["detail"]["code"] == "GUEST_TOKEN_NOT_FOUND"


def test_manual_check_in_from_guest_list(client: TestClient):
    event_id = _create_event(client).json()["id"]
    guest = _add_guest(client, event_id).json()

    first = client.post(f"/v1/guests/{guest['id']}/check-in", json={"scanner_name": "Front desk"})
    assert first.status_code == 200
    assert first.json()["already_checked_in"] is False
    assert first.json()["guest"]["checked_in_by"] == "Front desk"

    repeat = client.post(f"/v1/guests/{guest['id']}/check-in")
    assert repeat.status_code == 200
    assert repeat.json()["already_checked_in"] is True
    assert repeat.json()["guest"]["checked_in_by"] == "Front desk"

    scan = client.post("/v1/check-in", json={"token": guest["check_in_token"]})
    assert scan.json()["already_checked_in"] is True

    missing = client.post(f"/v1/guests/{uuid.uuid4()}/check-in")
    assert missing.status_code == 404


def test_manual_check_in_rejected_for_archived_event(client: TestClient):
    event_id = _create_event(client).json()["id"]
    guest = _add_guest(client, event_id).json()
    client.post(f"/v1/events/{event_id}/smart-delete", json={"deleted_by": "host"})

    resp = client.post(f"/v1/guests/{guest['id']}/check-in", json={"scanner_name": "Door 1"})

    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "EVENT_NOT_ACCEPTING_CHECKINS"


def test_regenerate_token_invalidates_old_code(client: TestClient):
    event_id = _create_event(client).json()["id"]
    guest = _add_guest(client, event_id).json()

    fresh = client.post(f"/v1/guests/{guest['id']}/regenerate-token")
    assert fresh.status_code == 200
    assert fresh.json()["check_in_token"] != guest["check_in_token"]

    stale = client.post("/v1/check-in", json={"token": guest["check_in_token"]})
    assert stale.status_code == 404


def test_guest_update_and_delete(client: TestClient):
    event_id = _create_event(client).json()["id"]
    guest = _add_guest(client, event_id).json()

    patched = client.patch(f"/v1/guests/{guest['id']}", json={"category": "VIP", "plus_ones": 3})
    assert patched.json()["category"] == "VIP"
    assert patched.json()["plus_ones"] == 3

    assert client.delete(f"/v1/guests/{guest['id']}").status_code == 204
    assert client.get(f"/v1/guests/{guest['id']}").status_code == 404
    assert client.get(f"/v1/events/{event_id}/guests").json()["total"] == 0


def test_guest_rejects_negative_plus_ones(client: TestClient):
    event_id = _create_event(client).json()["id"]

    assert _add_guest(client, event_id, plus_ones=-1).status_code == 422


def test_send_invitations_and_open_link(client: TestClient, email_sender):
    event_id = _create_event(client).json()["id"]
    _add_guest(client, event_id)
    _add_guest(client, event_id, name="Grace Hopper", email="bounce@example.com")
    email_sender.fail_for.add("bounce@example.com")

    sent = client.post(
        "/v1/invitations/send",
        json={"event_id": event_id, "channels": {"email": True, "sms": False}},
    )
    assert sent.status_code == 200
    body = sent.json()
    assert body["email"] == {"sent": 1, "failed": 1}
    assert len(body["failures"]) == 1

    html = email_sender.sent[0][2]
    invite_token = html.split("https://doorlist.test/invite/")[1].split('"')[0]

    opened = client.get(f"/v1/invitations/{invite_token}")
    assert opened.status_code == 200
    assert opened.json()["guest_name"] == "Ada Lovelace"
    assert opened.json()["event_name"] == "Rooftop Launch"

    guests = client.get(f"/v1/events/{event_id}/guests").json()["items"]
    ada = next(g for g in guests if g["name"] == "Ada Lovelace")
    assert ada["invitation_opened"] is True
    assert ada["invitation_open_count"] == 1
    assert ada["invitation_sent_via"] == "email"


def test_send_invitations_validates_filter_arguments(client: TestClient):
    event_id = _create_event(client).json()["id"]

    resp = client.post("/v1/invitations/send", json={"event_id": event_id, "filter": "category"})

    assert resp.status_code == 422


def test_send_invitations_requires_a_channel(client: TestClient):
    event_id = _create_event(client).json()["id"]

    resp = client.post(
        "/v1/invitations/send",
        json={"event_id": event_id, "channels": {"email": False, "sms": False}},
    )

    assert resp.status_code == 422
    assert resp.json()["detail"]["code"] == "NO_CHANNEL_SELECTED"


def test_send_async_queues_celery_task(client: TestClient, monkeypatch):
    event_id = _create_event(client).json()["id"]
    queued = {}

    class _Result:
        id = "task-123"

    def fake_send_task(name, kwargs=None, **options):
        queued["name"] = name
        queued["kwargs"] = kwargs
        return _Result()

    monkeypatch.setattr(celery_app, "send_task", fake_send_task)
    monkeypatch.setattr("doorlist.api.v1.invitations.clear_dispatch_abort", lambda event_id: None)

    resp = client.post(
        "/v1/invitations/send-async",
        json={"event_id": event_id, "filter": "not_invited"},
    )

    assert resp.status_code == 202
    assert resp.json()["task_id"] == "task-123"
    assert queued["name"] == "doorlist.dispatch_invitations"
    assert queued["kwargs"]["filter_name"] == "not_invited"


def test_admin_sweep_endpoint(client: TestClient):
    _create_event(client, date="2000-01-01")

    resp = client.post("/v1/admin/lifecycle/sweep")

    assert resp.status_code == 200
    assert resp.json()["completed"] == 1
    # Long past its retention window, so the same pass archives it too
    assert resp.json()["archived"] == 1


def test_hard_delete_endpoint(client: TestClient):
    event_id = _create_event(client).json()["id"]
    _add_guest(client, event_id)

    resp = client.delete(f"/v1/events/{event_id}")

    assert resp.status_code == 200
    assert resp.json() == {"detached_guests": 1}
    assert client.get(f"/v1/events/{event_id}").status_code == 404
