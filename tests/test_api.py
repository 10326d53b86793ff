"""HTTP-level tests for the FastAPI app."""

import pytest
from fastapi.testclient import TestClient

from bookswap_engine.config import Settings
from bookswap_engine.database.store import MemoryStore
from bookswap_engine.main import create_app

BOB = {"id": "user-bob", "name": "Bob Johnson"}
BOOK = {"id": "book-42", "title": "Calculus"}


@pytest.fixture
def settings():
    return Settings(
        store_backend="memory",
        poll_seconds=30.0,
        notification_probability=0.1,
        dropdown_size=5,
        log_level="INFO",
    )


@pytest.fixture
def app(settings, scheduler, scripted_random):
    return create_app(store=MemoryStore(), scheduler=scheduler, settings=settings, rng=scripted_random())


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


def login(client, user_id="user-alice", name="Alice Smith"):
    response = client.post("/session/login", json={"id": user_id, "name": name})
    assert response.status_code == 200
    return response.json()


# ─────────────────────────────────────────────────────────────────
# Session
# ─────────────────────────────────────────────────────────────────


class TestSession:
    def test_logged_out_by_default(self, client):
        assert client.get("/session").json() == {"logged_in": False, "id": None, "name": None}

    def test_login_starts_event_source(self, client, app):
        login(client)

        assert client.get("/").json()["event_source"] is True
        assert client.get("/session").json()["id"] == "user-alice"

    def test_logout_stops_event_source_and_clears_toasts(self, client, app):
        login(client)
        client.post("/notifications", json={"kind": "system", "message": "hello"})

        client.post("/session/logout")

        assert client.get("/").json()["event_source"] is False
        assert client.get("/notifications/toasts").json() == {"items": []}
        assert client.get("/notifications/badge").json()["visible"] is False

    def test_store_backend_comes_from_settings(self, settings, scheduler, monkeypatch):
        monkeypatch.setenv("STORE_BACKEND", "sqlite")
        app = create_app(settings=settings, scheduler=scheduler)

        with TestClient(app) as client:
            assert isinstance(app.state.engine.store, MemoryStore)
            assert client.get("/session").status_code == 200

    def test_login_validation(self, client):
        assert client.post("/session/login", json={"id": "", "name": "x"}).status_code == 422


# ─────────────────────────────────────────────────────────────────
# Conversations
# ─────────────────────────────────────────────────────────────────


class TestConversations:
    def test_requires_login(self, client):
        response = client.get("/conversations")

        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "NO_USER"

    def test_message_round_trip_between_users(self, client):
        login(client)
        ack = client.post("/conversations", json={"recipient": BOB, "item": BOOK, "body": "is this available?"}).json()["ack"]
        conversation_id = ack["conversation_id"]
        assert ack["message_id"]

        login(client, BOB["id"], BOB["name"])
        listing = client.get("/conversations").json()
        assert listing["unread"] == 1
        assert listing["items"][0]["has_unread"] is True
        assert client.get("/notifications/badge").json()["count"] == 1

        thread = client.get(f"/conversations/{conversation_id}/messages").json()
        assert thread["header"] == "Regarding: Calculus"
        assert thread["messages"][0]["read"] is True
        assert client.get("/conversations").json()["unread"] == 0

    def test_starting_twice_reuses_conversation(self, client):
        login(client)
        first = client.post("/conversations", json={"recipient": BOB, "item": BOOK}).json()["ack"]
        second = client.post("/conversations", json={"recipient": BOB, "item": BOOK}).json()["ack"]

        assert first["conversation_id"] == second["conversation_id"]
        assert first["message_id"] is None

    def test_blank_message(self, client):
        login(client)
        conversation_id = client.post("/conversations", json={"recipient": BOB, "item": BOOK}).json()["ack"]["conversation_id"]

        response = client.post(f"/conversations/{conversation_id}/messages", json={"body": "   "})

        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "EMPTY_BODY"

    def test_unknown_conversation(self, client):
        login(client)

        response = client.post("/conversations/missing/messages", json={"body": "hi"})

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "CONVERSATION_NOT_FOUND"

    def test_messaging_yourself(self, client):
        login(client)

        response = client.post("/conversations", json={"recipient": {"id": "user-alice", "name": "Alice"}, "item": BOOK})

        assert response.status_code == 400

    def test_outsider_cannot_read(self, client):
        login(client)
        conversation_id = client.post("/conversations", json={"recipient": BOB, "item": BOOK, "body": "hi"}).json()["ack"]["conversation_id"]
        login(client, "user-carol", "Carol Davis")

        assert client.get(f"/conversations/{conversation_id}/messages").status_code == 403

    def test_handoff(self, client):
        login(client)
        conversation_id = client.post("/conversations", json={"recipient": BOB, "item": BOOK}).json()["ack"]["conversation_id"]

        missing = client.post(f"/conversations/{conversation_id}/handoff", json={})
        link = client.post(f"/conversations/{conversation_id}/handoff", json={"handle": "+1 555 0100"})

        assert missing.status_code == 409
        assert link.json()["url"] == "https://wa.me/+15550100?text=Hi%2C%20I'm%20interested%20in%20your%20book%3A%20Calculus"


# ─────────────────────────────────────────────────────────────────
# Notifications
# ─────────────────────────────────────────────────────────────────


class TestNotifications:
    def test_intake_requires_user(self, client):
        response = client.post("/notifications", json={"kind": "system", "message": "hello"})

        assert response.status_code == 401

    def test_intake_shows_toast_and_badge(self, client):
        login(client)

        created = client.post("/notifications", json={"kind": "review", "message": "New review"}).json()
        toasts = client.get("/notifications/toasts").json()["items"]

        assert created["icon"] == "fas fa-star"
        assert created["time_label"] == "Just now"
        assert [t["notification_id"] for t in toasts] == [created["id"]]
        assert client.get("/notifications/badge").json() == {"visible": True, "count": 1, "text": "1"}

    def test_toast_times_out(self, client, scheduler):
        login(client)
        client.post("/notifications", json={"kind": "system", "message": "hello"})

        scheduler.advance(6)

        assert client.get("/notifications/toasts").json() == {"items": []}

    def test_dismiss_toast(self, client):
        login(client)
        client.post("/notifications", json={"kind": "system", "message": "hello"})
        toast_id = client.get("/notifications/toasts").json()["items"][0]["id"]

        assert client.post(f"/notifications/toasts/{toast_id}/dismiss").json() == {"dismissed": True}
        assert client.post(f"/notifications/toasts/{toast_id}/dismiss").json() == {"dismissed": False}

    def test_dropdown_marks_seen_not_read(self, client):
        login(client)
        for n in range(3):
            client.post("/notifications", json={"kind": "system", "message": f"note {n}"})

        opened = client.post("/notifications/dropdown/toggle").json()

        assert opened["open"] is True
        assert all(item["seen"] for item in opened["items"])
        assert client.get("/notifications/badge").json()["count"] == 3
        assert client.post("/notifications/dropdown/click", json={"inside": True}).json() == {"open": True}
        assert client.post("/notifications/dropdown/click", json={}).json() == {"open": False}

    def test_filters(self, client):
        login(client)
        first = client.post("/notifications", json={"kind": "message", "message": "m", "payload": {"conversationId": "c1"}}).json()
        client.post("/notifications", json={"kind": "system", "message": "s"})
        client.post(f"/notifications/{first['id']}/read")

        unread = client.get("/notifications", params={"filter": "unread"}).json()
        messages = client.get("/notifications", params={"filter": "message"}).json()

        assert [n["message"] for n in unread["items"]] == ["s"]
        assert [n["message"] for n in messages["items"]] == ["m"]
        assert unread["unread_count"] == 1
        assert client.get("/notifications", params={"filter": "bogus"}).status_code == 400

    def test_click_navigates(self, client):
        login(client)
        created = client.post("/notifications", json={"kind": "message", "message": "m", "payload": {"conversationId": "c1"}}).json()

        result = client.post(f"/notifications/{created['id']}/click").json()

        assert result == {"notification_id": created["id"], "navigate_to": "messages.html?conversation=c1"}
        assert client.get("/notifications/badge").json()["visible"] is False

    def test_read_all(self, client):
        login(client)
        for n in range(12):
            client.post("/notifications", json={"kind": "system", "message": f"note {n}"})
        assert client.get("/notifications/badge").json()["text"] == "9+"

        body = client.post("/notifications/read-all").json()

        assert body["updated"] == 12
        assert body["badge"]["visible"] is False

    def test_mark_unknown_read(self, client):
        login(client)

        response = client.post("/notifications/nope/read")

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "NOTIFICATION_NOT_FOUND"

    def test_notifications_stay_with_their_user(self, client):
        login(client)
        client.post("/notifications", json={"kind": "system", "message": "for alice"})
        login(client, BOB["id"], BOB["name"])

        assert client.get("/notifications").json()["items"] == []
        assert client.get("/notifications/toasts").json() == {"items": []}
