"""Integration smoke tests for the REST and WebSocket API (in-memory store via dependency override)."""
from __future__ import annotations

import uuid

import jwt
import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from chat_sync.api.deps import Realtime, get_realtime, get_store
from chat_sync.app import create_app
from chat_sync.config import settings
from tests.conftest import (
    ALICE_ID,
    BOB_ID,
    CAROL_ID,
    FakeBroadcast,
    FakeChangeFeed,
    FakeStore,
    make_conversation,
    make_message,
)


def _make_token(sub: uuid.UUID = ALICE_ID) -> str:
    return jwt.encode(
        {"sub": str(sub), "email": "alice@example.com"},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )


def _auth(sub: uuid.UUID = ALICE_ID) -> dict[str, str]:
    return {"Authorization": f"Bearer {_make_token(sub)}"}


@pytest.fixture
def store() -> FakeStore:
    store = FakeStore()
    store.add_profile(ALICE_ID, "Alice")
    store.add_profile(BOB_ID, "Bob")
    store.add_profile(CAROL_ID, "Carol")
    return store


@pytest.fixture
def client(store):
    app = create_app()
    realtime = Realtime(change_feed=FakeChangeFeed(), broadcast=FakeBroadcast())
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_realtime] = lambda: realtime
    return TestClient(app, raise_server_exceptions=False)


def test_healthz(client):
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_missing_session_returns_login_url(client):
    resp = client.get("/api/v1/chat/conversations")
    assert resp.status_code == 401
    assert resp.json() == {"detail": "Login required", "login_url": settings.LOGIN_URL}


def test_forged_token_is_unauthenticated(client):
    bad = jwt.encode({"sub": str(ALICE_ID)}, "x" * 40, algorithm="HS256")
    resp = client.get("/api/v1/chat/conversations", headers={"Authorization": f"Bearer {bad}"})
    assert resp.status_code == 401


def test_list_conversations_only_mine(client, store):
    mine = store.add_conversation(make_conversation(name="ours"), [ALICE_ID, BOB_ID])
    store.add_conversation(make_conversation(name="theirs"), [BOB_ID, CAROL_ID])

    resp = client.get("/api/v1/chat/conversations", headers=_auth())

    assert resp.status_code == 200
    assert [c["id"] for c in resp.json()] == [str(mine.id)]


def test_create_direct_conversation(client, store):
    resp = client.post(
        "/api/v1/chat/conversations/direct",
        json={"user_id": str(BOB_ID)},
        headers=_auth(),
    )

    assert resp.status_code == 201
    body = resp.json()
    assert body["name"] == "Bob"
    assert body["is_group"] is False
    assert len(store.membership_rows) == 2


def test_create_direct_with_self_is_rejected(client):
    resp = client.post(
        "/api/v1/chat/conversations/direct",
        json={"user_id": str(ALICE_ID)},
        headers=_auth(),
    )
    assert resp.status_code == 422


def test_create_group_requires_name(client, store):
    resp = client.post(
        "/api/v1/chat/conversations/group",
        json={"name": " ", "member_ids": [str(BOB_ID)]},
        headers=_auth(),
    )
    assert resp.status_code == 422
    assert resp.json()["detail"] == "Please enter a group name"
    assert store.conversation_rows == {}


def test_create_group_conversation(client):
    resp = client.post(
        "/api/v1/chat/conversations/group",
        json={"name": "team", "member_ids": [str(BOB_ID), str(CAROL_ID)]},
        headers=_auth(),
    )
    assert resp.status_code == 201
    assert resp.json()["is_group"] is True


def test_membership_write_failure_is_bad_gateway(client, store):
    store.fail_persist.add("membership")
    resp = client.post(
        "/api/v1/chat/conversations/direct",
        json={"user_id": str(BOB_ID)},
        headers=_auth(),
    )
    assert resp.status_code == 502


def test_list_messages(client, store):
    conv = store.add_conversation(make_conversation(), [ALICE_ID, BOB_ID])
    msg = make_message(conversation_id=conv.id, content="hi")
    store.message_rows.append(msg)

    resp = client.get(f"/api/v1/chat/conversations/{conv.id}/messages", headers=_auth())

    assert resp.status_code == 200
    [item] = resp.json()
    assert item["id"] == str(msg.id)
    assert item["state"] == "confirmed"


def test_list_messages_forbidden_for_non_member(client, store):
    conv = store.add_conversation(make_conversation(), [BOB_ID, CAROL_ID])
    resp = client.get(f"/api/v1/chat/conversations/{conv.id}/messages", headers=_auth())
    assert resp.status_code == 403


def test_store_outage_is_bad_gateway(client, store):
    store.fail_fetch = True
    resp = client.get("/api/v1/chat/conversations", headers=_auth())
    assert resp.status_code == 502


def test_search_profiles(client):
    resp = client.get("/api/v1/chat/profiles", params={"q": "bo"}, headers=_auth())
    assert resp.status_code == 200
    assert [p["display_name"] for p in resp.json()] == ["Bob"]


def test_ws_without_session_closes_with_login_code(client):
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/ws/chat") as ws:
            ws.receive_json()
    assert exc_info.value.code == 4001


def test_ws_snapshot_and_ping(client, store):
    store.add_conversation(make_conversation(), [ALICE_ID, BOB_ID])

    with client.websocket_connect(f"/ws/chat?token={_make_token()}") as ws:
        first = ws.receive_json()
        assert first["type"] == "conversations.snapshot"
        assert first["data"]["status"] == "ready"
        assert len(first["data"]["conversations"]) == 1

        ws.send_json({"type": "ping"})
        assert ws.receive_json()["type"] == "pong"


def test_ws_open_and_send(client, store):
    conv = store.add_conversation(make_conversation(), [ALICE_ID, BOB_ID])

    with client.websocket_connect(f"/ws/chat?token={_make_token()}") as ws:
        ws.receive_json()

        ws.send_json({"type": "conversation.open", "data": {"conversation_id": str(conv.id)}})
        assert ws.receive_json() == {
            "type": "navigate", "data": {"conversation_id": str(conv.id)},
        }
        loaded = ws.receive_json()
        assert loaded["type"] == "messages.snapshot"
        assert loaded["data"]["messages"] == []

        ws.send_json({"type": "message.send", "data": {"content": "hello"}})
        pending = ws.receive_json()
        confirmed = ws.receive_json()

    assert [m["state"] for m in pending["data"]["messages"]] == ["pending"]
    assert [m["state"] for m in confirmed["data"]["messages"]] == ["confirmed"]
    assert [m.content for m in store.message_rows] == ["hello"]


def test_ws_errors_do_not_close_socket(client, store):
    foreign = store.add_conversation(make_conversation(), [BOB_ID, CAROL_ID])

    with client.websocket_connect(f"/ws/chat?token={_make_token()}") as ws:
        ws.receive_json()

        ws.send_json({"type": "conversation.open", "data": {"conversation_id": str(foreign.id)}})
        error = ws.receive_json()
        assert error["type"] == "error"
        assert error["data"]["code"] == "forbidden_error"

        ws.send_json({"type": "message.send", "data": {}})
        assert ws.receive_json()["data"]["code"] == "invalid_data"

        ws.send_text("not json")
        assert ws.receive_json()["data"]["code"] == "invalid_payload"

        ws.send_json({"type": "ping"})
        assert ws.receive_json()["type"] == "pong"


def test_list_messages_unknown_conversation(client):
    resp = client.get(f"/api/v1/chat/conversations/{uuid.uuid4()}/messages", headers=_auth())
    assert resp.status_code == 404


def test_list_conversations_filters_by_name(client, store):
    store.add_conversation(make_conversation(name="Design Review"), [ALICE_ID, BOB_ID])
    store.add_conversation(make_conversation(name="lunch"), [ALICE_ID, CAROL_ID])

    resp = client.get("/api/v1/chat/conversations", params={"q": "DESIGN"}, headers=_auth())

    assert resp.status_code == 200
    assert [c["name"] for c in resp.json()] == ["Design Review"]


def test_repeat_direct_create_reuses_conversation(client, store):
    url = "/api/v1/chat/conversations/direct"
    first = client.post(url, json={"user_id": str(BOB_ID)}, headers=_auth())
    second = client.post(url, json={"user_id": str(BOB_ID)}, headers=_auth())

    assert first.status_code == 201
    assert second.status_code == 200
    assert second.json()["id"] == first.json()["id"]
    assert len(store.conversation_rows) == 1


def test_blank_group_name_rejected_even_when_store_is_down(client, store):
    store.fail_fetch = True
    resp = client.post(
        "/api/v1/chat/conversations/group",
        json={"name": "   ", "member_ids": [str(BOB_ID)]},
        headers=_auth(),
    )
    assert resp.status_code == 422
