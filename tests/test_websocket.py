import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect


@pytest.fixture
def client(api_app):
    with TestClient(api_app) as test_client:
        yield test_client


def start_conversation(client, sponsor, creator):
    client.put("/users/me", json={"name": "Travel Vlogger", "email": "travelvlog@example.com"}, headers=creator)
    response = client.post("/conversations", json={"other_user_id": "u2"}, headers=sponsor)
    assert response.status_code == 201
    return response.json()


def test_socket_requires_identity(client):
    with pytest.raises(WebSocketDisconnect) as excinfo:
        with client.websocket_connect("/messages/ws") as ws:
            ws.receive_text()
    assert excinfo.value.code == 4401


def test_receiver_gets_message_events(client, identity_headers):
    sponsor = identity_headers("u1", role="sponsor")
    creator = identity_headers("u2")
    convo = start_conversation(client, sponsor, creator)

    with client.websocket_connect("/messages/ws", headers=creator) as ws:
        # round-trip once so the connection is registered before sending
        ws.send_json({"type": "read", "conversation_id": convo["id"]})
        assert ws.receive_json()["updated"] == 0

        response = client.post(f"/conversations/{convo['id']}/messages", json={"content": "Hello"}, headers=sponsor)
        assert response.status_code == 201
        event = ws.receive_json()

    assert event["type"] == "message"
    assert event["message"]["content"] == "Hello"
    assert event["message"]["conversation_id"] == convo["id"]


def test_send_and_read_over_socket(client, identity_headers):
    sponsor = identity_headers("u1", role="sponsor")
    creator = identity_headers("u2")
    convo = start_conversation(client, sponsor, creator)

    with client.websocket_connect("/messages/ws", headers=sponsor) as ws:
        ws.send_json({"type": "message", "conversation_id": convo["id"], "content": "Rates?", "client_message_id": "ws-1"})
        ack = ws.receive_json()
        assert ack["type"] == "ack"
        assert ack["client_message_id"] == "ws-1"

        ws.send_json({"type": "message", "conversation_id": convo["id"], "content": " "})
        assert ws.receive_json()["type"] == "error"

        ws.send_text("{not json")
        assert ws.receive_json()["detail"] == "Invalid JSON"

    items = client.get("/conversations", headers=creator).json()["items"]
    assert items[0]["unread_count"] == 1

    with client.websocket_connect("/messages/ws", headers=creator) as ws:
        ws.send_json({"type": "read", "conversation_id": convo["id"]})
        assert ws.receive_json() == {"type": "read", "conversation_id": convo["id"], "updated": 1}


def test_malformed_frames_get_error_replies(client, identity_headers):
    sponsor = identity_headers("u1", role="sponsor")
    creator = identity_headers("u2")
    convo = start_conversation(client, sponsor, creator)

    with client.websocket_connect("/messages/ws", headers=sponsor) as ws:
        ws.send_json({"type": "message", "conversation_id": convo["id"], "content": 123})
        error = ws.receive_json()
        assert error["type"] == "error"
        assert error["errors"][0]["loc"] == ["content"]

        ws.send_json({"type": "read"})
        assert ws.receive_json()["type"] == "error"

        ws.send_json(["not", "an", "object"])
        assert ws.receive_json()["detail"] == "Invalid message payload"

        # the socket stays usable after bad frames
        ws.send_json({"type": "message", "conversation_id": convo["id"], "content": "Still here"})
        assert ws.receive_json()["type"] == "ack"
