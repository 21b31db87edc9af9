"""
Tests for the /api/v1/ws live transport.

Runs on the in-memory broadcaster started by the application lifespan.
Each socket first receives presence frames (its own included), so
assertions read until the frame they care about.
"""

from typing import Any, Dict

import pytest
from starlette.websockets import WebSocketDisconnect

from app.core.constants import REALTIME_PATH
from conftest import make_token

WS_PATH = REALTIME_PATH


def _receive_event(ws, name: str, attempts: int = 10) -> Dict[str, Any]:
    for _ in range(attempts):
        frame = ws.receive_json()
        if frame["event"] == name:
            return frame
    raise AssertionError(f"no {name} frame received")


class TestHandshake:
    def test_missing_token_is_rejected(self, client):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect(WS_PATH):
                pass

        assert exc_info.value.code == 4401

    def test_invalid_token_is_rejected(self, client):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect(f"{WS_PATH}?token=garbage"):
                pass

        assert exc_info.value.code == 4401

    def test_query_token_connects_and_announces_presence(self, client, buyer):
        token = make_token(buyer.user_id, "buyer")

        with client.websocket_connect(f"{WS_PATH}?token={token}") as ws:
            frame = _receive_event(ws, "presence")
            health = client.get("/api/v1/health").json()

        assert frame["data"] == {"userId": buyer.user_id, "online": True}
        assert frame["schema_version"] == 1
        assert health["online_users"] == 1

    def test_authorization_header_connects(self, client, manufacturer, manufacturer_headers):
        with client.websocket_connect(WS_PATH, headers=manufacturer_headers) as ws:
            frame = _receive_event(ws, "presence")

        assert frame["data"]["userId"] == manufacturer.user_id


class TestLiveEvents:
    def test_http_send_reaches_the_other_participant(
        self, client, conversation, manufacturer_headers, buyer_headers
    ):
        with client.websocket_connect(WS_PATH, headers=manufacturer_headers) as ws:
            _receive_event(ws, "presence")
            sent = client.post(
                f"/api/v1/conversations/{conversation.id}/messages",
                json={"body": "Can you do 500 pcs?", "clientTempId": "tmp-7"},
                headers=buyer_headers,
            )
            frame = _receive_event(ws, "message:new")

        assert sent.status_code == 201
        message = frame["data"]["message"]
        assert message["id"] == sent.json()["data"]["id"]
        assert message["client_temp_id"] == "tmp-7"
        assert frame["data"]["conversationSummary"]["last_message_text"] == "Can you do 500 pcs?"

    def test_socket_send_is_echoed_to_sender(self, client, conversation, buyer_headers):
        with client.websocket_connect(WS_PATH, headers=buyer_headers) as ws:
            _receive_event(ws, "presence")
            ws.send_json(
                {
                    "event": "message:send",
                    "data": {"conversationId": conversation.id, "body": "hello", "clientTempId": "t1"},
                }
            )
            frame = _receive_event(ws, "message:new")

        assert frame["data"]["message"]["body"] == "hello"
        assert frame["data"]["message"]["client_temp_id"] == "t1"

    def test_malformed_frames_keep_the_connection_open(self, client, conversation, buyer_headers):
        with client.websocket_connect(WS_PATH, headers=buyer_headers) as ws:
            _receive_event(ws, "presence")
            ws.send_bytes(b"\x00\x01garbage")
            ws.send_text("{not json")
            ws.send_json(
                {
                    "event": "message:send",
                    "data": {"conversationId": conversation.id, "body": "still here", "clientTempId": "t2"},
                }
            )
            frame = _receive_event(ws, "message:new")

        assert frame["data"]["message"]["body"] == "still here"
        assert frame["data"]["message"]["client_temp_id"] == "t2"

    def test_typing_is_relayed(self, client, conversation, buyer, buyer_headers, manufacturer_headers):
        with client.websocket_connect(WS_PATH, headers=manufacturer_headers) as manufacturer_ws:
            _receive_event(manufacturer_ws, "presence")
            with client.websocket_connect(WS_PATH, headers=buyer_headers) as buyer_ws:
                _receive_event(buyer_ws, "presence")
                buyer_ws.send_json({"event": "typing:start", "data": {"conversationId": conversation.id}})
                frame = _receive_event(manufacturer_ws, "typing")

        assert frame["data"] == {
            "conversationId": conversation.id,
            "userId": buyer.user_id,
            "isTyping": True,
        }

    def test_read_receipt_reaches_sender(
        self, client, conversation, manufacturer, add_message, buyer_headers, manufacturer_headers
    ):
        add_message(conversation, manufacturer, "quote attached")

        with client.websocket_connect(WS_PATH, headers=manufacturer_headers) as ws:
            _receive_event(ws, "presence")
            client.post(f"/api/v1/conversations/{conversation.id}/read", headers=buyer_headers)
            frame = _receive_event(ws, "message:read")

        assert frame["data"]["conversationId"] == conversation.id
        assert frame["data"]["readerUserId"] != manufacturer.user_id
