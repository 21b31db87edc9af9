"""
HTTP surface tests for /api/v1/conversations.

Covers the envelope on success and failure, authentication, participant
checks, validation and the get-or-create status codes.
"""

from datetime import datetime, timedelta, timezone

import pytest

from app.models.message import Message
from conftest import auth_header

MISSING_ID = "01HZZZZZZZZZZZZZZZZZZZZZZZ"
BASE = "/api/v1/conversations"


class TestAuthentication:
    def test_missing_token_is_401(self, client):
        response = client.get(BASE)

        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["code"] == "NOT_AUTHENTICATED"

    def test_invalid_token_is_401(self, client):
        response = client.get(BASE, headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401
        assert response.json()["code"] == "INVALID_TOKEN"

    def test_unsupported_role_is_401(self, client):
        response = client.get(BASE, headers=auth_header("admin-1", "admin"))

        assert response.status_code == 401
        assert response.json()["code"] == "INVALID_ROLE"


class TestCreateConversation:
    def test_create_then_reuse(self, client, buyer, manufacturer, buyer_headers, manufacturer_headers):
        payload = {"buyerId": buyer.user_id, "manufacturerId": manufacturer.user_id}

        first = client.post(BASE, json=payload, headers=buyer_headers)
        second = client.post(BASE, json=payload, headers=manufacturer_headers)

        assert first.status_code == 201
        assert second.status_code == 200
        first_data = first.json()["data"]
        assert first.json()["success"] is True
        assert first_data["created"] is True
        assert second.json()["data"]["created"] is False
        assert first_data["conversation"]["id"] == second.json()["data"]["conversation"]["id"]
        assert first_data["conversation"]["last_message_at"] is None

    def test_missing_fields_is_400(self, client, buyer, buyer_headers):
        response = client.post(BASE, json={"buyerId": buyer.user_id}, headers=buyer_headers)

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Validation failed"
        assert any(error["field"] == "manufacturerId" for error in body["errors"])

    def test_third_party_is_403(self, client, buyer, manufacturer, other_buyer_headers):
        response = client.post(
            BASE,
            json={"buyerId": buyer.user_id, "manufacturerId": manufacturer.user_id},
            headers=other_buyer_headers,
        )

        assert response.status_code == 403
        assert response.json()["success"] is False


class TestConversationAccess:
    def test_get_conversation(self, client, conversation, manufacturer_headers):
        response = client.get(f"{BASE}/{conversation.id}", headers=manufacturer_headers)

        assert response.status_code == 200
        assert response.json()["data"]["id"] == conversation.id

    def test_unknown_conversation_is_404(self, client, buyer_headers):
        response = client.get(f"{BASE}/{MISSING_ID}", headers=buyer_headers)

        assert response.status_code == 404
        assert response.json()["code"] == "CONVERSATION_NOT_FOUND"

    def test_malformed_id_is_400(self, client, buyer_headers):
        response = client.get(f"{BASE}/not-a-ulid", headers=buyer_headers)

        assert response.status_code == 400

    @pytest.mark.parametrize(
        "method,suffix",
        [
            ("get", ""),
            ("get", "/messages"),
            ("post", "/read"),
        ],
    )
    def test_non_participant_is_403(self, client, conversation, other_buyer_headers, method, suffix):
        response = getattr(client, method)(f"{BASE}/{conversation.id}{suffix}", headers=other_buyer_headers)

        assert response.status_code == 403
        assert response.json() == {
            "success": False,
            "message": "You are not a participant of this conversation",
            "code": "NOT_PARTICIPANT",
            "details": {"conversation_id": conversation.id},
        }

    def test_archive_and_filter(self, client, conversation, buyer_headers):
        archived = client.patch(
            f"{BASE}/{conversation.id}/archive", json={"archived": True}, headers=buyer_headers
        )
        active = client.get(BASE, params={"archived": "false"}, headers=buyer_headers)
        archived_list = client.get(BASE, params={"archived": "true"}, headers=buyer_headers)

        assert archived.status_code == 200
        assert archived.json()["data"]["is_archived"] is True
        assert active.json()["data"]["conversations"] == []
        assert [c["id"] for c in archived_list.json()["data"]["conversations"]] == [conversation.id]


class TestSendMessage:
    def test_send_returns_stored_message(self, client, conversation, buyer, buyer_headers):
        response = client.post(
            f"{BASE}/{conversation.id}/messages",
            json={"body": "<p>Need 500 pcs</p>", "clientTempId": "tmp-1", "requirementId": "req_9"},
            headers=buyer_headers,
        )

        assert response.status_code == 201
        message = response.json()["data"]
        assert message["body"] == "Need 500 pcs"
        assert message["sender_id"] == buyer.user_id
        assert message["sender_role"] == "buyer"
        assert message["client_temp_id"] == "tmp-1"
        assert message["is_read"] is False
        assert message["thread"] == {"type": "requirement", "id": "req_9"}
        assert message["attachments"] == []

    def test_empty_message_is_400(self, client, db, conversation, buyer_headers):
        response = client.post(
            f"{BASE}/{conversation.id}/messages", json={"body": "  <br>  "}, headers=buyer_headers
        )

        assert response.status_code == 400
        assert response.json()["code"] == "EMPTY_MESSAGE"
        assert db.query(Message).count() == 0

    def test_attachments_are_returned(self, client, conversation, manufacturer_headers):
        response = client.post(
            f"{BASE}/{conversation.id}/messages",
            json={
                "attachments": [
                    {
                        "url": "https://cdn.example.com/swatch.jpg",
                        "mimeType": "image/jpeg",
                        "originalName": "swatch.jpg",
                        "size": 52344,
                    }
                ]
            },
            headers=manufacturer_headers,
        )

        assert response.status_code == 201
        attachment = response.json()["data"]["attachments"][0]
        assert attachment["file_url"] == "https://cdn.example.com/swatch.jpg"
        assert attachment["file_type"] == "image"
        assert attachment["size_bytes"] == 52344


class TestMessageHistory:
    def test_ascending_page_with_cursor(
        self, client, conversation, buyer, manufacturer, add_message, buyer_headers
    ):
        base = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        messages = [
            add_message(conversation, buyer if i % 2 else manufacturer, f"m{i}", created_at=base + timedelta(minutes=i))
            for i in range(4)
        ]

        full = client.get(f"{BASE}/{conversation.id}/messages", headers=buyer_headers)
        page = client.get(
            f"{BASE}/{conversation.id}/messages",
            params={"before": messages[3].created_at.isoformat(), "limit": 2},
            headers=buyer_headers,
        )

        assert [m["body"] for m in full.json()["data"]["messages"]] == ["m0", "m1", "m2", "m3"]
        assert full.json()["data"]["has_more"] is False
        assert [m["body"] for m in page.json()["data"]["messages"]] == ["m1", "m2"]
        assert page.json()["data"]["has_more"] is True

    def test_limit_above_maximum_is_400(self, client, conversation, buyer_headers):
        response = client.get(
            f"{BASE}/{conversation.id}/messages", params={"limit": 101}, headers=buyer_headers
        )

        assert response.status_code == 400

    def test_thread_routes(self, client, conversation, buyer, add_message, buyer_headers):
        add_message(conversation, buyer, "general")
        add_message(conversation, buyer, "req", context_type="requirement", context_id="req_1")
        add_message(conversation, buyer, "design", context_type="ai_design", context_id="ds_1")

        requirement = client.get(
            f"{BASE}/{conversation.id}/messages/requirement/req_1", headers=buyer_headers
        )
        design = client.get(f"{BASE}/{conversation.id}/messages/ai-design/ds_1", headers=buyer_headers)
        by_query = client.get(
            f"{BASE}/{conversation.id}/messages", params={"aiDesignId": "ds_1"}, headers=buyer_headers
        )

        assert [m["body"] for m in requirement.json()["data"]["messages"]] == ["req"]
        assert [m["body"] for m in design.json()["data"]["messages"]] == ["design"]
        assert [m["body"] for m in by_query.json()["data"]["messages"]] == ["design"]


class TestMarkRead:
    def test_mark_read_counts_and_is_idempotent(
        self, client, conversation, manufacturer, add_message, buyer_headers
    ):
        add_message(conversation, manufacturer, "a", created_at=datetime(2024, 5, 1, tzinfo=timezone.utc))
        add_message(conversation, manufacturer, "b", created_at=datetime(2024, 5, 2, tzinfo=timezone.utc))

        first = client.post(f"{BASE}/{conversation.id}/read", headers=buyer_headers)
        second = client.post(f"{BASE}/{conversation.id}/read", json={}, headers=buyer_headers)

        assert first.status_code == 200
        assert first.json() == {"success": True, "data": {"updated": 2}}
        assert second.json()["data"]["updated"] == 0

    def test_up_to_limits_the_cutoff(self, client, conversation, manufacturer, add_message, buyer_headers):
        add_message(conversation, manufacturer, "a", created_at=datetime(2024, 5, 1, tzinfo=timezone.utc))
        add_message(conversation, manufacturer, "b", created_at=datetime(2024, 5, 3, tzinfo=timezone.utc))

        response = client.post(
            f"{BASE}/{conversation.id}/read",
            json={"upTo": "2024-05-02T00:00:00Z"},
            headers=buyer_headers,
        )

        assert response.json()["data"]["updated"] == 1


class TestConversationList:
    def test_list_is_enriched(
        self, client, conversation, buyer, manufacturer, profiles, add_message, buyer_headers
    ):
        add_message(conversation, manufacturer, "Sample shipped")

        response = client.get(BASE, headers=buyer_headers)

        assert response.status_code == 200
        items = response.json()["data"]["conversations"]
        assert len(items) == 1
        item = items[0]
        assert item["id"] == conversation.id
        assert item["last_message_text"] == "Sample shipped"
        assert item["unread_count"] == 1
        assert item["peer"] == {
            "id": manufacturer.user_id,
            "role": "manufacturer",
            "displayName": "Tiruppur Knits",
            "online": False,
        }

    def test_search_is_validated(self, client, buyer_headers):
        response = client.get(BASE, params={"search": "x" * 201}, headers=buyer_headers)

        assert response.status_code == 400


class TestInfrastructure:
    def test_health(self, client):
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["realtime"] is True
        assert body["online_users"] == 0

    def test_metrics(self, client, conversation, buyer_headers):
        client.post(f"{BASE}/{conversation.id}/messages", json={"body": "hi"}, headers=buyer_headers)

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]
