"""
Tests for ChatSocketSession event handling.

Handlers run against a real SQLite session factory; publishing goes to a
recording publisher so the fan-out can be asserted without a broadcaster.
"""

import pytest

from app.core.enums import ConnectionState
from app.models.message import Message
from app.services.messaging.presence import PresenceRegistry
from app.services.messaging.socket_session import ChatSocketSession


class RecordingPublisher:
    def __init__(self):
        self.published = []

    async def publish(self, room, event):
        self.published.append((room, event))

    def events(self, name):
        return [(room, event) for room, event in self.published if event["event"] == name]


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def presence():
    return PresenceRegistry()


@pytest.fixture
def make_session(session_factory, presence, publisher):
    def _make(participant):
        return ChatSocketSession(participant, session_factory, presence, publisher=publisher)

    return _make


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_open_announces_online(self, make_session, buyer, presence, publisher):
        session = make_session(buyer)
        assert session.rooms == [f"user:{buyer.user_id}", "role:buyer", "presence"]

        session.mark_authenticated()
        await session.open()

        assert session.state == ConnectionState.ACTIVE
        assert presence.is_online(buyer.user_id)
        assert publisher.published[0][0] == "presence"
        assert publisher.published[0][1]["data"] == {"userId": buyer.user_id, "online": True}

    @pytest.mark.asyncio
    async def test_offline_announced_only_after_last_connection(
        self, make_session, buyer, presence, publisher
    ):
        first = make_session(buyer)
        second = make_session(buyer)
        await first.open()
        await second.open()

        await first.close()
        assert publisher.events("presence")[-1][1]["data"]["online"] is True
        assert presence.is_online(buyer.user_id)

        await second.close()
        assert publisher.events("presence")[-1][1]["data"] == {"userId": buyer.user_id, "online": False}
        assert not presence.is_online(buyer.user_id)

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, make_session, buyer, presence, publisher):
        session = make_session(buyer)
        await session.open()

        await session.close()
        await session.close()

        assert len(publisher.events("presence")) == 2
        assert presence.connection_count(buyer.user_id) == 0

    @pytest.mark.asyncio
    async def test_events_before_open_are_ignored(self, make_session, buyer, conversation, publisher):
        session = make_session(buyer)

        await session.handle({"event": "typing:start", "data": {"conversationId": conversation.id}})

        assert publisher.published == []


class TestClientEvents:
    @pytest.mark.asyncio
    async def test_typing_goes_to_both_participants(
        self, make_session, buyer, manufacturer, conversation, publisher
    ):
        session = make_session(buyer)
        await session.open()

        await session.handle({"event": "typing:start", "data": {"conversationId": conversation.id}})
        await session.handle({"event": "typing:stop", "data": {"conversationId": conversation.id}})

        typing = publisher.events("typing")
        assert [room for room, _ in typing] == [
            f"user:{buyer.user_id}",
            f"user:{manufacturer.user_id}",
        ] * 2
        assert [event["data"]["isTyping"] for _, event in typing] == [True, True, False, False]

    @pytest.mark.asyncio
    async def test_unauthorized_typing_is_dropped(
        self, make_session, other_buyer, conversation, publisher
    ):
        session = make_session(other_buyer)
        await session.open()

        await session.handle({"event": "typing:start", "data": {"conversationId": conversation.id}})

        assert publisher.events("typing") == []

    @pytest.mark.asyncio
    async def test_send_from_non_participant_is_dropped(
        self, make_session, db, other_buyer, conversation, publisher
    ):
        session = make_session(other_buyer)
        await session.open()

        await session.handle(
            {"event": "message:send", "data": {"conversationId": conversation.id, "body": "hi there"}}
        )

        assert db.query(Message).count() == 0
        assert publisher.events("message:new") == []

    @pytest.mark.asyncio
    async def test_read_from_non_participant_is_dropped(
        self, make_session, db, manufacturer, other_buyer, conversation, add_message, publisher
    ):
        message = add_message(conversation, manufacturer, "quote attached")
        session = make_session(other_buyer)
        await session.open()

        await session.handle({"event": "message:read", "data": {"conversationId": conversation.id}})

        db.expire_all()
        assert db.get(Message, message.id).is_read is False
        assert publisher.events("message:read") == []

    @pytest.mark.asyncio
    async def test_invalid_and_unknown_frames_are_dropped(self, make_session, buyer, publisher):
        session = make_session(buyer)
        await session.open()
        before = len(publisher.published)

        await session.handle({"event": "typing:start", "data": {}})
        await session.handle({"event": "typing:start", "data": {"conversationId": "missing"}})
        await session.handle({"event": "room:join", "data": {"room": "user:someone"}})
        await session.handle(["not", "a", "frame"])
        await session.handle({"data": {}})

        assert len(publisher.published) == before

    @pytest.mark.asyncio
    async def test_send_persists_and_fans_out(
        self, make_session, db, buyer, manufacturer, conversation, publisher
    ):
        session = make_session(manufacturer)
        await session.open()

        await session.handle(
            {
                "event": "message:send",
                "data": {
                    "conversationId": conversation.id,
                    "body": "Sample ready",
                    "clientTempId": "tmp-42",
                },
            }
        )

        stored = db.query(Message).filter(Message.conversation_id == conversation.id).all()
        assert [m.body for m in stored] == ["Sample ready"]
        new = publisher.events("message:new")
        assert [room for room, _ in new] == [f"user:{buyer.user_id}", f"user:{manufacturer.user_id}"]
        assert new[0][1]["data"]["message"]["client_temp_id"] == "tmp-42"

    @pytest.mark.asyncio
    async def test_empty_send_is_dropped(self, make_session, db, buyer, conversation, publisher):
        session = make_session(buyer)
        await session.open()

        await session.handle(
            {"event": "message:send", "data": {"conversationId": conversation.id, "body": "   "}}
        )

        assert db.query(Message).count() == 0
        assert publisher.events("message:new") == []

    @pytest.mark.asyncio
    async def test_read_marks_and_emits_receipt(
        self, make_session, db, buyer, manufacturer, conversation, add_message, publisher
    ):
        message = add_message(conversation, manufacturer, "quote attached")
        session = make_session(buyer)
        await session.open()

        await session.handle({"event": "message:read", "data": {"conversationId": conversation.id}})

        db.expire_all()
        assert db.get(Message, message.id).is_read is True
        receipts = publisher.events("message:read")
        assert len(receipts) == 2
        assert receipts[0][1]["data"]["readerUserId"] == buyer.user_id
