# backend/tests/conftest.py
"""
Pytest configuration for the messaging backend.

Every test gets its own SQLite database file under ``tmp_path`` and the
in-memory broadcaster, so tests never touch a real Postgres or Redis.
"""

import os

# CRITICAL: Set test configuration BEFORE any app imports!
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BROADCAST_URL"] = "memory://"
os.environ["SECRET_KEY"] = "groupo-test-secret-key"
os.environ["ENVIRONMENT"] = "testing"

from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from fastapi.testclient import TestClient
import pytest
from sqlalchemy.orm import Session

from app.auth import create_access_token
from app.core.enums import ParticipantRole
from app.database import Base, build_engine, build_session_factory, get_db, get_session_factory
from app.main import app
from app.models.conversation import Conversation
from app.models.message import Message, MessageAttachment
from app.models.profile import BuyerProfile, ManufacturerProfile
from app.principal import Participant

BUYER_ID = "buyer_01HZX0000000000000000001"
MANUFACTURER_ID = "mfr_01HZX000000000000000000001"
OTHER_BUYER_ID = "buyer_01HZX0000000000000000002"
OTHER_MANUFACTURER_ID = "mfr_01HZX000000000000000000002"


def make_token(user_id: str, role: str) -> str:
    return create_access_token(data={"sub": user_id, "role": role})


def auth_header(user_id: str, role: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id, role)}"}


def _insert_message(
    db: Session,
    conversation: Conversation,
    sender: Participant,
    body: str = "hello",
    created_at: Optional[datetime] = None,
    is_read: bool = False,
    context_type: Optional[str] = None,
    context_id: Optional[str] = None,
    attachments: Optional[list] = None,
) -> Message:
    message = Message(
        conversation_id=conversation.id,
        sender_role=sender.role.value,
        sender_id=sender.user_id,
        body=body,
        is_read=is_read,
        context_type=context_type,
        context_id=context_id,
        created_at=created_at or datetime.now(timezone.utc),
    )
    db.add(message)
    db.flush()
    for data in attachments or []:
        db.add(MessageAttachment(message_id=message.id, **data))
    db.commit()
    return message


# ============================================================================
# Database
# ============================================================================


@pytest.fixture
def test_engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'groupo_test.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> Callable[[], Session]:
    return build_session_factory(test_engine)


@pytest.fixture
def db(session_factory):
    """A session for arranging and asserting state; commit what requests must see."""
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def client(session_factory):
    """Test client with the lifespan running (presence registry + memory broadcaster)."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ============================================================================
# Participants
# ============================================================================


@pytest.fixture
def buyer() -> Participant:
    return Participant(user_id=BUYER_ID, role=ParticipantRole.BUYER)


@pytest.fixture
def manufacturer() -> Participant:
    return Participant(user_id=MANUFACTURER_ID, role=ParticipantRole.MANUFACTURER)


@pytest.fixture
def other_buyer() -> Participant:
    return Participant(user_id=OTHER_BUYER_ID, role=ParticipantRole.BUYER)


@pytest.fixture
def buyer_headers(buyer: Participant) -> Dict[str, str]:
    return auth_header(buyer.user_id, buyer.role.value)


@pytest.fixture
def manufacturer_headers(manufacturer: Participant) -> Dict[str, str]:
    return auth_header(manufacturer.user_id, manufacturer.role.value)


@pytest.fixture
def other_buyer_headers(other_buyer: Participant) -> Dict[str, str]:
    return auth_header(other_buyer.user_id, other_buyer.role.value)


@pytest.fixture
def profiles(db: Session) -> None:
    db.add(BuyerProfile(id=BUYER_ID, phone_number="+919800000001", full_name="Asha Traders"))
    db.add(ManufacturerProfile(id=MANUFACTURER_ID, phone_number="+919800000002", unit_name="Tiruppur Knits"))
    db.commit()


@pytest.fixture
def add_message(db: Session) -> Callable[..., Message]:
    """Insert a message row directly (bypassing the service) and commit."""

    def _add(*args, **kwargs) -> Message:
        return _insert_message(db, *args, **kwargs)

    return _add


@pytest.fixture
def headers_for() -> Callable[[Participant], Dict[str, str]]:
    def _headers(participant: Participant) -> Dict[str, str]:
        return auth_header(participant.user_id, participant.role.value)

    return _headers


@pytest.fixture
def conversation(db: Session, buyer: Participant, manufacturer: Participant) -> Conversation:
    conv = Conversation(buyer_id=buyer.user_id, manufacturer_id=manufacturer.user_id)
    db.add(conv)
    db.commit()
    return conv


@pytest.fixture
def other_manufacturer() -> Participant:
    return Participant(user_id=OTHER_MANUFACTURER_ID, role=ParticipantRole.MANUFACTURER)
