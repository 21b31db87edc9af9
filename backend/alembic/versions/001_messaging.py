# backend/alembic/versions/001_messaging.py
"""Messaging schema - conversations, messages, attachments, profile views

Revision ID: 001_messaging
Revises:
Create Date: 2026-10-01 00:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_messaging"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _has_table(name: str) -> bool:
    return sa.inspect(op.get_bind()).has_table(name)


def upgrade() -> None:
    """Create messaging tables."""
    print("Creating messaging tables...")

    # Profiles are owned by onboarding; create minimal tables only on a fresh database
    if not _has_table("buyer_profiles"):
        op.create_table(
            "buyer_profiles",
            sa.Column("id", sa.String(64), nullable=False),
            sa.Column("phone_number", sa.String(32), nullable=True),
            sa.Column("full_name", sa.String(255), nullable=True),
            sa.PrimaryKeyConstraint("id"),
        )
    if not _has_table("manufacturer_profiles"):
        op.create_table(
            "manufacturer_profiles",
            sa.Column("id", sa.String(64), nullable=False),
            sa.Column("phone_number", sa.String(32), nullable=True),
            sa.Column("unit_name", sa.String(255), nullable=True),
            sa.PrimaryKeyConstraint("id"),
        )

    print("Creating conversations table...")
    op.create_table(
        "conversations",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("buyer_id", sa.String(64), nullable=False),
        sa.Column("manufacturer_id", sa.String(64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("last_message_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_message_text", sa.Text(), nullable=True),
        sa.Column("is_archived", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("buyer_id", "manufacturer_id", name="uq_conversations_pair"),
        comment="One conversation per buyer-manufacturer pair",
    )
    op.create_index("idx_conversations_buyer", "conversations", ["buyer_id"])
    op.create_index("idx_conversations_manufacturer", "conversations", ["manufacturer_id"])
    op.create_index("idx_conversations_last_message", "conversations", ["last_message_at"])

    print("Creating messages table...")
    op.create_table(
        "messages",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("conversation_id", sa.String(26), nullable=False),
        sa.Column("sender_role", sa.String(20), nullable=False),
        sa.Column("sender_id", sa.String(64), nullable=False),
        sa.Column("body", sa.Text(), nullable=False, server_default=""),
        sa.Column("context_type", sa.String(20), nullable=True),
        sa.Column("context_id", sa.String(64), nullable=True),
        sa.Column("client_temp_id", sa.String(64), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["conversation_id"], ["conversations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "sender_role IN ('buyer', 'manufacturer')", name="ck_messages_sender_role"
        ),
        sa.CheckConstraint(
            "(context_type IS NULL AND context_id IS NULL) "
            "OR (context_type IN ('requirement', 'ai_design') AND context_id IS NOT NULL)",
            name="ck_messages_thread_context",
        ),
    )
    op.create_index(
        "idx_messages_conversation_created", "messages", ["conversation_id", "created_at"]
    )
    op.create_index(
        "idx_messages_thread", "messages", ["conversation_id", "context_type", "context_id"]
    )
    op.create_index("idx_messages_unread", "messages", ["conversation_id", "is_read", "sender_id"])

    print("Creating message_attachments table...")
    op.create_table(
        "message_attachments",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("message_id", sa.String(26), nullable=False),
        sa.Column("file_url", sa.Text(), nullable=False),
        sa.Column("mime_type", sa.String(255), nullable=True),
        sa.Column("size_bytes", sa.BigInteger(), nullable=True),
        sa.Column("file_type", sa.String(20), nullable=True),
        sa.Column("original_name", sa.String(512), nullable=True),
        sa.Column("public_id", sa.String(512), nullable=True),
        sa.Column("thumbnail_url", sa.Text(), nullable=True),
        sa.Column("width", sa.Integer(), nullable=True),
        sa.Column("height", sa.Integer(), nullable=True),
        sa.Column("duration", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["message_id"], ["messages.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_message_attachments_message", "message_attachments", ["message_id"])

    print("Messaging tables created successfully!")


def downgrade() -> None:
    """Drop messaging tables. Profile tables are left to onboarding."""
    print("Dropping messaging tables...")

    op.drop_index("idx_message_attachments_message", table_name="message_attachments")
    op.drop_table("message_attachments")

    op.drop_index("idx_messages_unread", table_name="messages")
    op.drop_index("idx_messages_thread", table_name="messages")
    op.drop_index("idx_messages_conversation_created", table_name="messages")
    op.drop_table("messages")

    op.drop_index("idx_conversations_last_message", table_name="conversations")
    op.drop_index("idx_conversations_manufacturer", table_name="conversations")
    op.drop_index("idx_conversations_buyer", table_name="conversations")
    op.drop_table("conversations")

    print("Messaging tables dropped")
