"""
SQLAlchemy 2.0 Models for Gyanu.

Uses modern declarative syntax with Mapped[] type annotations.
Column types stay portable (string ids, JSON with a JSONB variant) so the
same models run on Postgres in production and SQLite in tests.
"""

from datetime import datetime, timezone
from enum import Enum as PyEnum
from typing import Any, Optional
from uuid import uuid4

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gyanu.db.base import Base


def new_id() -> str:
    return str(uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on read)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


JSONType = JSON().with_variant(JSONB(), "postgresql")


# =============================================================================
# ENUMS
# =============================================================================


class ChapterStatus(str, PyEnum):
    """Publication status of a chapter."""

    DRAFT = "draft"
    PUBLISHED = "published"


class MessageRole(str, PyEnum):
    """Author of a conversation message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


# =============================================================================
# MODELS
# =============================================================================


class Profile(Base):
    """
    Per-identity profile row.

    `id` equals the identity provider's user id. `role` is plain text
    because the store does not guarantee it holds a valid role; readers
    validate it with `is_valid_role` before trusting it.
    """

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    role: Mapped[str] = mapped_column(String(32), nullable=False, default="student")
    display_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    conversations: Mapped[list["Conversation"]] = relationship(
        "Conversation", back_populates="user", cascade="all, delete-orphan"
    )


class Chapter(Base):
    """Course chapter; only `status` is mutated by this service."""

    __tablename__ = "chapters"
    __table_args__ = (
        CheckConstraint("status IN ('draft', 'published')", name="valid_chapter_status"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=ChapterStatus.DRAFT.value)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class Conversation(Base):
    """
    Tutoring conversation owned by one user.

    `updated_at` tracks the `created_at` of the newest message.
    """

    __tablename__ = "conversations"
    __table_args__ = (Index("idx_conversations_user_updated", "user_id", "updated_at"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    chapter_id: Mapped[Optional[str]] = mapped_column(
        String(64), ForeignKey("chapters.id", ondelete="SET NULL"), nullable=True, index=True
    )
    title: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    message_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    user: Mapped["Profile"] = relationship("Profile", back_populates="conversations")
    messages: Mapped[list["Message"]] = relationship(
        "Message",
        back_populates="conversation",
        cascade="all, delete-orphan",
    )


class Message(Base):
    """
    Immutable conversation message.

    Ordered within its conversation by (created_at, seq); `seq` is the
    insertion sequence and breaks timestamp ties.
    """

    __tablename__ = "messages"
    __table_args__ = (
        UniqueConstraint("conversation_id", "seq", name="unique_conversation_seq"),
        Index("idx_messages_conversation_order", "conversation_id", "created_at", "seq"),
        CheckConstraint("role IN ('user', 'assistant', 'system')", name="valid_message_role"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    conversation_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False
    )
    seq: Mapped[int] = mapped_column(Integer, nullable=False)
    role: Mapped[str] = mapped_column(String(16), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    # "metadata" is reserved on declarative classes
    metadata_: Mapped[dict[str, Any]] = mapped_column("metadata", JSONType, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    conversation: Mapped["Conversation"] = relationship("Conversation", back_populates="messages")
    embeddings: Mapped[list["MessageEmbedding"]] = relationship(
        "MessageEmbedding", back_populates="message", cascade="all, delete-orphan"
    )


class MessageEmbedding(Base):
    """
    Embedding of a message (or one chunk of it).

    Rows are only written after a successful embedding call.
    """

    __tablename__ = "message_embeddings"
    __table_args__ = (
        UniqueConstraint("message_id", "chunk_index", name="unique_message_chunk"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    message_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("messages.id", ondelete="CASCADE"), nullable=False, index=True
    )
    chunk_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    embedding: Mapped[list[float]] = mapped_column(JSONType, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    message: Mapped["Message"] = relationship("Message", back_populates="embeddings")
