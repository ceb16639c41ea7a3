"""
Append-only conversation log.

Messages are never updated or deleted through this service; a correction
is a new message. Within a conversation, messages are ordered by
(created_at, seq) and `created_at` never goes backwards.
"""

import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gyanu.db.models import Conversation, Message, MessageRole, as_utc, utcnow
from gyanu.errors import NotFoundError, PersistenceError, ValidationError

logger = logging.getLogger(__name__)

_MESSAGE_ROLES = frozenset(r.value for r in MessageRole)


class ConversationStore:
    """Creates conversations and appends immutable messages."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_conversation(
        self,
        user_id: str,
        chapter_id: str | None = None,
        title: str | None = None,
    ) -> Conversation:
        """Start an empty conversation; created_at and updated_at are identical."""
        now = utcnow()
        conversation = Conversation(
            user_id=user_id,
            chapter_id=chapter_id,
            title=title,
            message_count=0,
            created_at=now,
            updated_at=now,
        )
        self.db.add(conversation)
        try:
            await self.db.flush()
        except SQLAlchemyError as e:
            raise PersistenceError("Failed to create conversation", detail=str(e)) from e
        return conversation

    async def append_message(
        self,
        conversation_id: str,
        role: str,
        content: str,
        metadata: dict[str, Any] | None = None,
    ) -> Message:
        """
        Append a message to the end of a conversation.

        The parent row is locked for the duration of the append so concurrent
        appends to the same conversation get distinct, increasing sequence
        numbers. The new message's timestamp is clamped to be no earlier than
        the previous one, and becomes the conversation's `updated_at`.
        """
        if role not in _MESSAGE_ROLES:
            raise ValidationError(f"Invalid message role: {role!r}")
        if not isinstance(content, str) or not content:
            raise ValidationError("Message content must not be empty")

        try:
            result = await self.db.execute(
                select(Conversation).where(Conversation.id == conversation_id).with_for_update()
            )
            conversation = result.scalar_one_or_none()
            if conversation is None:
                raise NotFoundError("Conversation not found")

            last = (
                await self.db.execute(
                    select(Message.created_at, Message.seq)
                    .where(Message.conversation_id == conversation_id)
                    .order_by(Message.seq.desc())
                    .limit(1)
                )
            ).first()

            created_at = utcnow()
            seq = 1
            if last is not None:
                created_at = max(created_at, as_utc(last.created_at))
                seq = last.seq + 1

            message = Message(
                conversation_id=conversation_id,
                seq=seq,
                role=role,
                content=content,
                metadata_=dict(metadata or {}),
                created_at=created_at,
            )
            self.db.add(message)

            conversation.updated_at = created_at
            conversation.message_count = (conversation.message_count or 0) + 1
            await self.db.flush()
        except SQLAlchemyError as e:
            raise PersistenceError("Failed to add message", detail=str(e)) from e

        return message

    async def get_conversation(self, conversation_id: str, user_id: str | None = None) -> Conversation | None:
        """Fetch a conversation, optionally scoped to its owner."""
        stmt = select(Conversation).where(Conversation.id == conversation_id)
        if user_id is not None:
            stmt = stmt.where(Conversation.user_id == user_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_messages(self, conversation_id: str) -> list[Message]:
        """All messages of a conversation in append order."""
        result = await self.db.execute(
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(Message.created_at.asc(), Message.seq.asc())
        )
        return list(result.scalars().all())

    async def list_user_conversations(
        self,
        user_id: str,
        limit: int = 20,
        offset: int = 0,
        chapter_id: str | None = None,
    ) -> tuple[list[Conversation], int]:
        """A page of the user's conversations, most recently active first, plus the total."""
        filters = [Conversation.user_id == user_id]
        if chapter_id is not None:
            filters.append(Conversation.chapter_id == chapter_id)

        total = (
            await self.db.execute(select(func.count()).select_from(Conversation).where(*filters))
        ).scalar() or 0

        result = await self.db.execute(
            select(Conversation)
            .where(*filters)
            .order_by(Conversation.updated_at.desc(), Conversation.id)
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total
