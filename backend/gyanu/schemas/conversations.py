"""Pydantic schemas for conversations, messages and retrieval."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from gyanu.schemas.base import BaseSchema, IDMixin, TimestampMixin


# Request schemas
class ConversationCreateRequest(BaseModel):
    """Request to start a new conversation."""

    chapter_id: str | None = None
    title: str | None = Field(None, max_length=255)


class MessageCreateRequest(BaseModel):
    """Request to append a message."""

    role: Literal["user", "assistant", "system"] = "user"
    content: str = Field(..., min_length=1, max_length=20000)
    metadata: dict[str, Any] = Field(default_factory=dict)


class ContextQueryRequest(BaseModel):
    """Request for retrieval context relevant to a new question."""

    query: str = Field(..., min_length=1, max_length=10000)
    k: int | None = Field(None, ge=1, le=50)
    scope: Literal["conversation", "user"] = "conversation"


# Response schemas
class MessageResponse(BaseSchema, IDMixin):
    """Conversation message, returned exactly as stored."""

    model_config = ConfigDict(from_attributes=True, str_strip_whitespace=False)

    conversation_id: str
    seq: int
    role: str
    content: str
    metadata: dict[str, Any] = Field(validation_alias="metadata_")
    created_at: datetime


class ConversationResponse(BaseSchema, IDMixin, TimestampMixin):
    """Conversation summary."""

    user_id: str
    chapter_id: str | None = None
    title: str | None = None
    message_count: int


class ConversationWithMessages(ConversationResponse):
    """Conversation with its full message log."""

    messages: list[MessageResponse]


class ConversationListResponse(BaseModel):
    """A page of conversations."""

    conversations: list[ConversationResponse]
    total: int


class RetrievalHitResponse(BaseModel):
    message_id: str
    score: float


class ContextResponse(BaseModel):
    """Assembled retrieval context."""

    context: str
    hits: list[RetrievalHitResponse]
