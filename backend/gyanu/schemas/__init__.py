"""Pydantic schemas for API request/response validation."""

from gyanu.schemas.admin import (
    BulkChapterStatusRequest,
    BulkChapterStatusResponse,
    RoleUpdateRequest,
    RoleUpdateResult,
)
from gyanu.schemas.conversations import (
    ContextQueryRequest,
    ContextResponse,
    ConversationCreateRequest,
    ConversationListResponse,
    ConversationResponse,
    ConversationWithMessages,
    MessageCreateRequest,
    MessageResponse,
)

__all__ = [
    # Admin
    "BulkChapterStatusRequest",
    "BulkChapterStatusResponse",
    "RoleUpdateRequest",
    "RoleUpdateResult",
    # Conversations
    "ContextQueryRequest",
    "ContextResponse",
    "ConversationCreateRequest",
    "ConversationListResponse",
    "ConversationResponse",
    "ConversationWithMessages",
    "MessageCreateRequest",
    "MessageResponse",
]
