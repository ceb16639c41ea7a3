"""API routes for tutoring conversations and retrieval context."""

import asyncio
import logging

from fastapi import APIRouter, Request, status

from gyanu.api.deps import (
    AppSettings,
    Conversations,
    CurrentIdentity,
    DbSession,
    Embedder,
    Index,
    Indexer,
    SessionFactory,
)
from gyanu.db.models import Conversation
from gyanu.errors import NotFoundError
from gyanu.schemas.conversations import (
    ContextQueryRequest,
    ContextResponse,
    ConversationCreateRequest,
    ConversationListResponse,
    ConversationResponse,
    ConversationWithMessages,
    MessageCreateRequest,
    MessageResponse,
    RetrievalHitResponse,
)
from gyanu.services.conversation_store import ConversationStore
from gyanu.services.retrieval_index import ConversationScope, UserScope, assemble_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/conversations", tags=["conversations"])


async def _owned_conversation_or_404(
    store: ConversationStore, conversation_id: str, user_id: str
) -> Conversation:
    # 404 for both missing and not-owned, so existence is not revealed
    conversation = await store.get_conversation(conversation_id, user_id=user_id)
    if conversation is None:
        raise NotFoundError("Conversation not found")
    return conversation


@router.post("", response_model=ConversationResponse, status_code=status.HTTP_201_CREATED)
async def create_conversation(
    request: ConversationCreateRequest,
    identity: CurrentIdentity,
    store: Conversations,
    db: DbSession,
):
    """Start a new conversation, optionally tied to a chapter."""
    conversation = await store.create_conversation(
        identity.id, chapter_id=request.chapter_id, title=request.title
    )
    await db.commit()
    return ConversationResponse.model_validate(conversation)


@router.get("", response_model=ConversationListResponse)
async def list_conversations(
    identity: CurrentIdentity,
    store: Conversations,
    limit: int = 20,
    offset: int = 0,
    chapter_id: str | None = None,
):
    """List the caller's conversations, most recently active first."""
    limit = max(1, min(limit, 100))
    offset = max(0, offset)
    conversations, total = await store.list_user_conversations(
        identity.id, limit=limit, offset=offset, chapter_id=chapter_id
    )
    return ConversationListResponse(
        conversations=[ConversationResponse.model_validate(c) for c in conversations],
        total=total,
    )


@router.get("/{conversation_id}", response_model=ConversationWithMessages)
async def get_conversation(
    conversation_id: str,
    identity: CurrentIdentity,
    store: Conversations,
):
    """Get a conversation with its full message log."""
    conversation = await _owned_conversation_or_404(store, conversation_id, identity.id)
    messages = await store.list_messages(conversation_id)
    return ConversationWithMessages(
        **ConversationResponse.model_validate(conversation).model_dump(),
        messages=[MessageResponse.model_validate(m) for m in messages],
    )


@router.post(
    "/{conversation_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def append_message(
    conversation_id: str,
    request: MessageCreateRequest,
    http_request: Request,
    identity: CurrentIdentity,
    store: Conversations,
    indexer: Indexer,
    session_factory: SessionFactory,
    db: DbSession,
):
    """
    Append a message to a conversation.

    The message is committed before this returns; embedding and indexing
    then run as a background task with their own database session.
    """
    await _owned_conversation_or_404(store, conversation_id, identity.id)
    message = await store.append_message(
        conversation_id, request.role, request.content, request.metadata
    )
    await db.commit()

    task = asyncio.create_task(
        indexer.index_in_background(session_factory, message.id, message.content)
    )
    # Keep a reference until done so the task is not garbage collected
    tasks = http_request.app.state.background_tasks
    tasks.add(task)
    task.add_done_callback(tasks.discard)

    return MessageResponse.model_validate(message)


@router.post("/{conversation_id}/context", response_model=ContextResponse)
async def retrieve_context(
    conversation_id: str,
    request: ContextQueryRequest,
    identity: CurrentIdentity,
    store: Conversations,
    index: Index,
    embedder: Embedder,
    settings: AppSettings,
):
    """Assemble prior messages relevant to `query` for the next tutoring turn."""
    await _owned_conversation_or_404(store, conversation_id, identity.id)
    scope = (
        ConversationScope(conversation_id)
        if request.scope == "conversation"
        else UserScope(identity.id)
    )
    result = await assemble_context(
        index,
        embedder,
        request.query,
        scope,
        k=request.k or settings.retrieval_top_k,
        max_chars=settings.retrieval_context_max_chars,
    )
    return ContextResponse(
        context=result.text,
        hits=[RetrievalHitResponse(message_id=h.message_id, score=h.score) for h in result.hits],
    )
