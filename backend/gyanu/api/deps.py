"""
FastAPI Dependencies for Authentication and Service Wiring.

Key patterns:
1. get_optional_identity: verifies the JWT if present, returns None otherwise
2. get_current_identity: same, but raises 401 when absent
3. No global "current user" state - identities and sessions are always passed explicitly

Security model:
- JWT stored in HttpOnly cookie (recommended) or Authorization header
- Roles are never read from the token; they are re-read from the profile
  row on every check, so role changes take effect on the next request
"""

from typing import Annotated

from fastapi import Cookie, Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gyanu.auth.tokens import Identity, decode_access_token, extract_token
from gyanu.config import Settings
from gyanu.db.session import get_db, get_session_factory
from gyanu.errors import AuthenticationError
from gyanu.services.admin_actions import AdminActionGuard
from gyanu.services.backing_store import BackingStore
from gyanu.services.conversation_store import ConversationStore
from gyanu.services.embeddings import EmbeddingService
from gyanu.services.message_indexer import MessageIndexer
from gyanu.services.retrieval_index import RetrievalIndex


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


AppSettings = Annotated[Settings, Depends(get_app_settings)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
SessionFactory = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]


# =============================================================================
# AUTHENTICATION DEPENDENCIES
# =============================================================================


async def get_optional_identity(
    settings: AppSettings,
    authorization: Annotated[str | None, Header()] = None,
    access_token: Annotated[str | None, Cookie()] = None,
) -> Identity | None:
    """Identity from a valid token, or None when there is no valid session."""
    token = extract_token(authorization, access_token)
    if token is None:
        return None
    return decode_access_token(settings, token)


async def get_current_identity(
    identity: Annotated[Identity | None, Depends(get_optional_identity)],
) -> Identity:
    """
    Validate the session and return the caller's identity.

    Raises 401 if the token is missing, invalid, or expired.
    """
    if identity is None:
        raise AuthenticationError("Not authenticated")
    return identity


# Type aliases for dependency injection
OptionalIdentity = Annotated[Identity | None, Depends(get_optional_identity)]
CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]


# =============================================================================
# SERVICE DEPENDENCIES
# =============================================================================


def get_embedding_service(request: Request) -> EmbeddingService:
    return request.app.state.embedding_service


Embedder = Annotated[EmbeddingService, Depends(get_embedding_service)]


async def get_admin_guard(db: DbSession) -> AdminActionGuard:
    return AdminActionGuard(BackingStore(db))


async def get_conversation_store(db: DbSession) -> ConversationStore:
    return ConversationStore(db)


async def get_retrieval_index(db: DbSession, settings: AppSettings) -> RetrievalIndex:
    return RetrievalIndex(db, settings.embedding_dimensions)


def get_message_indexer(settings: AppSettings, embedder: Embedder) -> MessageIndexer:
    return MessageIndexer(settings, embedder)


AdminGuard = Annotated[AdminActionGuard, Depends(get_admin_guard)]
Conversations = Annotated[ConversationStore, Depends(get_conversation_store)]
Index = Annotated[RetrievalIndex, Depends(get_retrieval_index)]
Indexer = Annotated[MessageIndexer, Depends(get_message_indexer)]
