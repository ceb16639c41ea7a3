"""Domain services: admin actions, conversation log, embeddings and retrieval."""

from gyanu.services.admin_actions import AdminActionGuard
from gyanu.services.backing_store import BackingStore
from gyanu.services.conversation_store import ConversationStore
from gyanu.services.embeddings import EmbeddingService
from gyanu.services.message_indexer import MessageIndexer
from gyanu.services.retrieval_index import ConversationScope, RetrievalIndex, UserScope, assemble_context

__all__ = [
    "AdminActionGuard",
    "BackingStore",
    "ConversationScope",
    "ConversationStore",
    "EmbeddingService",
    "MessageIndexer",
    "RetrievalIndex",
    "UserScope",
    "assemble_context",
]
