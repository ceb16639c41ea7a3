"""Background indexing of new messages: chunk -> embed -> store."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gyanu.config import Settings
from gyanu.errors import GyanuError, RemoteServiceError
from gyanu.services.chunker import chunk_text
from gyanu.services.embeddings import EmbeddingService
from gyanu.services.retrieval_index import RetrievalIndex

logger = logging.getLogger(__name__)


class MessageIndexer:
    """Embeds message content and records the vectors in the retrieval index."""

    def __init__(self, settings: Settings, embedder: EmbeddingService):
        self.settings = settings
        self.embedder = embedder

    async def index_message(self, index: RetrievalIndex, message_id: str, content: str) -> int:
        """
        Index one message; returns the number of chunks stored.

        Each chunk is stored only after its own embed call succeeded. The
        first failed embed stops indexing of this message, so no placeholder
        or partial vector is ever written for a failed chunk.
        """
        chunks = chunk_text(content, self.settings.chunk_size, self.settings.chunk_overlap)
        stored = 0
        for chunk in chunks:
            try:
                vector = await self.embedder.embed(chunk.embedding_input())
            except RemoteServiceError as e:
                logger.warning(
                    "Embedding failed for message %s chunk %d (status %s); %d of %d chunks indexed",
                    message_id, chunk.chunk_index, e.status, stored, len(chunks),
                )
                break
            await index.store(message_id, vector, chunk_index=chunk.chunk_index, content=chunk.content)
            stored += 1
        return stored

    async def index_in_background(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        message_id: str,
        content: str,
    ) -> None:
        """
        Index a message using a fresh database session.

        Runs as an asyncio task after the request that appended the message
        has committed, so it never blocks the response.
        """
        try:
            async with session_factory() as db:
                index = RetrievalIndex(db, self.settings.embedding_dimensions)
                await self.index_message(index, message_id, content)
                await db.commit()
        except GyanuError as e:
            logger.error("Indexing message %s failed: %s (%s)", message_id, e.message, e.detail)
        except Exception:
            logger.exception("Background indexing task failed for message %s", message_id)
