"""Vector index over conversation messages and context assembly from it."""

import logging
from dataclasses import dataclass
from typing import NamedTuple

import numpy as np
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gyanu.db.models import Conversation, Message, MessageEmbedding, as_utc
from gyanu.errors import NotFoundError, PersistenceError, ValidationError
from gyanu.services.embeddings import EmbeddingService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversationScope:
    conversation_id: str


@dataclass(frozen=True)
class UserScope:
    user_id: str


Scope = ConversationScope | UserScope


class RetrievalHit(NamedTuple):
    message_id: str
    score: float


class RetrievalIndex:
    """
    Message embeddings with cosine-similarity lookup.

    Similarity is computed in-process over the embeddings in scope, which
    keeps the index portable across databases.
    """

    def __init__(self, db: AsyncSession, dimensions: int):
        self.db = db
        self.dimensions = dimensions

    def _check_vector(self, vector: list[float]) -> np.ndarray:
        array = np.asarray(vector, dtype=np.float64)
        if array.ndim != 1 or array.shape[0] == 0:
            raise ValidationError("Embedding vector must be a non-empty sequence of floats")
        if array.shape[0] != self.dimensions:
            raise ValidationError(
                f"Embedding has {array.shape[0]} dimensions, expected {self.dimensions}"
            )
        if not np.all(np.isfinite(array)) or not np.any(array):
            raise ValidationError("Embedding vector must be finite and non-zero")
        return array

    async def store(
        self,
        message_id: str,
        vector: list[float],
        chunk_index: int = 0,
        content: str | None = None,
    ) -> MessageEmbedding:
        """
        Record the embedding of a message (or one of its chunks).

        Only call this with a vector returned by a successful `embed`.
        """
        array = self._check_vector(vector)

        message = await self.db.get(Message, message_id)
        if message is None:
            raise NotFoundError("Message not found")

        row = MessageEmbedding(
            message_id=message_id,
            chunk_index=chunk_index,
            content=content,
            embedding=array.tolist(),
        )
        self.db.add(row)
        try:
            await self.db.flush()
        except SQLAlchemyError as e:
            raise PersistenceError("Failed to store embedding", detail=str(e)) from e
        return row

    async def query(self, vector: list[float], k: int, scope: Scope) -> list[RetrievalHit]:
        """
        Return up to `k` messages in `scope` most similar to `vector`.

        Messages with several chunks score as their best chunk. Ordered by
        descending cosine similarity; equal scores put the newer message first.
        """
        if k <= 0:
            return []
        query_vector = self._check_vector(vector)

        stmt = (
            select(MessageEmbedding.message_id, MessageEmbedding.embedding, Message.created_at, Message.seq)
            .join(Message, Message.id == MessageEmbedding.message_id)
        )
        if isinstance(scope, ConversationScope):
            stmt = stmt.where(Message.conversation_id == scope.conversation_id)
        else:
            stmt = stmt.join(Conversation, Conversation.id == Message.conversation_id).where(
                Conversation.user_id == scope.user_id
            )

        rows = (await self.db.execute(stmt)).all()
        rows = [row for row in rows if len(row.embedding) == self.dimensions]
        if not rows:
            return []

        matrix = np.asarray([row.embedding for row in rows], dtype=np.float64)
        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query_vector)
        scores = np.divide(matrix @ query_vector, norms, out=np.zeros(len(rows)), where=norms > 0)

        best: dict[str, tuple[float, object, int]] = {}
        for row, score in zip(rows, scores):
            score = float(score)
            current = best.get(row.message_id)
            if current is None or score > current[0]:
                best[row.message_id] = (score, as_utc(row.created_at), row.seq)

        ranked = sorted(
            best.items(),
            key=lambda item: (item[1][0], item[1][1], item[1][2]),
            reverse=True,
        )
        return [RetrievalHit(message_id, score) for message_id, (score, _, _) in ranked[:k]]


@dataclass
class RetrievedContext:
    text: str
    hits: list[RetrievalHit]
    messages: list[Message]


async def assemble_context(
    index: RetrievalIndex,
    embedder: EmbeddingService,
    query_text: str,
    scope: Scope,
    k: int,
    max_chars: int,
) -> RetrievedContext:
    """
    Build a markdown block of the prior messages most relevant to `query_text`.

    Messages are listed in conversation order (not score order) and added
    until the character budget is spent.
    """
    query_vector = await embedder.embed(query_text)
    hits = await index.query(query_vector, k, scope)
    if not hits:
        return RetrievedContext(text="No prior context available.", hits=[], messages=[])

    result = await index.db.execute(select(Message).where(Message.id.in_([h.message_id for h in hits])))
    messages = sorted(result.scalars().all(), key=lambda m: (m.conversation_id, as_utc(m.created_at), m.seq))

    parts = ["# Relevant earlier messages\n"]
    total_chars = len(parts[0])
    included: list[Message] = []
    for message in messages:
        part = f"**{message.role}**: {message.content}\n"
        if total_chars + len(part) > max_chars:
            parts.append("[... additional context omitted due to size limits ...]")
            break
        parts.append(part)
        included.append(message)
        total_chars += len(part)

    return RetrievedContext(text="\n".join(parts), hits=hits, messages=included)
