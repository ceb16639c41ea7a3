"""Text embeddings via an OpenAI-compatible `/embeddings` endpoint."""

import logging

import httpx

from gyanu.config import Settings
from gyanu.errors import RemoteServiceError

logger = logging.getLogger(__name__)


class EmbeddingService:
    """
    Converts text to a fixed-length vector with one remote call per text.

    No caching, batching or truncation happens here: callers that need to
    embed long text chunk it first (see `gyanu.services.chunker`).
    """

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None):
        self.endpoint = settings.embedding_endpoint.rstrip("/")
        self.api_key = settings.embedding_api_key
        self.model = settings.embedding_model
        self.dimensions = settings.embedding_dimensions
        self.client = client or httpx.AsyncClient(timeout=settings.embedding_timeout_seconds)

    async def embed(self, text: str) -> list[float]:
        """
        Embed `text` exactly as given.

        Raises:
            RemoteServiceError: the endpoint answered with a non-success
                status (`status` set), could not be reached, or returned a
                body without a vector of the configured length
        """
        try:
            response = await self.client.post(
                f"{self.endpoint}/embeddings",
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={"model": self.model, "input": text},
            )
        except httpx.HTTPError as e:
            logger.warning("Embedding request could not be sent: %s", e)
            raise RemoteServiceError(None, "Embedding request failed", detail=str(e)) from e

        if not response.is_success:
            logger.warning("Embedding request failed with status %d", response.status_code)
            raise RemoteServiceError(
                response.status_code,
                f"Embedding request failed with status {response.status_code}",
                detail=response.text[:500],
            )

        try:
            vector = response.json()["data"][0]["embedding"]
            vector = [float(x) for x in vector]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise RemoteServiceError(
                response.status_code, "Embedding response was malformed", detail=str(e)
            ) from e

        if len(vector) != self.dimensions:
            raise RemoteServiceError(
                response.status_code,
                f"Embedding has {len(vector)} dimensions, expected {self.dimensions}",
            )
        return vector

    async def aclose(self) -> None:
        await self.client.aclose()
