"""Tests for the remote embedding client."""

import json

import httpx
import pytest

from gyanu.errors import RemoteServiceError
from gyanu.services.embeddings import EmbeddingService


def service_with(settings, handler) -> EmbeddingService:
    return EmbeddingService(settings, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


async def test_embed_sends_configured_request(embedder, embedding_endpoint):
    vector = await embedder.embed("Why do plants need light?")

    assert vector == [1.0, 0.0, 0.0, 1.0]
    request = embedding_endpoint.requests[0]
    assert str(request.url) == "http://embeddings.test/v1/embeddings"
    assert request.method == "POST"
    assert request.headers["authorization"] == "Bearer test-key"
    assert json.loads(request.content) == {"model": "test-embed", "input": "Why do plants need light?"}


async def test_embed_passes_text_unmodified(embedder, embedding_endpoint):
    text = "  Line one\n\n# not a heading to strip\t" + "x" * 5000
    await embedder.embed(text)
    assert embedding_endpoint.inputs == [text]


async def test_trailing_slash_on_endpoint_is_ignored(settings):
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, json={"data": [{"embedding": [0.1, 0.2, 0.3, 0.4]}]})

    service = service_with(settings.model_copy(update={"embedding_endpoint": "http://embeddings.test/v1/"}), handler)
    await service.embed("hi")
    await service.aclose()
    assert seen == ["http://embeddings.test/v1/embeddings"]


@pytest.mark.parametrize("status", [400, 401, 429, 500, 503])
async def test_non_success_status_raises_with_status(settings, status):
    service = service_with(settings, lambda request: httpx.Response(status, json={"error": "nope"}))
    with pytest.raises(RemoteServiceError) as exc:
        await service.embed("hello")
    await service.aclose()
    assert exc.value.status == status
    assert str(status) in exc.value.message


@pytest.mark.parametrize(
    "body",
    [
        {"data": []},
        {"embeddings": [[1, 2, 3, 4]]},
        {"data": [{"embedding": ["a", "b", "c", "d"]}]},
        {"data": [{"embedding": None}]},
    ],
)
async def test_malformed_body_raises(settings, body):
    service = service_with(settings, lambda request: httpx.Response(200, json=body))
    with pytest.raises(RemoteServiceError) as exc:
        await service.embed("hello")
    await service.aclose()
    assert exc.value.message == "Embedding response was malformed"
    assert exc.value.status == 200


async def test_non_json_body_raises(settings):
    service = service_with(settings, lambda request: httpx.Response(200, text="<html>oops</html>"))
    with pytest.raises(RemoteServiceError):
        await service.embed("hello")
    await service.aclose()


async def test_wrong_dimension_raises(settings):
    service = service_with(settings, lambda request: httpx.Response(200, json={"data": [{"embedding": [1.0, 2.0]}]}))
    with pytest.raises(RemoteServiceError) as exc:
        await service.embed("hello")
    await service.aclose()
    assert "expected 4" in exc.value.message


async def test_transport_failure_raises_without_status(settings):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    service = service_with(settings, handler)
    with pytest.raises(RemoteServiceError) as exc:
        await service.embed("hello")
    await service.aclose()
    assert exc.value.status is None
    assert exc.value.message == "Embedding request failed"
