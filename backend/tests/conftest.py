"""Pytest configuration and fixtures."""

import asyncio
import json
import os
from collections.abc import AsyncGenerator

# Must be set before gyanu.main builds the module-level app
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from gyanu.auth.tokens import create_access_token
from gyanu.config import Settings
from gyanu.db.base import Base
from gyanu.db.models import Chapter, Profile
from gyanu.main import create_app
from gyanu.services.embeddings import EmbeddingService

# Tiny 4-dimensional "model": one axis per topic plus a constant bias axis
TOPICS = ("plant", "gravity", "fraction")


def topic_vector(text: str) -> list[float]:
    lowered = text.lower()
    return [float(lowered.count(topic)) for topic in TOPICS] + [1.0]


class FakeEmbeddingEndpoint:
    """Stands in for the remote `/embeddings` endpoint via httpx.MockTransport."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.fail_when_contains: str | None = None
        self.fail_status = 503

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        body = json.loads(request.content)
        if self.fail_when_contains and self.fail_when_contains in body["input"]:
            return httpx.Response(self.fail_status, json={"error": "unavailable"})
        return httpx.Response(200, json={"data": [{"embedding": topic_vector(body["input"])}]})

    @property
    def inputs(self) -> list[str]:
        return [json.loads(r.content)["input"] for r in self.requests]


@pytest.fixture
def vectorize():
    """The fake embedding model, for tests that store vectors directly."""
    return topic_vector


@pytest.fixture
def settings() -> Settings:
    return Settings(
        environment="development",
        jwt_secret_key="test-secret",
        embedding_endpoint="http://embeddings.test/v1",
        embedding_api_key="test-key",
        embedding_model="test-embed",
        embedding_dimensions=4,
        chunk_size=200,
        chunk_overlap=0,
    )


@pytest.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """File-backed SQLite so every session gets its own connection."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    async with factory() as db:
        db.add_all([
            Profile(id="U1", role="admin", display_name="Asha"),
            Profile(id="U2", role="teacher", display_name="Ben"),
            Profile(id="U3", role="student", display_name="Chen"),
            Profile(id="U4", role="superadmin", display_name="Broken"),
            Chapter(id="c1", title="Life Processes"),
            Chapter(id="c2", title="Gravitation"),
            Chapter(id="c3", title="Fractions", status="published"),
        ])
        await db.commit()

    yield factory
    await engine.dispose()


@pytest.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def embedding_endpoint() -> FakeEmbeddingEndpoint:
    return FakeEmbeddingEndpoint()


@pytest.fixture
async def embedder(settings, embedding_endpoint) -> AsyncGenerator[EmbeddingService, None]:
    client = httpx.AsyncClient(transport=httpx.MockTransport(embedding_endpoint))
    service = EmbeddingService(settings, client=client)
    yield service
    await service.aclose()


@pytest.fixture
def app(settings, session_factory, embedder):
    return create_app(settings=settings, session_factory=session_factory, embedding_service=embedder)


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI endpoints."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def auth_headers(settings):
    """Build an Authorization header for a user id."""

    def _headers(user_id: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(settings, user_id)}"}

    return _headers


@pytest.fixture
def drain_background_tasks(app):
    """Wait for indexing tasks scheduled by the request handlers."""

    async def _drain() -> None:
        await asyncio.gather(*list(app.state.background_tasks))

    return _drain
