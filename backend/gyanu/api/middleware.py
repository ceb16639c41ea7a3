"""HTTP middleware that applies RouteGuard decisions to page requests."""

import logging
from urllib.parse import urlencode

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from gyanu.auth.route_guard import GuardIdentity, Redirect, RouteGuard
from gyanu.auth.tokens import decode_access_token, extract_token
from gyanu.config import Settings
from gyanu.db.models import Profile

logger = logging.getLogger(__name__)

# API and infrastructure paths are guarded by their own dependencies
_UNGUARDED_PREFIXES = ("/api/", "/health", "/docs", "/redoc", "/openapi.json")


class RouteGuardMiddleware(BaseHTTPMiddleware):
    """
    Redirects page requests the guard does not allow.

    The role is read from the profile row on every request; nothing is
    cached between requests.
    """

    def __init__(
        self,
        app,
        guard: RouteGuard,
        settings: Settings,
        session_factory: async_sessionmaker[AsyncSession],
    ):
        super().__init__(app)
        self.guard = guard
        self.settings = settings
        self.session_factory = session_factory

    async def _resolve_identity(self, request: Request) -> GuardIdentity | None:
        token = extract_token(request.headers.get("authorization"), request.cookies.get("access_token"))
        if token is None:
            return None
        identity = decode_access_token(self.settings, token)
        if identity is None:
            return None

        try:
            async with self.session_factory() as db:
                result = await db.execute(select(Profile.role).where(Profile.id == identity.id))
                role = result.scalar_one_or_none()
        except SQLAlchemyError:
            logger.exception("Failed to read profile role for %s", identity.id)
            role = None
        return GuardIdentity(id=identity.id, role=role)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if path.startswith(_UNGUARDED_PREFIXES):
            return await call_next(request)

        decision = self.guard.decide(await self._resolve_identity(request), path)
        if isinstance(decision, Redirect):
            url = decision.target
            if decision.params:
                url += "?" + urlencode(decision.params)
            return RedirectResponse(url, status_code=307)
        return await call_next(request)
