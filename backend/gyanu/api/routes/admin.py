"""
Admin routes.

Endpoints:
- POST /api/admin/chapters/bulk-status - publish or unpublish many chapters
- POST /api/admin/users/{user_id}/role - change another user's role (action-style result)
"""

import logging

from fastapi import APIRouter

from gyanu.api.deps import AdminGuard, DbSession, OptionalIdentity
from gyanu.errors import GyanuError
from gyanu.schemas.admin import (
    BulkChapterStatusRequest,
    BulkChapterStatusResponse,
    RoleUpdateRequest,
    RoleUpdateResult,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.post("/chapters/bulk-status", response_model=BulkChapterStatusResponse)
async def bulk_update_chapter_status(
    request: BulkChapterStatusRequest,
    identity: OptionalIdentity,
    guard: AdminGuard,
    db: DbSession,
) -> BulkChapterStatusResponse:
    """
    Set the status of several chapters in one batched update.

    Errors are rendered by the application's `GyanuError` handler:
    400 invalid ids/status, 401 no session, 403 not admin, 404 no profile,
    500 store failure (details logged, generic message returned).
    """
    count = await guard.bulk_update_chapter_status(identity, request.chapter_ids, request.status)
    await db.commit()
    return BulkChapterStatusResponse(
        message=f"Successfully updated {count} chapter(s) to {request.status}"
    )


@router.post("/users/{user_id}/role", response_model=RoleUpdateResult, response_model_exclude_none=True)
async def update_user_role(
    user_id: str,
    request: RoleUpdateRequest,
    identity: OptionalIdentity,
    guard: AdminGuard,
    db: DbSession,
) -> RoleUpdateResult:
    """
    Change another user's role.

    Always answers 200 with either `{"success": true}` or `{"error": ...}`.
    Store failures are echoed with the store's own message on this path.
    """
    try:
        await guard.update_user_role(identity, user_id, request.role)
    except GyanuError as e:
        await db.rollback()
        if e.detail and e.detail != e.message:
            logger.error("Role update for %s failed: %s", user_id, e.detail)
        return RoleUpdateResult(error=e.message)

    await db.commit()
    return RoleUpdateResult(success=True)
