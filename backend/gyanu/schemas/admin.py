"""Pydantic schemas for admin actions."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class BulkChapterStatusRequest(BaseModel):
    """
    Body of POST /api/admin/chapters/bulk-status.

    Fields are deliberately loose: authentication and authorization are
    checked before the values are validated, so a bad body from an
    outsider still gets 401/403 rather than 400.
    """

    model_config = ConfigDict(populate_by_name=True)

    chapter_ids: Any = Field(None, alias="chapterIds")
    status: Any = None


class BulkChapterStatusResponse(BaseModel):
    message: str


class RoleUpdateRequest(BaseModel):
    role: Any = None


class RoleUpdateResult(BaseModel):
    """Action-style result: exactly one of `success` or `error` is set."""

    success: bool | None = None
    error: str | None = None
