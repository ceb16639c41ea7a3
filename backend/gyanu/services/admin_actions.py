"""
Administrative mutations with per-action safety checks.

Both actions re-read the actor's role from the store on every call; roles
are never cached between requests. Failures are raised as `GyanuError`
subclasses and rendered by the caller (the HTTP exception handler for bulk
status, `RoleUpdateResult` for the action-style role update).
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from gyanu.auth.roles import Role, is_valid_role
from gyanu.auth.tokens import Identity
from gyanu.db.models import ChapterStatus
from gyanu.errors import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    PersistenceError,
    SelfActionError,
    ValidationError,
)
from gyanu.services.backing_store import BackingStore

logger = logging.getLogger(__name__)

RoleChangedHook = Callable[[str], Awaitable[None]]

_CHAPTER_STATUSES = frozenset(s.value for s in ChapterStatus)


class AdminActionGuard:
    """Authorizes and validates admin actions before they reach the store."""

    def __init__(self, store: BackingStore, on_role_changed: RoleChangedHook | None = None):
        self.store = store
        self.on_role_changed = on_role_changed

    async def _is_admin(self, actor_id: str) -> bool:
        profile = await self.store.read_profile(actor_id)
        return profile is not None and is_valid_role(profile.role) and profile.role == Role.ADMIN.value

    async def update_user_role(self, actor: Identity | None, target_user_id: str, new_role: Any) -> None:
        """
        Change another user's role.

        Raises:
            AuthenticationError: no signed-in actor
            AuthorizationError: actor is not an admin
            ValidationError: `new_role` is not a known role
            SelfActionError: the actor targets themselves, whatever the new role
            PersistenceError: the store failed; message is the store's own text

        The change is committed before `on_role_changed` is awaited.
        """
        if actor is None:
            raise AuthenticationError("Not authenticated")

        try:
            is_admin = await self._is_admin(actor.id)
        except PersistenceError as e:
            logger.warning("Could not read profile for actor %s: %s", actor.id, e.detail)
            is_admin = False
        if not is_admin:
            raise AuthorizationError("Unauthorized")

        if not is_valid_role(new_role):
            raise ValidationError("Invalid role")

        # Unconditional: an admin can never lock themselves out
        if target_user_id == actor.id:
            raise SelfActionError("Cannot change your own role")

        changed = await self.store.update_profile_role(target_user_id, Role(new_role), actor_id=actor.id)
        if changed == 0:
            # Either the actor lost admin in the meantime or the target has no profile
            if not await self._is_admin(actor.id):
                raise AuthorizationError("Unauthorized")
            raise PersistenceError("User profile not found")

        # Commit first so anything the hook reloads already sees the new role
        await self.store.commit()
        logger.info("User %s changed role of %s to %s", actor.id, target_user_id, new_role)
        if self.on_role_changed is not None:
            await self.on_role_changed(target_user_id)

    async def bulk_update_chapter_status(self, actor: Identity | None, chapter_ids: Any, status: Any) -> int:
        """
        Set the status of many chapters at once.

        Returns the number of targeted chapter ids.
        """
        if actor is None:
            raise AuthenticationError("You must be logged in to update chapters")

        try:
            profile = await self.store.read_profile(actor.id)
        except PersistenceError as e:
            logger.error("Error fetching profile for %s: %s", actor.id, e.detail)
            raise PersistenceError("Failed to fetch user profile", detail=e.detail) from e

        if profile is None:
            raise NotFoundError("User profile not found")

        if profile.role != Role.ADMIN.value:
            raise AuthorizationError("Unauthorized - only admins can update chapters")

        if (
            not isinstance(chapter_ids, list)
            or len(chapter_ids) == 0
            or not all(isinstance(c, str) and c.strip() for c in chapter_ids)
        ):
            raise ValidationError("Invalid or empty chapter IDs array")

        if not isinstance(status, str) or status not in _CHAPTER_STATUSES:
            raise ValidationError("Invalid status. Must be 'draft' or 'published'")

        try:
            matched = await self.store.update_chapters_status(chapter_ids, status, actor_id=actor.id)
        except PersistenceError as e:
            logger.error("Error updating chapter status: %s", e.detail)
            raise PersistenceError("Failed to update chapter status", detail=e.detail) from e

        if matched == 0:
            if not await self._is_admin(actor.id):
                raise AuthorizationError("Unauthorized - only admins can update chapters")
            logger.error("Chapter status update matched none of %d ids", len(chapter_ids))
            raise PersistenceError("Failed to update chapter status", detail="no chapters matched")

        logger.info("User %s set %d chapter(s) to %s", actor.id, len(chapter_ids), status)
        return len(chapter_ids)
