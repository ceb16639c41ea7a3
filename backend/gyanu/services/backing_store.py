"""
Backing-store operations used by the admin guard.

Every database failure is converted to `PersistenceError`, so callers can
tell "the store failed" apart from "the row does not exist".
"""

import logging

from sqlalchemy import exists, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from gyanu.auth.roles import Role
from gyanu.db.models import Chapter, Profile, utcnow
from gyanu.errors import PersistenceError

logger = logging.getLogger(__name__)


def _store_message(error: SQLAlchemyError) -> str:
    """Underlying driver message without SQLAlchemy's statement dump."""
    orig = getattr(error, "orig", None)
    return str(orig) if orig is not None else str(error)


def _actor_is_admin(actor_id: str):
    actor = aliased(Profile)
    return exists().where(actor.id == actor_id, actor.role == Role.ADMIN.value)


class BackingStore:
    """Profile and chapter persistence scoped to one database session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def read_profile(self, user_id: str) -> Profile | None:
        """Return the profile row, None when absent; raises PersistenceError on store failure."""
        try:
            result = await self.db.execute(select(Profile).where(Profile.id == user_id))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise PersistenceError("Failed to fetch user profile", detail=_store_message(e)) from e

    async def update_profile_role(self, user_id: str, role: Role, *, actor_id: str) -> int:
        """
        Set `role` on one profile while the actor still holds the admin role.

        The admin condition is part of the UPDATE itself, so a concurrent
        demotion of the actor cannot slip in between check and write.
        Returns the number of rows changed (0 or 1).
        """
        stmt = (
            update(Profile)
            .where(Profile.id == user_id, _actor_is_admin(actor_id))
            .values(role=role.value, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.db.execute(stmt)
            await self.db.flush()
        except SQLAlchemyError as e:
            message = _store_message(e)
            raise PersistenceError(message, detail=message) from e
        return result.rowcount

    async def commit(self) -> None:
        """Make the pending changes visible to other sessions."""
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            message = _store_message(e)
            raise PersistenceError(message, detail=message) from e

    async def update_chapters_status(self, chapter_ids: list[str], status: str, *, actor_id: str) -> int:
        """
        Apply `status` to all listed chapters in one statement.

        Readers see either none or all of the rows changed. Returns the
        number of rows matched.
        """
        stmt = (
            update(Chapter)
            .where(Chapter.id.in_(chapter_ids), _actor_is_admin(actor_id))
            .values(status=status, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.db.execute(stmt)
            await self.db.flush()
        except SQLAlchemyError as e:
            raise PersistenceError("Failed to update chapter status", detail=_store_message(e)) from e
        return result.rowcount
