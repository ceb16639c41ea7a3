"""
Explicit observer for authentication-state transitions.

`SessionObserver.publish` is called by whatever owns the session (login,
logout, token refresh) and notifies subscribers once per genuine transition.
`RoleTracker` re-derives the role on every transition instead of caching it
across sign-ins.
"""

import logging
from collections.abc import Awaitable, Callable

from gyanu.auth.roles import Role, is_valid_role
from gyanu.auth.route_guard import GuardIdentity

logger = logging.getLogger(__name__)

SessionCallback = Callable[[GuardIdentity | None], Awaitable[None]]
RoleLoader = Callable[[str], Awaitable[str | None]]


class SessionObserver:
    """Holds the current identity and fans out changes to subscribers."""

    def __init__(self, identity: GuardIdentity | None = None):
        self._identity = identity
        self._subscribers: list[SessionCallback] = []

    @property
    def identity(self) -> GuardIdentity | None:
        return self._identity

    def subscribe(self, callback: SessionCallback) -> Callable[[], None]:
        """Register `callback`; returns a function that removes it again."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    async def publish(self, identity: GuardIdentity | None) -> bool:
        """
        Record a new identity and notify subscribers if it is a transition.

        Returns True when subscribers were notified.
        """
        previous_id = self._identity.id if self._identity else None
        new_id = identity.id if identity else None
        self._identity = identity
        if previous_id == new_id:
            return False

        for callback in list(self._subscribers):
            await callback(identity)
        return True


class RoleTracker:
    """Keeps the signed-in user's role current across session transitions."""

    def __init__(self, observer: SessionObserver, load_role: RoleLoader):
        self._load_role = load_role
        self.role: Role | None = None
        self._generation = 0
        self._unsubscribe = observer.subscribe(self._on_transition)

    async def _on_transition(self, identity: GuardIdentity | None) -> None:
        # Drop the old role before reloading so a failed load never leaves it behind
        self._generation += 1
        generation = self._generation
        self.role = None
        if identity is None:
            return

        value = await self._load_role(identity.id)
        if generation != self._generation:
            # A later transition happened while this load was in flight
            logger.debug("Discarding role loaded for %s after a newer transition", identity.id)
            return
        if is_valid_role(value):
            self.role = Role(value)
        else:
            logger.warning("Ignoring invalid role %r for user %s", value, identity.id)

    def close(self) -> None:
        self._unsubscribe()
