"""
Role hierarchy and route protection tables.

Roles are totally ordered from least to most privileged:

    student < teacher < admin

Route tables are immutable values built once (see `RouteTable.from_settings`)
and passed explicitly into whatever needs them, so tests can substitute
their own tables.
"""

from dataclasses import dataclass
from enum import Enum as PyEnum
from typing import Any


class Role(str, PyEnum):
    """Privilege level stored on a profile."""

    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"


# Ordered from least to most privileged
ROLE_HIERARCHY: tuple[Role, ...] = (Role.STUDENT, Role.TEACHER, Role.ADMIN)

_VALID_ROLES = frozenset(role.value for role in ROLE_HIERARCHY)


def is_valid_role(value: Any) -> bool:
    """Check if the value is exactly one of the enumerated role strings."""
    return isinstance(value, str) and value in _VALID_ROLES


def _position(value: Any) -> int | None:
    if not is_valid_role(value):
        return None
    return ROLE_HIERARCHY.index(Role(value))


def has_role(user_role: Any, required_role: Any) -> bool:
    """
    Check if a role has at least the required privilege level.

    Unrecognized values on either side never pass, including the case
    where both sides are unrecognized.
    """
    user_position = _position(user_role)
    required_position = _position(required_role)
    if user_position is None or required_position is None:
        return False
    return user_position >= required_position


@dataclass(frozen=True)
class ProtectedRoute:
    """Path prefix and the minimum role needed to view it."""

    prefix: str
    min_role: Role


def path_has_prefix(path: str, prefix: str) -> bool:
    """Segment-aware prefix test: '/admin' covers '/admin/x' but not '/administrator'."""
    if prefix in ("", "/"):
        return path.startswith("/")
    prefix = prefix.rstrip("/")
    return path == prefix or path.startswith(prefix + "/")


@dataclass(frozen=True)
class RouteTable:
    """Static page-routing configuration."""

    protected: tuple[ProtectedRoute, ...]
    auth_redirects: tuple[str, ...] = ("/login",)
    login_path: str = "/login"
    landing_path: str = "/dashboard"

    @classmethod
    def from_settings(cls, settings) -> "RouteTable":
        """Build the table from settings, rejecting unknown role names."""
        protected = []
        for prefix, min_role in settings.protected_routes:
            if not is_valid_role(min_role):
                raise ValueError(f"Unknown role {min_role!r} for protected route {prefix!r}")
            protected.append(ProtectedRoute(prefix=prefix, min_role=Role(min_role)))
        return cls(
            protected=tuple(protected),
            auth_redirects=tuple(settings.auth_redirect_routes),
            login_path=settings.login_path,
            landing_path=settings.landing_path,
        )


def match_route(path: str, routes: tuple[ProtectedRoute, ...] | list[ProtectedRoute]) -> ProtectedRoute | None:
    """
    Find the protected entry governing `path`.

    The longest matching prefix wins; among equal-length prefixes the first
    declared entry wins. Returns None when the path is public.
    """
    best: ProtectedRoute | None = None
    for route in routes:
        if not path_has_prefix(path, route.prefix):
            continue
        if best is None or len(route.prefix.rstrip("/")) > len(best.prefix.rstrip("/")):
            best = route
    return best
