"""Role hierarchy, page route guard and session observation."""

from gyanu.auth.roles import ProtectedRoute, Role, RouteTable, has_role, is_valid_role, match_route
from gyanu.auth.route_guard import Allow, GuardIdentity, Redirect, RouteGuard
from gyanu.auth.session import RoleTracker, SessionObserver

__all__ = [
    "Allow",
    "GuardIdentity",
    "ProtectedRoute",
    "Redirect",
    "Role",
    "RoleTracker",
    "RouteGuard",
    "RouteTable",
    "SessionObserver",
    "has_role",
    "is_valid_role",
    "match_route",
]
