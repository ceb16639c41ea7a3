"""Page route guard: maps (identity, path) to an allow/redirect decision."""

from dataclasses import dataclass, field

from gyanu.auth.roles import RouteTable, has_role, is_valid_role, match_route, path_has_prefix


@dataclass(frozen=True)
class GuardIdentity:
    """Signed-in identity as seen by the guard; `role` is the raw stored value."""

    id: str
    role: str | None = None


@dataclass(frozen=True)
class Allow:
    pass


@dataclass(frozen=True)
class Redirect:
    target: str
    params: dict[str, str] = field(default_factory=dict)


Decision = Allow | Redirect


class RouteGuard:
    """
    Pure decision function over a route table.

    Navigation itself is performed by the caller (see
    `gyanu.api.middleware.RouteGuardMiddleware`).
    """

    def __init__(self, table: RouteTable):
        self.table = table

    def decide(self, identity: GuardIdentity | None, path: str) -> Decision:
        # Signed-in users have no business on the login page. Users whose profile
        # role is unusable stay there, otherwise login and landing redirect forever.
        if (
            identity is not None
            and is_valid_role(identity.role)
            and any(path_has_prefix(path, r) for r in self.table.auth_redirects)
        ):
            return Redirect(self.table.landing_path)

        matched = match_route(path, self.table.protected)
        if matched is None:
            return Allow()

        if identity is None:
            return Redirect(self.table.login_path, {"redirect": path})

        if not is_valid_role(identity.role):
            return Redirect(self.table.login_path, {"error": "Profile not found"})

        if not has_role(identity.role, matched.min_role):
            return Redirect(self.table.landing_path)

        return Allow()
