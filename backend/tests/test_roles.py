"""Tests for the role hierarchy and route matching."""

import itertools

import pytest

from gyanu.auth.roles import (
    ROLE_HIERARCHY,
    ProtectedRoute,
    Role,
    RouteTable,
    has_role,
    is_valid_role,
    match_route,
)
from gyanu.config import Settings

ROLES = ["student", "teacher", "admin"]


@pytest.mark.parametrize("user_role,required_role", list(itertools.product(ROLES, ROLES)))
def test_has_role_follows_hierarchy_positions(user_role, required_role):
    expected = ROLES.index(user_role) >= ROLES.index(required_role)
    assert has_role(user_role, required_role) is expected


def test_has_role_examples():
    assert has_role("student", "admin") is False
    assert has_role("admin", "student") is True
    assert has_role("teacher", "teacher") is True
    assert has_role(Role.TEACHER, Role.STUDENT) is True


@pytest.mark.parametrize(
    "user_role,required_role",
    [
        ("superadmin", "student"),
        ("admin", "owner"),
        ("owner", "superadmin"),  # both unknown must not compare equal
        (None, None),
        ("", "student"),
        ("Admin", "admin"),
    ],
)
def test_has_role_rejects_unknown_roles(user_role, required_role):
    assert has_role(user_role, required_role) is False


def test_is_valid_role():
    for value in ROLES:
        assert is_valid_role(value)
    for value in ["superadmin", "owner", "", "ADMIN", " admin", None, 1, ["admin"]]:
        assert not is_valid_role(value)


def test_hierarchy_is_strict_and_duplicate_free():
    assert len(set(ROLE_HIERARCHY)) == len(ROLE_HIERARCHY) == 3
    assert [r.value for r in ROLE_HIERARCHY] == ROLES


ROUTES = (
    ProtectedRoute("/admin", Role.ADMIN),
    ProtectedRoute("/teacher", Role.TEACHER),
    ProtectedRoute("/dashboard", Role.STUDENT),
)


def test_match_route_public_path():
    assert match_route("/", ROUTES) is None
    assert match_route("/about", ROUTES) is None


def test_match_route_prefix_is_segment_aware():
    assert match_route("/admin", ROUTES).min_role == Role.ADMIN
    assert match_route("/admin/users/42", ROUTES).min_role == Role.ADMIN
    assert match_route("/administrator", ROUTES) is None


def test_match_route_longest_prefix_wins():
    routes = (
        ProtectedRoute("/learn", Role.STUDENT),
        ProtectedRoute("/learn/manage", Role.TEACHER),
    )
    assert match_route("/learn/manage/7", routes).min_role == Role.TEACHER
    assert match_route("/learn/7", routes).min_role == Role.STUDENT


def test_match_route_equal_length_first_declared_wins():
    routes = (
        ProtectedRoute("/learn", Role.TEACHER),
        ProtectedRoute("/learn/", Role.ADMIN),
    )
    assert match_route("/learn/x", routes) is routes[0]


def test_route_table_from_settings():
    table = RouteTable.from_settings(Settings())
    assert table.login_path == "/login"
    assert table.landing_path == "/dashboard"
    assert ProtectedRoute("/admin", Role.ADMIN) in table.protected


def test_route_table_rejects_unknown_role():
    settings = Settings(protected_routes=[("/vault", "owner")])
    with pytest.raises(ValueError):
        RouteTable.from_settings(settings)
