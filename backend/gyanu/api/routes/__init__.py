"""API routes package."""

from gyanu.api.routes import admin, conversations

__all__ = [
    "admin",
    "conversations",
]
