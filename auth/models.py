"""This module re-exports the ORM models used by authentication code and
defines the per-request identity handed to protected routes.
"""

from __future__ import annotations

from dataclasses import dataclass

from database.models import User, UserSession  # noqa: F401

__all__ = ["AuthContext", "User", "UserSession"]


@dataclass(frozen=True)
class AuthContext:
    """Identity resolved from a live session. Built once per request."""

    user_id: int
    username: str
    session_id: str
