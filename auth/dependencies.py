"""
FastAPI dependencies for authentication.

Provides ``db_session``, ``get_session_store`` and ``get_auth_context``
dependencies that are used across all protected routes.
"""

from __future__ import annotations

from typing import AsyncGenerator, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from auth.exceptions import NotAuthenticated
from auth.models import AuthContext
from auth.sessions import SessionStore
from config.settings import Settings
from database.session import get_db_session


async def db_session(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[AsyncSession, None]:
    """Yield a DB session for route handlers."""
    yield session


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


async def get_optional_auth_context(
    request: Request,
    session: AsyncSession = Depends(db_session),
    store: SessionStore = Depends(get_session_store),
) -> Optional[AuthContext]:
    """Resolve the session cookie to an identity, or ``None``."""
    return await store.resolve(session, request.cookies.get(store.cookie_name))


async def get_auth_context(
    ctx: Optional[AuthContext] = Depends(get_optional_auth_context),
) -> AuthContext:
    """
    Require a live session, returning the caller's ``AuthContext``.

    Raises ``NotAuthenticated`` (401) when there is none.
    """
    if ctx is None:
        raise NotAuthenticated()
    return ctx
