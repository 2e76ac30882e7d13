"""
Server-side sessions.

Sessions live in the ``user_sessions`` table keyed by an opaque random
identifier. The cookie carries that identifier signed with HMAC-SHA256
under the session secret (``config.session_secret``, env var:
``SESSION_SECRET``), so a forged or altered cookie is rejected before any
database lookup.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
import time
from typing import Callable, Optional

from fastapi import Response
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from auth.exceptions import SessionDestroyError
from auth.models import AuthContext, User, UserSession
from config.settings import Settings

logger = logging.getLogger(__name__)


def _signature(session_id: str, secret: str) -> str:
    return hmac.new(secret.encode(), session_id.encode(), hashlib.sha256).hexdigest()


def sign_session_id(session_id: str, secret: str) -> str:
    """Return the cookie value ``<session_id>.<signature>``."""
    return session_id + "." + _signature(session_id, secret)


def unsign_session_id(value: str | None, secret: str) -> Optional[str]:
    """Return the session id from a cookie value, or ``None`` if tampered."""
    if not value:
        return None
    session_id, sep, sig = value.rpartition(".")
    if not sep or not session_id:
        return None
    if not hmac.compare_digest(sig, _signature(session_id, secret)):
        return None
    return session_id


class SessionStore:
    """Create, resolve and destroy server-side sessions."""

    def __init__(self, settings: Settings, clock: Callable[[], float] = time.time) -> None:
        self._secret = settings.session_secret.get_secret_value()
        self._max_age = settings.session_max_age_seconds
        self._cookie_name = settings.session_cookie_name
        self._cookie_secure = settings.session_cookie_secure
        self._cookie_samesite = settings.session_cookie_samesite
        self._clock = clock

    @property
    def cookie_name(self) -> str:
        return self._cookie_name

    def _now(self) -> int:
        return int(self._clock())

    async def create(self, session: AsyncSession, user: User) -> str:
        """
        Persist a new session for ``user`` and return its identifier.

        Expired sessions are removed in the same transaction.
        """
        now = self._now()
        await session.execute(delete(UserSession).where(UserSession.expires_at <= now))
        session_id = secrets.token_urlsafe(32)
        session.add(
            UserSession(
                session_id=session_id,
                user_id=user.id,
                username=user.username,
                created_at=now,
                expires_at=now + self._max_age,
            )
        )
        await session.commit()
        return session_id

    async def resolve(self, session: AsyncSession, cookie_value: str | None) -> Optional[AuthContext]:
        """
        Map a cookie value to the identity of a live session.

        Returns ``None`` for a missing, tampered, unknown or expired session.
        An expired session is deleted on sight.
        """
        session_id = unsign_session_id(cookie_value, self._secret)
        if session_id is None:
            return None
        result = await session.execute(
            select(UserSession).where(UserSession.session_id == session_id)
        )
        row = result.scalar_one_or_none()
        if row is None:
            return None
        if row.expires_at <= self._now():
            await session.delete(row)
            await session.commit()
            return None
        return AuthContext(user_id=row.user_id, username=row.username, session_id=row.session_id)

    async def destroy(self, session: AsyncSession, session_id: str) -> None:
        """Delete a session. Raises ``SessionDestroyError`` if the store fails."""
        try:
            await session.execute(
                delete(UserSession).where(UserSession.session_id == session_id)
            )
            await session.commit()
        except SQLAlchemyError as exc:
            await session.rollback()
            logger.error("Session destruction failed: %s", exc)
            raise SessionDestroyError() from exc

    async def purge_expired(self, session: AsyncSession) -> int:
        """Delete every expired session. Returns the number of rows removed."""
        result = await session.execute(
            delete(UserSession).where(UserSession.expires_at <= self._now())
        )
        await session.commit()
        purged = result.rowcount or 0
        if purged:
            logger.info("Purged %d expired sessions", purged)
        return purged

    def set_cookie(self, response: Response, session_id: str) -> None:
        response.set_cookie(
            key=self._cookie_name,
            value=sign_session_id(session_id, self._secret),
            max_age=self._max_age,
            path="/",
            httponly=True,
            secure=self._cookie_secure,
            samesite=self._cookie_samesite,
        )

    def clear_cookie(self, response: Response) -> None:
        response.delete_cookie(
            key=self._cookie_name,
            path="/",
            httponly=True,
            secure=self._cookie_secure,
            samesite=self._cookie_samesite,
        )
