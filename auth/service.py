"""
Account workflow — registration, login, logout and user reads.

Route handlers stay thin; everything that touches credentials lives here.
bcrypt work runs in a worker thread so one slow hash does not stall the
event loop for other requests.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from auth.exceptions import AccountConflict, InvalidCredentials, NotAuthenticated, ValidationFailed
from auth.models import AuthContext, User
from auth.password import DEFAULT_ROUNDS, dummy_verify, hash_password, verify_password
from auth.sessions import SessionStore

logger = logging.getLogger(__name__)


def _require(*values: Optional[str], password: Optional[str]) -> None:
    """Identifiers must be non-blank; the password only non-empty."""
    for value in values:
        if not isinstance(value, str) or not value.strip():
            raise ValidationFailed()
    if not isinstance(password, str) or not password:
        raise ValidationFailed()


def _public_fields(user: User) -> Dict[str, Any]:
    return {"id": user.id, "username": user.username, "email": user.email}


async def register_user(
    session: AsyncSession,
    username: Optional[str],
    email: Optional[str],
    password: Optional[str],
    rounds: int = DEFAULT_ROUNDS,
) -> int:
    """
    Create a user and return its id.

    Duplicates are detected by the unique constraints at insert time, never
    by a lookup beforehand.
    """
    _require(username, email, password=password)

    password_hash = await asyncio.to_thread(hash_password, password, rounds)
    user = User(
        username=username.strip(),
        email=email.strip(),
        password_hash=password_hash,
    )
    session.add(user)
    try:
        await session.flush()
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        logger.info("Registration conflict for username %r", username.strip())
        raise AccountConflict() from exc

    logger.info("Registered user %s (%s)", user.username, user.id)
    return user.id


async def authenticate(
    session: AsyncSession,
    username: Optional[str],
    password: Optional[str],
    rounds: int = DEFAULT_ROUNDS,
) -> User:
    """
    Return the user matching ``username``/``password``.

    An unknown username and a wrong password both raise ``InvalidCredentials``
    after doing the same amount of bcrypt work.
    """
    _require(username, password=password)

    result = await session.execute(
        select(User).where(User.username == username.strip())
    )
    user = result.scalar_one_or_none()

    if user is None:
        await asyncio.to_thread(dummy_verify, password, rounds)
        raise InvalidCredentials()

    if not await asyncio.to_thread(verify_password, password, user.password_hash):
        raise InvalidCredentials()

    return user


async def login(
    session: AsyncSession,
    store: SessionStore,
    username: Optional[str],
    password: Optional[str],
    rounds: int = DEFAULT_ROUNDS,
) -> Tuple[User, str]:
    """Authenticate and open a new server-side session."""
    user = await authenticate(session, username, password, rounds)
    session_id = await store.create(session, user)
    logger.info("Login: %s (%s)", user.username, user.id)
    return user, session_id


async def logout(session: AsyncSession, store: SessionStore, ctx: AuthContext) -> None:
    await store.destroy(session, ctx.session_id)
    logger.info("Logout: %s (%s)", ctx.username, ctx.user_id)


async def list_users(session: AsyncSession) -> List[Dict[str, Any]]:
    """All users, oldest first, without password hashes."""
    result = await session.execute(
        select(User.id, User.username, User.email).order_by(User.id.asc())
    )
    return [dict(row._mapping) for row in result.all()]


async def get_profile(session: AsyncSession, ctx: AuthContext) -> Dict[str, Any]:
    result = await session.execute(
        select(User).where(User.id == ctx.user_id)
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise NotAuthenticated()
    return _public_fields(user)
