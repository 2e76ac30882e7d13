"""
Tests for server-side sessions and cookie signing.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from auth.exceptions import SessionDestroyError
from auth.models import User, UserSession
from auth.sessions import SessionStore, sign_session_id, unsign_session_id


class FakeClock:
    def __init__(self, now: float = 1_700_000_000):
        self.now = now

    def __call__(self) -> float:
        return self.now


async def _make_user(session, username="alice") -> User:
    user = User(username=username, email=f"{username}@x.com", password_hash="$2b$04$x")
    session.add(user)
    await session.commit()
    return user


class TestCookieSigning:
    def test_roundtrip(self):
        value = sign_session_id("abc123", "secret")
        assert unsign_session_id(value, "secret") == "abc123"

    def test_tampered_signature(self):
        value = sign_session_id("abc123", "secret")
        tampered = value[:-1] + ("0" if value[-1] != "0" else "1")
        assert unsign_session_id(tampered, "secret") is None

    def test_swapped_session_id(self):
        sig = sign_session_id("abc123", "secret").split(".", 1)[1]
        assert unsign_session_id("other." + sig, "secret") is None

    def test_wrong_secret(self):
        assert unsign_session_id(sign_session_id("abc123", "secret"), "other") is None

    @pytest.mark.parametrize("value", [None, "", "no-dot", ".onlysig"])
    def test_malformed(self, value):
        assert unsign_session_id(value, "secret") is None


class TestSessionStore:
    @pytest.mark.asyncio
    async def test_create_and_resolve(self, settings, database):
        store = SessionStore(settings)
        async with database.session() as session:
            user = await _make_user(session)
            sid = await store.create(session, user)
            ctx = await store.resolve(session, sign_session_id(sid, "test-session-secret"))

        assert ctx is not None
        assert ctx.user_id == user.id
        assert ctx.username == "alice"
        assert ctx.session_id == sid

    @pytest.mark.asyncio
    async def test_session_ids_are_unique(self, settings, database):
        store = SessionStore(settings)
        async with database.session() as session:
            user = await _make_user(session)
            sids = {await store.create(session, user) for _ in range(5)}
        assert len(sids) == 5

    @pytest.mark.asyncio
    async def test_unsigned_id_is_rejected(self, settings, database):
        store = SessionStore(settings)
        async with database.session() as session:
            user = await _make_user(session)
            sid = await store.create(session, user)
            assert await store.resolve(session, sid) is None

    @pytest.mark.asyncio
    async def test_expired_session_does_not_resolve(self, settings, database):
        clock = FakeClock()
        store = SessionStore(settings, clock=clock)
        async with database.session() as session:
            user = await _make_user(session)
            cookie = sign_session_id(await store.create(session, user), "test-session-secret")

            clock.now += settings.session_max_age_seconds - 1
            assert await store.resolve(session, cookie) is not None

            clock.now += 1
            assert await store.resolve(session, cookie) is None
            remaining = await session.scalar(select(func.count()).select_from(UserSession))
        assert remaining == 0

    @pytest.mark.asyncio
    async def test_create_removes_expired_sessions(self, settings, database):
        clock = FakeClock()
        store = SessionStore(settings, clock=clock)
        async with database.session() as session:
            alice = await _make_user(session)
            bob = await _make_user(session, "bob")
            stale = await store.create(session, alice)

            clock.now += settings.session_max_age_seconds
            fresh = await store.create(session, bob)
            ids = set(await session.scalars(select(UserSession.session_id)))
        assert ids == {fresh}
        assert stale not in ids

    @pytest.mark.asyncio
    async def test_destroy_removes_session(self, settings, database):
        store = SessionStore(settings)
        async with database.session() as session:
            user = await _make_user(session)
            sid = await store.create(session, user)
            await store.destroy(session, sid)
            assert await store.resolve(session, sign_session_id(sid, "test-session-secret")) is None

    @pytest.mark.asyncio
    async def test_purge_expired(self, settings, database):
        clock = FakeClock()
        store = SessionStore(settings, clock=clock)
        async with database.session() as session:
            user = await _make_user(session)
            await store.create(session, user)
            await store.create(session, user)
            clock.now += settings.session_max_age_seconds

            assert await store.purge_expired(session) == 2
            assert await store.purge_expired(session) == 0
            remaining = await session.scalar(select(func.count()).select_from(UserSession))
        assert remaining == 0

    @pytest.mark.asyncio
    async def test_destroy_failure_propagates(self, settings):
        store = SessionStore(settings)
        session = MagicMock()
        session.execute = AsyncMock(side_effect=OperationalError("DELETE", {}, Exception("down")))
        session.rollback = AsyncMock()

        with pytest.raises(SessionDestroyError):
            await store.destroy(session, "sid")
        session.rollback.assert_awaited_once()
