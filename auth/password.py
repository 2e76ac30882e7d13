"""
Password hashing and verification.

Uses bcrypt for password hashing with automatic
salting and configurable work factor. Passwords are pre-hashed with
SHA-256 (base64 of the digest, 44 bytes) so bcrypt's 72-byte input limit
neither truncates nor rejects long passwords.
"""

from __future__ import annotations

import base64
import hashlib
from functools import lru_cache

import bcrypt

DEFAULT_ROUNDS = 10


def _prehash(password: str) -> bytes:
    return base64.b64encode(hashlib.sha256(password.encode()).digest())


def hash_password(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Hash a password with bcrypt (fresh salt on every call)."""
    return bcrypt.hashpw(_prehash(password), bcrypt.gensalt(rounds=rounds)).decode()


def verify_password(password: str, password_hash: str | None) -> bool:
    """Constant-time comparison against a bcrypt hash."""
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(_prehash(password), password_hash.encode())
    except (ValueError, TypeError):
        return False


@lru_cache(maxsize=8)
def _dummy_hash(rounds: int) -> str:
    return hash_password("not-a-real-password", rounds)


def dummy_verify(password: str, rounds: int = DEFAULT_ROUNDS) -> bool:
    """
    Burn one verification against a throwaway hash of the same cost.

    Used when the requested user does not exist so that the response time
    does not reveal whether the username is registered. Always ``False``.
    """
    verify_password(password or "x", _dummy_hash(rounds))
    return False
