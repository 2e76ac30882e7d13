"""
Account API routes — register, login, logout, users, profile.

Route prefix: none (mounted at the application root).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from auth import service
from auth.dependencies import db_session, get_app_settings, get_auth_context, get_session_store
from auth.models import AuthContext
from auth.sessions import SessionStore
from config.settings import Settings


router = APIRouter(tags=["auth"])


# ── Request / response schemas ─────────────────────────────────────────


class RegisterRequest(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class MessageResponse(BaseModel):
    message: str


class RegisterResponse(MessageResponse):
    userId: int


class UserOut(BaseModel):
    id: int
    username: str
    email: str


# ── Endpoints ──────────────────────────────────────────────────────────


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(
    req: RegisterRequest,
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(get_app_settings),
) -> Dict[str, Any]:
    """Register a new user."""
    user_id = await service.register_user(
        session, req.username, req.email, req.password, settings.bcrypt_rounds
    )
    return {"message": "User registered successfully!", "userId": user_id}


@router.post("/login", response_model=MessageResponse)
async def login(
    req: LoginRequest,
    response: Response,
    session: AsyncSession = Depends(db_session),
    store: SessionStore = Depends(get_session_store),
    settings: Settings = Depends(get_app_settings),
) -> Dict[str, Any]:
    """Login with username + password; the session travels in a cookie."""
    _, session_id = await service.login(
        session, store, req.username, req.password, settings.bcrypt_rounds
    )
    store.set_cookie(response, session_id)
    return {"message": "Login successful!"}


@router.get("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    ctx: AuthContext = Depends(get_auth_context),
    session: AsyncSession = Depends(db_session),
    store: SessionStore = Depends(get_session_store),
) -> Dict[str, Any]:
    await service.logout(session, store, ctx)
    store.clear_cookie(response)
    return {"message": "Logged out successfully."}


@router.get("/users", response_model=List[UserOut])
async def users(
    ctx: AuthContext = Depends(get_auth_context),
    session: AsyncSession = Depends(db_session),
) -> List[Dict[str, Any]]:
    """List every user (id, username, email)."""
    return await service.list_users(session)


@router.get("/profile", response_model=UserOut)
async def profile(
    ctx: AuthContext = Depends(get_auth_context),
    session: AsyncSession = Depends(db_session),
) -> Dict[str, Any]:
    return await service.get_profile(session, ctx)
