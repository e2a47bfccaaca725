"""
Auth router.

Endpoints for registering, logging in and logging out. Successful
registration and login both return a bearer token.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from loguru import logger
from pydantic import BaseModel

from ..deps import get_store, get_token
from ..store import Store, UsernameTakenError

router = APIRouter()


# ========================================
# Request/Response Models
# ========================================


class AuthRequest(BaseModel):
    """Credentials for register and login."""

    username: str
    password: str


class TokenResponse(BaseModel):
    token: str


# ========================================
# Endpoints
# ========================================


@router.post("/register", response_model=TokenResponse, summary="Create an account")
def register(req: AuthRequest, store: Store = Depends(get_store)) -> TokenResponse:
    username = req.username.strip()
    if not username or not req.password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username and password required",
        )

    try:
        user_id = store.create_user(username, req.password)
    except UsernameTakenError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already taken")

    return TokenResponse(token=store.create_session(user_id))


@router.post("/login", response_model=TokenResponse, summary="Log in")
def login(req: AuthRequest, store: Store = Depends(get_store)) -> TokenResponse:
    user_id = store.verify_user(req.username.strip(), req.password)
    if user_id is None:
        logger.info(f"Failed login for {req.username.strip()!r}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )

    return TokenResponse(token=store.create_session(user_id))


@router.post("/logout", summary="Log out")
def logout(
    token: str | None = Depends(get_token),
    store: Store = Depends(get_store),
) -> dict[str, str]:
    """Invalidate the presented token, if any."""
    if token:
        store.delete_session(token)
    return {"status": "ok"}
