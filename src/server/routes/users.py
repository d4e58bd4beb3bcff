"""User registration and identity endpoints."""

from __future__ import annotations

import asyncio
import logging
import sqlite3

from fastapi import Depends, FastAPI, HTTPException

from src.storage import User

from ..dependencies import (
    get_current_user,
    get_repository,
    hash_password,
    serialize_user,
    verify_password,
)
from ..schemas import LoginRequest, UserCreateRequest, UserResponse, UserUpdateRequest

logger = logging.getLogger(__name__)


def register_user_routes(app: FastAPI) -> None:
    """Register user endpoints."""

    @app.post("/api/users", response_model=UserResponse)
    async def register_user(request: UserCreateRequest) -> UserResponse:
        """Register a new user; an email that is already taken yields 409."""
        repo = get_repository()
        try:
            user = await asyncio.to_thread(
                repo.create_user,
                request.email.strip().lower(),
                request.name,
                hash_password(request.password),
            )
        except sqlite3.IntegrityError as exc:
            raise HTTPException(status_code=409, detail="Email already registered") from exc
        except Exception as exc:
            logger.exception("Failed to register user: %s", exc)
            raise HTTPException(status_code=500, detail="Failed to register user") from exc
        return serialize_user(user)

    @app.post("/api/login", response_model=UserResponse)
    async def login(request: LoginRequest) -> UserResponse:
        """Check credentials and return the user (its id goes in X-User-Id)."""
        repo = get_repository()
        try:
            user = await asyncio.to_thread(
                repo.get_user_by_email, request.email.strip().lower()
            )
        except Exception as exc:
            logger.exception("Failed to look up user: %s", exc)
            raise HTTPException(status_code=500, detail="Failed to log in") from exc
        if user is None or not verify_password(request.password, user.password_hash):
            raise HTTPException(status_code=401, detail="Invalid email or password")
        return serialize_user(user)

    @app.get("/api/user", response_model=UserResponse)
    async def current_user(user: User = Depends(get_current_user)) -> UserResponse:
        """Return the authenticated user."""
        return serialize_user(user)

    @app.put("/api/user", response_model=UserResponse)
    async def update_current_user(
        request: UserUpdateRequest, user: User = Depends(get_current_user)
    ) -> UserResponse:
        """Change the authenticated user's name and/or password."""
        repo = get_repository()
        changes = request.model_dump(exclude_unset=True)
        if any(value is None for value in changes.values()):
            raise HTTPException(status_code=400, detail="Invalid request body")
        if "password" in changes:
            changes["password_hash"] = hash_password(changes.pop("password"))
        try:
            updated = await asyncio.to_thread(repo.update_user, user.id, **changes)
        except Exception as exc:
            logger.exception("Failed to update user: %s", exc)
            raise HTTPException(status_code=500, detail="Failed to update user") from exc
        if updated is None:
            raise HTTPException(status_code=404, detail="User not found")
        return serialize_user(updated)
