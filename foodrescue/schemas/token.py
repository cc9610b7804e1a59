"""Pydantic schemas for login responses and role policy."""

from __future__ import annotations

from pydantic import BaseModel

from foodrescue.schemas.user import UserRead


class LoginResponse(BaseModel):
    success: bool = True
    user: UserRead
    token: str
    token_type: str = "bearer"


class PolicyRead(BaseModel):
    role: str | None
    landing_route: str
    allowed_routes: list[str]
    allowed_actions: list[str]


class LogoutResponse(BaseModel):
    message: str
