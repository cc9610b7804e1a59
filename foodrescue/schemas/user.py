"""Pydantic schemas for User accounts."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, field_validator

from foodrescue.core.roles import SELF_SERVICE_ROLES, Role


def _normalise_email(v: str) -> str:
    v = v.strip().lower()
    if "@" not in v:
        raise ValueError("Invalid email address")
    return v


class UserCreate(BaseModel):
    """Admin-side account creation (any role)."""

    email: str
    password: str
    full_name: str | None = None
    phone: str | None = None
    address: str | None = None
    role: Role = Role.CONSUMER

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return _normalise_email(v)

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        if len(v) < 8:
            raise ValueError("Password must be at least 8 characters")
        return v


class UserRegister(UserCreate):
    """Self-service signup; admin accounts cannot be self-registered."""

    @field_validator("role")
    @classmethod
    def _self_service_role(cls, v: Role) -> Role:
        if v not in SELF_SERVICE_ROLES:
            raise ValueError(f"Role must be one of: {sorted(r.value for r in SELF_SERVICE_ROLES)}")
        return v


class UserRead(BaseModel):
    id: str
    email: str
    full_name: str | None = None
    role: Role
    phone: str | None = None
    address: str | None = None
    is_active: bool = True
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return v.strip().lower()
