"""
FastAPI dependencies: auth guards, role policy and database session.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable, Callable
from functools import lru_cache
from typing import Optional

from fastapi import Cookie, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from foodrescue.core.roles import Action, policy_for
from foodrescue.core.security import decode_access_token
from foodrescue.db.session import async_session_factory
from foodrescue.models.user import RevokedToken, User
from foodrescue.services.orders import OrderIssuanceEngine
from foodrescue.services.payments import SimulatedPaymentGateway

# We use auto_error=False so we can manually check for the cookie if header is missing
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


# ── Database session ────────────────────────────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


# ── Order engine ────────────────────────────────────────────────────
@lru_cache
def get_order_engine() -> OrderIssuanceEngine:
    """Process-wide engine, so in-flight checkouts are shared across requests."""
    return OrderIssuanceEngine(gateway=SimulatedPaymentGateway())


# ── Auth dependencies ───────────────────────────────────────────────
async def get_bearer_token(
    token: Optional[str] = Depends(oauth2_scheme),
    access_token: Optional[str] = Cookie(default=None),  # Read from HttpOnly Cookie
) -> str | None:
    """Bearer token from the Authorization header, else from the cookie."""
    if token:
        return token
    if access_token:
        # auth.py sets the cookie as "Bearer <token>"
        if access_token.startswith("Bearer "):
            return access_token.split(" ", 1)[1]
        return access_token
    return None


async def get_current_user(
    token: str | None = Depends(get_bearer_token),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Decode JWT, reject revoked tokens, look up user."""
    credentials_exc = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not token:
        raise credentials_exc

    payload = decode_access_token(token)
    if payload is None:
        raise credentials_exc

    user_id: str | None = payload.get("sub")
    jti: str | None = payload.get("jti")
    if user_id is None or jti is None:
        raise credentials_exc

    if await db.get(RevokedToken, jti) is not None:
        raise credentials_exc

    user = await db.get(User, user_id)
    if user is None:
        raise credentials_exc
    return user


async def get_current_active_user(
    current_user: User = Depends(get_current_user),
) -> User:
    """Reject inactive accounts."""
    if not current_user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user account")
    return current_user


def require_action(action: Action) -> Callable[..., Awaitable[User]]:
    """Build a dependency that only lets roles permitted *action* through."""

    async def _guard(current_user: User = Depends(get_current_active_user)) -> User:
        if not policy_for(current_user.role).allows_action(action):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Your role may not perform {action.value}",
            )
        return current_user

    _guard.__name__ = f"require_{action.name.lower()}"
    return _guard


require_admin = require_action(Action.USER_MANAGE)
