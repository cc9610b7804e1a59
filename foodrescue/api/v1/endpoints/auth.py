"""
Auth endpoints: register, login, current user, logout and user management.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from foodrescue.api.v1.deps import (get_bearer_token, get_current_active_user,
                                    get_db, require_admin)
from foodrescue.core.config import settings
from foodrescue.core.errors import AuthenticationError
from foodrescue.core.roles import policy_for
from foodrescue.core.security import (create_access_token, decode_access_token,
                                      get_password_hash, token_expiry,
                                      verify_password)
from foodrescue.models.user import RevokedToken, User
from foodrescue.schemas.token import LoginResponse, LogoutResponse, PolicyRead
from foodrescue.schemas.user import (LoginRequest, UserCreate, UserRead,
                                     UserRegister)

# Rate limiter: keyed by client IP
limiter = Limiter(key_func=get_remote_address)

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


async def _create_account(db: AsyncSession, body: UserCreate) -> User:
    existing = await db.execute(select(User).where(User.email == body.email))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=400, detail="Email already registered")

    user = User(
        email=body.email,
        hashed_password=get_password_hash(body.password),
        full_name=body.full_name,
        phone=body.phone,
        address=body.address,
        role=body.role.value,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info("Account %s created with role %s", user.id, user.role)
    return user


@router.post("/register", response_model=UserRead, status_code=201)
async def register(body: UserRegister, db: AsyncSession = Depends(get_db)) -> User:
    """Self-service signup for recipients and sellers."""
    return await _create_account(db, body)


@router.post("/login", response_model=LoginResponse)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """Authenticate with email/password. Returns the user and a bearer token."""
    result = await db.execute(select(User).where(User.email == body.email))
    user = result.scalar_one_or_none()

    if user is None or not verify_password(body.password, user.hashed_password):
        raise AuthenticationError("Invalid email or password")
    if not user.is_active:
        raise AuthenticationError("User account is inactive")

    token = create_access_token(user.id)

    response.set_cookie(
        key="access_token",
        value=f"Bearer {token}",
        httponly=True,
        secure=settings.COOKIE_SECURE,  # Set to True in HTTPS production
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    logger.info("User %s logged in", user.id)
    return LoginResponse(user=UserRead.model_validate(user), token=token)


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    response: Response,
    token: str | None = Depends(get_bearer_token),
    db: AsyncSession = Depends(get_db),
) -> LogoutResponse:
    """Revoke the presented token and clear the auth cookie."""
    response.delete_cookie("access_token")
    payload = decode_access_token(token) if token else None
    if payload is not None and payload.get("jti"):
        if await db.get(RevokedToken, payload["jti"]) is None:
            db.add(RevokedToken(jti=payload["jti"], expires_at=token_expiry(payload)))
            await db.commit()
        logger.info("Token revoked for user %s", payload.get("sub"))
    return LogoutResponse(message="Logged out")


@router.get("/me", response_model=UserRead)
async def read_current_user(
    current_user: User = Depends(get_current_active_user),
) -> User:
    """Return profile of the currently authenticated user."""
    return current_user


@router.get("/me/policy", response_model=PolicyRead)
async def read_current_policy(
    current_user: User = Depends(get_current_active_user),
) -> PolicyRead:
    """Landing route and reachable screens / actions for the caller's role."""
    policy = policy_for(current_user.role)
    return PolicyRead(
        role=current_user.role,
        landing_route=policy.landing_route.value,
        allowed_routes=sorted(r.value for r in policy.allowed_routes),
        allowed_actions=sorted(a.value for a in policy.allowed_actions),
    )


# ── User management (admin-only) ───────────────────────────────────
@router.post("/users", response_model=UserRead, status_code=201)
async def create_user(
    body: UserCreate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> User:
    """Create a new user account with any role (admin only)."""
    return await _create_account(db, body)
