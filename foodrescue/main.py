"""
FoodRescue: Application entry point.

This is the **only** file that assembles the app. All business logic
lives in the `api/`, `services/`, `models/`, and `core/` packages.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import secrets
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import select

from foodrescue.api.v1.api import api_router
from foodrescue.api.v1.deps import get_order_engine
from foodrescue.api.v1.endpoints.auth import limiter
from foodrescue.core.config import settings
from foodrescue.core.demo import DEMO_LISTINGS, DEMO_USERS
from foodrescue.core.exceptions import register_exception_handlers
from foodrescue.core.security import get_password_hash
from foodrescue.db.base import Base
from foodrescue.db.session import async_session_factory, engine

# Ensure all models are imported so metadata.create_all can see them
from foodrescue.models.listing import FoodListing
from foodrescue.models.order import Order  # noqa: F401
from foodrescue.models.user import User

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


async def _seed_admin() -> None:
    async with async_session_factory() as session:
        result = await session.execute(
            select(User).where(User.email == settings.FIRST_ADMIN_EMAIL)
        )
        if result.scalar_one_or_none() is None:
            admin = User(
                email=settings.FIRST_ADMIN_EMAIL,
                hashed_password=get_password_hash(settings.FIRST_ADMIN_PASSWORD),
                full_name="System Administrator",
                role="admin",
            )
            session.add(admin)
            await session.commit()
            logger.info(
                "Default admin created: %s (password: <redacted>)",
                settings.FIRST_ADMIN_EMAIL,
            )


async def _seed_demo_data() -> None:
    """Demo identities (unusable passwords) and their sample listings."""
    async with async_session_factory() as session:
        created = 0
        for profile in DEMO_USERS.values():
            if await session.get(User, profile["id"]) is None:
                session.add(
                    User(**profile, hashed_password=get_password_hash(secrets.token_urlsafe(32)))
                )
                created += 1
        await session.flush()
        for listing in DEMO_LISTINGS:
            if await session.get(FoodListing, listing["id"]) is None:
                session.add(FoodListing(**listing))
                created += 1
        await session.commit()
        if created:
            logger.info("Seeded %d demo record(s)", created)


async def _expiry_sweep() -> None:
    """Periodically expire paid orders whose pickup window has closed."""
    order_engine = get_order_engine()
    while True:
        await asyncio.sleep(settings.EXPIRY_SWEEP_INTERVAL_SECONDS)
        try:
            async with async_session_factory() as session:
                count = await order_engine.expire_overdue(session)
            if count:
                logger.info("Expiry sweep expired %d order(s)", count)
        except Exception:
            logger.exception("Expiry sweep failed")


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(_app: FastAPI):
    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialised")

    await _seed_admin()
    if settings.SEED_DEMO_DATA:
        await _seed_demo_data()

    sweeper = asyncio.create_task(_expiry_sweep())
    logger.info("%s v%s started", settings.PROJECT_NAME, settings.VERSION)
    yield
    sweeper.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await sweeper
    await engine.dispose()
    logger.info("Shutdown complete")


# ── App factory ─────────────────────────────────────────────────────
def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="Surplus-food rescue marketplace: identity and order issuance",
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    application.state.limiter = limiter

    # CORS
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Global exception handlers (prevent stack-trace leakage)
    register_exception_handlers(application)

    # Mount API v1
    application.include_router(api_router, prefix=settings.API_V1_PREFIX)

    return application


app = create_app()
