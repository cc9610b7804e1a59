"""
Client session manager: owns the one authenticated identity of a running
client and mirrors it into the durable snapshot.

Lifecycle::

    manager = SessionManager(identity, store)
    await manager.restore()                  # on startup
    await manager.login_with_credentials(...) / login_as_demo(role)
    await manager.logout()

Every state change goes through ``_lock``, so a restore, login or logout
finishes replacing the session before the next one starts.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from pydantic import ValidationError

from foodrescue.client.authenticators import (AuthenticationResult,
                                              Authenticator, AuthMethod,
                                              CredentialAuthenticator,
                                              DemoAuthenticator)
from foodrescue.client.identity import HttpIdentityService, IdentityService
from foodrescue.client.storage import (TOKEN_SLOT, USER_SLOT, FileSnapshotStore,
                                       SnapshotStore)
from foodrescue.core.config import settings
from foodrescue.core.errors import AuthenticationError, StorageUnavailable
from foodrescue.core.roles import Role, Route, RoutePolicy, policy_for
from foodrescue.schemas.user import UserRead

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    current_user: UserRead | None = None
    token: str | None = None
    method: AuthMethod | None = None

    def __post_init__(self) -> None:
        if self.token is not None and self.current_user is None:
            raise ValueError("A token requires a resolved user")

    @property
    def is_authenticated(self) -> bool:
        return self.current_user is not None

    @property
    def policy(self) -> RoutePolicy:
        return policy_for(self.current_user.role if self.current_user else None)


ANONYMOUS = Session()


class SessionManager:
    def __init__(
        self,
        identity: IdentityService,
        store: SnapshotStore,
        demo_enabled: bool = settings.DEMO_LOGIN_ENABLED,
    ) -> None:
        self.identity = identity
        self.store = store
        self.demo_enabled = demo_enabled
        self._session = ANONYMOUS
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls) -> "SessionManager":
        """Manager talking HTTP to ``IDENTITY_SERVICE_URL``, persisting to
        ``SESSION_SNAPSHOT_PATH``."""
        return cls(
            identity=HttpIdentityService(base_url=settings.IDENTITY_SERVICE_URL),
            store=FileSnapshotStore(settings.SESSION_SNAPSHOT_PATH),
        )

    # ── Read side ───────────────────────────────────────────────────
    @property
    def session(self) -> Session:
        return self._session

    @property
    def current_user(self) -> UserRead | None:
        return self._session.current_user

    @property
    def is_authenticated(self) -> bool:
        return self._session.is_authenticated

    @property
    def landing_route(self) -> Route:
        return self._session.policy.landing_route

    def can_access(self, route: Route | str) -> bool:
        return self._session.policy.allows_route(route)

    # ── Restore ─────────────────────────────────────────────────────
    async def restore(self) -> Session:
        """Re-establish the session from the snapshot; never raises.

        A saved user is adopted as-is. Failing that, a saved token is
        exchanged with the identity service; a token that cannot be
        resolved is dropped.
        """
        async with self._lock:
            try:
                saved_user = self.store.get(USER_SLOT)
                token = self.store.get(TOKEN_SLOT)
            except StorageUnavailable as e:
                logger.warning("Session snapshot unavailable, starting signed out: %s", e)
                self._session = ANONYMOUS
                return self._session

            if saved_user:
                try:
                    user = UserRead.model_validate_json(saved_user)
                except ValidationError:
                    logger.warning("Discarding unreadable saved user")
                else:
                    self._session = Session(
                        current_user=user, token=token, method=AuthMethod.RESTORED
                    )
                    return self._session

            if not token:
                self._session = ANONYMOUS
                return self._session

            try:
                result = await self.identity.get_current_user(token)
            except AuthenticationError as e:
                logger.info("Saved token could not be resolved: %s", e)
                self._session = ANONYMOUS
                self._clear_snapshot()
                return self._session
            except Exception:
                logger.warning("Restoring the saved token failed", exc_info=True)
                self._session = ANONYMOUS
                self._clear_snapshot()
                return self._session

            self._adopt(
                AuthenticationResult(user=result.user, method=AuthMethod.RESTORED, token=token)
            )
            return self._session

    # ── Login ───────────────────────────────────────────────────────
    async def login(self, authenticator: Authenticator) -> Session:
        """Run *authenticator* and adopt its identity, replacing any previous one.

        On ``AuthenticationError`` the current session is left untouched.
        """
        async with self._lock:
            result = await authenticator.authenticate()
            self._adopt(result)
            logger.info("Signed in as %s via %s", result.user.id, result.method.value)
            return self._session

    async def login_with_credentials(self, identifier: str, secret: str) -> Session:
        return await self.login(CredentialAuthenticator(self.identity, identifier, secret))

    async def login_as_demo(self, role: Role | str) -> Session:
        return await self.login(DemoAuthenticator(role, enabled=self.demo_enabled))

    # ── Logout ──────────────────────────────────────────────────────
    async def logout(self) -> None:
        """Clear the session locally, then revoke the token if there was one."""
        async with self._lock:
            token = self._session.token
            if token is None:
                try:
                    token = self.store.get(TOKEN_SLOT)
                except StorageUnavailable:
                    token = None
            self._session = ANONYMOUS
            self._clear_snapshot()

            if token:
                try:
                    await self.identity.logout(token)
                except Exception:
                    logger.warning("Token revocation failed (ignored)", exc_info=True)

    # ── Internals ───────────────────────────────────────────────────
    def _adopt(self, result: AuthenticationResult) -> None:
        self._session = Session(
            current_user=result.user, token=result.token, method=result.method
        )
        try:
            self.store.set(USER_SLOT, result.user.model_dump_json())
            if result.token:
                self.store.set(TOKEN_SLOT, result.token)
            else:
                self.store.remove(TOKEN_SLOT)
        except StorageUnavailable as e:
            logger.warning("Session will not survive a restart: %s", e)

    def _clear_snapshot(self) -> None:
        try:
            self.store.remove(USER_SLOT, TOKEN_SLOT)
        except StorageUnavailable as e:
            logger.warning("Could not clear session snapshot: %s", e)
