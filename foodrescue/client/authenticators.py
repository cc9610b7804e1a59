"""
The two login paths, unified into one ``AuthenticationResult``.

``CredentialAuthenticator`` verifies an email/password pair with the
identity service; ``DemoAuthenticator`` picks the canonical identity for a
role without contacting anything. Both hand the session manager the same
shape, so nothing downstream needs to know which path was taken.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass
from enum import Enum

from foodrescue.client.identity import IdentityService
from foodrescue.core.config import settings
from foodrescue.core.demo import demo_user
from foodrescue.core.errors import AuthenticationError
from foodrescue.core.roles import Role
from foodrescue.schemas.user import UserRead


class AuthMethod(str, Enum):
    CREDENTIALS = "credentials"
    DEMO = "demo"
    RESTORED = "restored"


@dataclass(frozen=True)
class AuthenticationResult:
    user: UserRead
    method: AuthMethod
    token: str | None = None

    def __post_init__(self) -> None:
        if self.method is AuthMethod.DEMO and self.token is not None:
            raise ValueError("Demo sessions carry no token")


class Authenticator(abc.ABC):
    @abc.abstractmethod
    async def authenticate(self) -> AuthenticationResult:
        """Establish an identity or raise ``AuthenticationError``."""


class CredentialAuthenticator(Authenticator):
    def __init__(self, identity: IdentityService, identifier: str, secret: str) -> None:
        self.identity = identity
        self.identifier = identifier
        self.secret = secret

    async def authenticate(self) -> AuthenticationResult:
        result = await self.identity.login(self.identifier, self.secret)
        if not result.token:
            raise AuthenticationError("Identity service issued no token")
        return AuthenticationResult(
            user=result.user, method=AuthMethod.CREDENTIALS, token=result.token
        )


class DemoAuthenticator(Authenticator):
    """Trusted, non-production shortcut: no credentials are checked."""

    def __init__(self, role: Role | str, enabled: bool = settings.DEMO_LOGIN_ENABLED) -> None:
        self.role = Role(role)
        self.enabled = enabled

    async def authenticate(self) -> AuthenticationResult:
        if not self.enabled:
            raise AuthenticationError("Demo login is disabled")
        user = UserRead.model_validate(demo_user(self.role))
        return AuthenticationResult(user=user, method=AuthMethod.DEMO)
