"""
Client-side view of the identity service.

``IdentityService`` is the transport-agnostic contract the session manager
depends on; ``HttpIdentityService`` implements it against the FoodRescue
API with httpx.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx
from pydantic import ValidationError

from foodrescue.core.config import settings
from foodrescue.core.errors import AuthenticationError
from foodrescue.schemas.user import UserRead

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdentityResult:
    user: UserRead
    token: str | None = None


class IdentityService(Protocol):
    async def login(self, identifier: str, secret: str) -> IdentityResult:
        ...

    async def get_current_user(self, token: str) -> IdentityResult:
        ...

    async def logout(self, token: str) -> None:
        ...


def _error_detail(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        detail = body.get("detail") or body.get("error") or body.get("message")
        if isinstance(detail, str):
            return detail
    return None


class HttpIdentityService:
    """Identity service reached over HTTP.

    Pass a preconfigured ``httpx.AsyncClient`` (e.g. one wired to an ASGI
    transport in tests); otherwise one is created for ``base_url``.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        base_url: str = settings.IDENTITY_SERVICE_URL,
        timeout: float = 10.0,
    ) -> None:
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "HttpIdentityService":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def login(self, identifier: str, secret: str) -> IdentityResult:
        try:
            response = await self.client.post(
                "auth/login", json={"email": identifier, "password": secret}
            )
        except httpx.HTTPError as e:
            logger.warning("Identity service unreachable during login: %s", e)
            raise AuthenticationError() from e

        if response.status_code != 200:
            raise AuthenticationError(_error_detail(response))
        try:
            body = response.json()
        except ValueError as e:
            raise AuthenticationError("Identity service returned no usable profile") from e
        if not isinstance(body, dict):
            raise AuthenticationError("Identity service returned no usable profile")
        if not body.get("success"):
            raise AuthenticationError(body.get("error"))
        try:
            user = UserRead.model_validate(body["user"])
        except (KeyError, ValidationError) as e:
            raise AuthenticationError("Identity service returned no usable profile") from e
        return IdentityResult(user=user, token=body.get("token"))

    async def get_current_user(self, token: str) -> IdentityResult:
        try:
            response = await self.client.get(
                "auth/me", headers={"Authorization": f"Bearer {token}"}
            )
        except httpx.HTTPError as e:
            raise AuthenticationError("Identity service unreachable") from e

        if response.status_code != 200:
            raise AuthenticationError(_error_detail(response) or "Session expired")
        try:
            user = UserRead.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise AuthenticationError("Identity service returned no usable profile") from e
        return IdentityResult(user=user, token=token)

    async def logout(self, token: str) -> None:
        response = await self.client.post(
            "auth/logout", headers={"Authorization": f"Bearer {token}"}
        )
        response.raise_for_status()
