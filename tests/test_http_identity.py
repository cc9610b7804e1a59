"""
Client SDK against the real API: HttpIdentityService and SessionManager
talking to the app over an ASGI transport.
"""

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from foodrescue.client.authenticators import AuthMethod
from foodrescue.client.identity import HttpIdentityService
from foodrescue.client.session import SessionManager
from foodrescue.client.storage import (TOKEN_SLOT, FileSnapshotStore,
                                       MemorySnapshotStore)
from foodrescue.core.errors import AuthenticationError
from foodrescue.core.roles import Role, Route
from foodrescue.main import app
from conftest import TEST_PASSWORD


@pytest.fixture
async def identity(async_client):
    # async_client installs the database overrides on the app.
    client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test/api/v1/")
    async with HttpIdentityService(client=client) as service:
        yield service
    await client.aclose()


@pytest.mark.asyncio
async def test_login_and_resolve_token(identity, make_user):
    user = await make_user(Role.RESTAURANT, email="kitchen@example.com")

    result = await identity.login("kitchen@example.com", TEST_PASSWORD)
    assert result.user.id == user.id
    assert result.user.role is Role.RESTAURANT
    assert result.token

    resolved = await identity.get_current_user(result.token)
    assert resolved.user.id == user.id


@pytest.mark.asyncio
async def test_login_failure_carries_server_message(identity, make_user):
    await make_user(email="kitchen@example.com")
    with pytest.raises(AuthenticationError) as exc_info:
        await identity.login("kitchen@example.com", "not-the-password")
    assert exc_info.value.detail == "Invalid email or password"


@pytest.mark.asyncio
async def test_logout_revokes_token_remotely(identity, make_user):
    await make_user(email="kitchen@example.com")
    result = await identity.login("kitchen@example.com", TEST_PASSWORD)

    await identity.logout(result.token)

    with pytest.raises(AuthenticationError):
        await identity.get_current_user(result.token)


@pytest.mark.asyncio
async def test_unreachable_service_is_a_login_failure():
    client = AsyncClient(base_url="http://127.0.0.1:9/api/v1/", timeout=0.5)
    async with HttpIdentityService(client=client) as service:
        with pytest.raises(AuthenticationError):
            await service.login("a@example.com", "password123")
    await client.aclose()


@pytest.mark.asyncio
async def test_session_round_trip_over_http(identity, make_user, tmp_path):
    await make_user(Role.NGO, email="bank@example.com")
    path = tmp_path / "session.json"

    manager = SessionManager(identity, FileSnapshotStore(path))
    session = await manager.login_with_credentials("bank@example.com", TEST_PASSWORD)
    assert session.method is AuthMethod.CREDENTIALS
    assert manager.landing_route is Route.HOME
    token = session.token

    # A client holding only the token resolves the user remotely.
    token_only = SessionManager(identity, MemorySnapshotStore({TOKEN_SLOT: token}))
    restored = await token_only.restore()
    assert restored.current_user.email == "bank@example.com"

    await manager.logout()
    assert not manager.is_authenticated

    stale = SessionManager(identity, MemorySnapshotStore({TOKEN_SLOT: token}))
    assert not (await stale.restore()).is_authenticated


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="<html>bad gateway page</html>"),
        httpx.Response(200, json=[1, 2]),
        httpx.Response(200, json={"success": True}),
    ],
)
async def test_malformed_login_body_is_a_login_failure(response):
    transport = httpx.MockTransport(lambda request: response)
    client = AsyncClient(transport=transport, base_url="http://test/api/v1/")
    store = MemorySnapshotStore()

    async with HttpIdentityService(client=client) as service:
        manager = SessionManager(service, store)
        with pytest.raises(AuthenticationError):
            await manager.login_with_credentials("a@example.com", "password123")

    assert not manager.is_authenticated
    assert store.slots == {}
    await client.aclose()
