"""
Identity store endpoints: register, login, me, policy, logout, admin user creation.
"""

import pytest
from httpx import AsyncClient

from foodrescue.core.roles import Role
from conftest import TEST_PASSWORD

API = "/api/v1"


@pytest.mark.asyncio
async def test_register_and_login(async_client: AsyncClient):
    resp = await async_client.post(
        f"{API}/auth/register",
        json={
            "email": "  Ada@Example.com ",
            "password": "correct-horse",
            "full_name": "Ada",
            "role": "ngo",
        },
    )
    assert resp.status_code == 201
    created = resp.json()
    assert created["email"] == "ada@example.com"
    assert created["role"] == "ngo"
    assert "hashed_password" not in created

    resp = await async_client.post(
        f"{API}/auth/login", json={"email": "ada@example.com", "password": "correct-horse"}
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["user"]["id"] == created["id"]
    assert body["token"]


@pytest.mark.asyncio
async def test_register_rejects_admin_role(async_client: AsyncClient):
    resp = await async_client.post(
        f"{API}/auth/register",
        json={"email": "boss@example.com", "password": "password123", "role": "admin"},
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_register_rejects_short_password(async_client: AsyncClient):
    resp = await async_client.post(
        f"{API}/auth/register", json={"email": "a@example.com", "password": "short"}
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_register_duplicate_email(async_client: AsyncClient, make_user):
    await make_user(email="taken@example.com")
    resp = await async_client.post(
        f"{API}/auth/register", json={"email": "taken@example.com", "password": "password123"}
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Email already registered"


@pytest.mark.asyncio
async def test_login_sets_httponly_cookie(async_client: AsyncClient, make_user):
    user = await make_user(email="cookie@example.com")
    resp = await async_client.post(
        f"{API}/auth/login", json={"email": "cookie@example.com", "password": TEST_PASSWORD}
    )
    assert resp.status_code == 200

    cookie = resp.headers.get("set-cookie", "")
    assert "access_token=" in cookie
    assert "HttpOnly" in cookie
    assert "samesite=lax" in cookie.lower()
    assert resp.json()["user"]["id"] == user.id


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "email, password",
    [("cookie@example.com", "wrong-password"), ("nobody@example.com", TEST_PASSWORD)],
)
async def test_login_rejected(async_client: AsyncClient, make_user, email, password):
    await make_user(email="cookie@example.com")
    resp = await async_client.post(
        f"{API}/auth/login", json={"email": email, "password": password}
    )
    assert resp.status_code == 401
    body = resp.json()
    assert body["detail"] == "Invalid email or password"
    assert body["success"] is False
    assert "set-cookie" not in resp.headers


@pytest.mark.asyncio
async def test_login_inactive_account(async_client: AsyncClient, make_user):
    await make_user(email="gone@example.com", is_active=False)
    resp = await async_client.post(
        f"{API}/auth/login", json={"email": "gone@example.com", "password": TEST_PASSWORD}
    )
    assert resp.status_code == 401
    assert resp.json()["detail"] == "User account is inactive"


@pytest.mark.asyncio
async def test_me_requires_token(async_client: AsyncClient):
    resp = await async_client.get(f"{API}/auth/me")
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_me_rejects_garbage_token(async_client: AsyncClient):
    resp = await async_client.get(f"{API}/auth/me", headers={"Authorization": "Bearer nope"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_me_returns_profile(async_client: AsyncClient, make_user, headers_for):
    user = await make_user(Role.GROCERY, full_name="Corner Shop")
    resp = await async_client.get(f"{API}/auth/me", headers=headers_for(user))
    assert resp.status_code == 200
    assert resp.json()["full_name"] == "Corner Shop"
    assert resp.json()["role"] == "grocery"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "role, landing, action",
    [
        (Role.CONSUMER, "home", "order:create"),
        (Role.NGO, "home", "order:create"),
        (Role.RESTAURANT, "seller_dashboard", "order:redeem"),
        (Role.GROCERY, "seller_dashboard", "listing:create"),
        (Role.ADMIN, "admin_dashboard", "user:manage"),
    ],
)
async def test_policy_per_role(async_client: AsyncClient, make_user, headers_for, role, landing, action):
    user = await make_user(role)
    resp = await async_client.get(f"{API}/auth/me/policy", headers=headers_for(user))
    assert resp.status_code == 200
    body = resp.json()
    assert body["role"] == role.value
    assert body["landing_route"] == landing
    assert landing in body["allowed_routes"]
    assert action in body["allowed_actions"]


@pytest.mark.asyncio
async def test_logout_revokes_token(async_client: AsyncClient, make_user):
    await make_user(email="bye@example.com")
    login = await async_client.post(
        f"{API}/auth/login", json={"email": "bye@example.com", "password": TEST_PASSWORD}
    )
    headers = {"Authorization": f"Bearer {login.json()['token']}"}
    assert (await async_client.get(f"{API}/auth/me", headers=headers)).status_code == 200

    resp = await async_client.post(f"{API}/auth/logout", headers=headers)
    assert resp.status_code == 200

    assert (await async_client.get(f"{API}/auth/me", headers=headers)).status_code == 401
    # Logging out twice is harmless.
    assert (await async_client.post(f"{API}/auth/logout", headers=headers)).status_code == 200


@pytest.mark.asyncio
async def test_logout_without_token(async_client: AsyncClient):
    resp = await async_client.post(f"{API}/auth/logout")
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_admin_creates_any_role(async_client: AsyncClient, make_user, headers_for):
    admin = await make_user(Role.ADMIN)
    resp = await async_client.post(
        f"{API}/auth/users",
        headers=headers_for(admin),
        json={"email": "ops@example.com", "password": "password123", "role": "admin"},
    )
    assert resp.status_code == 201
    assert resp.json()["role"] == "admin"


@pytest.mark.asyncio
async def test_non_admin_cannot_create_users(async_client: AsyncClient, make_user, headers_for):
    consumer = await make_user(Role.CONSUMER)
    resp = await async_client.post(
        f"{API}/auth/users",
        headers=headers_for(consumer),
        json={"email": "x@example.com", "password": "password123"},
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_health(async_client: AsyncClient):
    resp = await async_client.get(f"{API}/health")
    assert resp.status_code == 200
    assert resp.json() == {"db": True}
