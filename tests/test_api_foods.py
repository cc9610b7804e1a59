"""Food catalog endpoints."""

import pytest
from httpx import AsyncClient

from foodrescue.core.roles import Role

API = "/api/v1"

NEW_LISTING = {
    "name": "Moi Moi",
    "description": "Steamed bean pudding",
    "original_price": 800,
    "discounted_price": 300,
    "quantity_available": 12,
}


@pytest.mark.asyncio
@pytest.mark.parametrize("role", [Role.RESTAURANT, Role.GROCERY])
async def test_seller_publishes_listing(async_client: AsyncClient, make_user, headers_for, role):
    seller = await make_user(role)
    resp = await async_client.post(f"{API}/foods", headers=headers_for(seller), json=NEW_LISTING)

    assert resp.status_code == 201
    body = resp.json()
    assert body["seller_id"] == seller.id
    assert body["discount_percent"] == 62
    assert body["is_active"] is True


@pytest.mark.asyncio
@pytest.mark.parametrize("role", [Role.CONSUMER, Role.NGO, Role.ADMIN])
async def test_non_sellers_cannot_publish(async_client: AsyncClient, make_user, headers_for, role):
    user = await make_user(role)
    resp = await async_client.post(f"{API}/foods", headers=headers_for(user), json=NEW_LISTING)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_discount_cannot_exceed_original(async_client: AsyncClient, make_user, headers_for):
    seller = await make_user(Role.RESTAURANT)
    resp = await async_client.post(
        f"{API}/foods",
        headers=headers_for(seller),
        json={**NEW_LISTING, "discounted_price": 900},
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_listing_is_public(async_client: AsyncClient, make_user, make_listing):
    seller = await make_user(Role.RESTAURANT)
    other = await make_user(Role.GROCERY)
    listing = await make_listing(seller)
    await make_listing(other, name="Bread")
    await make_listing(seller, name="Hidden", is_active=False)

    resp = await async_client.get(f"{API}/foods")
    assert resp.status_code == 200
    assert {item["name"] for item in resp.json()} == {"Jollof Rice & Beef", "Bread"}

    resp = await async_client.get(f"{API}/foods", params={"seller_id": seller.id})
    assert [item["id"] for item in resp.json()] == [listing.id]

    resp = await async_client.get(f"{API}/foods/{listing.id}")
    assert resp.status_code == 200
    assert resp.json()["discounted_price"] == 500


@pytest.mark.asyncio
async def test_unknown_listing(async_client: AsyncClient):
    resp = await async_client.get(f"{API}/foods/does-not-exist")
    assert resp.status_code == 404
    assert resp.json()["error"] == "NotFound"
