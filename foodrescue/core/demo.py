"""
Canonical demo identities and sample listings.

The client uses ``DEMO_USERS`` for the demo login path; the server seeds the
same ids on startup (when ``SEED_DEMO_DATA`` is on) so orders placed for a
demo identity resolve to a real buyer / seller row.
"""

from __future__ import annotations

from foodrescue.core.roles import Role

DEMO_USERS: dict[Role, dict] = {
    Role.CONSUMER: {
        "id": "demo-consumer",
        "email": "chidi@example.com",
        "full_name": "Chidi Okonkwo",
        "role": Role.CONSUMER.value,
        "phone": None,
        "address": "Yaba, Lagos",
    },
    Role.RESTAURANT: {
        "id": "demo-restaurant",
        "email": "nkechi@example.com",
        "full_name": "Mama Nkechi Kitchen",
        "role": Role.RESTAURANT.value,
        "phone": None,
        "address": "Lekki Phase 1, Lagos",
    },
    Role.GROCERY: {
        "id": "demo-grocery",
        "email": "shoprite@example.com",
        "full_name": "ShopRite Lekki",
        "role": Role.GROCERY.value,
        "phone": None,
        "address": "Lekki, Lagos",
    },
    Role.NGO: {
        "id": "demo-ngo",
        "email": "info@lagosfoodbank.org",
        "full_name": "Lagos Food Bank",
        "role": Role.NGO.value,
        "phone": None,
        "address": "Ikeja, Lagos",
    },
    Role.ADMIN: {
        "id": "demo-admin",
        "email": "admin@foodrescue.ng",
        "full_name": "Admin User",
        "role": Role.ADMIN.value,
        "phone": None,
        "address": "HQ",
    },
}

# Prices are in the smallest currency unit.
DEMO_LISTINGS: list[dict] = [
    {
        "id": "f1",
        "seller_id": "demo-restaurant",
        "name": "Jollof Rice & Beef",
        "description": "Smoky party jollof rice with two pieces of fried beef.",
        "original_price": 2500,
        "discounted_price": 1200,
        "quantity_available": 5,
    },
    {
        "id": "f2",
        "seller_id": "demo-restaurant",
        "name": "Fried Plantain (Dodo)",
        "description": "Golden fried plantain slices, perfect side dish.",
        "original_price": 1000,
        "discounted_price": 500,
        "quantity_available": 10,
    },
    {
        "id": "g1",
        "seller_id": "demo-grocery",
        "name": "Fresh Tomatoes (5kg)",
        "description": "Slightly overripe but perfect for stew. Use within 2 days.",
        "original_price": 3500,
        "discounted_price": 1500,
        "quantity_available": 10,
    },
    {
        "id": "g2",
        "seller_id": "demo-grocery",
        "name": "Sliced Bread (10 loaves)",
        "description": "Day-old bread, still soft. Perfect for toast or sandwiches.",
        "original_price": 5000,
        "discounted_price": 2500,
        "quantity_available": 15,
    },
]


def demo_user(role: Role | str) -> dict:
    """Return a copy of the canonical demo profile for *role*."""
    return dict(DEMO_USERS[Role(role)])
