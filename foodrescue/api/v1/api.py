"""
V1 API router aggregator: wires all endpoint modules together.
"""

from fastapi import APIRouter

from foodrescue.api.v1.endpoints import auth, foods, health, orders

api_router = APIRouter()

# Identity store (register, login, me, logout, user management)
api_router.include_router(auth.router)

# Food catalog
api_router.include_router(foods.router)

# Checkout, redemption, expiry
api_router.include_router(orders.router)

api_router.include_router(health.router)
