"""
Checkout, order history and pickup redemption endpoints.

- POST /orders: recipients (consumer / ngo) check out a listing.
- POST /orders/{id}/redeem: the listing's seller (or an admin) redeems.
- POST /orders/expire, /orders/{id}/expire: admins expire orders past their
  pickup window.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from foodrescue.api.v1.deps import (get_current_active_user, get_db,
                                    get_order_engine, require_action)
from foodrescue.core.errors import NotFound
from foodrescue.core.roles import SELLER_ROLES, Action, Role
from foodrescue.models.order import Order
from foodrescue.models.user import User
from foodrescue.schemas.order import (ExpireResponse, OrderCreate, OrderRead,
                                      RedeemRequest)
from foodrescue.services.orders import OrderIssuanceEngine

router = APIRouter(prefix="/orders", tags=["orders"])
logger = logging.getLogger(__name__)


def _view_for(order: Order, user: User) -> OrderRead:
    """Only the buyer sees the pickup code; the seller must be shown it."""
    view = OrderRead.model_validate(order)
    if order.buyer_id != user.id:
        view.pickup_code = None
    return view


@router.post("", response_model=OrderRead, status_code=201)
async def create_order(
    body: OrderCreate,
    db: AsyncSession = Depends(get_db),
    engine: OrderIssuanceEngine = Depends(get_order_engine),
    buyer: User = Depends(require_action(Action.ORDER_CREATE)),
) -> Order:
    """Pay for a listing and receive an order with its pickup code.

    Retrying with the same ``idempotency_key`` returns the same order.
    """
    return await engine.submit_payment(
        db,
        listing_id=body.food_id,
        quantity=body.quantity,
        buyer_id=buyer.id,
        idempotency_key=body.idempotency_key,
    )


@router.get("", response_model=list[OrderRead])
async def list_orders(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_active_user),
) -> list[OrderRead]:
    """Buyers get their orders, sellers their incoming orders, admins all."""
    stmt = select(Order)
    if Role(user.role) in SELLER_ROLES:
        stmt = stmt.where(Order.seller_id == user.id)
    elif user.role != Role.ADMIN.value:
        stmt = stmt.where(Order.buyer_id == user.id)
    stmt = stmt.order_by(Order.created_at.desc()).offset(skip).limit(limit)
    result = await db.execute(stmt)
    return [_view_for(order, user) for order in result.scalars().all()]


@router.post("/expire", response_model=ExpireResponse)
async def expire_orders(
    db: AsyncSession = Depends(get_db),
    engine: OrderIssuanceEngine = Depends(get_order_engine),
    _admin: User = Depends(require_action(Action.ORDER_EXPIRE)),
) -> ExpireResponse:
    """Expire every paid order whose pickup window has closed."""
    count = await engine.expire_overdue(db)
    logger.info("Expired %d overdue order(s)", count)
    return ExpireResponse(expired=count)


@router.get("/{order_id}", response_model=OrderRead)
async def get_order(
    order_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_active_user),
) -> OrderRead:
    order = await db.get(Order, order_id)
    if order is None or (
        user.role != Role.ADMIN.value and user.id not in (order.buyer_id, order.seller_id)
    ):
        raise NotFound("Order not found")
    return _view_for(order, user)


@router.post("/{order_id}/redeem", response_model=OrderRead)
async def redeem_order(
    order_id: str,
    body: RedeemRequest,
    db: AsyncSession = Depends(get_db),
    engine: OrderIssuanceEngine = Depends(get_order_engine),
    seller: User = Depends(require_action(Action.ORDER_REDEEM)),
) -> OrderRead:
    """Seller confirms pickup with the code the buyer presents."""
    order = await engine.redeem(db, order_id, body.pickup_code, seller)
    return _view_for(order, seller)


@router.post("/{order_id}/expire", response_model=OrderRead)
async def expire_order(
    order_id: str,
    db: AsyncSession = Depends(get_db),
    engine: OrderIssuanceEngine = Depends(get_order_engine),
    admin: User = Depends(require_action(Action.ORDER_EXPIRE)),
) -> OrderRead:
    """Expire one order if its pickup window has closed; otherwise a no-op."""
    if await engine.expire(db, order_id):
        logger.info("Order %s expired on demand", order_id)
    order = await db.get(Order, order_id)
    return _view_for(order, admin)
