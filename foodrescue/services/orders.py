"""
Order issuance: checkout, redemption and expiry of food-rescue orders.

Checkout reserves stock, charges the payment gateway and, only once the
charge succeeds, persists a ``paid`` order carrying a fresh pickup code.
A declined, timed-out or abandoned charge returns the reserved portions and
leaves no order behind.

Retries are keyed by ``(buyer_id, idempotency_key)``: a retry after
completion returns the stored order, and a retry while the first attempt is
still in flight awaits that same attempt instead of charging twice.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timedelta, timezone
from functools import partial

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from foodrescue.core.config import settings
from foodrescue.core.errors import (AlreadyRedeemed, IdempotencyConflict,
                                    InsufficientStock, InvalidPickupCode,
                                    InvalidQuantity, NotFound, OrderExpired,
                                    PaymentDeclined, PaymentTimedOut,
                                    PermissionDenied)
from foodrescue.core.roles import Role
from foodrescue.models.order import Order, OrderStatus
from foodrescue.models.user import User
from foodrescue.services.catalog import FoodCatalog
from foodrescue.services.payments import (ChargeOutcome, ChargeResult,
                                          PaymentGateway)
from foodrescue.services.pickup_codes import PickupCodeGenerator

logger = logging.getLogger(__name__)

_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING_PAYMENT: frozenset({OrderStatus.PAID}),
    OrderStatus.PAID: frozenset({OrderStatus.REDEEMED, OrderStatus.EXPIRED}),
    OrderStatus.REDEEMED: frozenset(),
    OrderStatus.EXPIRED: frozenset(),
}


def _as_utc(dt: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes.
    if dt is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def transition(order: Order, target: OrderStatus) -> None:
    """Move *order* to *target*, rejecting moves the state machine forbids."""
    current = OrderStatus(order.status)
    if target not in _TRANSITIONS[current]:
        raise ValueError(f"Illegal order transition {current.value} -> {target.value}")
    order.status = target.value


class OrderIssuanceEngine:
    def __init__(
        self,
        gateway: PaymentGateway,
        codes: PickupCodeGenerator | None = None,
        pickup_window: timedelta | None = None,
        payment_timeout: float = settings.PAYMENT_TIMEOUT_SECONDS,
    ) -> None:
        self.gateway = gateway
        self.codes = codes or PickupCodeGenerator()
        if pickup_window is None:
            pickup_window = timedelta(minutes=settings.PICKUP_WINDOW_MINUTES)
        self.pickup_window = pickup_window
        self.payment_timeout = payment_timeout
        self._in_flight: dict[tuple[str, str], asyncio.Future[Order]] = {}

    # ── Checkout ────────────────────────────────────────────────────
    def is_in_flight(self, buyer_id: str, idempotency_key: str) -> bool:
        return (buyer_id, idempotency_key) in self._in_flight

    async def submit_payment(
        self,
        db: AsyncSession,
        listing_id: str,
        quantity: int,
        buyer_id: str,
        idempotency_key: str,
    ) -> Order:
        """Charge for *quantity* portions of a listing and mint a paid order.

        Raises:
            InvalidQuantity: quantity below 1.
            NotFound: unknown or inactive listing / buyer.
            InsufficientStock: fewer portions left than requested.
            PaymentDeclined / PaymentTimedOut: the charge failed; no order exists.
            IdempotencyConflict: the key was already used for another checkout.
        """
        if quantity < 1:
            raise InvalidQuantity()
        if not idempotency_key:
            raise ValueError("idempotency_key is required")

        key = (buyer_id, idempotency_key)
        pending = self._in_flight.get(key)
        if pending is not None:
            logger.info("Checkout %s already in flight for buyer %s; joining", idempotency_key, buyer_id)
            return await asyncio.shield(pending)

        future: asyncio.Future[Order] = asyncio.get_running_loop().create_future()
        self._in_flight[key] = future
        try:
            existing = await self._find_by_key(db, buyer_id, idempotency_key)
            if existing is not None:
                order = self._replay(existing, listing_id, quantity)
            else:
                order = await self._issue(db, listing_id, quantity, buyer_id, idempotency_key)
        except asyncio.CancelledError:
            future.cancel()
            raise
        except BaseException as exc:
            future.set_exception(exc)
            future.exception()  # retrieved here; joined callers re-raise it
            raise
        else:
            future.set_result(order)
            return order
        finally:
            self._in_flight.pop(key, None)

    async def _find_by_key(
        self, db: AsyncSession, buyer_id: str, idempotency_key: str
    ) -> Order | None:
        result = await db.execute(
            select(Order).where(
                Order.buyer_id == buyer_id, Order.idempotency_key == idempotency_key
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _replay(existing: Order, listing_id: str, quantity: int) -> Order:
        if existing.food_id != listing_id or existing.quantity != quantity:
            raise IdempotencyConflict()
        logger.info("Replaying order %s for repeated idempotency key", existing.id)
        return existing

    async def _issue(
        self,
        db: AsyncSession,
        listing_id: str,
        quantity: int,
        buyer_id: str,
        idempotency_key: str,
    ) -> Order:
        buyer = await db.get(User, buyer_id)
        if buyer is None or not buyer.is_active:
            raise NotFound("Buyer not found")

        catalog = FoodCatalog(db)
        listing = await catalog.get_by_id(listing_id)

        order = Order(
            id=uuid.uuid4().hex,
            food_id=listing.id,
            buyer_id=buyer.id,
            seller_id=listing.seller_id,
            quantity=quantity,
            unit_price=listing.discounted_price,
            total_price=listing.discounted_price * quantity,
            idempotency_key=idempotency_key,
            status=OrderStatus.PENDING_PAYMENT.value,
            created_at=datetime.now(timezone.utc),
        )

        if not await catalog.reserve(listing.id, quantity):
            await db.commit()
            raise InsufficientStock()
        await db.commit()

        try:
            result = await asyncio.wait_for(
                self.gateway.charge(order.total_price, order.id),
                timeout=self.payment_timeout,
            )
        except asyncio.TimeoutError:
            result = ChargeResult(outcome=ChargeOutcome.TIMED_OUT, reference=order.id)
        except BaseException:
            logger.warning("Checkout %s abandoned during payment; releasing stock", order.id)
            await self._release(db, order)
            raise

        if result.outcome is ChargeOutcome.DECLINED:
            await self._release(db, order)
            logger.info("Payment declined for checkout %s", order.id)
            raise PaymentDeclined(result.message)
        if not result.paid:
            await self._release(db, order)
            logger.warning("Payment timed out for checkout %s", order.id)
            raise PaymentTimedOut()

        try:
            order.pickup_code = await self.codes.issue(partial(self._code_outstanding, db))
            now = datetime.now(timezone.utc)
            transition(order, OrderStatus.PAID)
            order.paid_at = now
            order.expires_at = now + self.pickup_window
            db.add(order)
            await db.commit()
        except BaseException:
            # The charge already went through; this needs a manual refund.
            logger.error("Paid checkout %s (ref %s) could not be stored", order.id, result.reference)
            await db.rollback()
            await self._release(db, order)
            raise

        logger.info(
            "Order %s paid: %d x listing %s = %d", order.id, quantity, listing.id, order.total_price
        )
        return order

    async def _code_outstanding(self, db: AsyncSession, code: str) -> bool:
        result = await db.execute(
            select(Order.id)
            .where(Order.pickup_code == code, Order.status == OrderStatus.PAID.value)
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def _release(self, db: AsyncSession, order: Order) -> None:
        await FoodCatalog(db).release(order.food_id, order.quantity)
        await db.commit()

    # ── Redemption ──────────────────────────────────────────────────
    async def redeem(
        self, db: AsyncSession, order_id: str, pickup_code: str, seller: User
    ) -> Order:
        """Mark a paid order picked up once the buyer's code checks out."""
        result = await db.execute(select(Order).where(Order.id == order_id).with_for_update())
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFound("Order not found")
        if seller.role != Role.ADMIN.value and order.seller_id != seller.id:
            raise PermissionDenied("Only the listing's seller can redeem this order")

        status = OrderStatus(order.status)
        if status is OrderStatus.REDEEMED:
            raise AlreadyRedeemed()
        if status is OrderStatus.EXPIRED:
            raise OrderExpired()
        if status is not OrderStatus.PAID:
            raise NotFound("Order is not awaiting pickup")

        now = datetime.now(timezone.utc)
        if self._overdue(order, now):
            await self._expire(db, order)
            await db.commit()
            raise OrderExpired()

        if not self.codes.matches(order.pickup_code, pickup_code):
            # Nothing changed; ends the transaction holding the row lock.
            await db.commit()
            logger.info("Rejected pickup code for order %s", order.id)
            raise InvalidPickupCode()

        transition(order, OrderStatus.REDEEMED)
        order.redeemed_at = now
        await db.commit()
        logger.info("Order %s redeemed by %s", order.id, seller.id)
        return order

    # ── Expiry ──────────────────────────────────────────────────────
    @staticmethod
    def _overdue(order: Order, now: datetime) -> bool:
        expires_at = _as_utc(order.expires_at)
        return expires_at is not None and expires_at <= now

    async def _expire(self, db: AsyncSession, order: Order) -> None:
        transition(order, OrderStatus.EXPIRED)
        await FoodCatalog(db).release(order.food_id, order.quantity)
        logger.info("Order %s expired unredeemed", order.id)

    async def expire(
        self, db: AsyncSession, order_id: str, now: datetime | None = None
    ) -> bool:
        """Expire one order if it is paid and past its window."""
        result = await db.execute(select(Order).where(Order.id == order_id).with_for_update())
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFound("Order not found")
        now = now or datetime.now(timezone.utc)
        if order.status != OrderStatus.PAID.value or not self._overdue(order, now):
            return False
        await self._expire(db, order)
        await db.commit()
        return True

    async def expire_overdue(self, db: AsyncSession, now: datetime | None = None) -> int:
        """Expire every paid order past its pickup window; returns the count."""
        now = now or datetime.now(timezone.utc)
        result = await db.execute(
            select(Order)
            .where(Order.status == OrderStatus.PAID.value, Order.expires_at <= now)
            .with_for_update()
        )
        overdue = list(result.scalars().all())
        for order in overdue:
            await self._expire(db, order)
        await db.commit()
        return len(overdue)
