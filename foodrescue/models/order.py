"""
Order model: a paid reservation redeemable once with its pickup code.

    pending_payment -> paid -> redeemed
                       paid -> expired
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import (Column, DateTime, ForeignKey, Index, Integer, String,
                        UniqueConstraint, text)

from foodrescue.db.base import Base


class OrderStatus(str, Enum):
    PENDING_PAYMENT = "pending_payment"
    PAID = "paid"
    REDEEMED = "redeemed"
    EXPIRED = "expired"


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (
        UniqueConstraint("buyer_id", "idempotency_key", name="uq_orders_buyer_idempotency"),
        # A pickup code identifies at most one outstanding order.
        Index(
            "uq_orders_outstanding_pickup_code",
            "pickup_code",
            unique=True,
            sqlite_where=text("status = 'paid'"),
            postgresql_where=text("status = 'paid'"),
        ),
        Index("ix_orders_status_expires", "status", "expires_at"),
    )

    id: str = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)  # type: ignore[assignment]
    food_id: str = Column(String(32), ForeignKey("food_listings.id"), nullable=False, index=True)  # type: ignore[assignment]
    buyer_id: str = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)  # type: ignore[assignment]
    seller_id: str = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)  # type: ignore[assignment]
    quantity: int = Column(Integer, nullable=False)  # type: ignore[assignment]
    unit_price: int = Column(Integer, nullable=False)  # type: ignore[assignment]
    total_price: int = Column(Integer, nullable=False)  # type: ignore[assignment]
    pickup_code: str = Column(String(16), nullable=False)  # type: ignore[assignment]
    status: str = Column(  # type: ignore[assignment]
        String(20),
        nullable=False,
        default=OrderStatus.PENDING_PAYMENT.value,
    )
    idempotency_key: str = Column(String(64), nullable=False)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    paid_at: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    expires_at: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    redeemed_at: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
