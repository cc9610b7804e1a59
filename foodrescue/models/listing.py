"""
Food listing model: surplus food offered by a restaurant or grocery.

Prices are integers in the smallest currency unit.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import (Boolean, CheckConstraint, Column, DateTime, ForeignKey,
                        Integer, String)

from foodrescue.db.base import Base


class FoodListing(Base):
    __tablename__ = "food_listings"
    __table_args__ = (
        CheckConstraint("discounted_price <= original_price", name="ck_listing_discount"),
        CheckConstraint("discounted_price >= 0", name="ck_listing_price_positive"),
        CheckConstraint("quantity_available >= 0", name="ck_listing_stock"),
    )

    id: str = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)  # type: ignore[assignment]
    seller_id: str = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)  # type: ignore[assignment]
    name: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    description: str | None = Column(String(1000), nullable=True)  # type: ignore[assignment]
    image_url: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    original_price: int = Column(Integer, nullable=False)  # type: ignore[assignment]
    discounted_price: int = Column(Integer, nullable=False)  # type: ignore[assignment]
    quantity_available: int = Column(Integer, nullable=False, default=0)  # type: ignore[assignment]
    is_active: bool = Column(Boolean, default=True, server_default="true")  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
