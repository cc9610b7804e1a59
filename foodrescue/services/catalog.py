"""
Food catalog: read side of listings plus the stock counter checkout uses.
"""

from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from foodrescue.core.errors import NotFound
from foodrescue.models.listing import FoodListing

logger = logging.getLogger(__name__)


class FoodCatalog:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_by_id(self, listing_id: str) -> FoodListing:
        result = await self.db.execute(
            select(FoodListing).where(
                FoodListing.id == listing_id, FoodListing.is_active.is_(True)
            )
        )
        listing = result.scalar_one_or_none()
        if listing is None:
            raise NotFound("Food listing not found")
        return listing

    async def list_active(
        self, seller_id: str | None = None, skip: int = 0, limit: int = 50
    ) -> list[FoodListing]:
        stmt = select(FoodListing).where(FoodListing.is_active.is_(True))
        if seller_id is not None:
            stmt = stmt.where(FoodListing.seller_id == seller_id)
        stmt = stmt.order_by(FoodListing.created_at.desc()).offset(skip).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def reserve(self, listing_id: str, quantity: int) -> bool:
        """Atomically take *quantity* portions; ``False`` if not enough are left.

        Does not commit.
        """
        result = await self.db.execute(
            update(FoodListing)
            .where(
                FoodListing.id == listing_id,
                FoodListing.quantity_available >= quantity,
            )
            .values(quantity_available=FoodListing.quantity_available - quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def release(self, listing_id: str, quantity: int) -> None:
        """Return *quantity* portions to the listing. Does not commit."""
        await self.db.execute(
            update(FoodListing)
            .where(FoodListing.id == listing_id)
            .values(quantity_available=FoodListing.quantity_available + quantity)
            .execution_options(synchronize_session=False)
        )
        logger.info("Released %d portion(s) of listing %s", quantity, listing_id)
