"""
Food catalog endpoints.

- GET operations are public (the landing page browses listings).
- POST /foods requires a seller role (restaurant / grocery).
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from foodrescue.api.v1.deps import get_db, require_action
from foodrescue.core.roles import Action
from foodrescue.models.listing import FoodListing
from foodrescue.models.user import User
from foodrescue.schemas.listing import ListingCreate, ListingRead
from foodrescue.services.catalog import FoodCatalog

router = APIRouter(prefix="/foods", tags=["foods"])
logger = logging.getLogger(__name__)


@router.get("", response_model=list[ListingRead])
async def list_foods(
    seller_id: str | None = Query(default=None),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
) -> list[FoodListing]:
    """Active listings, newest first."""
    return await FoodCatalog(db).list_active(seller_id=seller_id, skip=skip, limit=limit)


@router.get("/{food_id}", response_model=ListingRead)
async def get_food(food_id: str, db: AsyncSession = Depends(get_db)) -> FoodListing:
    return await FoodCatalog(db).get_by_id(food_id)


@router.post("", response_model=ListingRead, status_code=201)
async def create_food(
    body: ListingCreate,
    db: AsyncSession = Depends(get_db),
    seller: User = Depends(require_action(Action.LISTING_CREATE)),
) -> FoodListing:
    """Publish surplus food for rescue."""
    listing = FoodListing(seller_id=seller.id, **body.model_dump())
    db.add(listing)
    await db.commit()
    await db.refresh(listing)
    logger.info("Listing %s published by %s", listing.id, seller.id)
    return listing
