"""Pydantic schemas for food listings."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, computed_field, model_validator


class ListingCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    image_url: str | None = None
    original_price: int = Field(ge=0)
    discounted_price: int = Field(ge=0)
    quantity_available: int = Field(ge=0)

    @model_validator(mode="after")
    def _discount_not_above_original(self) -> "ListingCreate":
        if self.discounted_price > self.original_price:
            raise ValueError("discounted_price must not exceed original_price")
        return self


class ListingRead(BaseModel):
    id: str
    seller_id: str
    name: str
    description: str | None
    image_url: str | None
    original_price: int
    discounted_price: int
    quantity_available: int
    is_active: bool
    created_at: datetime | None

    model_config = {"from_attributes": True}

    @computed_field  # type: ignore[prop-decorator]
    @property
    def discount_percent(self) -> int:
        if not self.original_price:
            return 0
        return round(100 * (self.original_price - self.discounted_price) / self.original_price)
