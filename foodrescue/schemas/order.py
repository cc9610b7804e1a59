"""Pydantic schemas for checkout and redemption."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class OrderCreate(BaseModel):
    food_id: str
    quantity: int = Field(ge=1, le=50)
    idempotency_key: str = Field(min_length=8, max_length=64)

    @field_validator("idempotency_key")
    @classmethod
    def _key(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("idempotency_key must not be blank")
        return v


class OrderRead(BaseModel):
    id: str
    food_id: str
    buyer_id: str
    seller_id: str
    quantity: int
    unit_price: int
    total_price: int
    pickup_code: str | None
    status: str
    created_at: datetime | None
    paid_at: datetime | None
    expires_at: datetime | None
    redeemed_at: datetime | None

    model_config = {"from_attributes": True}


class RedeemRequest(BaseModel):
    pickup_code: str = Field(min_length=1, max_length=16)


class ExpireResponse(BaseModel):
    expired: int
