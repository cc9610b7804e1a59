"""
Domain error taxonomy shared by the API server and the client SDK.

Every error carries the HTTP status the API layer answers with and a
human-readable ``detail`` safe to show to the caller.
"""

from __future__ import annotations


class FoodRescueError(Exception):
    status_code: int = 400
    default_detail: str = "Request could not be completed"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


# ── Identity ────────────────────────────────────────────────────────
class AuthenticationError(FoodRescueError):
    """Bad credentials, or an expired / revoked / unknown token."""

    status_code = 401
    default_detail = "Login failed"


class PermissionDenied(FoodRescueError):
    status_code = 403
    default_detail = "You are not allowed to perform this action"


class StorageUnavailable(FoodRescueError):
    """The durable session snapshot could not be read or written."""

    status_code = 503
    default_detail = "Session storage unavailable"


# ── Catalog / orders ────────────────────────────────────────────────
class NotFound(FoodRescueError):
    status_code = 404
    default_detail = "Not found"


class InvalidQuantity(FoodRescueError):
    status_code = 422
    default_detail = "Quantity must be at least 1"


class InsufficientStock(FoodRescueError):
    status_code = 409
    default_detail = "Not enough portions left for this listing"


class IdempotencyConflict(FoodRescueError):
    """An idempotency key was reused for a different checkout."""

    status_code = 409
    default_detail = "Idempotency key already used for a different order"


class PaymentDeclined(FoodRescueError):
    status_code = 402
    default_detail = "Payment was declined"


class PaymentTimedOut(FoodRescueError):
    status_code = 504
    default_detail = "Payment provider did not respond in time"


# ── Redemption ──────────────────────────────────────────────────────
class InvalidPickupCode(FoodRescueError):
    status_code = 400
    default_detail = "Invalid pickup code"


class AlreadyRedeemed(FoodRescueError):
    status_code = 409
    default_detail = "Order has already been picked up"


class OrderExpired(FoodRescueError):
    status_code = 410
    default_detail = "Pickup window for this order has closed"


class PickupCodeExhausted(RuntimeError):
    """No free pickup code could be found after the allowed attempts."""
