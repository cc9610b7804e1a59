"""
Payment gateway capability used by checkout.

Only a simulated gateway ships: it waits a fixed latency without blocking
the event loop and then reports a configured outcome (``PAID`` unless told
otherwise), which lets tests drive every outcome deterministically.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from foodrescue.core.config import settings

logger = logging.getLogger(__name__)


class ChargeOutcome(str, Enum):
    PAID = "paid"
    DECLINED = "declined"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class ChargeResult:
    outcome: ChargeOutcome
    reference: str
    message: str | None = None

    @property
    def paid(self) -> bool:
        return self.outcome is ChargeOutcome.PAID


class PaymentGateway(Protocol):
    async def charge(self, amount: int, reference: str) -> ChargeResult:
        ...


@dataclass
class SimulatedPaymentGateway:
    latency_seconds: float = settings.PAYMENT_LATENCY_SECONDS
    outcome: ChargeOutcome = ChargeOutcome.PAID
    charges: list[tuple[int, str]] = field(default_factory=list)

    async def charge(self, amount: int, reference: str) -> ChargeResult:
        self.charges.append((amount, reference))
        if self.latency_seconds > 0:
            await asyncio.sleep(self.latency_seconds)
        logger.info("Simulated charge %s for %d: %s", reference, amount, self.outcome.value)
        message = None
        if self.outcome is ChargeOutcome.DECLINED:
            message = "Card declined by simulated gateway"
        return ChargeResult(
            outcome=self.outcome,
            reference=f"sim_{uuid.uuid4().hex[:12]}",
            message=message,
        )
