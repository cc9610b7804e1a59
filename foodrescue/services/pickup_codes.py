"""
Pickup code generation and validation.

A pickup code is a short, human-transcribable lookup key scoped to one
order. It embeds no information and is not signed; uniqueness is only
guaranteed among *outstanding* (paid, not yet redeemed / expired) orders.
"""

from __future__ import annotations

import hmac
import logging
import re
import secrets
from collections.abc import Awaitable, Callable

from foodrescue.core.config import settings
from foodrescue.core.errors import PickupCodeExhausted

logger = logging.getLogger(__name__)

# No 0/O or 1/I, they get misread at the counter.
PICKUP_CODE_ALPHABET = "23456789ABCDEFGHJKLMNPQRSTUVWXYZ"


class PickupCodeGenerator:
    def __init__(
        self,
        length: int = settings.PICKUP_CODE_LENGTH,
        alphabet: str = PICKUP_CODE_ALPHABET,
        max_attempts: int = 20,
    ) -> None:
        if length < 1:
            raise ValueError("length must be positive")
        if len(set(alphabet)) != len(alphabet) or len(alphabet) < 2:
            raise ValueError("alphabet must contain at least two distinct symbols")
        self.length = length
        self.alphabet = alphabet
        self.max_attempts = max_attempts
        self._pattern = re.compile(f"[{re.escape(alphabet)}]{{{length}}}")

    @property
    def space(self) -> int:
        """Number of distinct codes."""
        return len(self.alphabet) ** self.length

    def generate(self) -> str:
        return "".join(secrets.choice(self.alphabet) for _ in range(self.length))

    async def issue(self, is_outstanding: Callable[[str], Awaitable[bool]]) -> str:
        """Draw codes until one is not held by an outstanding order."""
        for attempt in range(1, self.max_attempts + 1):
            code = self.generate()
            if not await is_outstanding(code):
                return code
            logger.info("Pickup code collision, regenerating (attempt %d)", attempt)
        raise PickupCodeExhausted(
            f"No free pickup code after {self.max_attempts} attempts"
        )

    def is_well_formed(self, code: str) -> bool:
        return self._pattern.fullmatch(code) is not None

    @staticmethod
    def matches(stored: str, supplied: str) -> bool:
        """Exact, case-sensitive comparison with no normalisation."""
        return hmac.compare_digest(stored.encode("utf-8"), supplied.encode("utf-8"))
