"""
Mock promo code datastore.

In production, this is a relational table. ``increment_usage`` must then be a
single conditional UPDATE (``... SET usage_count = usage_count + 1 WHERE code
= ? AND (usage_limit IS NULL OR usage_count < usage_limit)``), never a read
followed by a write.
"""

import asyncio
import logging
from decimal import Decimal
from typing import Iterable, Optional, Protocol

from consult_scheduler.schemas.promo_schema import PromoCode, PromoCodeType

logger = logging.getLogger(__name__)


class PromoCodeStore(Protocol):
    async def find_promo_code(self, code: str) -> Optional[PromoCode]:
        ...

    async def increment_usage(self, code: str) -> bool:
        ...


DEFAULT_PROMO_CODES: tuple[PromoCode, ...] = (
    PromoCode(code="SAVE20", type=PromoCodeType.PERCENT, value=Decimal("20")),
    PromoCode(
        code="WELCOME5",
        type=PromoCodeType.AMOUNT,
        value=Decimal("5"),
        usage_limit=500,
        description="$5 off your first virtual consultation",
    ),
    PromoCode(
        code="HALFOFF",
        type=PromoCodeType.PERCENT,
        value=Decimal("50"),
        max_discount=Decimal("10"),
        min_purchase=Decimal("20"),
    ),
)


class InMemoryPromoCodeStore:
    """Promo codes keyed case-insensitively with an atomic usage counter."""

    def __init__(self, promo_codes: Iterable[PromoCode] = DEFAULT_PROMO_CODES) -> None:
        self._codes: dict[str, PromoCode] = {}
        self._lock = asyncio.Lock()
        for promo in promo_codes:
            self.add(promo)

    def add(self, promo: PromoCode) -> None:
        self._codes[promo.lookup_key] = promo

    async def find_promo_code(self, code: str) -> Optional[PromoCode]:
        promo = self._codes.get(code.strip().upper())
        return promo.model_copy() if promo is not None else None

    async def increment_usage(self, code: str) -> bool:
        """Compare-and-increment; False when the code is missing or exhausted."""
        key = code.strip().upper()
        async with self._lock:
            promo = self._codes.get(key)
            if promo is None:
                return False
            if promo.usage_limit is not None and promo.usage_count >= promo.usage_limit:
                logger.info("Usage guard failed for promo code %s", key)
                return False
            self._codes[key] = promo.model_copy(update={"usage_count": promo.usage_count + 1})
        logger.info(
            "Usage count incremented for promo code %s. New count: %d",
            key, promo.usage_count + 1,
        )
        return True
