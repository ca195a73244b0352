"""
Promo code validation, discount calculation, and redemption.

Validation is read-only and reports business-rule failures as a
``valid=False`` result. Redemption is a separate step, run only after a
booking succeeds, and relies on the store's compare-and-increment so two
concurrent bookings can't both consume the last use of a code.
"""

import logging
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Optional

from consult_scheduler.errors import PromoCodeExhausted
from consult_scheduler.schemas.promo_schema import (
    PromoCode,
    PromoCodeType,
    PromoCodeValidationResult,
)
from consult_scheduler.tools.pricing import PriceSource
from consult_scheduler.tools.promo_store import PromoCodeStore

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

INVALID_CODE = "invalid code"
NOT_ACTIVE = "expired or not yet active"
USAGE_LIMIT_REACHED = "usage limit reached"
MINIMUM_NOT_MET = "minimum purchase not met"


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def compute_discount(promo: PromoCode, original_price: Decimal) -> tuple[Decimal, Decimal]:
    """Return ``(discount_amount, final_price)`` after both clamps.

    The discount is capped at ``max_discount`` and the final price never goes
    below zero; the returned discount is the amount actually taken off.
    """
    if promo.type == PromoCodeType.PERCENT:
        discount = original_price * promo.value / Decimal(100)
    else:
        discount = promo.value

    if promo.max_discount is not None and discount > promo.max_discount:
        discount = promo.max_discount

    final_price = _money(max(original_price - discount, Decimal(0)))
    return _money(original_price - final_price), final_price


class PromoCodeEngine:
    """Validates promo codes against a store and prices consultations."""

    def __init__(
        self,
        store: PromoCodeStore,
        price_source: Optional[PriceSource] = None,
        default_product: str = "Virtual Consultation",
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._store = store
        self._price_source = price_source
        self._default_product = default_product
        self._clock = clock

    async def validate(self, code: str, original_price: Decimal) -> PromoCodeValidationResult:
        """Check a code in order: exists/enabled, active window, usage, minimum purchase."""
        original_price = Decimal(original_price)
        normalized = (code or "").strip()
        promo = await self._store.find_promo_code(normalized) if normalized else None

        if promo is None or not promo.enabled:
            logger.info("Promo code %r not found or disabled", normalized)
            return PromoCodeValidationResult.rejected(INVALID_CODE)

        now = self._clock()
        if (promo.starts_at is not None and now < promo.starts_at) or (
            promo.expires_at is not None and now > promo.expires_at
        ):
            logger.info("Promo code %s is outside its active window", promo.code)
            return PromoCodeValidationResult.rejected(NOT_ACTIVE)

        if promo.usage_limit is not None and promo.usage_count >= promo.usage_limit:
            logger.info("Promo code %s has reached its usage limit", promo.code)
            return PromoCodeValidationResult.rejected(USAGE_LIMIT_REACHED)

        if promo.min_purchase is not None and original_price < promo.min_purchase:
            logger.info("Minimum purchase not met for promo code %s", promo.code)
            return PromoCodeValidationResult.rejected(MINIMUM_NOT_MET)

        discount, final_price = compute_discount(promo, original_price)
        logger.info(
            "Promo code %s is valid. Discount: %s, Final price: %s",
            promo.code, discount, final_price,
        )
        return PromoCodeValidationResult.applied(promo, discount, final_price)

    async def consultation_price(self, product_name: Optional[str] = None) -> Decimal:
        """Look up the undiscounted price from the payment provider."""
        if self._price_source is None:
            raise RuntimeError("PromoCodeEngine was built without a price source")
        product = await self._price_source.get_price(product_name or self._default_product)
        return product.price

    async def validate_for_product(
        self, code: str, product_name: Optional[str] = None
    ) -> tuple[Decimal, PromoCodeValidationResult]:
        """Price the product, then validate ``code`` against that price."""
        original_price = await self.consultation_price(product_name)
        return original_price, await self.validate(code, original_price)

    async def redeem(self, code: str) -> None:
        """Consume one use of ``code``. Raises PromoCodeExhausted when the guard fails."""
        if not await self._store.increment_usage(code):
            logger.warning("Redemption of promo code %s lost the usage guard", code)
            raise PromoCodeExhausted(code=code)
        logger.info("Promo code %s redeemed", code)
