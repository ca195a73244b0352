"""
Mock payment-provider price lookup.

In production, this would list active Stripe products, find the one whose
name matches, and read its default price (unit amount in cents).
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Protocol

from consult_scheduler.errors import UpstreamError

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

DEFAULT_PRICES_CENTS: dict[str, int] = {
    "Virtual Consultation": 2550,
}


@dataclass(frozen=True)
class ProductPrice:
    product_name: str
    price: Decimal


class PriceSource(Protocol):
    async def get_price(self, product_name: str) -> ProductPrice:
        ...


class InMemoryPriceCatalog:
    """Product prices stored in cents, returned in currency units."""

    def __init__(self, prices_cents: Optional[dict[str, int]] = None) -> None:
        self._prices_cents = dict(DEFAULT_PRICES_CENTS if prices_cents is None else prices_cents)

    async def get_price(self, product_name: str) -> ProductPrice:
        cents = self._prices_cents.get(product_name)
        if cents is None:
            logger.error("Product '%s' not found in price catalog", product_name)
            raise UpstreamError(product_name=product_name)
        price = (Decimal(cents) / 100).quantize(CENTS)
        return ProductPrice(product_name=product_name, price=price)

    def set_price(self, product_name: str, cents: int) -> None:
        self._prices_cents[product_name] = cents
