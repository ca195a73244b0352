"""Promo code data models and validation results."""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class PromoCodeType(str, Enum):
    PERCENT = "PERCENT"
    AMOUNT = "AMOUNT"


class PromoCode(BaseModel):
    """Promo code record as stored by the promo datastore.

    ``value`` is a percentage (20 = 20% off) for PERCENT codes and a
    currency amount for AMOUNT codes.
    """

    code: str
    type: PromoCodeType
    value: Decimal = Field(ge=0)
    usage_limit: Optional[int] = Field(default=None, ge=0)
    usage_count: int = Field(default=0, ge=0)
    min_purchase: Optional[Decimal] = Field(default=None, ge=0)
    max_discount: Optional[Decimal] = Field(default=None, ge=0)
    starts_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    enabled: bool = True
    description: Optional[str] = None

    @field_validator("starts_at", "expires_at")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def lookup_key(self) -> str:
        return self.code.strip().upper()


class PromoCodeValidationResult(BaseModel):
    """Outcome of a promo validation.

    The priced fields are present only for valid results and ``error``
    only for invalid ones.
    """

    valid: bool
    promo_code: Optional[PromoCode] = None
    discount_amount: Optional[Decimal] = None
    final_price: Optional[Decimal] = None
    error: Optional[str] = None

    @model_validator(mode="after")
    def _check_shape(self) -> "PromoCodeValidationResult":
        priced = (self.promo_code, self.discount_amount, self.final_price)
        if self.valid:
            if any(v is None for v in priced) or self.error is not None:
                raise ValueError("valid results carry promo_code, discount_amount, final_price only")
        elif any(v is not None for v in priced) or not self.error:
            raise ValueError("invalid results carry only an error")
        return self

    @classmethod
    def rejected(cls, error: str) -> "PromoCodeValidationResult":
        return cls(valid=False, error=error)

    @classmethod
    def applied(
        cls, promo_code: PromoCode, discount_amount: Decimal, final_price: Decimal
    ) -> "PromoCodeValidationResult":
        return cls(
            valid=True,
            promo_code=promo_code,
            discount_amount=discount_amount,
            final_price=final_price,
        )
