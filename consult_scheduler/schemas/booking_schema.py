"""Booking request and reservation data models."""

import re
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from consult_scheduler.utils import is_valid_email, normalize_phone, require_aware

MIN_NAME_LENGTH = 2
MIN_PHONE_DIGITS = 7
MAX_PHONE_DIGITS = 15


class BookingRequest(BaseModel):
    """Validated booking request submitted by the customer."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str
    email: str
    phone: str
    start_time: datetime
    end_time: datetime
    technician_id: str
    job_type_id: int
    promo_code: Optional[str] = None
    summary: str = ""

    @field_validator("technician_id", mode="before")
    @classmethod
    def _coerce_technician_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        if len(value) < MIN_NAME_LENGTH:
            raise ValueError("name is too short")
        return value

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        if not is_valid_email(value):
            raise ValueError("email must look like user@domain.ext")
        return value.lower()

    @field_validator("phone")
    @classmethod
    def _check_phone(cls, value: str) -> str:
        digits = re.sub(r"[^\d]", "", value)
        if not MIN_PHONE_DIGITS <= len(digits) <= MAX_PHONE_DIGITS:
            raise ValueError("phone number doesn't look right")
        return normalize_phone(value)

    @field_validator("technician_id")
    @classmethod
    def _check_technician(cls, value: str) -> str:
        if not value:
            raise ValueError("technician_id is required")
        return value

    @field_validator("promo_code")
    @classmethod
    def _blank_promo_is_none(cls, value: Optional[str]) -> Optional[str]:
        return value or None

    @model_validator(mode="after")
    def _check_window(self) -> "BookingRequest":
        require_aware(self.start_time, "start_time")
        require_aware(self.end_time, "end_time")
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class Reservation(BaseModel):
    """Confirmed job returned by the field-service platform."""

    id: str
    technician_id: str
    job_type_id: int
    start_time: datetime
    end_time: datetime
    original_price: Optional[Decimal] = None
    discount_amount: Optional[Decimal] = None
    final_price: Optional[Decimal] = None
    promo_code: Optional[str] = None
