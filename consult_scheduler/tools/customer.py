"""
Mock customer records for the field-service platform.

In production, customers would be looked up and created through the
platform's CRM API before a job is booked against them.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from consult_scheduler.utils import normalize_phone

logger = logging.getLogger(__name__)


@dataclass
class CustomerRecord:
    id: str
    name: str
    phone: str
    email: str
    job_count: int = 0


class CustomerDirectory:
    """Find-or-create customers keyed by normalized phone number."""

    def __init__(self) -> None:
        self._customers: dict[str, CustomerRecord] = {}
        self._next_id = 1000

    def lookup_customer(self, phone: str) -> Optional[CustomerRecord]:
        """Look up a customer by phone number. Returns None if not found."""
        return self._customers.get(normalize_phone(phone))

    def find_or_create(self, name: str, phone: str, email: str) -> CustomerRecord:
        """Return the existing customer for ``phone`` or create a new one."""
        existing = self.lookup_customer(phone)
        if existing is not None:
            logger.debug("Customer already exists: %s", existing.id)
            return existing

        cleaned = normalize_phone(phone)
        self._next_id += 1
        customer = CustomerRecord(
            id=f"CUST-{self._next_id}", name=name, phone=cleaned, email=email
        )
        self._customers[cleaned] = customer
        logger.info("New customer created: %s (%s)", customer.id, cleaned)
        return customer

    def reset(self) -> None:
        """Clear all customers. Used by test fixtures for isolation."""
        self._customers.clear()
