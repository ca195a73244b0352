"""Shared test fixtures and helpers."""

from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Optional

import pytest

from consult_scheduler.config import AvailabilityConfig
from consult_scheduler.schemas.scheduling_schema import ServiceTypeMapping
from consult_scheduler.scheduling.availability import AvailabilityResolver
from consult_scheduler.scheduling.booking import BookingOrchestrator
from consult_scheduler.scheduling.notifications import NotificationQueue, NotificationWorker
from consult_scheduler.scheduling.promo import PromoCodeEngine
from consult_scheduler.scheduling.slot_windows import BusinessHours
from consult_scheduler.tools.field_service import InMemoryFieldService
from consult_scheduler.tools.messaging import InMemoryMessagingClient
from consult_scheduler.tools.pricing import InMemoryPriceCatalog
from consult_scheduler.tools.promo_store import InMemoryPromoCodeStore
from consult_scheduler.tools.services import ServiceTypeCatalog
from consult_scheduler.tools.technicians import InMemoryTechnicianDirectory, Technician

# 2030-03-04 is a Monday; the fixed clock sits on the Sunday before it.
MONDAY = date(2030, 3, 4)
NOW = datetime(2030, 3, 3, 12, 0, tzinfo=timezone.utc)

CONSULT = ServiceTypeMapping(
    external_service_id="1",
    job_type_id=100,
    label="DIY Plumbing Consult",
    duration_ms=30 * 60 * 1000,
    skills=("Virtual Service",),
)
QUOTE = ServiceTypeMapping(
    external_service_id="3",
    job_type_id=200,
    label="Get A Quote",
    duration_ms=60 * 60 * 1000,
    skills=("Virtual Quote - Remodel",),
)

TECHNICIANS = (
    Technician("T1", "Alice", frozenset({"Virtual Service"})),
    Technician("T2", "Bob", frozenset({"Virtual Service", "Virtual Quote - Remodel"})),
)

CONSULTATION_PRICE_CENTS = 10000


def at(hour: int, minute: int = 0, day: date = MONDAY) -> datetime:
    """UTC instant on ``day``; the test business hours run in UTC."""
    return datetime.combine(day, time(hour, minute), tzinfo=timezone.utc)


def fixed_clock(now: datetime = NOW):
    return lambda: now


def make_resolver(
    field_service: InMemoryFieldService,
    technicians: Optional[InMemoryTechnicianDirectory] = None,
    business_hours: Optional[BusinessHours] = None,
    now: datetime = NOW,
    lookahead_days: int = 7,
    min_lead_minutes: int = 60,
) -> AvailabilityResolver:
    return AvailabilityResolver(
        calendar=field_service,
        technicians=technicians or InMemoryTechnicianDirectory(TECHNICIANS),
        catalog=ServiceTypeCatalog([CONSULT, QUOTE]),
        business_hours=business_hours or BusinessHours("UTC", time(9), time(17)),
        config=AvailabilityConfig(lookahead_days=lookahead_days, min_lead_minutes=min_lead_minutes),
        clock=fixed_clock(now),
    )


def make_booking_payload(**overrides: Any) -> dict[str, Any]:
    """Helper to create a raw booking payload with sensible defaults."""
    payload: dict[str, Any] = {
        "name": "Jane Smith",
        "email": "Jane.Smith@Example.com",
        "phone": "(312) 555-0142",
        "start_time": at(9).isoformat(),
        "end_time": at(9, 30).isoformat(),
        "technician_id": "T1",
        "job_type_id": CONSULT.job_type_id,
        "summary": "Dripping shower valve",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def business_hours():
    return BusinessHours("UTC", time(9), time(17))


@pytest.fixture
def field_service():
    return InMemoryFieldService()


@pytest.fixture
def technicians():
    return InMemoryTechnicianDirectory(TECHNICIANS)


@pytest.fixture
def catalog():
    return ServiceTypeCatalog([CONSULT, QUOTE])


@pytest.fixture
def resolver(field_service, technicians, business_hours):
    return make_resolver(field_service, technicians, business_hours)


@pytest.fixture
def promo_store():
    return InMemoryPromoCodeStore()


@pytest.fixture
def prices():
    return InMemoryPriceCatalog({"Virtual Consultation": CONSULTATION_PRICE_CENTS})


@pytest.fixture
def promo_engine(promo_store, prices):
    return PromoCodeEngine(promo_store, price_source=prices, clock=fixed_clock())


@pytest.fixture
def messaging():
    return InMemoryMessagingClient()


@pytest.fixture
def notification_queue():
    return NotificationQueue(maxsize=10)


@pytest.fixture
def worker(notification_queue, messaging):
    return NotificationWorker(notification_queue, messaging, max_attempts=3, retry_delay_sec=0)


@pytest.fixture
def orchestrator(catalog, resolver, field_service, promo_engine, notification_queue):
    return BookingOrchestrator(
        catalog=catalog,
        resolver=resolver,
        reservations=field_service,
        promo_engine=promo_engine,
        notifications=notification_queue,
        business_name="Reliable Plumbing Co.",
    )
