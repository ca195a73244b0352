"""
Wires the scheduling services to their collaborators.

The in-memory collaborators stand in for the field-service platform, the
payment provider, the promo datastore, and SMS delivery. Swapping any of
them for a real client only changes this module.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from consult_scheduler.api import SchedulingApi
from consult_scheduler.config import AppConfig, settings
from consult_scheduler.scheduling.availability import AvailabilityResolver, Clock, utc_now
from consult_scheduler.scheduling.booking import BookingOrchestrator
from consult_scheduler.scheduling.notifications import NotificationQueue, NotificationWorker
from consult_scheduler.scheduling.promo import PromoCodeEngine
from consult_scheduler.scheduling.slot_windows import BusinessHours
from consult_scheduler.tools.field_service import InMemoryFieldService, seed_demo_appointments
from consult_scheduler.tools.messaging import InMemoryMessagingClient
from consult_scheduler.tools.pricing import InMemoryPriceCatalog
from consult_scheduler.tools.promo_store import InMemoryPromoCodeStore
from consult_scheduler.tools.services import ServiceTypeCatalog
from consult_scheduler.tools.technicians import InMemoryTechnicianDirectory

logger = logging.getLogger(__name__)


@dataclass
class SchedulerServices:
    """Everything an entry point needs, built from one AppConfig."""

    config: AppConfig
    catalog: ServiceTypeCatalog
    business_hours: BusinessHours
    field_service: InMemoryFieldService
    technicians: InMemoryTechnicianDirectory
    prices: InMemoryPriceCatalog
    promo_store: InMemoryPromoCodeStore
    messaging: InMemoryMessagingClient
    resolver: AvailabilityResolver
    promo_engine: PromoCodeEngine
    notifications: NotificationQueue
    worker: NotificationWorker
    orchestrator: BookingOrchestrator
    api: SchedulingApi


def build_services(
    config: Optional[AppConfig] = None,
    clock: Clock = utc_now,
    seed_demo: bool = True,
) -> SchedulerServices:
    """Build the scheduler over in-memory collaborators."""
    config = config or settings

    catalog = ServiceTypeCatalog(config.service_types)
    business_hours = BusinessHours.from_config(config.business_hours)
    field_service = InMemoryFieldService()
    technicians = InMemoryTechnicianDirectory()
    prices = InMemoryPriceCatalog()
    promo_store = InMemoryPromoCodeStore()
    messaging = InMemoryMessagingClient()

    if seed_demo:
        today = business_hours.local_date(clock())
        seed_demo_appointments(
            field_service,
            [t.id for t in technicians.all()],
            today,
            config.availability.lookahead_days,
            config.business_hours.timezone,
        )

    resolver = AvailabilityResolver(
        calendar=field_service,
        technicians=technicians,
        catalog=catalog,
        business_hours=business_hours,
        config=config.availability,
        clock=clock,
    )
    promo_engine = PromoCodeEngine(
        promo_store,
        price_source=prices,
        default_product=config.pricing.consultation_product_name,
        clock=clock,
    )
    notifications = NotificationQueue(maxsize=config.booking.notification_queue_size)
    worker = NotificationWorker(
        notifications,
        messaging,
        max_attempts=config.booking.notification_max_attempts,
        retry_delay_sec=config.booking.notification_retry_delay_sec,
    )
    orchestrator = BookingOrchestrator(
        catalog=catalog,
        resolver=resolver,
        reservations=field_service,
        promo_engine=promo_engine,
        notifications=notifications,
        business_name=config.business_name,
    )
    api = SchedulingApi(
        catalog, resolver, orchestrator, promo_engine, currency=config.pricing.currency
    )

    logger.info(
        "Scheduler ready: %d service types, business hours %s-%s %s",
        len(catalog.get_all_services()),
        config.business_hours.open_time, config.business_hours.close_time,
        config.business_hours.timezone,
    )
    return SchedulerServices(
        config=config,
        catalog=catalog,
        business_hours=business_hours,
        field_service=field_service,
        technicians=technicians,
        prices=prices,
        promo_store=promo_store,
        messaging=messaging,
        resolver=resolver,
        promo_engine=promo_engine,
        notifications=notifications,
        worker=worker,
        orchestrator=orchestrator,
        api=api,
    )
