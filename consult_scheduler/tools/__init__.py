from consult_scheduler.tools.customer import CustomerDirectory
from consult_scheduler.tools.field_service import (
    CalendarSource,
    InMemoryFieldService,
    JobRecord,
    ReservationSystem,
)
from consult_scheduler.tools.messaging import InMemoryMessagingClient, MessagingClient
from consult_scheduler.tools.pricing import InMemoryPriceCatalog, PriceSource, ProductPrice
from consult_scheduler.tools.promo_store import InMemoryPromoCodeStore, PromoCodeStore
from consult_scheduler.tools.services import ServiceTypeCatalog
from consult_scheduler.tools.technicians import (
    InMemoryTechnicianDirectory,
    Technician,
    TechnicianDirectory,
)

__all__ = [
    "CustomerDirectory",
    "CalendarSource",
    "InMemoryFieldService",
    "JobRecord",
    "ReservationSystem",
    "InMemoryMessagingClient",
    "MessagingClient",
    "InMemoryPriceCatalog",
    "PriceSource",
    "ProductPrice",
    "InMemoryPromoCodeStore",
    "PromoCodeStore",
    "ServiceTypeCatalog",
    "InMemoryTechnicianDirectory",
    "Technician",
    "TechnicianDirectory",
]
