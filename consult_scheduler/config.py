"""
Centralized configuration with environment variable overrides.

Business hours, booking rules, pricing, and the service-type catalog are
configurable here. The configuration is loaded once into an immutable
AppConfig and injected into components; nothing in the scheduling logic
reads the environment directly.
"""

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime

from dotenv import load_dotenv
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from consult_scheduler.schemas.scheduling_schema import ServiceTypeMapping

load_dotenv()

logger = logging.getLogger(__name__)

THIRTY_MINUTES_MS = 30 * 60 * 1000

QUOTE_SKILLS = (
    "Virtual Quote - Remodel",
    "Virtual Quote - Repair/Install",
    "Virtual Quote - Water Filtration",
)

DEFAULT_SERVICE_TYPES: tuple[ServiceTypeMapping, ...] = (
    ServiceTypeMapping(
        external_service_id="1",
        job_type_id=76820749,
        label="DIY Plumbing Consult",
        duration_ms=THIRTY_MINUTES_MS,
        skills=("Virtual Service",),
        description="Have a licensed plumber help you assess or diagnose your DIY plumbing questions.",
    ),
    ServiceTypeMapping(
        external_service_id="2",
        job_type_id=76820749,
        label="Help! Emergency!",
        duration_ms=THIRTY_MINUTES_MS,
        skills=("Virtual Service",),
        description="Urgent plumbing problem? Get immediate virtual help to assess next steps.",
    ),
    ServiceTypeMapping(
        external_service_id="3",
        job_type_id=76820748,
        label="Get A Quote",
        duration_ms=THIRTY_MINUTES_MS,
        skills=QUOTE_SKILLS,
        description="Schedule a virtual walkthrough to receive a quote for your plumbing project.",
    ),
)

_service_types_adapter = TypeAdapter(tuple[ServiceTypeMapping, ...])


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


def _load_service_types() -> tuple[ServiceTypeMapping, ...]:
    """Read SERVICE_TYPES_JSON when set, otherwise use the built-in catalog."""
    raw = os.getenv("SERVICE_TYPES_JSON")
    if not raw:
        return DEFAULT_SERVICE_TYPES
    try:
        return _service_types_adapter.validate_json(raw)
    except PydanticValidationError as exc:
        raise ValueError(f"Invalid SERVICE_TYPES_JSON: {exc}") from None


@dataclass(frozen=True)
class BusinessHoursConfig:
    """Recurring daily window during which consultations can be booked."""

    timezone: str = os.getenv("BUSINESS_TIMEZONE", "America/Chicago")
    open_time: str = os.getenv("BUSINESS_OPEN_TIME", "08:00")
    close_time: str = os.getenv("BUSINESS_CLOSE_TIME", "17:00")
    weekdays: str = os.getenv("BUSINESS_WEEKDAYS", "0,1,2,3,4")

    @property
    def weekday_set(self) -> frozenset[int]:
        return frozenset(int(d) for d in self.weekdays.split(",") if d.strip())


@dataclass(frozen=True)
class AvailabilityConfig:
    """How far ahead availability is offered and the minimum booking lead time."""

    lookahead_days: int = _safe_int("AVAILABILITY_LOOKAHEAD_DAYS", "14")
    min_lead_minutes: int = _safe_int("MIN_LEAD_MINUTES", "60")


@dataclass(frozen=True)
class BookingConfig:
    """Confirmation delivery settings."""

    notification_max_attempts: int = _safe_int("NOTIFICATION_MAX_ATTEMPTS", "3")
    notification_retry_delay_sec: float = _safe_float("NOTIFICATION_RETRY_DELAY", "2.0")
    notification_queue_size: int = _safe_int("NOTIFICATION_QUEUE_SIZE", "100")


@dataclass(frozen=True)
class PricingConfig:
    """Payment provider product the consultation price is looked up from."""

    consultation_product_name: str = os.getenv(
        "CONSULTATION_PRODUCT_NAME", "Virtual Consultation"
    )
    currency: str = os.getenv("CURRENCY", "USD")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    business_hours: BusinessHoursConfig = field(default_factory=BusinessHoursConfig)
    availability: AvailabilityConfig = field(default_factory=AvailabilityConfig)
    booking: BookingConfig = field(default_factory=BookingConfig)
    pricing: PricingConfig = field(default_factory=PricingConfig)
    service_types: tuple[ServiceTypeMapping, ...] = field(default_factory=_load_service_types)
    business_name: str = os.getenv("BUSINESS_NAME", "Reliable Plumbing Co.")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


def _parse_clock(name: str, value: str) -> datetime:
    try:
        return datetime.strptime(value.strip(), "%H:%M")
    except ValueError:
        raise ValueError(f"{name} must be HH:MM, got {value!r}") from None


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    hours = config.business_hours
    opens = _parse_clock("BUSINESS_OPEN_TIME", hours.open_time)
    closes = _parse_clock("BUSINESS_CLOSE_TIME", hours.close_time)
    if opens >= closes:
        raise ValueError(
            f"BUSINESS_OPEN_TIME must be before BUSINESS_CLOSE_TIME, "
            f"got {hours.open_time} >= {hours.close_time}"
        )
    try:
        weekdays = hours.weekday_set
    except ValueError:
        raise ValueError(f"BUSINESS_WEEKDAYS must be comma-separated integers, got {hours.weekdays!r}") from None
    if not weekdays or not weekdays <= set(range(7)):
        raise ValueError(f"BUSINESS_WEEKDAYS must name days 0-6, got {hours.weekdays!r}")

    if config.availability.lookahead_days < 1:
        raise ValueError(
            f"AVAILABILITY_LOOKAHEAD_DAYS must be >= 1, got {config.availability.lookahead_days}"
        )
    if config.availability.min_lead_minutes < 0:
        raise ValueError(
            f"MIN_LEAD_MINUTES must be >= 0, got {config.availability.min_lead_minutes}"
        )
    if config.booking.notification_max_attempts < 1:
        raise ValueError(
            "NOTIFICATION_MAX_ATTEMPTS must be >= 1, "
            f"got {config.booking.notification_max_attempts}"
        )
    if config.booking.notification_retry_delay_sec < 0:
        raise ValueError(
            "NOTIFICATION_RETRY_DELAY must be >= 0, "
            f"got {config.booking.notification_retry_delay_sec}"
        )
    if config.booking.notification_queue_size < 1:
        raise ValueError(
            f"NOTIFICATION_QUEUE_SIZE must be >= 1, got {config.booking.notification_queue_size}"
        )

    if not config.service_types:
        raise ValueError("At least one service type must be configured")
    seen: set[str] = set()
    for service_type in config.service_types:
        if service_type.external_service_id in seen:
            raise ValueError(
                f"Duplicate service type id: {service_type.external_service_id!r}"
            )
        seen.add(service_type.external_service_id)


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info(
        "Configuration loaded for '%s' (%d service types)",
        config.business_name, len(config.service_types),
    )
    return config


# Singleton instance
settings = load_config()
