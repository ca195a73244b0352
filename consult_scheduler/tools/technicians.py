"""
Technician directory with skill-based eligibility.

The field-service platform does not return technician skills, so the
mapping of technician to skills is maintained here. In production the
roster itself would come from the platform's technician API.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Protocol

from consult_scheduler.schemas.scheduling_schema import ServiceTypeMapping

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Technician:
    id: str
    name: str
    skills: frozenset[str] = field(default_factory=frozenset)


class TechnicianDirectory(Protocol):
    async def eligible_for(self, service_type: ServiceTypeMapping) -> list[Technician]:
        ...


DEFAULT_TECHNICIANS: tuple[Technician, ...] = (
    Technician("34365881", "Pedro H.", frozenset({"Virtual Quote - Water Filtration"})),
    Technician(
        "49786183",
        "Doug W.",
        frozenset({"Virtual Quote - Repair/Install", "Virtual Quote - Water Filtration"}),
    ),
    Technician("2513668", "Michael G.", frozenset({"Virtual Quote - Remodel"})),
    Technician(
        "16109753",
        "Francisco J.",
        frozenset({"Virtual Service", "Virtual Quote - Water Filtration"}),
    ),
)


class InMemoryTechnicianDirectory:
    """Static roster; a technician is eligible when any skill overlaps."""

    def __init__(self, technicians: Iterable[Technician] = DEFAULT_TECHNICIANS) -> None:
        self._technicians = list(technicians)

    async def eligible_for(self, service_type: ServiceTypeMapping) -> list[Technician]:
        if not service_type.skills:
            return list(self._technicians)
        wanted = set(service_type.skills)
        eligible = [t for t in self._technicians if t.skills & wanted]
        logger.debug(
            "%d technicians eligible for '%s': %s",
            len(eligible), service_type.label, ", ".join(t.name for t in eligible),
        )
        return eligible

    def all(self) -> list[Technician]:
        return list(self._technicians)
