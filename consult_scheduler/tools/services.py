"""Service-type catalog backed by the deployment configuration."""

import logging
from typing import Iterable, Optional

from consult_scheduler.errors import NotFoundError
from consult_scheduler.schemas.scheduling_schema import ServiceTypeMapping

logger = logging.getLogger(__name__)


class ServiceTypeCatalog:
    """Read-only lookup over the configured service types.

    Keys are unique by ``external_service_id``; several services may share
    one field-service job type.
    """

    def __init__(self, service_types: Iterable[ServiceTypeMapping]) -> None:
        self._by_id: dict[str, ServiceTypeMapping] = {}
        for service_type in service_types:
            if service_type.external_service_id in self._by_id:
                raise ValueError(
                    f"Duplicate service type id: {service_type.external_service_id!r}"
                )
            self._by_id[service_type.external_service_id] = service_type

    def get_all_services(self) -> list[ServiceTypeMapping]:
        """Return all enabled service types in configuration order."""
        return [s for s in self._by_id.values() if s.enabled]

    def get_service_type(self, external_service_id: str) -> ServiceTypeMapping:
        """Look up a service type, failing fast when it isn't configured."""
        service_type = self._by_id.get(str(external_service_id).strip())
        if service_type is None or not service_type.enabled:
            logger.warning("Unknown service type requested: %s", external_service_id)
            raise NotFoundError(external_service_id=external_service_id)
        return service_type

    def find_by_job_type(self, job_type_id: int) -> Optional[ServiceTypeMapping]:
        """Return the first enabled service type booked under ``job_type_id``."""
        for service_type in self.get_all_services():
            if service_type.job_type_id == job_type_id:
                return service_type
        return None
