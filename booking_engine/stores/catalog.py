"""
In-memory service catalog, pricing and add-on stores.

In production these are backed by the CRM's hosted database tables
(services, service_pricing, customer_service_pricing, add_ons).
"""

import logging
from datetime import date
from typing import Iterable, Optional

from booking_engine.schemas.catalog_schema import AddOn, CustomerPriceOverride, Service

logger = logging.getLogger(__name__)


class InMemoryPricingStore:
    """Services with their standard tier prices plus customer overrides."""

    def __init__(
        self,
        services: Iterable[Service] = (),
        overrides: Iterable[CustomerPriceOverride] = (),
    ) -> None:
        self._services: dict[str, Service] = {s.id: s for s in services}
        self._overrides: list[CustomerPriceOverride] = list(overrides)

    def add_service(self, service: Service) -> None:
        self._services[service.id] = service

    def add_override(self, override: CustomerPriceOverride) -> None:
        self._overrides.append(override)

    def get_service(self, service_id: str) -> Optional[Service]:
        return self._services.get(service_id)

    def get_standard_price(self, service_id: str, vehicle_size: str) -> Optional[int]:
        service = self._services.get(service_id)
        if service is None:
            return None
        for size, price in service.pricing.items():
            if size.value == vehicle_size:
                return price
        return None

    def get_customer_override(
        self, customer_id: str, service_id: str, vehicle_size: str, as_of: date
    ) -> list[CustomerPriceOverride]:
        matches = [
            o for o in self._overrides
            if o.customer_id == customer_id
            and o.service_id == service_id
            and o.vehicle_size.value == vehicle_size
            and o.is_active(as_of)
        ]
        logger.debug(
            "Override lookup %s/%s/%s: %d row(s)", customer_id, service_id, vehicle_size, len(matches)
        )
        return matches


class InMemoryAddOnCatalog:
    def __init__(self, add_ons: Iterable[AddOn] = ()) -> None:
        self._add_ons: dict[str, AddOn] = {a.id: a for a in add_ons}

    def get_by_id(self, add_on_id: str) -> Optional[AddOn]:
        return self._add_ons.get(add_on_id)
