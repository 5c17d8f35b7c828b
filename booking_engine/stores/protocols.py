"""
Collaborator contracts consumed by the booking engine.

The engine never imports a concrete database or calendar client. Callers
construct implementations of these protocols once and pass them in.
"""

import logging
from datetime import date
from typing import Any, Callable, Iterable, Optional, Protocol, TypeVar, Union

from booking_engine.errors import CollaboratorUnavailable
from booking_engine.schemas.calendar_schema import CalendarEvent
from booking_engine.schemas.catalog_schema import AddOn, CustomerPriceOverride, Service
from booking_engine.schemas.job_schema import JobRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Exceptions a network-backed store raises when it cannot be reached.
TRANSIENT_ERRORS = (ConnectionError, TimeoutError, OSError)


class PricingStore(Protocol):
    def get_standard_price(self, service_id: str, vehicle_size: str) -> Optional[int]:
        ...

    def get_customer_override(
        self, customer_id: str, service_id: str, vehicle_size: str, as_of: date
    ) -> list[CustomerPriceOverride]:
        ...


class ServiceCatalog(Protocol):
    def get_service(self, service_id: str) -> Optional[Service]:
        ...


class CustomerDirectory(Protocol):
    def get_customer_name(self, customer_id: str) -> Optional[str]:
        ...


class AddOnCatalog(Protocol):
    def get_by_id(self, add_on_id: str) -> Optional[AddOn]:
        ...


class CalendarProvider(Protocol):
    """Read-only view of existing commitments.

    Implementations may return ``CalendarEvent`` objects or plain dicts
    with ``title``, ``start`` and ``end`` keys.
    """

    async def find_overlapping(
        self, start_iso: str, end_iso: str
    ) -> Iterable[Union[CalendarEvent, dict[str, Any]]]:
        ...


class JobStore(Protocol):
    def insert(self, record: JobRecord) -> str:
        ...

    def update(self, job_id: str, record: JobRecord) -> str:
        ...

    def get(self, job_id: str) -> Optional[JobRecord]:
        ...

    def delete(self, job_id: str) -> bool:
        ...

    def list_jobs(self) -> list[tuple[str, JobRecord]]:
        ...


def guarded_call(collaborator: str, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Call a store method, turning transport failures into CollaboratorUnavailable."""
    try:
        return func(*args, **kwargs)
    except CollaboratorUnavailable:
        raise
    except TRANSIENT_ERRORS as exc:
        logger.error("%s call %s failed: %s", collaborator, func.__name__, exc)
        raise CollaboratorUnavailable(collaborator, str(exc) or type(exc).__name__) from exc
