"""
Calendar providers for availability checks.

``InMemoryCalendar`` stands in for an external calendar (e.g. Google
Calendar). ``JobScheduleCalendar`` exposes the CRM's own job schedule as a
calendar, and ``CompositeCalendar`` queries several providers as one.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any, Iterable, Optional, Union

from booking_engine.config import settings
from booking_engine.errors import CollaboratorUnavailable
from booking_engine.schemas.calendar_schema import CalendarEvent, ConflictSource
from booking_engine.schemas.job_schema import JobRecord
from booking_engine.stores.protocols import (
    CalendarProvider,
    CustomerDirectory,
    JobStore,
    ServiceCatalog,
    guarded_call,
)
from booking_engine.utils import as_utc

logger = logging.getLogger(__name__)


def _overlaps(event: CalendarEvent, start: datetime, end: datetime) -> bool:
    # naive and aware datetimes may be mixed across providers
    return as_utc(event.start) < as_utc(end) and as_utc(event.end) > as_utc(start)


class InMemoryCalendar:
    """External calendar stand-in holding a fixed list of events."""

    def __init__(self, events: Iterable[CalendarEvent] = ()) -> None:
        self._events: list[CalendarEvent] = list(events)

    def add_event(self, event: CalendarEvent) -> None:
        self._events.append(event)

    async def find_overlapping(self, start_iso: str, end_iso: str) -> list[CalendarEvent]:
        start, end = datetime.fromisoformat(start_iso), datetime.fromisoformat(end_iso)
        return [e for e in self._events if _overlaps(e, start, end)]


class JobScheduleCalendar:
    """Presents the jobs in a JobStore as calendar events.

    Events are titled ``customer name - service name``. Without a directory
    or catalog, or when a lookup finds nothing, the raw id stands in.
    """

    def __init__(
        self,
        job_store: JobStore,
        default_duration_minutes: Optional[int] = None,
        services: Optional[ServiceCatalog] = None,
        customers: Optional[CustomerDirectory] = None,
    ) -> None:
        self._job_store = job_store
        self._default_duration = (
            default_duration_minutes
            if default_duration_minutes is not None
            else settings.calendar.default_job_duration_minutes
        )
        self._services = services
        self._customers = customers

    def _title(self, record: JobRecord) -> str:
        customer_name = service_name = None
        try:
            if self._customers is not None:
                customer_name = guarded_call(
                    "customer directory", self._customers.get_customer_name, record.customer_id
                )
            if self._services is not None:
                service = guarded_call("service catalog", self._services.get_service, record.service_id)
                service_name = service.name if service else None
        except CollaboratorUnavailable as exc:
            logger.warning("Name lookup failed, titling job by ids: %s", exc)
        return f"{customer_name or record.customer_id} - {service_name or record.service_id}"

    async def find_overlapping(self, start_iso: str, end_iso: str) -> list[CalendarEvent]:
        start, end = datetime.fromisoformat(start_iso), datetime.fromisoformat(end_iso)
        events = []
        for job_id, record in self._job_store.list_jobs():
            duration = record.duration_minutes or self._default_duration
            job_start = record.booking_datetime
            job_end = job_start + timedelta(minutes=duration)
            if not (as_utc(job_start) < as_utc(end) and as_utc(job_end) > as_utc(start)):
                continue
            events.append(CalendarEvent(
                title=self._title(record),
                start=job_start,
                end=job_end,
                source=ConflictSource.CRM_JOB,
                job_id=job_id,
            ))
        return events


class CompositeCalendar:
    """Queries several providers concurrently and concatenates the results.

    A failing provider is logged and left out while the others still
    answer, so an external calendar outage never hides the CRM's own jobs.
    Only when every provider fails is the first error raised, leaving the
    conflict checker to decide what to do with it.
    """

    def __init__(self, *providers: CalendarProvider) -> None:
        self._providers = providers

    async def find_overlapping(
        self, start_iso: str, end_iso: str
    ) -> list[Union[CalendarEvent, dict[str, Any]]]:
        results = await asyncio.gather(
            *(p.find_overlapping(start_iso, end_iso) for p in self._providers),
            return_exceptions=True,
        )
        merged: list[Union[CalendarEvent, dict[str, Any]]] = []
        failures: list[BaseException] = []
        for provider, result in zip(self._providers, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning(
                    "Calendar provider %s failed: %s", type(provider).__name__, result
                )
                failures.append(result)
                continue
            merged.extend(result)
        if failures and len(failures) == len(self._providers):
            raise failures[0]
        logger.debug("%d event(s) from %d provider(s)", len(merged), len(self._providers))
        return merged
