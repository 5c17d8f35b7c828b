"""Shared test fixtures and helpers."""

from datetime import date, datetime
from typing import Optional

import pytest

from booking_engine.engine.conflicts import ConflictChecker
from booking_engine.engine.duration import DurationNormalizer
from booking_engine.engine.pricing import PriceResolver
from booking_engine.flow.booking_service import BookingService
from booking_engine.schemas.calendar_schema import CalendarEvent, ConflictSource
from booking_engine.schemas.catalog_schema import AddOn, CustomerPriceOverride, Service
from booking_engine.schemas.job_schema import JobRequest
from booking_engine.stores.calendar import CompositeCalendar, InMemoryCalendar, JobScheduleCalendar
from booking_engine.stores.catalog import InMemoryAddOnCatalog, InMemoryPricingStore
from booking_engine.stores.jobs import InMemoryJobStore

AS_OF = date(2024, 6, 1)


def make_service(
    service_id: str = "svc-wash",
    name: str = "Maintenance Wash",
    duration_minutes: int = 120,
    pricing: Optional[dict[str, int]] = None,
    requires_quote: bool = False,
) -> Service:
    """Helper to create a Service with sensible defaults."""
    if pricing is None:
        pricing = {"small": 4000, "medium": 6000, "large": 7000, "xl": 8000}
    return Service(
        id=service_id,
        name=name,
        category="Washes",
        duration_minutes=duration_minutes,
        pricing=pricing,
        requires_quote=requires_quote,
    )


def make_override(
    price: int = 5000,
    customer_id: str = "cust-vip",
    service_id: str = "svc-wash",
    vehicle_size: str = "medium",
    valid_until: Optional[date] = None,
    created_at: Optional[datetime] = None,
) -> CustomerPriceOverride:
    return CustomerPriceOverride(
        customer_id=customer_id,
        service_id=service_id,
        vehicle_size=vehicle_size,
        price_incl_vat=price,
        valid_until=valid_until,
        created_at=created_at,
    )


def make_event(
    start: str,
    end: str,
    title: str = "Dentist",
    job_id: Optional[str] = None,
    source: ConflictSource = ConflictSource.CALENDAR,
) -> CalendarEvent:
    """Helper to create a CalendarEvent from ISO strings."""
    return CalendarEvent(
        title=title,
        start=datetime.fromisoformat(start),
        end=datetime.fromisoformat(end),
        job_id=job_id,
        source=source,
    )


def make_request(**overrides) -> JobRequest:
    """Helper to create a JobRequest for a medium car wash at 08:00 on 2024-06-01."""
    fields = dict(
        customer_id="cust-regular",
        car_id="car-1",
        service_id="svc-wash",
        size_category="Medium",
        booking_datetime=datetime(2024, 6, 1, 8, 0),
        as_of=AS_OF,
    )
    fields.update(overrides)
    return JobRequest(**fields)


@pytest.fixture
def normalizer():
    return DurationNormalizer(
        min_minutes=30, max_minutes=10080, working_day_minutes=480, default_value=0.5
    )


@pytest.fixture
def pricing_store():
    return InMemoryPricingStore(
        services=[
            make_service(),
            make_service(
                "svc-ceramic", "Ceramic Coating", duration_minutes=600,
                pricing={"medium": 60000, "large": 75000},
            ),
            make_service(
                "svc-paint", "Paint Correction", duration_minutes=480,
                pricing={"medium": 30000}, requires_quote=True,
            ),
            make_service("svc-bespoke", "Bespoke Restoration", duration_minutes=960, pricing={}),
        ],
        overrides=[make_override()],
    )


@pytest.fixture
def add_on_catalog():
    return InMemoryAddOnCatalog([
        AddOn(id="addon-pet", name="Pet Hair Removal", price_incl_vat=1500),
        AddOn(id="addon-scratch", name="Scratch Repair", price_incl_vat=2500, is_variable_price=True),
        AddOn(id="addon-engine", name="Engine Bay Clean", price_incl_vat=2000),
    ])


@pytest.fixture
def resolver(pricing_store, add_on_catalog):
    return PriceResolver(pricing_store, add_on_catalog, vat_rate=0.20, tie_break="most_recent")


@pytest.fixture
def job_store():
    return InMemoryJobStore()


@pytest.fixture
def external_calendar():
    return InMemoryCalendar()


@pytest.fixture
def checker(job_store, external_calendar):
    return ConflictChecker(
        CompositeCalendar(JobScheduleCalendar(job_store), external_calendar),
        timeout_sec=1.0,
    )


@pytest.fixture
def booking_service(resolver, checker, job_store, pricing_store, normalizer):
    return BookingService(resolver, checker, job_store, pricing_store, normalizer)
