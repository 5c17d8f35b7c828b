"""Job booking request, draft, record and outcome models."""

from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from booking_engine.schemas.calendar_schema import CalendarConflict
from booking_engine.schemas.catalog_schema import VehicleSize
from booking_engine.schemas.pricing_schema import PriceQuote


class JobRequest(BaseModel):
    """Everything the create-job form collects.

    ``duration_value`` is the raw editor value; when omitted the service's
    default duration is used. ``size_category`` is the car's size as stored
    on the car record (e.g. "Medium").
    """
    customer_id: str
    car_id: str
    service_id: str
    size_category: str
    booking_datetime: datetime
    duration_value: Optional[Any] = None
    duration_unit: Optional[str] = None
    add_on_ids: list[str] = Field(default_factory=list)
    deposit_amount: Optional[int] = None
    as_of: Optional[date] = None


class JobChanges(BaseModel):
    """Fields changed in the edit-job form. None means unchanged."""
    car_id: Optional[str] = None
    service_id: Optional[str] = None
    size_category: Optional[str] = None
    booking_datetime: Optional[datetime] = None
    duration_value: Optional[Any] = None
    duration_unit: Optional[str] = None
    add_on_ids: Optional[list[str]] = None
    deposit_amount: Optional[int] = None
    as_of: Optional[date] = None


class JobRecord(BaseModel):
    """The shape handed to the job store."""
    customer_id: str
    car_id: str
    service_id: str
    vehicle_size: VehicleSize
    booking_datetime: datetime
    duration_minutes: int
    base_price: int
    total_price: int
    deposit_amount: Optional[int] = None
    add_on_ids: list[str] = Field(default_factory=list)


class JobDraft(BaseModel):
    """A priced and sized job ready for the conflict gate.

    ``job_id`` is set when the draft edits an existing job.
    """
    record: JobRecord
    quote: Optional[PriceQuote] = None
    duration_unit: str = "hours"
    job_id: Optional[str] = None

    @property
    def end_datetime(self) -> datetime:
        return self.record.booking_datetime + timedelta(minutes=self.record.duration_minutes)


class BookingStatus(str, Enum):
    READY = "ready"
    QUOTE_REQUIRED = "quote_required"
    CONFLICT = "conflict"
    BOOKED = "booked"
    UPDATED = "updated"
    CANCELLED = "cancelled"


class BookingOutcome(BaseModel):
    """Result of a booking-flow step."""
    success: bool
    status: BookingStatus
    message: str = ""
    job_id: Optional[str] = None
    draft: Optional[JobDraft] = None
    conflicts: list[CalendarConflict] = Field(default_factory=list)
