"""Service catalog, vehicle size and add-on models."""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from booking_engine.config import settings


class VehicleSize(str, Enum):
    """Pricing tier keys. A car's size category maps onto exactly one."""
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    XL = "xl"


VEHICLE_SIZE_DISPLAY: dict[VehicleSize, str] = {
    VehicleSize.SMALL: "Small",
    VehicleSize.MEDIUM: "Medium",
    VehicleSize.LARGE: "Large",
    VehicleSize.XL: "Extra Large (XL)",
}


class Service(BaseModel):
    """A bookable detailing service with per-size pricing in pence (inc. VAT)."""
    id: str
    name: str
    category: Optional[str] = None
    duration_minutes: int = 60
    pricing: dict[VehicleSize, int] = Field(default_factory=dict)
    requires_quote: bool = False

    @field_validator("duration_minutes")
    @classmethod
    def _duration_in_range(cls, value: int) -> int:
        low, high = settings.duration.min_minutes, settings.duration.max_minutes
        if not low <= value <= high:
            raise ValueError(f"duration_minutes must be within [{low}, {high}], got {value}")
        return value


class AddOn(BaseModel):
    """Optional extra. Variable-price add-ons are priced on application (POA)."""
    id: str
    name: str = ""
    price_incl_vat: Optional[int] = None
    is_variable_price: bool = False


class CustomerPriceOverride(BaseModel):
    """Customer-specific price for one service and vehicle size."""
    customer_id: str
    service_id: str
    vehicle_size: VehicleSize
    price_incl_vat: int
    valid_until: Optional[date] = None
    created_at: Optional[datetime] = None

    def is_active(self, as_of: date) -> bool:
        return self.valid_until is None or self.valid_until >= as_of
