from booking_engine.engine.conflicts import ConflictChecker, booking_window
from booking_engine.engine.duration import DurationNormalizer, DurationUnit
from booking_engine.engine.pricing import (
    PriceResolver,
    add_vat,
    calculate_vat,
    decompose_vat,
    normalize_vehicle_size,
)

__all__ = [
    "ConflictChecker",
    "booking_window",
    "DurationNormalizer",
    "DurationUnit",
    "PriceResolver",
    "add_vat",
    "calculate_vat",
    "decompose_vat",
    "normalize_vehicle_size",
]
