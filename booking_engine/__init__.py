"""Booking engine for a vehicle detailing CRM: durations, pricing and conflict checks."""

from booking_engine.engine.conflicts import ConflictChecker
from booking_engine.engine.duration import DurationNormalizer, DurationUnit
from booking_engine.engine.pricing import PriceResolver
from booking_engine.errors import BookingEngineError, CollaboratorUnavailable, ValidationError
from booking_engine.flow.booking_service import BookingService
from booking_engine.flow.gate import ConflictGate

__all__ = [
    "BookingEngineError",
    "BookingService",
    "CollaboratorUnavailable",
    "ConflictChecker",
    "ConflictGate",
    "DurationNormalizer",
    "DurationUnit",
    "PriceResolver",
    "ValidationError",
]
