from booking_engine.flow.booking_service import BookingService
from booking_engine.flow.gate import (
    ConflictGate,
    GateState,
    GateTrigger,
    InvalidTransitionError,
)

__all__ = [
    "BookingService",
    "ConflictGate",
    "GateState",
    "GateTrigger",
    "InvalidTransitionError",
]
