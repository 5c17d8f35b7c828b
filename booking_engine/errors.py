"""Exceptions raised by the booking engine.

Missing prices and calendar conflicts are not errors: they come back as
``None`` / outcome statuses the caller must branch on.
"""


class BookingEngineError(Exception):
    """Base class for all booking engine errors."""


class ValidationError(BookingEngineError):
    """Input that cannot be coerced into a usable value."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class CollaboratorUnavailable(BookingEngineError):
    """A backing store or provider could not be reached.

    Recoverable: the caller decides whether to retry or to show the value
    as unavailable. The engine itself never retries.
    """

    def __init__(self, collaborator: str, reason: str) -> None:
        super().__init__(f"{collaborator} unavailable: {reason}")
        self.collaborator = collaborator
        self.reason = reason
