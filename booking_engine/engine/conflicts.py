"""
Advisory conflict detection for a proposed booking window.

The check is read-only and fails open: an unreachable or slow calendar
yields an empty conflict list. A secondary calendar never blocks a booking.
"""

import asyncio
from datetime import datetime, timedelta
from typing import Any, Iterable, Optional, Union

import pydantic

from booking_engine.config import settings
from booking_engine.errors import ValidationError
from booking_engine.logging_context import get_attempt_logger
from booking_engine.schemas.calendar_schema import CalendarConflict, CalendarEvent
from booking_engine.stores.protocols import CalendarProvider
from booking_engine.utils import as_utc

logger = get_attempt_logger(__name__)


def booking_window(start: datetime, duration_minutes: int) -> tuple[datetime, datetime]:
    """The half-open [start, end) interval a booking occupies."""
    return start, start + timedelta(minutes=duration_minutes)


def _to_events(raw_events: Iterable[Union[CalendarEvent, dict[str, Any]]]) -> list[CalendarEvent]:
    """Validate provider rows one by one. Rows that do not parse are logged and dropped."""
    events = []
    for raw in raw_events:
        if isinstance(raw, CalendarEvent):
            events.append(raw)
            continue
        try:
            events.append(CalendarEvent.model_validate(raw))
        except pydantic.ValidationError as exc:
            logger.warning("Skipping malformed calendar event %r: %d error(s)", raw, exc.error_count())
    return events


class ConflictChecker:
    """Queries a calendar provider for commitments overlapping a window."""

    def __init__(self, calendar: CalendarProvider, timeout_sec: Optional[float] = None) -> None:
        self._calendar = calendar
        self.timeout_sec = (
            settings.calendar.conflict_check_timeout_sec if timeout_sec is None else timeout_sec
        )

    async def check_window(
        self,
        start: datetime,
        end: datetime,
        exclude_job_id: Optional[str] = None,
    ) -> list[CalendarConflict]:
        """
        Return the commitments overlapping ``[start, end)``, earliest first.

        Args:
            start: Proposed booking start.
            end: Proposed booking end (exclusive).
            exclude_job_id: Job being edited; its own entries never conflict.

        Raises:
            ValidationError: If ``end`` is not after ``start``.
        """
        if as_utc(end) <= as_utc(start):
            raise ValidationError("booking_window", "end must be after start")

        try:
            raw_events = await asyncio.wait_for(
                self._calendar.find_overlapping(start.isoformat(), end.isoformat()),
                timeout=self.timeout_sec,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Calendar check timed out after %.1fs, treating %s as clear",
                self.timeout_sec, start.isoformat(),
            )
            return []
        except Exception:
            logger.exception("Calendar check failed, treating %s as clear", start.isoformat())
            return []

        events = _to_events(raw_events)
        conflicts: list[CalendarConflict] = []
        seen_jobs: set[str] = set()
        window_start, window_end = as_utc(start), as_utc(end)
        for event in sorted(events, key=lambda e: as_utc(e.start)):
            if not (as_utc(event.start) < window_end and as_utc(event.end) > window_start):
                continue
            if event.job_id is not None:
                # a job and its synced calendar mirror are one commitment
                if event.job_id == exclude_job_id or event.job_id in seen_jobs:
                    continue
                seen_jobs.add(event.job_id)
            conflicts.append(
                CalendarConflict(
                    title=event.title, start=event.start, end=event.end, source=event.source
                )
            )

        logger.debug(
            "Window %s-%s: %d conflict(s)", start.isoformat(), end.isoformat(), len(conflicts)
        )
        return conflicts
