"""Calendar event and conflict models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class ConflictSource(str, Enum):
    CRM_JOB = "crm_job"
    CALENDAR = "calendar"


class CalendarEvent(BaseModel):
    """An existing commitment reported by a calendar provider.

    ``job_id`` is set when the event is a CRM job, or a mirror of one
    that was synced into an external calendar.
    """
    title: str
    start: datetime
    end: datetime
    source: ConflictSource = ConflictSource.CALENDAR
    job_id: Optional[str] = None


class CalendarConflict(BaseModel):
    """Ephemeral report of one overlapping commitment. Never persisted."""
    title: str
    start: datetime
    end: datetime
    source: ConflictSource = ConflictSource.CALENDAR
