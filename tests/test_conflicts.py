"""Tests for the advisory calendar conflict check."""

import asyncio
from datetime import datetime

import pytest

from booking_engine.engine.conflicts import ConflictChecker, booking_window
from booking_engine.errors import ValidationError
from booking_engine.schemas.calendar_schema import ConflictSource
from booking_engine.stores.calendar import InMemoryCalendar
from tests.conftest import make_event

START = datetime(2024, 6, 1, 8, 0)
END = datetime(2024, 6, 1, 9, 0)


class UnfilteredCalendar:
    """Returns every event it holds regardless of the window."""

    def __init__(self, events):
        self.events = events
        self.calls = []

    async def find_overlapping(self, start_iso, end_iso):
        self.calls.append((start_iso, end_iso))
        return self.events


class BrokenCalendar:
    async def find_overlapping(self, start_iso, end_iso):
        raise ConnectionError("calendar API unreachable")


class HangingCalendar:
    async def find_overlapping(self, start_iso, end_iso):
        await asyncio.sleep(10)
        return [make_event("2024-06-01T08:00", "2024-06-01T09:00")]


class TestOverlap:
    @pytest.mark.asyncio
    async def test_event_inside_window_conflicts(self):
        calendar = InMemoryCalendar([make_event("2024-06-01T08:30", "2024-06-01T08:45")])
        conflicts = await ConflictChecker(calendar).check_window(START, END)
        assert len(conflicts) == 1
        assert conflicts[0].title == "Dentist"
        assert conflicts[0].start == datetime(2024, 6, 1, 8, 30)

    @pytest.mark.asyncio
    async def test_empty_calendar_is_clear(self):
        assert await ConflictChecker(InMemoryCalendar()).check_window(START, END) == []

    @pytest.mark.asyncio
    async def test_adjacent_events_do_not_conflict(self):
        calendar = UnfilteredCalendar([
            make_event("2024-06-01T07:00", "2024-06-01T08:00", title="Before"),
            make_event("2024-06-01T09:00", "2024-06-01T10:00", title="After"),
        ])
        assert await ConflictChecker(calendar).check_window(START, END) == []

    @pytest.mark.asyncio
    async def test_event_spanning_window_conflicts(self):
        calendar = UnfilteredCalendar([make_event("2024-06-01T06:00", "2024-06-01T12:00")])
        assert len(await ConflictChecker(calendar).check_window(START, END)) == 1

    @pytest.mark.asyncio
    async def test_provider_results_are_refiltered(self):
        calendar = UnfilteredCalendar([
            make_event("2024-06-02T08:00", "2024-06-02T09:00", title="Tomorrow"),
            make_event("2024-06-01T08:15", "2024-06-01T10:00", title="Overlap"),
        ])
        conflicts = await ConflictChecker(calendar).check_window(START, END)
        assert [c.title for c in conflicts] == ["Overlap"]

    @pytest.mark.asyncio
    async def test_conflicts_sorted_by_start(self):
        calendar = UnfilteredCalendar([
            make_event("2024-06-01T08:40", "2024-06-01T08:50", title="Second"),
            make_event("2024-06-01T08:10", "2024-06-01T08:20", title="First"),
        ])
        conflicts = await ConflictChecker(calendar).check_window(START, END)
        assert [c.title for c in conflicts] == ["First", "Second"]

    @pytest.mark.asyncio
    async def test_dict_events_accepted(self):
        calendar = UnfilteredCalendar([
            {"title": "Gym", "start": "2024-06-01T08:30:00", "end": "2024-06-01T09:30:00"},
        ])
        conflicts = await ConflictChecker(calendar).check_window(START, END)
        assert conflicts[0].title == "Gym"
        assert conflicts[0].source == ConflictSource.CALENDAR

    @pytest.mark.asyncio
    async def test_aware_events_against_naive_window(self):
        calendar = UnfilteredCalendar([
            make_event("2024-06-01T08:30+00:00", "2024-06-01T08:45+00:00"),
        ])
        assert len(await ConflictChecker(calendar).check_window(START, END)) == 1

    @pytest.mark.asyncio
    async def test_window_passed_as_iso(self):
        calendar = UnfilteredCalendar([])
        await ConflictChecker(calendar).check_window(START, END)
        assert calendar.calls == [("2024-06-01T08:00:00", "2024-06-01T09:00:00")]


class TestJobEvents:
    @pytest.mark.asyncio
    async def test_excluded_job_never_conflicts(self):
        calendar = UnfilteredCalendar([
            make_event("2024-06-01T08:00", "2024-06-01T10:00", job_id="JOB-1",
                       source=ConflictSource.CRM_JOB),
        ])
        assert await ConflictChecker(calendar).check_window(START, END, exclude_job_id="JOB-1") == []

    @pytest.mark.asyncio
    async def test_job_and_its_mirror_reported_once(self):
        calendar = UnfilteredCalendar([
            make_event("2024-06-01T08:00", "2024-06-01T10:00", title="Jones - Wash",
                       job_id="JOB-1", source=ConflictSource.CRM_JOB),
            make_event("2024-06-01T08:00", "2024-06-01T10:00", title="Jones - Wash",
                       job_id="JOB-1"),
        ])
        conflicts = await ConflictChecker(calendar).check_window(START, END)
        assert len(conflicts) == 1
        assert conflicts[0].source == ConflictSource.CRM_JOB


class TestFailOpen:
    @pytest.mark.asyncio
    async def test_unreachable_calendar_returns_empty(self):
        assert await ConflictChecker(BrokenCalendar()).check_window(START, END) == []

    @pytest.mark.asyncio
    async def test_unreachable_calendar_is_logged(self, caplog):
        await ConflictChecker(BrokenCalendar()).check_window(START, END)
        assert "Calendar check failed" in caplog.text

    @pytest.mark.asyncio
    async def test_timeout_returns_empty(self):
        checker = ConflictChecker(HangingCalendar(), timeout_sec=0.05)
        assert await checker.check_window(START, END) == []

    @pytest.mark.asyncio
    async def test_malformed_row_alone_is_clear(self):
        calendar = UnfilteredCalendar([{"title": "No times"}])
        assert await ConflictChecker(calendar).check_window(START, END) == []

    @pytest.mark.asyncio
    async def test_malformed_row_does_not_hide_valid_conflicts(self, caplog):
        calendar = UnfilteredCalendar([
            make_event("2024-06-01T08:30", "2024-06-01T08:45", title="Dentist"),
            {"title": "All-day without times"},
        ])
        conflicts = await ConflictChecker(calendar).check_window(START, END)
        assert [c.title for c in conflicts] == ["Dentist"]
        assert "Skipping malformed calendar event" in caplog.text


class TestWindowValidation:
    @pytest.mark.asyncio
    async def test_end_before_start_rejected(self):
        with pytest.raises(ValidationError):
            await ConflictChecker(InMemoryCalendar()).check_window(END, START)

    @pytest.mark.asyncio
    async def test_empty_window_rejected(self):
        with pytest.raises(ValidationError):
            await ConflictChecker(InMemoryCalendar()).check_window(START, START)

    def test_booking_window_from_duration(self):
        start, end = booking_window(START, 90)
        assert end == datetime(2024, 6, 1, 9, 30)
        assert start == START

    def test_default_timeout_from_settings(self):
        checker = ConflictChecker(InMemoryCalendar())
        assert checker.timeout_sec > 0
