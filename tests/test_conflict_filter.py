"""Tests for conflict filtering against booked appointments."""

from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

from app.booking.conflicts import (
    appointment_window,
    filter_conflicts,
    has_conflict,
    windows_overlap,
)
from app.booking.slots import OccupiedWindow, ServiceTiming, generate_slots

NEW_YORK = ZoneInfo("America/New_York")
MONDAY = date(2030, 6, 3)
BEFORE_MONDAY = datetime(2030, 6, 1, 12, 0, tzinfo=timezone.utc)


def window(start: time, end: time, day: date = MONDAY) -> OccupiedWindow:
    return OccupiedWindow(
        start=datetime.combine(day, start, tzinfo=NEW_YORK),
        end=datetime.combine(day, end, tzinfo=NEW_YORK),
    )


def monday_slots(duration: int = 60, before: int = 0, after: int = 0):
    return generate_slots(
        timing=ServiceTiming(
            duration_minutes=duration,
            buffer_before_minutes=before,
            buffer_after_minutes=after,
        ),
        intervals=[(time(9, 0), time(17, 0))],
        day=MONDAY,
        tz=NEW_YORK,
        now=BEFORE_MONDAY,
        granularity_minutes=60,
    )


class TestWindowsOverlap:
    """Half-open overlap semantics."""

    def test_overlapping(self) -> None:
        assert windows_overlap(window(time(9), time(10)), window(time(9, 30), time(10, 30)))

    def test_adjacent_is_not_overlap(self) -> None:
        """A window ending when the next begins does not conflict."""
        assert not windows_overlap(window(time(9), time(10)), window(time(10), time(11)))
        assert not windows_overlap(window(time(10), time(11)), window(time(9), time(10)))

    def test_containment(self) -> None:
        assert windows_overlap(window(time(9), time(12)), window(time(10), time(11)))

    def test_has_conflict_empty(self) -> None:
        assert not has_conflict(window(time(9), time(10)), [])


class TestFilterConflicts:
    """Tests for removing booked slots."""

    def test_existing_booking_removes_its_slot(self) -> None:
        """An appointment at 10:00-11:00 removes only the 10:00 slot."""
        busy = [window(time(10), time(11))]

        free = filter_conflicts(monday_slots(), busy)

        starts = [slot.as_dict()["start"] for slot in free]
        assert "10:00" not in starts
        assert "09:00" in starts
        assert "11:00" in starts
        assert len(free) == 7

    def test_no_busy_keeps_everything(self) -> None:
        candidates = monday_slots()

        assert filter_conflicts(candidates, []) == candidates

    def test_order_preserved(self) -> None:
        busy = [window(time(12), time(13)), window(time(9), time(10))]

        free = filter_conflicts(monday_slots(), busy)

        starts = [slot.as_dict()["start"] for slot in free]
        assert starts == sorted(starts)

    def test_one_minute_overlap_removes_slot(self) -> None:
        """A booking starting at 10:59 collides with the 10:00-11:00 slot."""
        busy = [window(time(10, 59), time(11, 59))]

        free = filter_conflicts(monday_slots(), busy)

        starts = [slot.as_dict()["start"] for slot in free]
        assert "10:00" not in starts
        assert "11:00" not in starts
        assert "09:00" in starts
        assert "12:00" in starts

    def test_candidate_buffers_block_adjacent_booking(self) -> None:
        """A 15-minute after-buffer makes the slot before a booking unavailable."""
        busy = [window(time(11), time(12))]

        free = filter_conflicts(monday_slots(after=15), busy)

        starts = [slot.as_dict()["start"] for slot in free]
        assert "10:00" not in starts
        assert "11:00" not in starts
        assert "12:00" in starts

    def test_stored_appointment_buffers(self) -> None:
        """An existing appointment's own buffers widen what it blocks."""
        busy = [
            appointment_window(MONDAY, time(11), time(12), 0, 30, NEW_YORK),
        ]

        free = filter_conflicts(monday_slots(), busy)

        starts = [slot.as_dict()["start"] for slot in free]
        assert "11:00" not in starts
        assert "12:00" not in starts
        assert "13:00" in starts

    def test_fully_booked_day(self) -> None:
        busy = [window(time(9), time(17))]

        assert filter_conflicts(monday_slots(), busy) == []

    def test_idempotent(self) -> None:
        """Filtering twice gives the same result."""
        busy = [window(time(10), time(11))]
        once = filter_conflicts(monday_slots(), busy)

        assert filter_conflicts(once, busy) == once
