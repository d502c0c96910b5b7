"""Conflict filtering between candidate slots and booked appointments.

Windows are half-open: a slot ending exactly when another begins is not a
conflict. The scan is candidates x existing, which is fine for one
provider-day; ``busy`` may be any sequence so an interval index can be
swapped in without changing results.
"""

from datetime import date, datetime, time
from typing import Iterable, Sequence
from zoneinfo import ZoneInfo

from app.booking.slots import OccupiedWindow, Slot, occupied_window


def windows_overlap(a: OccupiedWindow, b: OccupiedWindow) -> bool:
    """Return True if two half-open windows share any instant."""
    return a.start < b.end and b.start < a.end


def has_conflict(window: OccupiedWindow, busy: Iterable[OccupiedWindow]) -> bool:
    """Return True if ``window`` overlaps any busy window."""
    return any(windows_overlap(window, other) for other in busy)


def filter_conflicts(
    candidates: Sequence[Slot],
    busy: Sequence[OccupiedWindow],
) -> list[Slot]:
    """Keep the candidates whose occupied window overlaps no busy window.

    Order of ``candidates`` is preserved.
    """
    if not busy:
        return list(candidates)
    return [slot for slot in candidates if not has_conflict(slot.occupied, busy)]


def appointment_window(
    booking_date: date,
    start_time: time,
    end_time: time,
    buffer_before_minutes: int,
    buffer_after_minutes: int,
    tz: ZoneInfo,
) -> OccupiedWindow:
    """Occupied window of a stored appointment using its own service buffers."""
    start = datetime.combine(booking_date, start_time, tzinfo=tz)
    end = datetime.combine(booking_date, end_time, tzinfo=tz)
    return occupied_window(start, end, buffer_before_minutes, buffer_after_minutes)
