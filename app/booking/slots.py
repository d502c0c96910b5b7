"""Slot generation from recurring working hours.

Pure functions: callers pass in the working intervals, the provider's
timezone and the current instant, so the same inputs always give the same
slots.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Sequence
from zoneinfo import ZoneInfo

from app.utils.time import format_time_of_day, local_now


@dataclass(frozen=True)
class ServiceTiming:
    """Duration and buffers of a service, in minutes."""

    duration_minutes: int
    buffer_before_minutes: int = 0
    buffer_after_minutes: int = 0

    def __post_init__(self) -> None:
        if self.duration_minutes <= 0:
            raise ValueError("duration_minutes must be positive")
        if self.buffer_before_minutes < 0 or self.buffer_after_minutes < 0:
            raise ValueError("buffers must not be negative")

    @classmethod
    def from_service(cls, service) -> "ServiceTiming":
        """Build timing from a Service row (or anything with the same attributes)."""
        return cls(
            duration_minutes=service.duration_minutes,
            buffer_before_minutes=service.buffer_before_minutes or 0,
            buffer_after_minutes=service.buffer_after_minutes or 0,
        )


@dataclass(frozen=True)
class OccupiedWindow:
    """Half-open span ``[start, end)`` a booking blocks, buffers included."""

    start: datetime
    end: datetime


@dataclass(frozen=True)
class Slot:
    """A candidate appointment window on a date.

    ``occupied`` is only used for conflict comparison and is never shown
    to customers.
    """

    start: datetime
    end: datetime
    occupied: OccupiedWindow

    def as_dict(self) -> dict[str, str]:
        """Visible fields as ``HH:MM`` strings."""
        return {
            "start": format_time_of_day(self.start),
            "end": format_time_of_day(self.end),
        }


def occupied_window(
    start: datetime,
    end: datetime,
    buffer_before_minutes: int,
    buffer_after_minutes: int,
) -> OccupiedWindow:
    """Extend ``[start, end)`` by the before/after buffers."""
    return OccupiedWindow(
        start=start - timedelta(minutes=buffer_before_minutes),
        end=end + timedelta(minutes=buffer_after_minutes),
    )


def build_slot(timing: ServiceTiming, start: datetime) -> Slot:
    """Build the slot (and its occupied window) starting at ``start``."""
    end = start + timedelta(minutes=timing.duration_minutes)
    return Slot(
        start=start,
        end=end,
        occupied=occupied_window(
            start, end, timing.buffer_before_minutes, timing.buffer_after_minutes
        ),
    )


def generate_slots(
    timing: ServiceTiming,
    intervals: Sequence[tuple[time, time]],
    day: date,
    tz: ZoneInfo,
    now: datetime,
    granularity_minutes: int,
    min_notice_minutes: int = 0,
) -> list[Slot]:
    """Generate candidate slots for ``day``.

    Steps from each interval's start by ``granularity_minutes`` while the
    service still ends within the interval. Slots starting before
    ``now + min_notice_minutes`` (in ``tz``) are dropped, which empties past
    dates and trims today.

    Args:
        timing: Service duration and buffers
        intervals: Working intervals ``(start_time, end_time)`` for the weekday
        day: Calendar date in the provider's timezone
        tz: Provider timezone
        now: Current instant (any timezone)
        granularity_minutes: Step between successive slot starts
        min_notice_minutes: Minimum lead time before a slot may start

    Returns:
        Slots ordered by start time; empty when the day is closed
    """
    if granularity_minutes <= 0:
        raise ValueError("granularity_minutes must be positive")

    step = timedelta(minutes=granularity_minutes)
    duration = timedelta(minutes=timing.duration_minutes)
    earliest = local_now(tz, now) + timedelta(minutes=min_notice_minutes)

    slots: list[Slot] = []
    for interval_start, interval_end in sorted(intervals):
        current = datetime.combine(day, interval_start, tzinfo=tz)
        window_end = datetime.combine(day, interval_end, tzinfo=tz)

        while current + duration <= window_end:
            if current >= earliest:
                slots.append(build_slot(timing, current))
            current += step

    return slots


def find_slot(
    slots: Sequence[Slot],
    start_time: time,
) -> Slot | None:
    """Return the slot starting at ``start_time`` (wall clock), if offered."""
    for slot in slots:
        if slot.start.time() == start_time:
            return slot
    return None
