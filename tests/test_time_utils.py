"""Tests for date, time and timezone helpers."""

from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

import pytest

from app.utils.time import (
    format_time_of_day,
    local_now,
    parse_iso_date,
    parse_month,
    parse_time_of_day,
    resolve_timezone,
)


class TestParsing:
    """Strict input formats."""

    def test_iso_date(self) -> None:
        assert parse_iso_date("2030-06-03") == date(2030, 6, 3)

    @pytest.mark.parametrize("value", ["2030-6-3", "2030-02-30", "03/06/2030", "", "tomorrow"])
    def test_bad_dates(self, value: str) -> None:
        with pytest.raises(ValueError):
            parse_iso_date(value)

    def test_month(self) -> None:
        assert parse_month("2030-06") == (2030, 6)

    @pytest.mark.parametrize("value", ["2030-13", "2030-00", "2030-6", "June"])
    def test_bad_months(self, value: str) -> None:
        with pytest.raises(ValueError):
            parse_month(value)

    def test_time_of_day(self) -> None:
        assert parse_time_of_day("14:00") == time(14, 0)
        assert parse_time_of_day("09:30:00") == time(9, 30)

    @pytest.mark.parametrize("value", ["2pm", "25:00", "9:00", "14:60"])
    def test_bad_times(self, value: str) -> None:
        with pytest.raises(ValueError):
            parse_time_of_day(value)

    def test_format(self) -> None:
        assert format_time_of_day(time(9, 5)) == "09:05"


class TestTimezones:
    """Provider timezone resolution."""

    def test_known_zone(self) -> None:
        assert resolve_timezone("Europe/London", "America/New_York") == ZoneInfo("Europe/London")

    def test_missing_zone_uses_default(self) -> None:
        assert resolve_timezone(None, "America/New_York") == ZoneInfo("America/New_York")

    def test_unknown_zone_uses_default(self) -> None:
        assert resolve_timezone("Not/AZone", "America/New_York") == ZoneInfo("America/New_York")

    def test_local_now_converts(self) -> None:
        instant = datetime(2030, 6, 3, 14, 30, tzinfo=timezone.utc)

        local = local_now(ZoneInfo("America/New_York"), instant)

        assert local.hour == 10
        assert local.date() == date(2030, 6, 3)

    def test_local_now_crosses_midnight(self) -> None:
        instant = datetime(2030, 6, 3, 2, 0, tzinfo=timezone.utc)

        local = local_now(ZoneInfo("America/New_York"), instant)

        assert local.date() == date(2030, 6, 2)
