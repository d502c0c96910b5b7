"""Utility functions."""

from app.utils.time import local_now, parse_iso_date, parse_month, parse_time_of_day, utc_now

__all__ = ["utc_now", "local_now", "parse_iso_date", "parse_month", "parse_time_of_day"]
