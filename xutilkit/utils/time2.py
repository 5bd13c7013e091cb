"""Time-zone aware formatting helpers."""

from __future__ import annotations

from datetime import datetime, tzinfo

DATE_LAYOUT = "%Y%m%d"
DATE_TIME_LAYOUT = "%Y-%m-%d %H:%M:%S"


def _in_zone(moment: datetime, tz: tzinfo | None) -> datetime:
    return moment.astimezone(tz)


def now(tz: tzinfo | None = None) -> datetime:
    """Current time in tz, or in the local zone when tz is None."""
    return datetime.now().astimezone(tz)


def today_start(moment: datetime, tz: tzinfo | None = None) -> datetime:
    """Midnight of the day holding moment, as seen in tz (local by default)."""
    local = _in_zone(moment, tz)
    if tz is None:
        return datetime(local.year, local.month, local.day).astimezone()
    return datetime(local.year, local.month, local.day, tzinfo=tz)


def format_time(moment: datetime, layout: str, tz: tzinfo | None = None) -> str:
    """Format moment with a strftime layout after moving it into tz."""
    return _in_zone(moment, tz).strftime(layout)


def format_d(moment: datetime, tz: tzinfo | None = None) -> str:
    return format_time(moment, DATE_LAYOUT, tz)


def format_dt(moment: datetime, tz: tzinfo | None = None) -> str:
    return format_time(moment, DATE_TIME_LAYOUT, tz)


def _trunc_rem(n: int, m: int) -> int:
    quotient = abs(n) // m
    if n < 0:
        quotient = -quotient
    return n - quotient * m


def _trunc_div(n: int, m: int) -> int:
    quotient = abs(n) // m
    return -quotient if n < 0 else quotient


def offset_ts(offset: int) -> str:
    """Seconds into the day as HH:MM:SS."""
    hours = _trunc_div(_trunc_rem(offset, 86400), 3600)
    minutes = _trunc_div(_trunc_rem(offset, 3600), 60)
    seconds = _trunc_rem(offset, 60)
    return "%02d:%02d:%02d" % (hours, minutes, seconds)