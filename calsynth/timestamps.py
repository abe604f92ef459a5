# calsynth/timestamps.py
"""
Commit timestamp synthesis.

Responsibilities:
- Parse calendar days
- Map (day, intra-day index) to an instant near local noon
- Format git offsets, shared by author and committer

This module does NOT:
- validate calendars
- build streams
- call git
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Tuple
import re


# Seconds between the noon anchor and the next midnight.
MAX_UNITS_PER_DAY = 12 * 60 * 60

NOON = time(12, 0, 0)

_DAY_RE = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")


class DateParseError(RuntimeError):
    """
    Raised when a calendar day is not a real YYYY-MM-DD date.

    Attributes:
        value: the offending date string
    """

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"invalid date {value!r}: expected YYYY-MM-DD")


def parse_day(value: str) -> date:
    if not isinstance(value, str) or not _DAY_RE.match(value):
        raise DateParseError(value)

    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError) as e:
        raise DateParseError(value) from e


def format_git_offset(dt: datetime) -> str:
    """
    Format the UTC offset of dt as git expects: +HHMM or -HHMM.

    Naive datetimes are treated as UTC.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    offset = dt.utcoffset()
    if offset is None:
        offset = timedelta(0)

    # Sub-minute offsets truncate toward zero
    total_minutes = int(offset.total_seconds() / 60)
    sign = "+" if total_minutes >= 0 else "-"
    total_minutes = abs(total_minutes)

    hh = total_minutes // 60
    mm = total_minutes % 60

    return f"{sign}{hh:02d}{mm:02d}"


class TimestampSynthesizer:
    """
    Place commits of one calendar day at noon plus one second per commit.

    Contribution graphs bucket commits by the day in the reported offset.
    Anchoring at noon keeps every commit on its calendar day for any viewer
    offset up to twelve hours, while the +index seconds keep intra-day order.
    With the default UTC zone the offset is always +0000.
    """

    def __init__(self, tz: tzinfo = timezone.utc) -> None:
        self.tz = tz

    def instant(self, day: str, index: int) -> datetime:
        if index < 0:
            raise ValueError(f"index must be non negative, got {index}")

        parsed = parse_day(day)
        return datetime.combine(parsed, NOON, tzinfo=self.tz) + timedelta(seconds=index)

    def synthesize(self, day: str, index: int) -> Tuple[int, str]:
        """
        Return (unix seconds, offset) for the 0-based index-th commit of day.

        Raises DateParseError for a malformed day.
        """
        dt = self.instant(day, index)
        return int(dt.timestamp()), format_git_offset(dt)
