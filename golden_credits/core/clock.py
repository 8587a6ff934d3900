"""
Time source and reference-day calendar.

Every "today" decision in the engine (daily login, free spin, daily cap,
first win of the day) is made against one reference timezone, configured at
`engine.day_boundary_timezone` (default UTC). Timestamps are always stored
as aware UTC datetimes.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Callable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from golden_credits.core.exceptions import InvalidConfigurationError

Clock = Callable[[], datetime]


def system_clock() -> datetime:
    return datetime.now(timezone.utc)


class ReferenceCalendar:
    """Maps UTC instants onto reference days."""

    def __init__(self, timezone_name: str = "UTC") -> None:
        try:
            self.tz = ZoneInfo(timezone_name)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise InvalidConfigurationError(
                "engine.day_boundary_timezone",
                f"unknown timezone '{timezone_name}'",
            ) from exc
        self.timezone_name = timezone_name

    def day_of(self, moment: datetime) -> date:
        if moment.tzinfo is None:
            raise ValueError("naive datetime passed to ReferenceCalendar")
        return moment.astimezone(self.tz).date()

    def day_start(self, day: date) -> datetime:
        """First instant of `day`, returned in UTC."""
        return datetime.combine(day, time.min, tzinfo=self.tz).astimezone(timezone.utc)

    def same_day(self, first: datetime, second: datetime) -> bool:
        return self.day_of(first) == self.day_of(second)
