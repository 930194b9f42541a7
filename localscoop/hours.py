"""
Open/closed evaluation from a weekly opening-hours schedule.

Days are numbered the way the Places API numbers them: 0 = Sunday
through 6 = Saturday. Times are minutes since midnight.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from localscoop.types import OpeningHours

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class Period:
    """One opening period. close_minute of None means open the rest of the day."""

    open_day: int
    open_minute: int
    close_minute: Optional[int] = None

    def is_open_at(self, minute_of_day: int) -> bool:
        """Check whether minute_of_day falls inside this period."""
        if self.close_minute is None:
            return minute_of_day >= self.open_minute
        return self.open_minute <= minute_of_day < self.close_minute


@dataclass(frozen=True)
class WeeklySchedule:
    """Opening periods in upstream order."""

    periods: tuple[Period, ...] = field(default_factory=tuple)

    def __bool__(self) -> bool:
        return bool(self.periods)

    def periods_for_day(self, day: int) -> list[Period]:
        return [p for p in self.periods if p.open_day == day]


def schedule_from_opening_hours(
    opening_hours: Optional[OpeningHours],
) -> Optional[WeeklySchedule]:
    """
    Convert upstream regularOpeningHours into a WeeklySchedule.

    Periods without a complete open point (day, hour and minute) are
    skipped. A close point without hour and minute counts as no close
    time.

    Args:
        opening_hours: Parsed regularOpeningHours, or None

    Returns:
        WeeklySchedule, or None when the place publishes no periods
    """
    if opening_hours is None or opening_hours.periods is None:
        return None

    periods = []
    for raw in opening_hours.periods:
        point = raw.open
        if point is None or None in (point.day, point.hour, point.minute):
            logger.debug("Skipping incomplete opening period: %s", raw)
            continue

        close_minute = None
        if (
            raw.close is not None
            and raw.close.hour is not None
            and raw.close.minute is not None
        ):
            close_minute = abs(raw.close.hour) * 60 + abs(raw.close.minute)

        periods.append(
            Period(
                open_day=abs(point.day),
                open_minute=abs(point.hour) * 60 + abs(point.minute),
                close_minute=close_minute,
            )
        )

    return WeeklySchedule(periods=tuple(periods))


def get_timezone(name: str) -> tzinfo:
    """Look up an IANA time zone, falling back to UTC when unknown."""
    if name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown time zone %r, using UTC", name)
        return timezone.utc


def day_and_minute(now: datetime, tz: tzinfo = timezone.utc) -> tuple[int, int]:
    """
    Split a timestamp into (day, minute_of_day) in the given zone.

    Naive datetimes are taken to be UTC.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    local = now.astimezone(tz)
    # isoweekday(): Monday = 1 ... Sunday = 7
    return local.isoweekday() % 7, local.hour * 60 + local.minute


def is_open_now(
    schedule: WeeklySchedule,
    now: Optional[datetime] = None,
    tz: tzinfo = timezone.utc,
) -> bool:
    """
    Decide whether a business is open at a given moment.

    Only periods opening on the current day are considered, in schedule
    order; the first one that contains the current minute wins.

    Args:
        schedule: Weekly opening periods
        now: Moment to evaluate (defaults to the current time)
        tz: Time zone the schedule is expressed in

    Returns:
        True if any period for today is open, False otherwise
    """
    if now is None:
        now = datetime.now(timezone.utc)

    current_day, current_minute = day_and_minute(now, tz)

    for period in schedule.periods_for_day(current_day):
        if period.is_open_at(current_minute):
            return True
    return False
