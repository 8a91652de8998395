"""Working-day calendar for TechTimes

Weekday numbers follow the app convention 0=Sunday .. 6=Saturday.

Rules:
- Monday to Friday count when they are in the schedule's working weekdays.
- Saturday ignores the weekday set and follows the Saturday frequency.
- Sunday never counts.
"""
import calendar
import logging
import math
from datetime import date, timedelta, MINYEAR, MAXYEAR
from typing import List, Tuple

from config import SATURDAY_ROTATIONS
from .models import Schedule, ValidationError, MONTH_PATTERN

logger = logging.getLogger(__name__)

SUNDAY = 0
SATURDAY = 6


def day_index(day: date) -> int:
    """Weekday number with 0=Sunday .. 6=Saturday"""
    return (day.weekday() + 1) % 7


def parse_month(month: str) -> Tuple[int, int]:
    """Split 'YYYY-MM' into (year, month)"""
    if not isinstance(month, str) or not MONTH_PATTERN.match(month):
        raise ValidationError('month', f"Month must be in YYYY-MM format, got {month!r}")
    year, month_num = month.split('-')
    return int(year), int(month_num)


def _valid_month(year, month) -> bool:
    return (
        isinstance(year, int) and isinstance(month, int)
        and MINYEAR <= year <= MAXYEAR and 1 <= month <= 12
    )


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """First day of the month and first day of the next month"""
    start = date(year, month, 1)
    end = start + timedelta(days=calendar.monthrange(year, month)[1])
    return start, end


def days_in_month(year: int, month: int) -> List[date]:
    if not _valid_month(year, month):
        return []
    last_day = calendar.monthrange(year, month)[1]
    return [date(year, month, d) for d in range(1, last_day + 1)]


def is_working_saturday(day: date, schedule: Schedule) -> bool:
    if day_index(day) != SATURDAY or not schedule.saturday_working:
        return False

    frequency = schedule.saturday_frequency
    if frequency == 'every':
        return True
    if frequency in SATURDAY_ROTATIONS:
        # Anchor week is week 0; floor division keeps the rotation going backwards too
        weeks = (day - schedule.next_working_saturday).days // 7
        return weeks % SATURDAY_ROTATIONS[frequency] == 0
    if frequency == 'custom':
        return day.isoformat() in schedule.custom_saturday_dates
    return False


def is_working_day(day: date, schedule: Schedule) -> bool:
    index = day_index(day)
    if index == SUNDAY:
        return False
    if index == SATURDAY:
        return is_working_saturday(day, schedule)
    return index in schedule.working_weekdays


def working_days_in_month(year: int, month: int, schedule: Schedule) -> List[date]:
    """
    Working days of a month in date order.

    Invalid year/month values give an empty list rather than an error, so a
    caller always gets a (possibly zero-day) month back.
    """
    if SUNDAY in schedule.working_weekdays:
        logger.debug("Sunday is selected as a working weekday but is never counted")
    return [day for day in days_in_month(year, month) if is_working_day(day, schedule)]


def hours_for_date(day: date, schedule: Schedule) -> float:
    """Working hours of one day, using the Saturday override on working Saturdays"""
    if schedule.saturday_working_hours is not None and is_working_saturday(day, schedule):
        return schedule.saturday_working_hours
    return schedule.daily_working_hours


def week_of_month(day: date) -> int:
    """
    Month-relative week number, 1-indexed, weeks starting on Sunday.

    Not ISO week numbering: the Sunday-based index of the 1st decides how
    many days fall into week 1.
    """
    first_index = day_index(day.replace(day=1))
    return math.ceil((day.day + first_index) / 7)


def weeks_in_month(year: int, month: int) -> int:
    days = days_in_month(year, month)
    return week_of_month(days[-1]) if days else 0


def week_bounds(day: date) -> Tuple[date, date]:
    """Sunday that starts the week of ``day`` and the following Sunday"""
    start = day - timedelta(days=day_index(day))
    return start, start + timedelta(days=7)
