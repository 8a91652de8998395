"""AW / minutes / hours conversion for TechTimes

1 AW = 5 minutes by default. Conversions never round; ``round_half_up`` is
applied once, when a value is placed into a report.
"""
import re
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from config import DEFAULT_AW_MINUTES


def aw_to_minutes(aw: float, aw_minutes: float = DEFAULT_AW_MINUTES) -> float:
    return aw * aw_minutes


def minutes_to_hours(minutes: float) -> float:
    return minutes / 60


def aw_to_hours(aw: float, aw_minutes: float = DEFAULT_AW_MINUTES) -> float:
    return minutes_to_hours(aw_to_minutes(aw, aw_minutes))


def hours_to_aw(hours: float, aw_minutes: float = DEFAULT_AW_MINUTES) -> float:
    """AW needed to fill ``hours`` of sold time"""
    return hours * 60 / aw_minutes


def round_half_up(value: Optional[float], places: int = 2) -> Optional[float]:
    """
    Round half away from zero (2.345 -> 2.35, -2.345 -> -2.35).

    Whole-number rounding (places <= 0) returns an int.
    """
    if value is None:
        return None
    quantum = Decimal(1).scaleb(-places)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    if places <= 0:
        return int(rounded)
    return float(rounded)


def format_time(minutes: float) -> str:
    """Format minutes as 'Xh Ym'"""
    total = int(round_half_up(minutes, 0))
    return f"{total // 60}h {total % 60}m"


def format_decimal_hours(minutes: float) -> str:
    return f"{round_half_up(minutes_to_hours(minutes), 2):.2f}"


def validate_wip_number(wip: str) -> bool:
    """WIP numbers are five digits"""
    return bool(re.fullmatch(r'\d{5}', wip or ''))


def validate_aw(aw: float) -> bool:
    """Job entry accepts whole AW between 0 and 100"""
    return float(aw).is_integer() and 0 <= aw <= 100
