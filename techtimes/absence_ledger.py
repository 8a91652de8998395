"""Absence deductions for TechTimes

Each absence removes hours from one of two pools:

- AVAILABLE_HOURS: the hours the technician could have worked
- MONTHLY_TARGET: the sold-hours goal for the month

Hours per absence are ``custom_hours`` when given, otherwise
``days_count * daily hours * (0.5 if half day)``.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple

from .calendar_resolver import hours_for_date
from .models import Absence, Schedule, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AbsenceDeductions:
    """Hours removed from each pool, unrounded"""
    from_available: float = 0.0
    from_target: float = 0.0
    total_absence_days: float = 0.0
    days_by_type: Dict[str, float] = field(default_factory=dict)
    applied: Tuple[Absence, ...] = ()


def absence_hours(absence: Absence, schedule: Schedule) -> float:
    """Hours one absence deducts"""
    if absence.is_custom:
        return float(absence.custom_hours)
    multiplier = 0.5 if absence.is_half_day else 1.0
    return absence.days_count * hours_for_date(absence.absence_date, schedule) * multiplier


def absence_days(absence: Absence, schedule: Schedule) -> float:
    """Day-equivalents of one absence (custom hours are divided by that day's hours)"""
    if absence.is_custom:
        return absence.custom_hours / hours_for_date(absence.absence_date, schedule)
    return absence.days_count * (0.5 if absence.is_half_day else 1.0)


def unique_by_date(absences: Iterable[Absence]) -> List[Absence]:
    """
    Keep the first absence for each date.

    Storage allows one absence per date; if duplicates still arrive, the
    later ones are ignored so the same day is never deducted twice.
    """
    seen = {}
    for absence in absences:
        if not isinstance(absence, Absence):
            raise ValidationError('absences', f"Expected Absence, got {type(absence).__name__}")
        absence.validate()

        kept = seen.get(absence.absence_date)
        if kept is not None:
            logger.warning(
                "Duplicate absence for %s ignored (kept %s, dropped %s)",
                absence.absence_date.isoformat(), kept.id or kept.absence_type,
                absence.id or absence.absence_type,
            )
            continue
        seen[absence.absence_date] = absence
    return list(seen.values())


def apply_absences(absences: Iterable[Absence], schedule: Schedule) -> AbsenceDeductions:
    """Split absence hours between the available-hours and target pools."""
    applied = unique_by_date(absences)

    from_available = 0.0
    from_target = 0.0
    total_days = 0.0
    days_by_type: Dict[str, float] = {}

    for absence in applied:
        hours = absence_hours(absence, schedule)
        if absence.deduction_type == 'AVAILABLE_HOURS':
            from_available += hours
        else:
            from_target += hours

        days = absence_days(absence, schedule)
        total_days += days
        days_by_type[absence.absence_type] = days_by_type.get(absence.absence_type, 0.0) + days

    return AbsenceDeductions(
        from_available=from_available,
        from_target=from_target,
        total_absence_days=total_days,
        days_by_type=days_by_type,
        applied=tuple(applied),
    )
