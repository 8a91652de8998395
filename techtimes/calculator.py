"""Performance calculation logic for TechTimes"""
import logging
from typing import Iterable, List, Optional, Tuple

from config import EFFICIENCY_LABELS
from .absence_ledger import AbsenceDeductions, absence_hours, apply_absences, unique_by_date
from .aggregator import JobAggregator, JobTotals
from .calendar_resolver import (
    days_in_month,
    hours_for_date,
    is_working_day,
    parse_month,
    week_of_month,
    working_days_in_month,
)
from .models import (
    Absence,
    DayPerformance,
    FormulaSettings,
    Job,
    MonthSnapshot,
    PerformanceReport,
    Schedule,
    ValidationError,
    WeekPerformance,
)
from .units import round_half_up

logger = logging.getLogger(__name__)


class PerformanceCalculator:
    """
    Turns a month of jobs, absences, schedule and target into performance metrics.

    Business Logic:
    ===============

    Sold hours      = total AW * 5 minutes / 60
    Available hours = sum of working-day hours in the month
    Effective hours = available hours - AVAILABLE_HOURS absences (never below 0)
    Efficiency %    = sold / effective * 100, rounded to a whole percent
                      (None when there are no effective hours)
    Adjusted target = target - MONTHLY_TARGET absences (never below 0)
    Remaining hours = adjusted target - sold hours
                      (negative once the target has been beaten)

    All arithmetic runs on unrounded values. Reported figures are rounded
    half away from zero to 2 places when the report is built.
    """

    def __init__(self, settings: Optional[FormulaSettings] = None):
        self.settings = settings or FormulaSettings()
        self.aggregator = JobAggregator(self.settings.aw_minutes)

    # ============ LABELS ============

    def efficiency_color(self, efficiency: Optional[float]) -> Optional[str]:
        if efficiency is None:
            return None
        if efficiency >= self.settings.efficiency_green_threshold:
            return 'green'
        if efficiency >= self.settings.efficiency_yellow_threshold:
            return 'yellow'
        return 'red'

    def efficiency_label(self, efficiency: Optional[float]) -> str:
        color = self.efficiency_color(efficiency)
        return EFFICIENCY_LABELS.get(color, 'N/A')

    @staticmethod
    def efficiency(sold_hours: float, available_hours: float) -> Optional[int]:
        if available_hours <= 0:
            return None
        return round_half_up(sold_hours / available_hours * 100, 0)

    # ============ MONTH ============

    def compute_month(self, month: str, jobs: Iterable[Job], absences: Iterable[Absence],
                      schedule: Schedule, target_hours: Optional[float] = None) -> PerformanceReport:
        """
        Calculate the performance report for one month.

        Args:
            month: Month in YYYY-MM format
            jobs: Jobs attributed to the month
            absences: Absences recorded for the month
            schedule: Working schedule
            target_hours: Monthly sold-hours goal before absences
                (defaults to the formula settings target)

        Returns:
            PerformanceReport with rounded values
        """
        year, month_num = parse_month(month)
        self._check_schedule(schedule)
        target_hours = self._check_target(target_hours)

        totals = self.aggregator.aggregate(jobs)
        sold_hours = totals.total_hours

        working_days = working_days_in_month(year, month_num, schedule)
        available_hours = sum(hours_for_date(day, schedule) for day in working_days)

        deductions = apply_absences(absences, schedule)
        effective_hours = max(available_hours - deductions.from_available, 0.0)
        efficiency = self.efficiency(sold_hours, effective_hours)

        adjusted_target = max(target_hours - deductions.from_target, 0.0)
        remaining_hours = adjusted_target - sold_hours
        daily_target = adjusted_target / len(working_days) if working_days else None

        logger.debug(
            "Computed %s: sold=%.2f effective=%.2f efficiency=%s remaining=%.2f",
            month, sold_hours, effective_hours, efficiency, remaining_hours,
            extra={'month': month},
        )

        return self._build_report(
            month, totals, len(working_days), available_hours, effective_hours,
            deductions, target_hours, adjusted_target, remaining_hours, efficiency, daily_target,
        )

    def compute_snapshot(self, snapshot: MonthSnapshot) -> PerformanceReport:
        """Calculate the report for a snapshot loaded from storage"""
        return self.compute_month(
            snapshot.month, snapshot.jobs, snapshot.absences, snapshot.schedule, snapshot.target_hours
        )

    def _build_report(self, month: str, totals: JobTotals, working_days: int,
                      available_hours: float, effective_hours: float,
                      deductions: AbsenceDeductions, target_hours: float,
                      adjusted_target: float, remaining_hours: float,
                      efficiency: Optional[int], daily_target: Optional[float]) -> PerformanceReport:
        return PerformanceReport(
            month=month,
            sold_hours=round_half_up(totals.total_hours),
            available_hours=round_half_up(available_hours),
            effective_available_hours=round_half_up(effective_hours),
            absence_hours_from_available=round_half_up(deductions.from_available),
            absence_hours_from_target=round_half_up(deductions.from_target),
            target_hours=round_half_up(target_hours),
            adjusted_target_hours=round_half_up(adjusted_target),
            remaining_hours=round_half_up(remaining_hours),
            efficiency_percent=efficiency,
            efficiency_label=self.efficiency_label(efficiency),
            efficiency_color=self.efficiency_color(efficiency),
            total_jobs=totals.count,
            total_aw=round_half_up(totals.total_aw),
            working_days=working_days,
            absence_days=round_half_up(deductions.total_absence_days),
            daily_target_hours=round_half_up(daily_target),
        )

    # ============ DAYS / WEEKS ============

    def _day_rows(self, month: str, jobs: Iterable[Job], absences: Iterable[Absence],
                  schedule: Schedule) -> List[Tuple]:
        """Unrounded (day, working, available, totals, absence) per calendar day"""
        year, month_num = parse_month(month)
        self._check_schedule(schedule)

        daily_totals = self.aggregator.by_day(jobs)
        absence_by_date = {a.absence_date: a for a in unique_by_date(absences)}

        rows = []
        for day in days_in_month(year, month_num):
            working = is_working_day(day, schedule)
            available = hours_for_date(day, schedule) if working else 0.0

            absence = absence_by_date.get(day)
            if absence is not None and absence.deduction_type == 'AVAILABLE_HOURS':
                available = max(available - absence_hours(absence, schedule), 0.0)

            totals = daily_totals.get(day.isoformat(), JobTotals())
            rows.append((day, working, available, totals, absence))
        return rows

    def compute_days(self, month: str, jobs: Iterable[Job], absences: Iterable[Absence],
                     schedule: Schedule) -> List[DayPerformance]:
        """
        Per-day breakdown of a month.

        A day's available hours are its working hours less that day's
        AVAILABLE_HOURS absence, floored at 0.
        """
        return [
            DayPerformance(
                day=day,
                is_working_day=working,
                available_hours=round_half_up(available),
                sold_hours=round_half_up(totals.total_hours),
                job_count=totals.count,
                total_aw=round_half_up(totals.total_aw),
                efficiency_percent=self.efficiency(totals.total_hours, available),
                absence_type=absence.absence_type if absence is not None else None,
            )
            for day, working, available, totals, absence in self._day_rows(month, jobs, absences, schedule)
        ]

    def compute_weeks(self, month: str, jobs: Iterable[Job], absences: Iterable[Absence],
                      schedule: Schedule) -> List[WeekPerformance]:
        """Week-of-month breakdown built from the per-day rows"""
        buckets = {}
        for day, _working, available, totals, _absence in self._day_rows(month, jobs, absences, schedule):
            buckets.setdefault(week_of_month(day), []).append((day, available, totals))

        weeks = []
        for week in sorted(buckets):
            rows = buckets[week]
            available = sum(r[1] for r in rows)
            sold = sum(r[2].total_hours for r in rows)
            weeks.append(WeekPerformance(
                week=week,
                start=rows[0][0],
                end=rows[-1][0],
                available_hours=round_half_up(available),
                sold_hours=round_half_up(sold),
                job_count=sum(r[2].count for r in rows),
                total_aw=round_half_up(sum(r[2].total_aw for r in rows)),
                efficiency_percent=self.efficiency(sold, available),
            ))
        return weeks

    # ============ VALIDATION ============

    @staticmethod
    def _check_schedule(schedule) -> None:
        if not isinstance(schedule, Schedule):
            raise ValidationError('schedule', f"Expected Schedule, got {type(schedule).__name__}")

    def _check_target(self, target_hours: Optional[float]) -> float:
        if target_hours is None:
            return float(self.settings.default_target_hours)
        if isinstance(target_hours, bool) or not isinstance(target_hours, (int, float)):
            raise ValidationError('target_hours', f"Target hours must be a number, got {target_hours!r}")
        if target_hours <= 0:
            raise ValidationError('target_hours', "Target hours must be positive")
        return float(target_hours)
