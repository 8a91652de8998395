"""Job totals for TechTimes"""
from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, Iterable, List

from config import DEFAULT_AW_MINUTES
from .calendar_resolver import week_of_month, weeks_in_month
from .models import Job, ValidationError
from .units import aw_to_minutes, minutes_to_hours, round_half_up


@dataclass(frozen=True)
class JobTotals:
    """Summed AW and time for a set of jobs"""
    count: int = 0
    total_aw: float = 0.0
    total_minutes: float = 0.0
    total_hours: float = 0.0

    @property
    def average_aw(self) -> float:
        return self.total_aw / self.count if self.count else 0.0

    def to_dict(self) -> dict:
        return {
            'job_count': self.count,
            'total_aw': round_half_up(self.total_aw),
            'total_minutes': round_half_up(self.total_minutes),
            'total_hours': round_half_up(self.total_hours),
            'average_aw': round_half_up(self.average_aw),
        }


class JobAggregator:
    """
    Sums jobs, optionally grouped by day or by week of month.

    Jobs count towards the calendar day of ``created_at``.
    """

    def __init__(self, aw_minutes: float = DEFAULT_AW_MINUTES):
        self.aw_minutes = aw_minutes

    def aggregate(self, jobs: Iterable[Job]) -> JobTotals:
        count = 0
        total_aw = 0.0
        for job in jobs:
            if not isinstance(job, Job):
                raise ValidationError('jobs', f"Expected Job, got {type(job).__name__}")
            count += 1
            total_aw += job.aw

        total_minutes = aw_to_minutes(total_aw, self.aw_minutes)
        return JobTotals(
            count=count,
            total_aw=total_aw,
            total_minutes=total_minutes,
            total_hours=minutes_to_hours(total_minutes),
        )

    def group_by_day(self, jobs: Iterable[Job]) -> Dict[str, List[Job]]:
        grouped: Dict[str, List[Job]] = {}
        for job in sorted(jobs, key=lambda j: j.created_at):
            grouped.setdefault(job.job_date.isoformat(), []).append(job)
        return grouped

    def by_day(self, jobs: Iterable[Job]) -> Dict[str, JobTotals]:
        """Totals keyed by ISO date, in date order"""
        return {day: self.aggregate(day_jobs) for day, day_jobs in self.group_by_day(jobs).items()}

    def by_week(self, jobs: Iterable[Job],
                week_number_fn: Callable[[date], int] = week_of_month) -> Dict[int, JobTotals]:
        """Totals keyed by week number; only weeks with jobs appear"""
        grouped: Dict[int, List[Job]] = {}
        for job in jobs:
            grouped.setdefault(week_number_fn(job.job_date), []).append(job)
        return {week: self.aggregate(grouped[week]) for week in sorted(grouped)}

    def weekly_breakdown(self, jobs: Iterable[Job], year: int, month: int) -> Dict[int, JobTotals]:
        """Every week of the month, empty weeks included"""
        weeks = self.by_week(
            [job for job in jobs if (job.job_date.year, job.job_date.month) == (year, month)]
        )
        return {week: weeks.get(week, JobTotals()) for week in range(1, weeks_in_month(year, month) + 1)}


def jobs_between(jobs: Iterable[Job], start: date, end: date) -> List[Job]:
    """Jobs whose day falls in [start, end)"""
    return [job for job in jobs if start <= job.job_date < end]
