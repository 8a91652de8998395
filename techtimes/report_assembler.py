"""Screen-specific report shapes for TechTimes

Every number here comes from PerformanceCalculator or JobAggregator output.
The assembler reshapes fields for display. The few values it
adds (progress percentages, AW still needed) are display conveniences
derived from already-rounded report fields.
"""
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional

from .aggregator import JobTotals
from .models import DayPerformance, FormulaSettings, Job, PerformanceReport, WeekPerformance
from .units import aw_to_minutes, format_time, hours_to_aw, round_half_up


def efficiency_display(efficiency: Optional[int]) -> str:
    return "N/A" if efficiency is None else f"{efficiency}%"


def clamp_percent(value: Optional[float]) -> float:
    """Clamp to 0..100 for progress bars"""
    if value is None:
        return 0.0
    return min(max(value, 0.0), 100.0)


class ReportAssembler:
    """Shapes a PerformanceReport and job totals into per-screen dictionaries."""

    def __init__(self, settings: Optional[FormulaSettings] = None):
        self.settings = settings or FormulaSettings()

    def dashboard_summary(self, report: PerformanceReport, today: JobTotals, week: JobTotals,
                          profile_name: str = "Technician") -> dict:
        return {
            'profile': {'name': profile_name},
            'monthly_stats': {
                'month': report.month,
                'sold_hours': report.sold_hours,
                'target_hours': report.target_hours,
                'adjusted_target_hours': report.adjusted_target_hours,
                'efficiency': report.efficiency_percent,
                'efficiency_display': efficiency_display(report.efficiency_percent),
                'efficiency_label': report.efficiency_label,
                'efficiency_color': report.efficiency_color,
                'available_hours': report.available_hours,
                'effective_available_hours': report.effective_available_hours,
                'total_aw': report.total_aw,
                'total_jobs': report.total_jobs,
                'remaining_hours': report.remaining_hours,
                'remaining_display': max(report.remaining_hours, 0.0),
            },
            'today_stats': today.to_dict(),
            'week_stats': week.to_dict(),
            'breakdown': {
                'total_aw': report.total_aw,
                'sold_hours': report.sold_hours,
                'target_hours': report.target_hours,
                'available_hours': report.available_hours,
                'efficiency': report.efficiency_percent,
            },
        }

    def target_details(self, report: PerformanceReport) -> dict:
        """
        Target progress.

        ``percent_complete`` is the raw ratio (can exceed 100);
        ``progress_percent`` is clamped for progress bars. With an adjusted
        target of zero there is nothing left to sell, so progress is full
        and the ratio is undefined.
        """
        if report.adjusted_target_hours > 0:
            percent_complete = round_half_up(report.sold_hours / report.adjusted_target_hours * 100)
            progress = clamp_percent(percent_complete)
        else:
            percent_complete = None
            progress = 100.0

        return {
            'month': report.month,
            'target_hours': report.target_hours,
            'adjusted_target_hours': report.adjusted_target_hours,
            'absence_hours_from_target': report.absence_hours_from_target,
            'sold_hours': report.sold_hours,
            'remaining_hours': report.remaining_hours,
            'remaining_display': max(report.remaining_hours, 0.0),
            'aw_needed': self._aw_needed(report.remaining_hours),
            'total_jobs': report.total_jobs,
            'total_aw': report.total_aw,
            'percent_complete': percent_complete,
            'progress_percent': progress,
        }

    def hours_remaining_details(self, report: PerformanceReport) -> dict:
        remaining = report.remaining_hours
        if remaining > 0:
            status = 'remaining'
        elif remaining == 0:
            status = 'met'
        else:
            status = 'exceeded'

        return {
            'month': report.month,
            'adjusted_target_hours': report.adjusted_target_hours,
            'sold_hours': report.sold_hours,
            'remaining_hours': remaining,
            'remaining_display': max(remaining, 0.0),
            'exceeded_by': max(-remaining, 0.0),
            'status': status,
            'aw_needed': self._aw_needed(remaining),
            'daily_target_hours': report.daily_target_hours,
        }

    def efficiency_details(self, report: PerformanceReport) -> dict:
        display = efficiency_display(report.efficiency_percent)
        return {
            'month': report.month,
            'sold_hours': report.sold_hours,
            'available_hours': report.available_hours,
            'effective_available_hours': report.effective_available_hours,
            'absence_hours_from_available': report.absence_hours_from_available,
            'efficiency': report.efficiency_percent,
            'efficiency_display': display,
            'efficiency_label': report.efficiency_label,
            'efficiency_color': report.efficiency_color,
            'weekdays_in_month': report.working_days,
            'absence_days': report.absence_days,
            'formula': (
                f"{report.sold_hours:.2f}h sold / {report.effective_available_hours:.2f}h available"
                f" x 100 = {display}"
            ),
        }

    def jobs_done_details(self, report: PerformanceReport, jobs: Iterable[Job],
                          daily: Dict[str, JobTotals]) -> dict:
        job_rows = [
            {
                'id': job.id,
                'created_at': job.created_at.isoformat(),
                'wip_number': job.wip_number,
                'vehicle_reg': job.vehicle_reg,
                'aw': job.aw,
                'minutes': aw_to_minutes(job.aw, self.settings.aw_minutes),
                'vhc_status': job.vhc_status,
                'notes': job.notes,
            }
            for job in sorted(jobs, key=lambda j: j.created_at, reverse=True)
        ]
        return {
            'month': report.month,
            'total_jobs': report.total_jobs,
            'total_aw': report.total_aw,
            'days': [dict(date=day, **totals.to_dict()) for day, totals in daily.items()],
            'jobs': job_rows,
        }

    def time_logged_details(self, report: PerformanceReport, days: List[DayPerformance],
                            weeks: List[WeekPerformance]) -> dict:
        return {
            'month': report.month,
            'sold_hours': report.sold_hours,
            'sold_time': format_time(report.sold_hours * 60),
            'total_aw': report.total_aw,
            'days': [
                {
                    'date': d.day.isoformat(),
                    'is_working_day': d.is_working_day,
                    'sold_hours': d.sold_hours,
                    'available_hours': d.available_hours,
                    'efficiency': d.efficiency_percent,
                    'absence_type': d.absence_type,
                }
                for d in days if d.job_count or d.is_working_day
            ],
            'weeks': [
                {
                    'week': w.week,
                    'start': w.start.isoformat(),
                    'end': w.end.isoformat(),
                    'jobs': w.job_count,
                    'aw': w.total_aw,
                    'hours': w.sold_hours,
                    'available_hours': w.available_hours,
                    'efficiency': w.efficiency_percent,
                }
                for w in weeks
            ],
        }

    def total_aw_details(self, report: PerformanceReport, weekly: Dict[int, JobTotals]) -> dict:
        return {
            'month': report.month,
            'total_aw': report.total_aw,
            'total_jobs': report.total_jobs,
            'average_aw': round_half_up(report.total_aw / report.total_jobs) if report.total_jobs else 0.0,
            'weekly_breakdown': [
                {'week': week, 'jobs': t.count, 'aw': round_half_up(t.total_aw), 'hours': round_half_up(t.total_hours)}
                for week, t in weekly.items()
            ],
        }

    def week_details(self, week_start: date, totals: JobTotals, daily: Dict[str, JobTotals]) -> dict:
        week_end = week_start + timedelta(days=6)
        return {
            'start': week_start.isoformat(),
            'end': week_end.isoformat(),
            **totals.to_dict(),
            'days': [dict(date=day, **t.to_dict()) for day, t in daily.items()],
        }

    def today_details(self, day: date, totals: JobTotals, jobs: Iterable[Job]) -> dict:
        return {
            'date': day.isoformat(),
            **totals.to_dict(),
            'time_logged': format_time(totals.total_minutes),
            'jobs': [
                {'wip_number': j.wip_number, 'vehicle_reg': j.vehicle_reg, 'aw': j.aw, 'vhc_status': j.vhc_status}
                for j in sorted(jobs, key=lambda j: j.created_at)
            ],
        }

    def all_time_summary(self, totals: JobTotals) -> dict:
        return {
            'total_jobs': totals.count,
            'total_aw': round_half_up(totals.total_aw),
            'total_hours': round_half_up(totals.total_hours),
        }

    def _aw_needed(self, remaining_hours: float) -> int:
        if remaining_hours <= 0:
            return 0
        return round_half_up(hours_to_aw(remaining_hours, self.settings.aw_minutes), 0)
