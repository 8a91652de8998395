"""Report export for TechTimes"""
import logging
from pathlib import Path
from typing import Iterable, List, Optional

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, PatternFill, Border, Side
from openpyxl.utils import get_column_letter

from config import APP_NAME, EXCEL_STYLES
from .calculator import PerformanceCalculator
from .models import Absence, DayPerformance, FormulaSettings, Job, MonthSnapshot, PerformanceReport, Schedule
from .report_assembler import efficiency_display
from .units import aw_to_minutes

logger = logging.getLogger(__name__)

JOB_EXPORT_COLUMNS = ['createdAt', 'wipNumber', 'vehicleReg', 'aw', 'minutes', 'notes']


class ReportGenerator:
    """
    Generates Excel and CSV exports for one month of work.
    """

    def __init__(self, month: str, schedule: Schedule, target_hours: Optional[float] = None,
                 settings: Optional[FormulaSettings] = None, technician_name: str = "Technician"):
        self.month = month
        self.schedule = schedule
        self.target_hours = target_hours
        self.technician_name = technician_name
        self.calculator = PerformanceCalculator(settings)
        self.jobs: List[Job] = []
        self.absences: List[Absence] = []

    @classmethod
    def from_snapshot(cls, snapshot: MonthSnapshot, technician_name: str = "Technician") -> 'ReportGenerator':
        generator = cls(snapshot.month, snapshot.schedule, snapshot.target_hours,
                        snapshot.settings, technician_name)
        generator.add_jobs(snapshot.jobs)
        generator.add_absences(snapshot.absences)
        return generator

    def add_jobs(self, jobs: Iterable[Job]) -> None:
        self.jobs.extend(jobs)

    def add_absences(self, absences: Iterable[Absence]) -> None:
        self.absences.extend(absences)

    def clear(self) -> None:
        """Clear all jobs and absences."""
        self.jobs = []
        self.absences = []

    def report(self) -> PerformanceReport:
        return self.calculator.compute_month(
            self.month, self.jobs, self.absences, self.schedule, self.target_hours
        )

    def days(self) -> List[DayPerformance]:
        return self.calculator.compute_days(self.month, self.jobs, self.absences, self.schedule)

    def to_dataframe(self) -> pd.DataFrame:
        """
        Per-day table for the month.
        """
        data = []
        for d in self.days():
            data.append({
                'Date': d.day.strftime('%d/%m/%Y'),
                'Day': d.day.strftime('%a'),
                'Working': 'Yes' if d.is_working_day else '',
                'Absence': d.absence_type.capitalize() if d.absence_type else '',
                'Jobs': d.job_count,
                'AW': d.total_aw,
                'Sold (h)': d.sold_hours,
                'Available (h)': d.available_hours,
                'Efficiency': efficiency_display(d.efficiency_percent) if d.is_working_day else '',
            })
        return pd.DataFrame(data)

    def jobs_dataframe(self) -> pd.DataFrame:
        """One row per job, in the column layout of the jobs CSV export."""
        rows = [
            {
                'createdAt': job.created_at.isoformat(),
                'wipNumber': job.wip_number,
                'vehicleReg': job.vehicle_reg,
                'aw': job.aw,
                'minutes': aw_to_minutes(job.aw, self.calculator.settings.aw_minutes),
                'notes': job.notes,
            }
            for job in sorted(self.jobs, key=lambda j: j.created_at)
        ]
        return pd.DataFrame(rows, columns=JOB_EXPORT_COLUMNS)

    def get_summary_rows(self) -> List[tuple]:
        """Label/value pairs for the summary block."""
        report = self.report()
        return [
            ('Jobs', report.total_jobs),
            ('Total AW', report.total_aw),
            ('Sold Hours', report.sold_hours),
            ('Available Hours', report.available_hours),
            ('Absence Hours (available)', report.absence_hours_from_available),
            ('Effective Available Hours', report.effective_available_hours),
            ('Efficiency', efficiency_display(report.efficiency_percent)),
            ('Rating', report.efficiency_label),
            ('Target Hours', report.target_hours),
            ('Absence Hours (target)', report.absence_hours_from_target),
            ('Adjusted Target', report.adjusted_target_hours),
            ('Remaining Hours', report.remaining_hours),
        ]

    def export_jobs_csv(self, filepath: str) -> None:
        """Export the month's jobs to CSV."""
        Path(filepath).parent.mkdir(parents=True, exist_ok=True)
        self.jobs_dataframe().to_csv(filepath, index=False)
        logger.info("CSV export of %d jobs written to %s", len(self.jobs), filepath)

    def export_excel(self, filepath: str) -> None:
        """
        Export the monthly report to an Excel file.

        Args:
            filepath: Path to save the Excel file
        """
        wb = Workbook()
        ws = wb.active
        ws.title = "Monthly Report"

        # Styles
        header_fill = PatternFill(start_color=EXCEL_STYLES['header_bg_color'],
                                  end_color=EXCEL_STYLES['header_bg_color'],
                                  fill_type='solid')
        summary_fill = PatternFill(start_color=EXCEL_STYLES['summary_bg_color'],
                                   end_color=EXCEL_STYLES['summary_bg_color'],
                                   fill_type='solid')
        header_font = Font(name=EXCEL_STYLES['font_name'],
                           size=EXCEL_STYLES['font_size'],
                           bold=True)
        title_font = Font(name=EXCEL_STYLES['font_name'], size=14, bold=True)
        border = Border(
            left=Side(style='thin'),
            right=Side(style='thin'),
            top=Side(style='thin'),
            bottom=Side(style='thin')
        )

        # Title section
        ws['A1'] = f"{APP_NAME} - Monthly Report"
        ws['A1'].font = title_font
        ws['A2'] = f"Technician: {self.technician_name}"
        ws['A2'].font = Font(size=12, bold=True)
        ws['A3'] = f"Month: {self.month}"

        # Day table starts at row 5
        df = self.to_dataframe()
        start_row = 5

        for col_idx, col_name in enumerate(df.columns, 1):
            cell = ws.cell(row=start_row, column=col_idx, value=col_name)
            cell.fill = header_fill
            cell.font = header_font
            cell.border = border
            cell.alignment = Alignment(horizontal='center')

        for row_idx, row in enumerate(df.itertuples(index=False), 1):
            for col_idx, value in enumerate(row, 1):
                if hasattr(value, 'item'):
                    value = value.item()
                cell = ws.cell(row=start_row + row_idx, column=col_idx, value=value)
                cell.border = border
                if col_idx >= 5:
                    cell.alignment = Alignment(horizontal='right')
                    if isinstance(value, float):
                        cell.number_format = '0.00'

        # Summary block below the table
        summary_row = start_row + len(df) + 2
        for offset, (label, value) in enumerate(self.get_summary_rows()):
            label_cell = ws.cell(row=summary_row + offset, column=1, value=label)
            value_cell = ws.cell(row=summary_row + offset, column=2, value=value)
            for cell in (label_cell, value_cell):
                cell.fill = summary_fill
                cell.border = border
            label_cell.font = Font(bold=True)
            value_cell.alignment = Alignment(horizontal='right')

        column_widths = [28, 8, 10, 12, 8, 10, 10, 14, 12]
        for idx, width in enumerate(column_widths, 1):
            ws.column_dimensions[get_column_letter(idx)].width = width

        Path(filepath).parent.mkdir(parents=True, exist_ok=True)
        wb.save(filepath)
        logger.info("Excel report for %s written to %s", self.month, filepath)
