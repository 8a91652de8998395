"""Data loading utilities for TechTimes"""
import json
from datetime import datetime
from pathlib import Path
from typing import List

import pandas as pd

from .models import Absence, Job, Schedule, ValidationError, parse_bool

# Normalized column name -> field
JOB_COLUMNS = {
    'createdat': 'created_at',
    'date': 'created_at',
    'wipnumber': 'wip_number',
    'wip': 'wip_number',
    'vehiclereg': 'vehicle_reg',
    'reg': 'vehicle_reg',
    'registration': 'vehicle_reg',
    'aw': 'aw',
    'notes': 'notes',
    'vhc': 'vhc_status',
    'vhcstatus': 'vhc_status',
    'id': 'id',
}

ABSENCE_COLUMNS = {
    'absencedate': 'absence_date',
    'date': 'absence_date',
    'absencetype': 'absence_type',
    'type': 'absence_type',
    'deductiontype': 'deduction_type',
    'deduction': 'deduction_type',
    'dayscount': 'days_count',
    'days': 'days_count',
    'ishalfday': 'is_half_day',
    'halfday': 'is_half_day',
    'customhours': 'custom_hours',
    'hours': 'custom_hours',
    'note': 'note',
    'notes': 'note',
    'month': 'month',
}

DATE_FORMATS = ['%Y-%m-%d %H:%M:%S', '%Y-%m-%d %H:%M', '%Y-%m-%d', '%d/%m/%Y %H:%M', '%d/%m/%Y', '%Y%m%d']


def _normalize_columns(df: pd.DataFrame, mapping: dict) -> pd.DataFrame:
    df = df.copy()
    df.columns = df.columns.astype(str).str.strip().str.lower().str.replace(r'[\s_]', '', regex=True)
    return df.rename(columns={c: mapping[c] for c in df.columns if c in mapping})


def _parse_timestamp(value, field: str) -> datetime:
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text.replace('Z', '+00:00'))
    except ValueError:
        raise ValidationError(field, f"Unrecognised date '{text}'")


def _cell(row, column, default=None):
    value = row.get(column, default)
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return default
    return value


def _number(value, field: str):
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(field, f"Expected a number, got {value!r}")


class DataLoader:
    """
    Load jobs, absences and schedule from files.

    Values are converted to model types here, so the calculator never
    parses strings.
    """

    @staticmethod
    def jobs_from_frame(df: pd.DataFrame) -> List[Job]:
        """
        Build jobs from a DataFrame.

        Expected columns (case and spacing ignored):
        - createdAt / Date
        - wipNumber / WIP
        - vehicleReg / Reg
        - AW
        - Notes (optional)
        - VHC (optional: GREEN, AMBER, RED)
        """
        df = _normalize_columns(df, JOB_COLUMNS)
        for required in ('created_at', 'aw'):
            if required not in df.columns:
                raise ValidationError(required, f"Missing '{required}' column")

        jobs = []
        for _, row in df.iterrows():
            jobs.append(Job(
                id=str(_cell(row, 'id', '')),
                wip_number=str(_cell(row, 'wip_number', '')),
                vehicle_reg=str(_cell(row, 'vehicle_reg', '')).upper(),
                aw=_number(_cell(row, 'aw', 0), 'aw'),
                notes=str(_cell(row, 'notes', '')),
                vhc_status=str(_cell(row, 'vhc_status', 'NONE')),
                created_at=_parse_timestamp(_cell(row, 'created_at'), 'created_at'),
            ))
        return jobs

    @staticmethod
    def load_jobs_from_excel(filepath: str) -> List[Job]:
        return DataLoader.jobs_from_frame(pd.read_excel(filepath))

    @staticmethod
    def load_jobs_from_csv(filepath: str) -> List[Job]:
        return DataLoader.jobs_from_frame(pd.read_csv(filepath, dtype=str))

    @staticmethod
    def load_jobs(filepath: str) -> List[Job]:
        """Load jobs from a CSV or Excel file, chosen by extension"""
        if Path(filepath).suffix.lower() == '.csv':
            return DataLoader.load_jobs_from_csv(filepath)
        return DataLoader.load_jobs_from_excel(filepath)

    @staticmethod
    def absences_from_frame(df: pd.DataFrame) -> List[Absence]:
        """
        Build absences from a DataFrame.

        Each row needs a date and either a days count (optionally with a
        half-day flag) or custom hours.
        """
        df = _normalize_columns(df, ABSENCE_COLUMNS)
        if 'absence_date' not in df.columns:
            raise ValidationError('absence_date', "Missing 'absence_date' column")

        absences = []
        for _, row in df.iterrows():
            days_count = _cell(row, 'days_count')
            custom_hours = _cell(row, 'custom_hours')
            absences.append(Absence(
                absence_date=_parse_timestamp(_cell(row, 'absence_date'), 'absence_date').date(),
                absence_type=str(_cell(row, 'absence_type', 'holiday')).lower(),
                deduction_type=str(_cell(row, 'deduction_type', 'AVAILABLE_HOURS')),
                days_count=_number(days_count, 'days_count'),
                is_half_day=parse_bool(_cell(row, 'is_half_day', False)),
                custom_hours=_number(custom_hours, 'custom_hours'),
                month=str(_cell(row, 'month', '')),
                note=str(_cell(row, 'note', '')),
            ))
        return absences

    @staticmethod
    def load_absences(filepath: str) -> List[Absence]:
        if Path(filepath).suffix.lower() == '.csv':
            return DataLoader.absences_from_frame(pd.read_csv(filepath, dtype=str))
        return DataLoader.absences_from_frame(pd.read_excel(filepath))

    @staticmethod
    def load_schedule(filepath: str) -> Schedule:
        """
        Load a schedule from a JSON file.

        Expected format:
        {"daily_working_hours": 8.5, "working_weekdays": [1, 2, 3, 4, 5],
         "saturday_frequency": "1-in-2", "next_working_saturday": "2024-06-01"}
        """
        with open(filepath, 'r', encoding='utf-8') as f:
            return Schedule.from_dict(json.load(f))
