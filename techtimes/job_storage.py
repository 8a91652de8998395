"""Local JSON storage for jobs, absences, schedule and settings"""
import json
import logging
import threading
import uuid
from dataclasses import replace
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from config import DATA_DIR, DEFAULT_MONTHLY_TARGET
from .calendar_resolver import month_bounds, parse_month
from .models import (
    Absence,
    DuplicateAbsenceError,
    FormulaSettings,
    Job,
    MonthSnapshot,
    Schedule,
    ValidationError,
    next_absence_type,
)

logger = logging.getLogger(__name__)


class JobStorage:
    """Manages persistent storage of jobs, absences, schedule and settings

    Each collection lives in its own JSON file under ``data_dir``. Reads and
    writes share one lock so ``load_month_snapshot`` never mixes data from
    before and after a write.
    """

    def __init__(self, data_dir: str = DATA_DIR):
        self.data_dir = Path(data_dir)
        self.jobs_file = self.data_dir / "jobs.json"
        self.absences_file = self.data_dir / "absences.json"
        self.schedule_file = self.data_dir / "schedule.json"
        self.settings_file = self.data_dir / "settings.json"
        self._lock = threading.RLock()

        self.data_dir.mkdir(parents=True, exist_ok=True)
        for path, empty in ((self.jobs_file, []), (self.absences_file, []),
                            (self.schedule_file, {}), (self.settings_file, {})):
            if not path.exists():
                self._write(path, empty)

    # ============ FILES ============

    def _read(self, path: Path, empty):
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except FileNotFoundError:
            return empty
        except json.JSONDecodeError as e:
            logger.warning("Could not parse %s, treating it as empty: %s", path, e)
            return empty

    def _write(self, path: Path, data) -> None:
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

    # ============ JOBS ============

    def get_all_jobs(self) -> List[Job]:
        """Get all stored jobs"""
        with self._lock:
            return [Job.from_dict(job) for job in self._read(self.jobs_file, [])]

    def get_job_by_id(self, job_id: str) -> Optional[Job]:
        for job in self.get_all_jobs():
            if job.id == job_id:
                return job
        return None

    def get_jobs_by_date_range(self, start_date: date, end_date: date) -> List[Job]:
        """Get jobs within a date range (both ends inclusive)"""
        return [job for job in self.get_all_jobs() if start_date <= job.job_date <= end_date]

    def get_jobs_for_month(self, month: str) -> List[Job]:
        start, end = month_bounds(*parse_month(month))
        return [job for job in self.get_all_jobs() if start <= job.job_date < end]

    def _prepare_job(self, job: Job) -> Job:
        if not job.id:
            job = replace(job, id=str(uuid.uuid4()))
        return job

    def add_job(self, job: Job) -> Job:
        """Add a new job"""
        return self.add_jobs([job])[0]

    def add_jobs(self, new_jobs: List[Job]) -> List[Job]:
        """Add multiple jobs at once"""
        prepared = [self._prepare_job(job) for job in new_jobs]
        with self._lock:
            jobs = self._read(self.jobs_file, [])
            jobs.extend(job.to_dict() for job in prepared)
            self._write(self.jobs_file, jobs)
        logger.info("Saved %d job(s)", len(prepared))
        return prepared

    def update_job(self, job_id: str, updates: Dict[str, Any]) -> Optional[Job]:
        """Update a job by ID"""
        with self._lock:
            jobs = self._read(self.jobs_file, [])
            for i, job_dict in enumerate(jobs):
                if job_dict.get('id') == job_id:
                    merged = {**job_dict, **updates, 'id': job_id, 'updated_at': datetime.now().isoformat()}
                    updated = Job.from_dict(merged)
                    jobs[i] = updated.to_dict()
                    self._write(self.jobs_file, jobs)
                    return updated
        logger.warning("Job %s not found for update", job_id)
        return None

    def delete_job(self, job_id: str) -> bool:
        """Delete a job by ID"""
        with self._lock:
            jobs = self._read(self.jobs_file, [])
            remaining = [job for job in jobs if job.get('id') != job_id]
            if len(remaining) < len(jobs):
                self._write(self.jobs_file, remaining)
                return True
        logger.warning("Job %s not found for deletion", job_id)
        return False

    # ============ ABSENCES ============

    def _all_absences(self) -> List[Absence]:
        return [Absence.from_dict(a) for a in self._read(self.absences_file, [])]

    def get_absences_for_month(self, month: str) -> List[Absence]:
        """Get all absences for a month, in the order they were recorded"""
        parse_month(month)
        with self._lock:
            return [a for a in self._all_absences() if a.month == month]

    def get_absence_by_date(self, absence_date: date) -> Optional[Absence]:
        with self._lock:
            for absence in self._all_absences():
                if absence.absence_date == absence_date:
                    return absence
        return None

    def add_absence(self, absence: Absence) -> Absence:
        """Add an absence; a date can only hold one"""
        if not absence.id:
            absence = replace(absence, id=str(uuid.uuid4()))
        with self._lock:
            if self.get_absence_by_date(absence.absence_date) is not None:
                raise DuplicateAbsenceError(
                    'absence_date', f"An absence already exists for {absence.absence_date.isoformat()}"
                )
            absences = self._read(self.absences_file, [])
            absences.append(absence.to_dict())
            self._write(self.absences_file, absences)
        logger.info("Absence %s created for %s", absence.id, absence.absence_date.isoformat())
        return absence

    def delete_absence(self, absence_id: str) -> bool:
        """Delete an absence by ID"""
        with self._lock:
            absences = self._read(self.absences_file, [])
            remaining = [a for a in absences if a.get('id') != absence_id]
            if len(remaining) < len(absences):
                self._write(self.absences_file, remaining)
                return True
        logger.warning("Absence %s not found for deletion", absence_id)
        return False

    def cycle_absence(self, absence_date: date) -> Optional[Absence]:
        """
        Move a date to the next absence type: none -> holiday -> sickness -> training -> none.

        Changing type replaces the record with a full-day AVAILABLE_HOURS
        absence. Returns the new absence, or None once the date is cleared.
        """
        with self._lock:
            current = self.get_absence_by_date(absence_date)
            new_type = next_absence_type(current.absence_type if current else None)

            if current is not None:
                self.delete_absence(current.id)
            if new_type is None:
                return None

            return self.add_absence(Absence(
                absence_date=absence_date,
                absence_type=new_type,
                deduction_type='AVAILABLE_HOURS',
                days_count=1,
                note=f"{new_type.capitalize()} day",
            ))

    # ============ SCHEDULE ============

    def default_schedule(self) -> Schedule:
        """Monday-Friday, no Saturdays, hours and lunch break from the formula settings"""
        settings = self.get_formula_settings()
        return Schedule(
            daily_working_hours=float(settings.default_daily_hours),
            lunch_break_minutes=settings.default_lunch_break_minutes,
        )

    def get_schedule(self) -> Schedule:
        """Get the schedule, or the defaults if none has been saved"""
        with self._lock:
            data = self._read(self.schedule_file, {})
            return Schedule.from_dict(data) if data else self.default_schedule()

    def save_schedule(self, schedule: Schedule) -> Schedule:
        with self._lock:
            self._write(self.schedule_file, schedule.to_dict())
        return schedule

    def update_schedule(self, **updates) -> Schedule:
        """Apply field updates to the stored schedule (validated before saving)"""
        with self._lock:
            merged = {**self.get_schedule().to_dict(), **updates}
            return self.save_schedule(Schedule.from_dict(merged))

    def reset_schedule(self) -> Schedule:
        """Back to the default schedule"""
        with self._lock:
            return self.save_schedule(self.default_schedule())

    # ============ SETTINGS ============

    def _settings(self) -> Dict[str, Any]:
        return self._read(self.settings_file, {})

    def get_monthly_target(self) -> float:
        with self._lock:
            return float(self._settings().get('monthly_target', DEFAULT_MONTHLY_TARGET))

    def set_monthly_target(self, target_hours: float) -> float:
        if target_hours <= 0:
            raise ValidationError('monthly_target', "Monthly target must be positive")
        with self._lock:
            settings = self._settings()
            settings['monthly_target'] = float(target_hours)
            self._write(self.settings_file, settings)
        return float(target_hours)

    def get_formula_settings(self) -> FormulaSettings:
        with self._lock:
            return FormulaSettings.from_dict(self._settings().get('formula', {}))

    def update_formula_settings(self, **updates) -> FormulaSettings:
        with self._lock:
            settings = self._settings()
            formula = FormulaSettings.from_dict({**settings.get('formula', {}), **updates})
            settings['formula'] = formula.to_dict()
            self._write(self.settings_file, settings)
        return formula

    # ============ SNAPSHOT ============

    def load_month_snapshot(self, month: str) -> MonthSnapshot:
        """Read everything the calculator needs for a month under one lock"""
        with self._lock:
            snapshot = MonthSnapshot(
                month=month,
                jobs=tuple(self.get_jobs_for_month(month)),
                absences=tuple(self.get_absences_for_month(month)),
                schedule=self.get_schedule(),
                target_hours=self.get_monthly_target(),
                settings=self.get_formula_settings(),
            )
        logger.debug(
            "Loaded %d job(s) and %d absence(s) for %s",
            len(snapshot.jobs), len(snapshot.absences), month, extra={'month': month},
        )
        return snapshot
