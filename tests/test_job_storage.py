"""Storage regression tests for the local JSON backend."""
import json
import pytest
import sys
from datetime import date, datetime
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from techtimes.job_storage import JobStorage
from techtimes.models import Absence, DuplicateAbsenceError, Job, Schedule, ValidationError


def make_job(aw, created_at, wip="12345"):
    return Job(wip_number=wip, vehicle_reg="AB12CDE", aw=aw, created_at=created_at)


class TestJobStorageJobs:

    def test_add_and_read_back(self, tmp_path):
        storage = JobStorage(data_dir=str(tmp_path))
        saved = storage.add_job(make_job(10, datetime(2024, 6, 3, 9)))

        assert saved.id
        assert storage.get_job_by_id(saved.id) == saved
        assert (tmp_path / "jobs.json").exists()

    def test_add_jobs_batch_and_month_filter(self, tmp_path):
        storage = JobStorage(data_dir=str(tmp_path))
        storage.add_jobs([
            make_job(10, datetime(2024, 5, 31, 17)),
            make_job(12, datetime(2024, 6, 1, 9)),
            make_job(14, datetime(2024, 6, 30, 16)),
            make_job(16, datetime(2024, 7, 1, 8)),
        ])

        june = storage.get_jobs_for_month('2024-06')
        assert sorted(j.aw for j in june) == [12, 14]
        assert len(storage.get_all_jobs()) == 4

    def test_date_range_is_inclusive(self, tmp_path):
        storage = JobStorage(data_dir=str(tmp_path))
        storage.add_jobs([
            make_job(10, datetime(2024, 6, 3, 9)),
            make_job(12, datetime(2024, 6, 5, 9)),
            make_job(14, datetime(2024, 6, 6, 9)),
        ])
        jobs = storage.get_jobs_by_date_range(date(2024, 6, 3), date(2024, 6, 5))
        assert sorted(j.aw for j in jobs) == [10, 12]

    def test_update_job(self, tmp_path):
        storage = JobStorage(data_dir=str(tmp_path))
        saved = storage.add_job(make_job(10, datetime(2024, 6, 3, 9)))

        updated = storage.update_job(saved.id, {'aw': 18, 'notes': 'Clutch'})
        assert updated.aw == 18
        assert updated.notes == 'Clutch'
        assert updated.updated_at is not None
        assert storage.get_job_by_id(saved.id).aw == 18

    def test_update_rejects_invalid_values(self, tmp_path):
        storage = JobStorage(data_dir=str(tmp_path))
        saved = storage.add_job(make_job(10, datetime(2024, 6, 3, 9)))
        with pytest.raises(ValidationError):
            storage.update_job(saved.id, {'aw': -5})
        assert storage.get_job_by_id(saved.id).aw == 10

    def test_update_and_delete_missing(self, tmp_path):
        storage = JobStorage(data_dir=str(tmp_path))
        assert storage.update_job('missing', {'aw': 1}) is None
        assert storage.delete_job('missing') is False

    def test_delete_job(self, tmp_path):
        storage = JobStorage(data_dir=str(tmp_path))
        saved = storage.add_job(make_job(10, datetime(2024, 6, 3, 9)))
        assert storage.delete_job(saved.id) is True
        assert storage.get_all_jobs() == []

    def test_corrupt_file_reads_as_empty(self, tmp_path):
        storage = JobStorage(data_dir=str(tmp_path))
        (tmp_path / "jobs.json").write_text("{not json", encoding="utf-8")
        assert storage.get_all_jobs() == []


class TestJobStorageAbsences:

    def test_one_absence_per_date(self, tmp_path):
        storage = JobStorage(data_dir=str(tmp_path))
        storage.add_absence(Absence(absence_date=date(2024, 6, 3), days_count=1))

        with pytest.raises(DuplicateAbsenceError):
            storage.add_absence(Absence(absence_date=date(2024, 6, 3), custom_hours=2))
        assert len(storage.get_absences_for_month('2024-06')) == 1

    def test_absences_filtered_by_month(self, tmp_path):
        storage = JobStorage(data_dir=str(tmp_path))
        storage.add_absence(Absence(absence_date=date(2024, 6, 3), days_count=1))
        storage.add_absence(Absence(absence_date=date(2024, 7, 1), days_count=1))
        assert [a.absence_date for a in storage.get_absences_for_month('2024-06')] == [date(2024, 6, 3)]

    def test_delete_absence(self, tmp_path):
        storage = JobStorage(data_dir=str(tmp_path))
        saved = storage.add_absence(Absence(absence_date=date(2024, 6, 3), days_count=1))
        assert storage.delete_absence(saved.id) is True
        assert storage.get_absence_by_date(date(2024, 6, 3)) is None

    def test_cycle_absence(self, tmp_path):
        storage = JobStorage(data_dir=str(tmp_path))
        day = date(2024, 6, 3)

        types = [storage.cycle_absence(day) for _ in range(4)]
        assert [a.absence_type if a else None for a in types] == ['holiday', 'sickness', 'training', None]
        assert types[0].note == "Holiday day"
        assert types[1].deduction_type == 'AVAILABLE_HOURS'
        assert storage.get_absences_for_month('2024-06') == []


class TestJobStorageSettings:

    def test_schedule_defaults(self, tmp_path):
        storage = JobStorage(data_dir=str(tmp_path))
        assert storage.get_schedule() == Schedule()

    def test_update_and_reset_schedule(self, tmp_path):
        storage = JobStorage(data_dir=str(tmp_path))
        storage.update_schedule(saturday_frequency='1-in-2', next_working_saturday='2024-06-01',
                                working_weekdays=[1, 2, 3, 4])

        reloaded = JobStorage(data_dir=str(tmp_path)).get_schedule()
        assert reloaded.saturday_frequency == '1-in-2'
        assert reloaded.next_working_saturday == date(2024, 6, 1)
        assert reloaded.working_weekdays == frozenset({1, 2, 3, 4})

        assert storage.reset_schedule() == Schedule()
        assert storage.get_schedule() == Schedule()

    def test_default_schedule_follows_formula_settings(self, tmp_path):
        storage = JobStorage(data_dir=str(tmp_path))
        storage.update_formula_settings(default_daily_hours=8, default_lunch_break_minutes=45)

        schedule = storage.get_schedule()
        assert schedule.daily_working_hours == 8.0
        assert schedule.lunch_break_minutes == 45
        assert schedule.working_weekdays == frozenset({1, 2, 3, 4, 5})

        storage.update_schedule(daily_working_hours=9)
        assert storage.reset_schedule().daily_working_hours == 8.0
        assert storage.get_schedule().daily_working_hours == 8.0

    def test_invalid_schedule_not_saved(self, tmp_path):
        storage = JobStorage(data_dir=str(tmp_path))
        with pytest.raises(ValidationError):
            storage.update_schedule(daily_working_hours=0)
        assert json.loads((tmp_path / "schedule.json").read_text(encoding="utf-8")) == {}

    def test_monthly_target(self, tmp_path):
        storage = JobStorage(data_dir=str(tmp_path))
        assert storage.get_monthly_target() == 180.0
        storage.set_monthly_target(160)
        assert storage.get_monthly_target() == 160.0
        with pytest.raises(ValidationError):
            storage.set_monthly_target(0)

    def test_formula_settings(self, tmp_path):
        storage = JobStorage(data_dir=str(tmp_path))
        storage.set_monthly_target(160)
        storage.update_formula_settings(aw_minutes=6)

        assert storage.get_formula_settings().aw_minutes == 6
        assert storage.get_monthly_target() == 160.0

    def test_month_snapshot(self, tmp_path):
        storage = JobStorage(data_dir=str(tmp_path))
        storage.add_jobs([make_job(10, datetime(2024, 6, 3, 9)), make_job(12, datetime(2024, 7, 3, 9))])
        storage.add_absence(Absence(absence_date=date(2024, 6, 4), days_count=1))
        storage.set_monthly_target(150)

        snapshot = storage.load_month_snapshot('2024-06')
        assert [j.aw for j in snapshot.jobs] == [10]
        assert len(snapshot.absences) == 1
        assert snapshot.target_hours == 150.0
        assert snapshot.schedule == Schedule()
