"""Tests for absence records and deductions"""
import logging
import pytest
import sys
from datetime import date
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from techtimes.absence_ledger import absence_days, absence_hours, apply_absences, unique_by_date
from techtimes.models import Absence, Schedule, ValidationError, next_absence_type


class TestAbsenceRecord:

    def test_month_derived_from_date(self):
        absence = Absence(absence_date=date(2024, 3, 4), days_count=1)
        assert absence.month == '2024-03'
        assert absence.absence_type == 'holiday'
        assert absence.deduction_type == 'AVAILABLE_HOURS'

    def test_accepts_iso_string_date(self):
        absence = Absence(absence_date='2024-03-04', days_count=1)
        assert absence.absence_date == date(2024, 3, 4)

    def test_needs_a_duration(self):
        with pytest.raises(ValidationError) as exc:
            Absence(absence_date=date(2024, 3, 4))
        assert exc.value.field == 'days_count'

    def test_days_and_custom_hours_are_exclusive(self):
        with pytest.raises(ValidationError) as exc:
            Absence(absence_date=date(2024, 3, 4), days_count=1, custom_hours=3)
        assert exc.value.field == 'custom_hours'

    def test_days_count_must_be_positive(self):
        with pytest.raises(ValidationError):
            Absence(absence_date=date(2024, 3, 4), days_count=0)

    def test_custom_hours_not_negative(self):
        with pytest.raises(ValidationError):
            Absence(absence_date=date(2024, 3, 4), custom_hours=-1)

    def test_month_must_match_date(self):
        with pytest.raises(ValidationError) as exc:
            Absence(absence_date=date(2024, 3, 4), days_count=1, month='2024-04')
        assert exc.value.field == 'month'

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            Absence(absence_date=date(2024, 3, 4), days_count=1, absence_type='jury')
        with pytest.raises(ValidationError):
            Absence(absence_date=date(2024, 3, 4), days_count=1, deduction_type='SALARY')

    def test_legacy_deduction_spelling(self):
        absence = Absence(absence_date=date(2024, 3, 4), days_count=1, deduction_type='target')
        assert absence.deduction_type == 'MONTHLY_TARGET'

    def test_dict_round_trip(self):
        absence = Absence(absence_date=date(2024, 3, 4), custom_hours=3, absence_type='training', id='a1')
        assert Absence.from_dict(absence.to_dict()) == absence

    def test_from_dict_reads_text_flags(self):
        base = {'absence_date': '2024-03-04', 'days_count': 1}
        assert Absence.from_dict({**base, 'is_half_day': 'false'}).is_half_day is False
        assert Absence.from_dict({**base, 'is_half_day': 'True'}).is_half_day is True
        assert Absence.from_dict({**base, 'is_half_day': True}).is_half_day is True
        assert Absence.from_dict(base).is_half_day is False

    def test_is_custom(self):
        assert Absence(absence_date=date(2024, 3, 4), custom_hours=0).is_custom is True
        assert Absence(absence_date=date(2024, 3, 4), days_count=1).is_custom is False

    def test_type_cycle(self):
        assert next_absence_type(None) == 'holiday'
        assert next_absence_type('holiday') == 'sickness'
        assert next_absence_type('sickness') == 'training'
        assert next_absence_type('training') is None


class TestAbsenceHours:

    def setup_method(self):
        self.schedule = Schedule()

    def test_full_day(self):
        absence = Absence(absence_date=date(2024, 3, 4), days_count=1)
        assert absence_hours(absence, self.schedule) == 8.5
        assert absence_days(absence, self.schedule) == 1

    def test_half_day(self):
        absence = Absence(absence_date=date(2024, 3, 4), days_count=1, is_half_day=True)
        assert absence_hours(absence, self.schedule) == 4.25
        assert absence_days(absence, self.schedule) == 0.5

    def test_multiple_days(self):
        absence = Absence(absence_date=date(2024, 3, 4), days_count=2)
        assert absence_hours(absence, self.schedule) == 17

    def test_custom_hours_override_everything(self):
        absence = Absence(absence_date=date(2024, 3, 4), custom_hours=3, is_half_day=True)
        assert absence_hours(absence, self.schedule) == 3
        assert absence_hours(absence, Schedule(daily_working_hours=10)) == 3

    def test_custom_hours_as_days(self):
        absence = Absence(absence_date=date(2024, 3, 4), custom_hours=4.25)
        assert absence_days(absence, self.schedule) == 0.5

    def test_saturday_absence_uses_saturday_hours(self):
        schedule = Schedule(saturday_frequency='every', saturday_working_hours=4)
        absence = Absence(absence_date=date(2024, 3, 2), days_count=1)
        assert absence_hours(absence, schedule) == 4


class TestApplyAbsences:

    def setup_method(self):
        self.schedule = Schedule()

    def test_no_absences(self):
        deductions = apply_absences([], self.schedule)
        assert deductions.from_available == 0
        assert deductions.from_target == 0
        assert deductions.total_absence_days == 0

    def test_pools_are_separate(self):
        absences = [
            Absence(absence_date=date(2024, 3, 4), days_count=1),
            Absence(absence_date=date(2024, 3, 5), days_count=1, is_half_day=True,
                    absence_type='sickness', deduction_type='MONTHLY_TARGET'),
            Absence(absence_date=date(2024, 3, 6), custom_hours=3, absence_type='training'),
        ]
        deductions = apply_absences(absences, self.schedule)
        assert deductions.from_available == 11.5
        assert deductions.from_target == 4.25
        assert deductions.days_by_type == {'holiday': 1.0, 'sickness': 0.5, 'training': 3 / 8.5}

    def test_duplicate_date_keeps_first(self, caplog):
        first = Absence(absence_date=date(2024, 3, 4), days_count=1, id='first')
        second = Absence(absence_date=date(2024, 3, 4), custom_hours=2, id='second')

        with caplog.at_level(logging.WARNING, logger='techtimes.absence_ledger'):
            deductions = apply_absences([first, second], self.schedule)

        assert deductions.from_available == 8.5
        assert deductions.applied == (first,)
        assert 'Duplicate absence' in caplog.text

    def test_unique_by_date_keeps_order(self):
        a = Absence(absence_date=date(2024, 3, 5), days_count=1)
        b = Absence(absence_date=date(2024, 3, 4), days_count=1)
        assert unique_by_date([a, b]) == [a, b]

    def test_rejects_non_absence(self):
        with pytest.raises(ValidationError):
            apply_absences([{'absence_date': '2024-03-04'}], self.schedule)
