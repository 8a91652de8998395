"""Data models for TechTimes"""
import re
from dataclasses import dataclass, asdict
from datetime import date, datetime
from typing import Optional, Literal, Dict, Any, FrozenSet, Tuple

from config import (
    ABSENCE_TYPES,
    DEDUCTION_TYPES,
    DEFAULT_AW_MINUTES,
    DEFAULT_DAILY_WORKING_HOURS,
    DEFAULT_END_TIME,
    DEFAULT_LUNCH_BREAK_MINUTES,
    DEFAULT_MONTHLY_TARGET,
    DEFAULT_START_TIME,
    DEFAULT_WORKING_WEEKDAYS,
    EFFICIENCY_GREEN_THRESHOLD,
    EFFICIENCY_YELLOW_THRESHOLD,
    SATURDAY_FREQUENCIES,
    SATURDAY_ROTATIONS,
    VHC_STATUSES,
)

VhcStatus = Literal['NONE', 'GREEN', 'AMBER', 'RED']
AbsenceType = Literal['holiday', 'sickness', 'training']
DeductionType = Literal['AVAILABLE_HOURS', 'MONTHLY_TARGET']
SaturdayFrequency = Literal['none', 'every', '1-in-2', '1-in-3', '1-in-4', 'custom']

MONTH_PATTERN = re.compile(r'^\d{4}-(0[1-9]|1[0-2])$')
TIME_PATTERN = re.compile(r'^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$')

# Legacy spellings still found in stored rows
VHC_ALIASES = {'ORANGE': 'AMBER', 'N/A': 'NONE', '': 'NONE'}
DEDUCTION_ALIASES = {'available': 'AVAILABLE_HOURS', 'target': 'MONTHLY_TARGET'}

# Tap-to-cycle order used by the work calendar
ABSENCE_CYCLE: Dict[Optional[str], Optional[str]] = {
    None: 'holiday',
    'holiday': 'sickness',
    'sickness': 'training',
    'training': None,
}


class ValidationError(ValueError):
    """Raised when an input violates the engine contract.

    ``field`` names the offending attribute so callers can show a
    user-facing message next to the right input.
    """

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class DuplicateAbsenceError(ValidationError):
    """Raised by storage when a date already has an absence."""


def next_absence_type(current: Optional[str]) -> Optional[str]:
    """Return the absence type that follows ``current`` in the calendar cycle."""
    if current not in ABSENCE_CYCLE:
        raise ValidationError('absence_type', f"Unknown absence type '{current}'")
    return ABSENCE_CYCLE[current]


def _to_date(value, field: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            pass
    raise ValidationError(field, f"Expected a date, got {value!r}")


def _to_datetime(value, field: str) -> datetime:
    """Parse to a naive local timestamp (the app runs in a single timezone)"""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace('Z', '+00:00'))
        except ValueError:
            raise ValidationError(field, f"Expected a timestamp, got {value!r}")
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone().replace(tzinfo=None)
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    raise ValidationError(field, f"Expected a timestamp, got {value!r}")


def parse_bool(value) -> bool:
    """Read a flag that may arrive as text ('true', 'no', '1') from files"""
    if isinstance(value, str):
        return value.strip().lower() in ('true', '1', 'yes', 'y')
    return bool(value)


def _optional_float(value) -> Optional[float]:
    if value is None or value == '':
        return None
    return float(value)


@dataclass(frozen=True)
class Job:
    """A single billed unit of work against a vehicle"""
    wip_number: str
    vehicle_reg: str
    aw: float
    created_at: datetime
    id: str = ""
    notes: str = ""
    vhc_status: VhcStatus = 'NONE'
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if isinstance(self.aw, bool) or not isinstance(self.aw, (int, float)):
            raise ValidationError('aw', f"AW must be a number, got {self.aw!r}")
        if self.aw < 0:
            raise ValidationError('aw', f"AW must not be negative, got {self.aw}")

        status = (self.vhc_status or 'NONE').upper()
        status = VHC_ALIASES.get(status, status)
        if status not in VHC_STATUSES:
            raise ValidationError('vhc_status', f"Unknown VHC status '{self.vhc_status}'")
        object.__setattr__(self, 'vhc_status', status)
        object.__setattr__(self, 'created_at', _to_datetime(self.created_at, 'created_at'))

    @property
    def job_date(self) -> date:
        """Calendar day the job counts towards"""
        return self.created_at.date()

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['created_at'] = self.created_at.isoformat()
        data['updated_at'] = self.updated_at.isoformat() if self.updated_at else None
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Job':
        updated_at = data.get('updated_at')
        return cls(
            id=str(data.get('id', '')),
            wip_number=str(data.get('wip_number', '')),
            vehicle_reg=str(data.get('vehicle_reg', '')),
            aw=float(data.get('aw', 0) or 0),
            notes=data.get('notes') or '',
            vhc_status=data.get('vhc_status') or 'NONE',
            created_at=_to_datetime(data['created_at'], 'created_at'),
            updated_at=_to_datetime(updated_at, 'updated_at') if updated_at else None,
        )


@dataclass(frozen=True)
class Absence:
    """A calendar date taken off, or deducted from the target.

    Duration is either ``days_count`` (optionally halved with
    ``is_half_day``) or an explicit ``custom_hours`` override, never both.
    """
    absence_date: date
    absence_type: AbsenceType = 'holiday'
    deduction_type: DeductionType = 'AVAILABLE_HOURS'
    days_count: Optional[float] = None
    is_half_day: bool = False
    custom_hours: Optional[float] = None
    month: str = ""
    note: str = ""
    id: str = ""

    def __post_init__(self):
        absence_date = _to_date(self.absence_date, 'absence_date')
        object.__setattr__(self, 'absence_date', absence_date)

        if not self.month:
            object.__setattr__(self, 'month', absence_date.strftime('%Y-%m'))

        deduction = DEDUCTION_ALIASES.get(self.deduction_type, self.deduction_type)
        object.__setattr__(self, 'deduction_type', deduction)

        self.validate()

    def validate(self) -> None:
        """Check the record invariants, raising ValidationError on the first failure."""
        if self.days_count is None and self.custom_hours is None:
            raise ValidationError('days_count', "Either days_count or custom_hours must be set")
        if self.days_count is not None and self.custom_hours is not None:
            raise ValidationError('custom_hours', "days_count and custom_hours are mutually exclusive")
        if self.days_count is not None and self.days_count <= 0:
            raise ValidationError('days_count', "Days count must be greater than 0")
        if self.custom_hours is not None and self.custom_hours < 0:
            raise ValidationError('custom_hours', "Custom hours must not be negative")
        if self.absence_type not in ABSENCE_TYPES:
            raise ValidationError('absence_type', f"Unknown absence type '{self.absence_type}'")
        if self.deduction_type not in DEDUCTION_TYPES:
            raise ValidationError(
                'deduction_type',
                "Deduction type must be either AVAILABLE_HOURS or MONTHLY_TARGET",
            )
        if not MONTH_PATTERN.match(self.month):
            raise ValidationError('month', "Month must be in YYYY-MM format")
        if self.absence_date.strftime('%Y-%m') != self.month:
            raise ValidationError('month', f"{self.absence_date} is not in {self.month}")

    @property
    def is_custom(self) -> bool:
        return self.custom_hours is not None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['absence_date'] = self.absence_date.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Absence':
        return cls(
            id=str(data.get('id', '')),
            month=data.get('month') or '',
            absence_date=_to_date(data['absence_date'], 'absence_date'),
            absence_type=data.get('absence_type') or 'holiday',
            deduction_type=data.get('deduction_type') or 'AVAILABLE_HOURS',
            days_count=_optional_float(data.get('days_count')),
            is_half_day=parse_bool(data.get('is_half_day', False)),
            custom_hours=_optional_float(data.get('custom_hours')),
            note=data.get('note') or '',
        )


@dataclass(frozen=True)
class Schedule:
    """The technician's working pattern (stored as a single row)"""
    daily_working_hours: float = DEFAULT_DAILY_WORKING_HOURS
    working_weekdays: FrozenSet[int] = frozenset(DEFAULT_WORKING_WEEKDAYS)
    saturday_frequency: SaturdayFrequency = 'none'
    next_working_saturday: Optional[date] = None
    custom_saturday_dates: FrozenSet[str] = frozenset()
    saturday_working_hours: Optional[float] = None
    start_time: str = DEFAULT_START_TIME
    end_time: str = DEFAULT_END_TIME
    lunch_break_minutes: int = DEFAULT_LUNCH_BREAK_MINUTES

    def __post_init__(self):
        object.__setattr__(self, 'working_weekdays', frozenset(int(d) for d in self.working_weekdays))
        object.__setattr__(self, 'custom_saturday_dates', frozenset(
            _to_date(d, 'custom_saturday_dates').isoformat() for d in self.custom_saturday_dates
        ))
        if self.next_working_saturday is not None:
            object.__setattr__(
                self, 'next_working_saturday',
                _to_date(self.next_working_saturday, 'next_working_saturday'),
            )

        if isinstance(self.daily_working_hours, bool) or not isinstance(self.daily_working_hours, (int, float)):
            raise ValidationError('daily_working_hours', "Daily working hours must be a number")
        if self.daily_working_hours <= 0:
            raise ValidationError('daily_working_hours', "Daily working hours must be positive")
        if self.daily_working_hours > 24:
            raise ValidationError('daily_working_hours', "Daily working hours cannot exceed 24 hours")
        if self.saturday_working_hours is not None and not 0 < self.saturday_working_hours <= 24:
            raise ValidationError('saturday_working_hours', "Saturday hours must be between 0 and 24")

        if not self.working_weekdays:
            raise ValidationError('working_weekdays', "You must have at least one working day selected")
        if any(d < 0 or d > 6 for d in self.working_weekdays):
            raise ValidationError('working_weekdays', "Weekdays must be between 0 (Sunday) and 6 (Saturday)")

        if self.saturday_frequency not in SATURDAY_FREQUENCIES:
            raise ValidationError('saturday_frequency', f"Unknown Saturday frequency '{self.saturday_frequency}'")
        if self.saturday_frequency in SATURDAY_ROTATIONS:
            if self.next_working_saturday is None:
                raise ValidationError('next_working_saturday', "Please set the date of your next working Saturday")
            if self.next_working_saturday.weekday() != 5:
                raise ValidationError('next_working_saturday', f"{self.next_working_saturday} is not a Saturday")

    @classmethod
    def from_times(cls, start_time: str, end_time: str,
                   lunch_break_minutes: int = DEFAULT_LUNCH_BREAK_MINUTES, **kwargs) -> 'Schedule':
        """
        Build a schedule from shift start/end times and a lunch break.

        Daily working hours = (end - start - lunch) / 60.
        """
        for field_name, value in (('start_time', start_time), ('end_time', end_time)):
            if not TIME_PATTERN.match(value or ''):
                raise ValidationError(field_name, f"Invalid time format '{value}'. Use HH:MM (e.g., 07:00)")
        if not 0 <= lunch_break_minutes <= 180:
            raise ValidationError('lunch_break_minutes', "Lunch break must be between 0 and 180 minutes")

        start_hour, start_min = map(int, start_time.split(':'))
        end_hour, end_min = map(int, end_time.split(':'))
        work_minutes = (end_hour * 60 + end_min) - (start_hour * 60 + start_min) - lunch_break_minutes
        if work_minutes <= 0:
            raise ValidationError('end_time', "End time must be after start time, and total hours must be positive")

        return cls(
            daily_working_hours=work_minutes / 60,
            start_time=start_time,
            end_time=end_time,
            lunch_break_minutes=lunch_break_minutes,
            **kwargs
        )

    @property
    def saturday_working(self) -> bool:
        return self.saturday_frequency != 'none'

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['working_weekdays'] = sorted(self.working_weekdays)
        data['custom_saturday_dates'] = sorted(self.custom_saturday_dates)
        data['next_working_saturday'] = (
            self.next_working_saturday.isoformat() if self.next_working_saturday else None
        )
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Schedule':
        data = dict(data)
        if 'daily_working_hours' in data:
            data['daily_working_hours'] = float(data['daily_working_hours'])
        if data.get('saturday_working_hours') is not None:
            data['saturday_working_hours'] = float(data['saturday_working_hours'])
        data.setdefault('working_weekdays', DEFAULT_WORKING_WEEKDAYS)
        data.setdefault('custom_saturday_dates', ())
        known = cls.__dataclass_fields__.keys()
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass(frozen=True)
class FormulaSettings:
    """User-adjustable formula constants"""
    aw_minutes: float = DEFAULT_AW_MINUTES
    efficiency_green_threshold: float = EFFICIENCY_GREEN_THRESHOLD
    efficiency_yellow_threshold: float = EFFICIENCY_YELLOW_THRESHOLD
    default_target_hours: float = DEFAULT_MONTHLY_TARGET
    default_daily_hours: float = DEFAULT_DAILY_WORKING_HOURS
    default_lunch_break_minutes: int = DEFAULT_LUNCH_BREAK_MINUTES

    def __post_init__(self):
        if self.aw_minutes <= 0:
            raise ValidationError('aw_minutes', "AW to minutes ratio must be positive")
        if self.efficiency_yellow_threshold > self.efficiency_green_threshold:
            raise ValidationError(
                'efficiency_yellow_threshold',
                "Yellow threshold cannot be above the green threshold",
            )
        if self.default_target_hours <= 0:
            raise ValidationError('default_target_hours', "Default target must be positive")
        if self.default_daily_hours <= 0:
            raise ValidationError('default_daily_hours', "Default daily hours must be positive")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FormulaSettings':
        known = cls.__dataclass_fields__.keys()
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass(frozen=True)
class PerformanceReport:
    """Monthly metrics, rounded once to 2 decimal places"""
    month: str
    sold_hours: float
    available_hours: float
    effective_available_hours: float
    absence_hours_from_available: float
    absence_hours_from_target: float
    target_hours: float
    adjusted_target_hours: float
    remaining_hours: float
    efficiency_percent: Optional[int]
    efficiency_label: str
    efficiency_color: Optional[str]
    total_jobs: int = 0
    total_aw: float = 0.0
    working_days: int = 0
    absence_days: float = 0.0
    daily_target_hours: Optional[float] = None

    @property
    def target_met(self) -> bool:
        return self.remaining_hours <= 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class DayPerformance:
    """One calendar day of a month"""
    day: date
    is_working_day: bool
    available_hours: float
    sold_hours: float
    job_count: int
    total_aw: float
    efficiency_percent: Optional[int]
    absence_type: Optional[str] = None


@dataclass(frozen=True)
class WeekPerformance:
    """One week-of-month bucket"""
    week: int
    start: date
    end: date
    available_hours: float
    sold_hours: float
    job_count: int
    total_aw: float
    efficiency_percent: Optional[int]


@dataclass(frozen=True)
class MonthSnapshot:
    """Everything the engine needs for one month, read together"""
    month: str
    jobs: Tuple[Job, ...]
    absences: Tuple[Absence, ...]
    schedule: Schedule
    target_hours: float
    settings: FormulaSettings = FormulaSettings()
