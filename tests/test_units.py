"""Tests for AW/time conversion and rounding"""
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from techtimes.units import (
    aw_to_hours,
    aw_to_minutes,
    format_decimal_hours,
    format_time,
    hours_to_aw,
    minutes_to_hours,
    round_half_up,
    validate_aw,
    validate_wip_number,
)


class TestConversions:

    def test_one_aw_is_five_minutes(self):
        assert aw_to_minutes(1) == 5
        assert aw_to_minutes(12) == 60

    def test_aw_to_hours(self):
        assert aw_to_hours(12) == 1.0
        assert aw_to_hours(420) == 35.0

    def test_configurable_aw_minutes(self):
        assert aw_to_minutes(10, aw_minutes=6) == 60
        assert aw_to_hours(10, aw_minutes=6) == 1.0

    def test_minutes_to_hours(self):
        assert minutes_to_hours(90) == 1.5

    def test_hours_to_aw(self):
        assert hours_to_aw(1) == 12
        assert hours_to_aw(145) == 1740

    def test_conversions_do_not_round(self):
        assert aw_to_hours(1) == 5 / 60


class TestRounding:

    def test_half_rounds_away_from_zero(self):
        assert round_half_up(2.345) == 2.35
        assert round_half_up(-2.345) == -2.35
        assert round_half_up(0.125) == 0.13

    def test_whole_numbers(self):
        assert round_half_up(19.5, 0) == 20
        assert round_half_up(20.5, 0) == 21
        assert isinstance(round_half_up(19.6, 0), int)

    def test_none_passes_through(self):
        assert round_half_up(None) is None


class TestFormatting:

    def test_format_time(self):
        assert format_time(0) == "0h 0m"
        assert format_time(65) == "1h 5m"
        assert format_time(2100) == "35h 0m"

    def test_format_decimal_hours(self):
        assert format_decimal_hours(90) == "1.50"


class TestValidation:

    def test_wip_number(self):
        assert validate_wip_number("12345") is True
        assert validate_wip_number("1234") is False
        assert validate_wip_number("12a45") is False
        assert validate_wip_number("") is False

    def test_aw_range(self):
        assert validate_aw(0) is True
        assert validate_aw(100) is True
        assert validate_aw(101) is False
        assert validate_aw(2.5) is False
        assert validate_aw(-1) is False
