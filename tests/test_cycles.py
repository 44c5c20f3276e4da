"""
Tests for the renewal cycle calculator
"""

from datetime import date, datetime, timezone

import pytest

from uniform_api.utils.eligibility.cycles import (
    current_cycle,
    cycle_length_months,
    to_utc,
)


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


class TestCurrentCycle:

    def test_last_day_of_first_cycle(self):
        """One day before the boundary the first cycle is still current"""
        window = current_cycle(utc(2025, 10, 1), 6, as_of=utc(2026, 3, 31))
        assert window.index == 0
        assert window.start == utc(2025, 10, 1)
        assert window.end == utc(2026, 4, 1)
        assert window.next_start == utc(2026, 4, 1)
        assert window.days_remaining == 1

    def test_boundary_starts_next_cycle(self):
        """At the boundary instant the next cycle is reported"""
        window = current_cycle(utc(2025, 10, 1), 6, as_of=utc(2026, 4, 1))
        assert window.index == 1
        assert window.start == utc(2026, 4, 1)
        assert window.end == utc(2026, 10, 1)

    def test_before_joining_is_cycle_zero(self):
        """No negative cycles before the join date"""
        window = current_cycle(utc(2025, 10, 1), 6, as_of=utc(2025, 1, 1))
        assert window.index == 0
        assert window.start == utc(2025, 10, 1)
        assert window.end == utc(2026, 4, 1)

    def test_partial_day_rounds_up(self):
        """Days remaining is a ceiling"""
        window = current_cycle(utc(2025, 10, 1), 6, as_of=utc(2026, 3, 31, 12))
        assert window.days_remaining == 1

    def test_month_end_join_does_not_drift(self):
        """Cycles are offset from the join date, not chained"""
        window = current_cycle(utc(2025, 1, 31), 1, as_of=utc(2025, 3, 31))
        assert window.start == utc(2025, 3, 31)
        assert window.end == utc(2025, 4, 30)

    def test_many_cycles_later(self):
        """Index is computed directly for distant dates"""
        window = current_cycle(utc(2020, 1, 15), 12, as_of=utc(2026, 6, 1))
        assert window.index == 6
        assert window.start == utc(2026, 1, 15)

    def test_contains_is_half_open(self):
        """Start is inside the window, end is not"""
        window = current_cycle(utc(2025, 10, 1), 6, as_of=utc(2025, 12, 1))
        assert window.contains(utc(2025, 10, 1))
        assert window.contains(utc(2026, 3, 31, 23, 59))
        assert not window.contains(utc(2026, 4, 1))
        assert not window.contains(None)

    def test_naive_and_date_inputs_are_utc(self):
        """Dates and naive datetimes are read as UTC"""
        window = current_cycle(date(2025, 10, 1), 6, as_of=datetime(2026, 3, 31))
        assert window.start == utc(2025, 10, 1)
        assert window.days_remaining == 1

    def test_missing_join_date_uses_default(self):
        """An unset join date falls back to the default anchor"""
        window = current_cycle(None, 6, as_of=utc(2026, 3, 31))
        assert window.start == utc(2025, 10, 1)

    @pytest.mark.parametrize("length", [0, -6])
    def test_non_positive_length_rejected(self, length):
        """Cycle length must be positive"""
        with pytest.raises(ValueError):
            current_cycle(utc(2025, 10, 1), length, as_of=utc(2026, 1, 1))

    def test_to_dict_is_plain_data(self):
        """Serialized window uses ISO strings"""
        data = current_cycle(utc(2025, 10, 1), 6, as_of=utc(2026, 3, 31)).to_dict()
        assert data["start"] == "2025-10-01T00:00:00+00:00"
        assert data["days_remaining"] == 1


class TestCycleLength:

    def test_months(self):
        assert cycle_length_months(6, "months") == 6

    def test_years(self):
        assert cycle_length_months(2, "Years") == 24

    def test_unknown_unit(self):
        with pytest.raises(ValueError):
            cycle_length_months(1, "weeks")


class TestToUtc:

    def test_iso_string_with_z(self):
        assert to_utc("2026-04-01T00:00:00Z") == utc(2026, 4, 1)

    def test_offset_converted(self):
        assert to_utc("2026-04-01T05:30:00+05:30") == utc(2026, 4, 1)
