"""Tests for the per-weekday business hours policy."""

from datetime import date, time

import pytest

from app.services.calendar_policy import (
    CLOSED,
    DEFAULT_POLICY,
    BusinessHours,
    hours_for,
    hours_on,
    load_policy,
    parse_hours,
    weekday_of,
)


class TestDefaultPolicy:
    def test_saturday_is_closed(self):
        assert hours_for(6) == CLOSED

    def test_weekdays_open_eight_to_seven(self):
        for weekday in (0, 1, 2, 3, 4):
            hours = hours_for(weekday)
            assert hours.open
            assert hours.start == time(8, 0)
            assert hours.end == time(19, 0)

    def test_friday_is_a_short_day(self):
        friday = hours_for(5)
        assert friday.open
        assert friday.end == time(17, 0)

    def test_policy_covers_every_weekday(self):
        assert sorted(DEFAULT_POLICY) == list(range(7))

    def test_out_of_range_weekday_rejected(self):
        with pytest.raises(ValueError):
            hours_for(7)


class TestWeekdayOf:
    def test_sunday_is_zero(self):
        assert weekday_of(date(2026, 10, 25)) == 0

    def test_saturday_is_six(self):
        assert weekday_of(date(2026, 10, 24)) == 6

    def test_monday_is_one(self):
        assert weekday_of(date(2026, 10, 19)) == 1

    def test_hours_on_uses_sunday_first_index(self):
        assert hours_on(date(2026, 10, 24)) == CLOSED


class TestParsing:
    def test_parse_range(self):
        assert parse_hours("09:30-16:00") == BusinessHours(True, time(9, 30), time(16, 0))

    def test_parse_closed_is_case_insensitive(self):
        assert parse_hours(" Closed ") == CLOSED

    def test_missing_separator_rejected(self):
        with pytest.raises(ValueError):
            parse_hours("0900")

    def test_start_after_end_rejected(self):
        with pytest.raises(ValueError):
            parse_hours("19:00-08:00")

    def test_missing_weekdays_default_to_closed(self):
        policy = load_policy({"1": "08:00-12:00"})
        assert policy[1].open
        assert all(policy[w] == CLOSED for w in (0, 2, 3, 4, 5, 6))

    def test_invalid_weekday_key_rejected(self):
        with pytest.raises(ValueError):
            load_policy({"7": "08:00-12:00"})

    def test_custom_policy_overrides_default(self):
        policy = load_policy({"6": "10:00-14:00"})
        assert hours_for(6, policy).start == time(10, 0)


class TestBusinessHoursInvariants:
    def test_closed_day_cannot_have_times(self):
        with pytest.raises(ValueError):
            BusinessHours(open=False, start=time(8, 0), end=time(9, 0))

    def test_open_day_needs_both_times(self):
        with pytest.raises(ValueError):
            BusinessHours(open=True, start=time(8, 0))

    def test_off_grid_hours_rejected(self):
        with pytest.raises(ValueError):
            parse_hours("08:15-10:00")

    def test_off_grid_closing_time_rejected(self):
        with pytest.raises(ValueError):
            BusinessHours(open=True, start=time(8, 0), end=time(17, 45))


class TestEmptyPolicy:
    def test_empty_policy_means_closed_not_default(self):
        assert all(hours_for(weekday, {}) == CLOSED for weekday in range(7))
