"""Tests for calendar-month arithmetic."""

from datetime import datetime, timedelta, timezone

from utils.dates import add_months, months_between


def _utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class TestMonthsBetween:
    def test_same_day_of_month(self):
        assert months_between(_utc(2024, 1, 15), _utc(2024, 4, 15)) == 3

    def test_month_not_complete_until_day_reached(self):
        assert months_between(_utc(2024, 1, 15), _utc(2024, 4, 14)) == 2

    def test_time_of_day_counts(self):
        assert months_between(_utc(2024, 1, 15, 12), _utc(2024, 2, 15, 11)) == 0
        assert months_between(_utc(2024, 1, 15, 12), _utc(2024, 2, 15, 12)) == 1

    def test_end_of_month(self):
        assert months_between(_utc(2024, 1, 31), _utc(2024, 2, 29)) == 0
        assert months_between(_utc(2024, 1, 31), _utc(2024, 3, 31)) == 2

    def test_across_years(self):
        assert months_between(_utc(2023, 11, 1), _utc(2024, 2, 1)) == 3

    def test_same_instant(self):
        assert months_between(_utc(2024, 6, 15), _utc(2024, 6, 15)) == 0

    def test_negative_when_end_first(self):
        assert months_between(_utc(2024, 4, 15), _utc(2024, 1, 15)) == -3
        assert months_between(_utc(2024, 4, 15), _utc(2024, 1, 16)) == -2

    def test_other_timezones_normalized(self):
        plus9 = timezone(timedelta(hours=9))
        # 2024-02-01 02:00 +09:00 is still 2024-01-31 in UTC
        assert months_between(_utc(2024, 1, 1), datetime(2024, 2, 1, 2, tzinfo=plus9)) == 0

    def test_naive_taken_as_utc(self):
        assert months_between(datetime(2024, 1, 1), _utc(2024, 3, 1)) == 2


class TestAddMonths:
    def test_simple(self):
        assert add_months(_utc(2024, 6, 15), 3) == _utc(2024, 9, 15)

    def test_year_rollover(self):
        assert add_months(_utc(2024, 11, 15), 3) == _utc(2025, 2, 15)

    def test_clamps_day(self):
        assert add_months(_utc(2024, 1, 31), 1) == _utc(2024, 2, 29)
        assert add_months(_utc(2023, 1, 31), 1) == _utc(2023, 2, 28)

    def test_negative(self):
        assert add_months(_utc(2024, 3, 15), -3) == _utc(2023, 12, 15)

    def test_keeps_time(self):
        assert add_months(_utc(2024, 6, 15, 12, 30), 1) == _utc(2024, 7, 15, 12, 30)
