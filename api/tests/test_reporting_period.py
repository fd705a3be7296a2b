"""Tests for reporting period keys, labels and due dates."""
import pytest
from datetime import date

from fips_reporting.core.errors import InvalidReportingPeriodError
from fips_reporting.core.reporting_period import (
    build_reporting_period,
    get_display_name,
    get_due_date,
    get_period_info,
    get_period_label,
    list_reporting_periods,
    parse_reporting_period,
    resolve_month,
)
from fips_reporting.core.reporting_status import DueDateStatus


class TestPeriodKeys:

    @pytest.mark.parametrize("month", ["August", "august", "Aug", "8", 8])
    def test_build_key(self, month):
        assert build_reporting_period(2025, month) == "2025-august"

    def test_parse_key(self):
        assert parse_reporting_period("2025-august") == (2025, 8)

    @pytest.mark.parametrize("key", ["", "august-2025", "2025-", "2025-smarch", "1999-january"])
    def test_parse_invalid_key(self, key):
        with pytest.raises(InvalidReportingPeriodError):
            parse_reporting_period(key)

    @pytest.mark.parametrize("month", ["13", 0, "Smarch"])
    def test_resolve_invalid_month(self, month):
        with pytest.raises(InvalidReportingPeriodError):
            resolve_month(month)


class TestLabels:

    def test_display_name(self):
        assert get_display_name(2025, "august") == "August 2025"

    def test_period_label_leap_year(self):
        assert get_period_label(2024, 2) == "1 to 29 February"

    def test_period_label_thirty_day_month(self):
        assert get_period_label(2025, "september") == "1 to 30 September"


class TestDueDates:

    def test_due_seventh_of_following_month(self):
        assert get_due_date(2025, "august") == date(2025, 9, 7)

    def test_december_rolls_into_next_year(self):
        assert get_due_date(2024, 12) == date(2025, 1, 7)

    def test_period_info(self):
        info = get_period_info(2025, "August", today=date(2025, 9, 1))
        assert info.key == "2025-august"
        assert info.display_name == "August 2025"
        assert info.due_date == date(2025, 9, 7)
        assert info.due_date_status == DueDateStatus.DUE_SOON

    def test_period_info_overdue(self):
        info = get_period_info(2025, 8, today=date(2025, 9, 8))
        assert info.due_date_status == DueDateStatus.OVERDUE


class TestListPeriods:

    def test_previous_months_newest_first(self):
        periods = list_reporting_periods(today=date(2025, 1, 15), count=3)
        assert [p.key for p in periods] == ["2024-december", "2024-november", "2024-october"]

    def test_default_count_from_settings(self):
        assert len(list_reporting_periods(today=date(2025, 6, 1))) == 3
