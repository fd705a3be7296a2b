"""Reporting period keys, labels and due dates.

A reporting period is one calendar month, keyed as "<year>-<lowercase month
name>" (e.g. "2025-august"). A return for a month is due on
settings.SUBMISSION_DUE_DAY of the following month.
"""
import calendar
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Union

from dateutil.relativedelta import relativedelta

from fips_reporting.core.config import settings
from fips_reporting.core.errors import InvalidReportingPeriodError
from fips_reporting.core.reporting_status import DueDateStatus, calculate_due_date_status
from fips_reporting.core.time import utc_today

MONTH_NAMES = [calendar.month_name[i].lower() for i in range(1, 13)]
MONTH_ABBREVIATIONS = [calendar.month_abbr[i].lower() for i in range(1, 13)]

MAX_PERIOD_KEY_LENGTH = 20


@dataclass(frozen=True)
class ReportingPeriodInfo:
    """A reporting period with its display strings and due-date status."""
    key: str
    year: int
    month: int
    display_name: str
    period_label: str
    due_date: date
    due_date_status: DueDateStatus


def resolve_month(month: Union[str, int]) -> int:
    """Resolve a month name, abbreviation or number (1-12) to its number."""
    if isinstance(month, int):
        number = month
    else:
        text = (month or "").strip().lower()
        if text.isdigit():
            number = int(text)
        elif text in MONTH_NAMES:
            return MONTH_NAMES.index(text) + 1
        elif text in MONTH_ABBREVIATIONS:
            return MONTH_ABBREVIATIONS.index(text) + 1
        else:
            raise InvalidReportingPeriodError(f"Unknown month: {month!r}")
    if not 1 <= number <= 12:
        raise InvalidReportingPeriodError(f"Month out of range: {month!r}")
    return number


def _validate_year(year: int) -> int:
    if not 2000 <= year <= 9999:
        raise InvalidReportingPeriodError(f"Year out of range: {year!r}")
    return year


def build_reporting_period(year: int, month: Union[str, int]) -> str:
    """Build the period key, e.g. (2025, "August") -> "2025-august"."""
    year = _validate_year(year)
    return f"{year}-{MONTH_NAMES[resolve_month(month) - 1]}"


def parse_reporting_period(key: str) -> tuple[int, int]:
    """Split a period key into (year, month number)."""
    year_text, _, month_text = (key or "").strip().partition("-")
    if not year_text.isdigit() or not month_text:
        raise InvalidReportingPeriodError(f"Malformed reporting period: {key!r}")
    return _validate_year(int(year_text)), resolve_month(month_text)


def get_display_name(year: int, month: Union[str, int]) -> str:
    """E.g. "August 2025"."""
    return f"{calendar.month_name[resolve_month(month)]} {year}"


def get_period_label(year: int, month: Union[str, int]) -> str:
    """E.g. "1 to 31 August"."""
    number = resolve_month(month)
    days = calendar.monthrange(year, number)[1]
    return f"1 to {days} {calendar.month_name[number]}"


def get_due_date(year: int, month: Union[str, int]) -> date:
    """Due date of a month's return: SUBMISSION_DUE_DAY of the following month."""
    first_of_month = date(_validate_year(year), resolve_month(month), 1)
    return first_of_month + relativedelta(months=1, day=settings.SUBMISSION_DUE_DAY)


def get_period_info(year: int, month: Union[str, int], today: Optional[date] = None) -> ReportingPeriodInfo:
    number = resolve_month(month)
    due_date = get_due_date(year, number)
    return ReportingPeriodInfo(
        key=build_reporting_period(year, number),
        year=year,
        month=number,
        display_name=get_display_name(year, number),
        period_label=get_period_label(year, number),
        due_date=due_date,
        due_date_status=calculate_due_date_status(due_date, today=today),
    )


def list_reporting_periods(today: Optional[date] = None, count: Optional[int] = None) -> List[ReportingPeriodInfo]:
    """The most recent closed months that can be reported on, newest first."""
    today = today or utc_today()
    count = settings.REPORTING_PERIODS_SHOWN if count is None else count
    first_of_current = today.replace(day=1)
    periods = []
    for offset in range(1, count + 1):
        month_start = first_of_current - relativedelta(months=offset)
        periods.append(get_period_info(month_start.year, month_start.month, today=today))
    return periods
