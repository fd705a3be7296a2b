"""Completion, submission and due-date status derivation for monthly returns.

Statuses are recomputed from the stored metric definitions and values on
every read rather than persisted. Everything here is pure; the callers in
core.metric_data and core.submission load the rows.
"""
import enum
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional

from fips_reporting.core.config import settings
from fips_reporting.core.time import utc_today


class PerformanceStatus(str, enum.Enum):
    """Completion of a product's metrics for one period."""
    NOT_STARTED = "Not started"
    IN_PROGRESS = "In progress"
    COMPLETE = "Complete"


class SubmissionStatus(str, enum.Enum):
    """Whether a product or return can be, or has been, submitted."""
    CANNOT_SUBMIT = "Cannot submit"
    READY_TO_SUBMIT = "Ready to submit"
    SUBMITTED = "Submitted"


class DueDateStatus(str, enum.Enum):
    OVERDUE = "Overdue"
    DUE_SOON = "Due soon"
    UPCOMING = "Upcoming"


class ReturnState(str, enum.Enum):
    """Lifecycle of a (user, period) return: NOT_STARTED -> IN_PROGRESS -> COMPLETE -> SUBMITTED."""
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETE = "COMPLETE"
    SUBMITTED = "SUBMITTED"


@dataclass(frozen=True)
class RecordedValue:
    """The parts of a stored value row that decide completion."""
    metric_id: int
    value: Optional[str] = None
    is_null_return: bool = False

    @property
    def is_complete(self) -> bool:
        return bool(self.value) or self.is_null_return


def count_completed(
    recorded_values: Iterable[RecordedValue],
    enabled_metric_ids: Optional[Iterable[int]] = None,
) -> int:
    """Count rows with a non-empty value or a null return.

    When enabled_metric_ids is given, rows for other (disabled or deleted)
    metrics are ignored so they cannot push a product past its total.
    """
    allowed = set(enabled_metric_ids) if enabled_metric_ids is not None else None
    return sum(
        1 for recorded in recorded_values
        if recorded.is_complete and (allowed is None or recorded.metric_id in allowed)
    )


def calculate_performance_status(completed_count: int, total_count: int) -> PerformanceStatus:
    """Derive a product's performance status from its completion counts.

    No metrics defined means nothing to complete, which reads as Not started.
    A completed count at or above the total is Complete.
    """
    if total_count <= 0 or completed_count <= 0:
        return PerformanceStatus.NOT_STARTED
    if completed_count >= total_count:
        return PerformanceStatus.COMPLETE
    return PerformanceStatus.IN_PROGRESS


def calculate_submission_status(
    performance_status: PerformanceStatus,
    already_submitted: bool,
) -> SubmissionStatus:
    """Submitted overrides everything; otherwise only a Complete product is ready."""
    if already_submitted:
        return SubmissionStatus.SUBMITTED
    if performance_status == PerformanceStatus.COMPLETE:
        return SubmissionStatus.READY_TO_SUBMIT
    return SubmissionStatus.CANNOT_SUBMIT


def calculate_completion_count(product_statuses: Iterable[PerformanceStatus]) -> tuple[int, int]:
    """Return (completed, total) products, where completed means Complete."""
    statuses = list(product_statuses)
    completed = sum(1 for s in statuses if s == PerformanceStatus.COMPLETE)
    return completed, len(statuses)


def calculate_overall_submission_status(
    completed: int,
    total: int,
    already_submitted: bool,
) -> SubmissionStatus:
    """Submission status of a user's whole return across all assigned products."""
    if already_submitted:
        return SubmissionStatus.SUBMITTED
    if total > 0 and completed == total:
        return SubmissionStatus.READY_TO_SUBMIT
    return SubmissionStatus.CANNOT_SUBMIT


def calculate_due_date_status(
    due_date: date,
    today: Optional[date] = None,
    due_soon_days: Optional[int] = None,
) -> DueDateStatus:
    """Classify a due date relative to today (date-only comparison).

    Exactly due_soon_days before the due date still counts as Due soon.
    """
    today = today or utc_today()
    window = settings.DUE_SOON_DAYS if due_soon_days is None else due_soon_days
    if today > due_date:
        return DueDateStatus.OVERDUE
    if today + timedelta(days=window) >= due_date:
        return DueDateStatus.DUE_SOON
    return DueDateStatus.UPCOMING


def derive_return_state(
    product_statuses: Iterable[PerformanceStatus],
    already_submitted: bool,
) -> ReturnState:
    """Place a return in its lifecycle from the statuses of its products."""
    if already_submitted:
        return ReturnState.SUBMITTED
    statuses = list(product_statuses)
    if statuses and all(s == PerformanceStatus.COMPLETE for s in statuses):
        return ReturnState.COMPLETE
    if any(s != PerformanceStatus.NOT_STARTED for s in statuses):
        return ReturnState.IN_PROGRESS
    return ReturnState.NOT_STARTED
