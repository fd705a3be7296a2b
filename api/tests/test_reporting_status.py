"""Tests for completion, submission and due-date status derivation."""
import pytest
from datetime import date, timedelta

from fips_reporting.core.reporting_status import (
    DueDateStatus,
    PerformanceStatus,
    RecordedValue,
    ReturnState,
    SubmissionStatus,
    calculate_completion_count,
    calculate_due_date_status,
    calculate_overall_submission_status,
    calculate_performance_status,
    calculate_submission_status,
    count_completed,
    derive_return_state,
)


class TestCountCompleted:

    def test_counts_values_and_null_returns(self):
        rows = [
            RecordedValue(metric_id=1, value="10"),
            RecordedValue(metric_id=2, value="", is_null_return=True),
            RecordedValue(metric_id=3, value=""),
            RecordedValue(metric_id=4, value=None),
        ]
        assert count_completed(rows) == 2

    def test_ignores_rows_for_metrics_not_enabled(self):
        rows = [
            RecordedValue(metric_id=1, value="10"),
            RecordedValue(metric_id=99, value="x"),
        ]
        assert count_completed(rows, enabled_metric_ids=[1, 2]) == 1


class TestPerformanceStatus:

    def test_not_started(self):
        assert calculate_performance_status(0, 10) == PerformanceStatus.NOT_STARTED

    def test_in_progress(self):
        assert calculate_performance_status(3, 10) == PerformanceStatus.IN_PROGRESS

    def test_complete(self):
        assert calculate_performance_status(10, 10) == PerformanceStatus.COMPLETE

    def test_no_metrics_is_not_started(self):
        assert calculate_performance_status(0, 0) == PerformanceStatus.NOT_STARTED

    def test_completed_above_total_is_complete(self):
        assert calculate_performance_status(11, 10) == PerformanceStatus.COMPLETE

    def test_status_strings(self):
        assert PerformanceStatus.IN_PROGRESS.value == "In progress"
        assert SubmissionStatus.READY_TO_SUBMIT.value == "Ready to submit"
        assert DueDateStatus.DUE_SOON.value == "Due soon"

    @pytest.mark.parametrize("total", [1, 5, 10])
    def test_monotonic_in_completed_count(self, total):
        order = [PerformanceStatus.NOT_STARTED, PerformanceStatus.IN_PROGRESS, PerformanceStatus.COMPLETE]
        ranks = [order.index(calculate_performance_status(c, total)) for c in range(total + 2)]
        assert ranks == sorted(ranks)


class TestSubmissionStatus:

    def test_ten_of_ten_then_submitted(self):
        rows = [RecordedValue(metric_id=i, value=str(i)) for i in range(10)]
        performance = calculate_performance_status(count_completed(rows), 10)
        assert performance == PerformanceStatus.COMPLETE
        assert calculate_submission_status(performance, False) == SubmissionStatus.READY_TO_SUBMIT
        assert calculate_submission_status(performance, True) == SubmissionStatus.SUBMITTED

    @pytest.mark.parametrize("performance", list(PerformanceStatus))
    def test_submitted_overrides_completeness(self, performance):
        assert calculate_submission_status(performance, True) == SubmissionStatus.SUBMITTED

    def test_incomplete_cannot_submit(self):
        assert calculate_submission_status(PerformanceStatus.IN_PROGRESS, False) == SubmissionStatus.CANNOT_SUBMIT


class TestCompletionCount:

    def test_counts_complete_products(self):
        statuses = [PerformanceStatus.COMPLETE, PerformanceStatus.IN_PROGRESS, PerformanceStatus.COMPLETE]
        assert calculate_completion_count(statuses) == (2, 3)

    def test_no_products(self):
        assert calculate_completion_count([]) == (0, 0)

    def test_overall_status(self):
        assert calculate_overall_submission_status(2, 2, False) == SubmissionStatus.READY_TO_SUBMIT
        assert calculate_overall_submission_status(1, 2, False) == SubmissionStatus.CANNOT_SUBMIT
        assert calculate_overall_submission_status(0, 0, False) == SubmissionStatus.CANNOT_SUBMIT
        assert calculate_overall_submission_status(0, 2, True) == SubmissionStatus.SUBMITTED


class TestDueDateStatus:
    """Date-only comparison with an inclusive seven-day window."""

    due = date(2025, 9, 7)

    def test_overdue_day_after(self):
        assert calculate_due_date_status(self.due, today=date(2025, 9, 8), due_soon_days=7) == DueDateStatus.OVERDUE

    def test_due_on_the_day(self):
        assert calculate_due_date_status(self.due, today=self.due, due_soon_days=7) == DueDateStatus.DUE_SOON

    def test_exactly_seven_days_before_is_due_soon(self):
        today = self.due - timedelta(days=7)
        assert calculate_due_date_status(self.due, today=today, due_soon_days=7) == DueDateStatus.DUE_SOON

    def test_eight_days_before_is_upcoming(self):
        today = self.due - timedelta(days=8)
        assert calculate_due_date_status(self.due, today=today, due_soon_days=7) == DueDateStatus.UPCOMING

    def test_default_window_from_settings(self):
        today = self.due - timedelta(days=7)
        assert calculate_due_date_status(self.due, today=today) == DueDateStatus.DUE_SOON


class TestReturnState:

    def test_no_products(self):
        assert derive_return_state([], False) == ReturnState.NOT_STARTED

    def test_nothing_entered(self):
        statuses = [PerformanceStatus.NOT_STARTED, PerformanceStatus.NOT_STARTED]
        assert derive_return_state(statuses, False) == ReturnState.NOT_STARTED

    def test_partially_entered(self):
        statuses = [PerformanceStatus.IN_PROGRESS, PerformanceStatus.NOT_STARTED]
        assert derive_return_state(statuses, False) == ReturnState.IN_PROGRESS

    def test_one_complete_one_not_started(self):
        statuses = [PerformanceStatus.COMPLETE, PerformanceStatus.NOT_STARTED]
        assert derive_return_state(statuses, False) == ReturnState.IN_PROGRESS

    def test_all_complete(self):
        statuses = [PerformanceStatus.COMPLETE, PerformanceStatus.COMPLETE]
        assert derive_return_state(statuses, False) == ReturnState.COMPLETE

    def test_submitted(self):
        assert derive_return_state([PerformanceStatus.IN_PROGRESS], True) == ReturnState.SUBMITTED
