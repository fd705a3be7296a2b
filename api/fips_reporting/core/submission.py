"""Submission of monthly returns.

A return is a user's set of allocated products for one reporting period.
It is submitted as a whole (a ReportSubmission row per user and period) and
each product may also be submitted on its own, which locks its value rows
through PerformanceMetricData.is_submitted.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fips_reporting.core.errors import ProductNotCompleteError, ReturnNotReadyError
from fips_reporting.core.metric_data import (
    calculate_product_status,
    get_enabled_metrics,
    get_metric_data_for_product,
    is_product_submitted,
)
from fips_reporting.core.reporting_status import (
    PerformanceStatus,
    ReturnState,
    SubmissionStatus,
    calculate_completion_count,
    calculate_overall_submission_status,
    calculate_submission_status,
    derive_return_state,
)
from fips_reporting.core.time import utc_now
from fips_reporting.models.performance_metric import PerformanceMetricData
from fips_reporting.models.reporting import ReportSubmission, SubmissionRecordStatus
from fips_reporting.services.product_directory import (
    AssignedProduct,
    get_product_owners,
    get_products_for_user,
)

logger = logging.getLogger(__name__)


@dataclass
class ProductReturnStatus:
    product_id: str
    product_name: str
    phase: Optional[str]
    completed_metrics: int
    total_metrics: int
    performance_status: PerformanceStatus
    submission_status: SubmissionStatus


@dataclass
class ReturnSummary:
    """Status of a user's return for one period across all allocated products."""
    reporting_period: str
    products: List[ProductReturnStatus] = field(default_factory=list)
    completed_products: int = 0
    total_products: int = 0
    is_submitted: bool = False
    submission_status: SubmissionStatus = SubmissionStatus.CANNOT_SUBMIT
    state: ReturnState = ReturnState.NOT_STARTED
    submitted_at: Optional[datetime] = None

    @property
    def incomplete_products(self) -> List[str]:
        return [
            p.product_id for p in self.products
            if p.performance_status != PerformanceStatus.COMPLETE
        ]


def get_submission_record(db: Session, user_email: str, reporting_period: str) -> Optional[ReportSubmission]:
    return db.query(ReportSubmission).filter(
        func.lower(ReportSubmission.user_email) == user_email.strip().lower(),
        ReportSubmission.reporting_period == reporting_period
    ).first()


def is_report_submitted(db: Session, user_email: str, reporting_period: str) -> bool:
    record = get_submission_record(db, user_email, reporting_period)
    return record is not None and record.status == SubmissionRecordStatus.SUBMITTED.value


def is_product_return_submitted(db: Session, product_id: str, reporting_period: str) -> bool:
    """True when a user the product is allocated to has submitted their return."""
    return any(
        is_report_submitted(db, owner, reporting_period)
        for owner in get_product_owners(db, product_id)
    )


def get_product_status(
    db: Session,
    product: AssignedProduct,
    reporting_period: str,
    enabled_metrics=None,
    return_submitted: bool = False,
) -> ProductReturnStatus:
    """Completion and submission status of one product. A submitted return marks all its products Submitted."""
    if enabled_metrics is None:
        enabled_metrics = get_enabled_metrics(db)
    rows = get_metric_data_for_product(db, product.product_id, reporting_period)
    completed, total, performance_status = calculate_product_status(enabled_metrics, rows)
    return ProductReturnStatus(
        product_id=product.product_id,
        product_name=product.product_name,
        phase=product.phase,
        completed_metrics=completed,
        total_metrics=total,
        performance_status=performance_status,
        submission_status=calculate_submission_status(
            performance_status, return_submitted or is_product_submitted(rows)
        ),
    )


def get_return_summary(
    db: Session,
    user_email: str,
    reporting_period: str,
    products: Optional[Sequence[AssignedProduct]] = None,
) -> ReturnSummary:
    """
    Build the status of a user's return for a period.

    Args:
        db: Database session
        user_email: Email of the reporting user
        reporting_period: Period key, e.g. "2025-august"
        products: Allocated products; looked up from the directory when omitted

    Returns:
        ReturnSummary with per-product statuses and the overall status
    """
    if products is None:
        products = get_products_for_user(db, user_email)

    record = get_submission_record(db, user_email, reporting_period)
    submitted = record is not None and record.status == SubmissionRecordStatus.SUBMITTED.value

    enabled_metrics = get_enabled_metrics(db)
    statuses = [
        get_product_status(
            db, product, reporting_period,
            enabled_metrics=enabled_metrics, return_submitted=submitted
        )
        for product in products
    ]
    completed, total = calculate_completion_count(s.performance_status for s in statuses)

    return ReturnSummary(
        reporting_period=reporting_period,
        products=statuses,
        completed_products=completed,
        total_products=total,
        is_submitted=submitted,
        submission_status=calculate_overall_submission_status(completed, total, submitted),
        state=derive_return_state((s.performance_status for s in statuses), submitted),
        submitted_at=record.submitted_at if submitted else None,
    )


def _mark_rows_submitted(db: Session, product_ids: Sequence[str], reporting_period: str) -> int:
    if not product_ids:
        return 0
    rows = db.query(PerformanceMetricData).filter(
        PerformanceMetricData.product_id.in_(list(product_ids)),
        PerformanceMetricData.reporting_period == reporting_period
    ).all()
    for row in rows:
        row.is_submitted = True
    return len(rows)


def _apply_submission(record: ReportSubmission, submitted_at: datetime, submitted_by: str) -> None:
    record.status = SubmissionRecordStatus.SUBMITTED.value
    record.submitted_at = submitted_at
    record.submitted_by = submitted_by


def _record_submission(db: Session, user_email: str, reporting_period: str, submitted_by: str) -> ReportSubmission:
    """Create or refresh the single submission record for a user and period.

    An insert that loses a race against a concurrent submit of the same return
    falls back to refreshing the record that won.
    """
    now = utc_now()
    record = get_submission_record(db, user_email, reporting_period)
    if record is not None:
        logger.info("Resubmitting return for %s, period %s", user_email, reporting_period)
        _apply_submission(record, now, submitted_by)
        return record

    record = ReportSubmission(
        user_email=user_email.strip().lower(),
        reporting_period=reporting_period,
    )
    _apply_submission(record, now, submitted_by)
    try:
        with db.begin_nested():
            db.add(record)
    except IntegrityError:
        logger.warning(
            "Concurrent submit for %s, period %s; updating existing record.",
            user_email, reporting_period
        )
        record = get_submission_record(db, user_email, reporting_period)
        if record is None:
            raise
        _apply_submission(record, now, submitted_by)
    return record


def submit_return(db: Session, user_email: str, reporting_period: str, submitted_by: str) -> ReportSubmission:
    """
    Submit a user's whole return for a period.

    Every allocated product must be Complete and at least one product must be
    allocated; otherwise ReturnNotReadyError is raised and nothing changes.
    Resubmitting refreshes the existing record. The caller commits.
    """
    summary = get_return_summary(db, user_email, reporting_period)
    if summary.total_products == 0 or summary.incomplete_products:
        raise ReturnNotReadyError(reporting_period, summary.incomplete_products)

    record = _record_submission(db, user_email, reporting_period, submitted_by)

    locked = _mark_rows_submitted(db, [p.product_id for p in summary.products], reporting_period)
    db.flush()
    logger.info(
        "Return submitted for %s, period %s (%d products, %d values locked)",
        user_email, reporting_period, summary.total_products, locked
    )
    return record


def submit_product(db: Session, user_email: str, reporting_period: str, product: AssignedProduct) -> int:
    """Submit one product's values. Raises ProductNotCompleteError unless Complete.

    Returns the number of value rows locked. The caller commits.
    """
    status = get_product_status(db, product, reporting_period)
    if status.performance_status != PerformanceStatus.COMPLETE:
        raise ProductNotCompleteError(product.product_id, status.performance_status.value)

    locked = _mark_rows_submitted(db, [product.product_id], reporting_period)
    db.flush()
    logger.info(
        "Product %s submitted by %s for period %s (%d values locked)",
        product.product_id, user_email, reporting_period, locked
    )
    return locked
