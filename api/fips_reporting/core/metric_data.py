"""Persistence of reported metric values and per-product completion status.

Values are upserted on (metric_id, product_id, reporting_period), which is
also a unique constraint on performance_metric_data. An insert that loses a
race against a concurrent insert of the same key falls back to updating the
row that won.
"""
import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from fips_reporting.core.reporting_status import (
    PerformanceStatus,
    RecordedValue,
    calculate_performance_status,
    count_completed,
)
from fips_reporting.core.time import utc_now
from fips_reporting.models.performance_metric import PerformanceMetric, PerformanceMetricData

logger = logging.getLogger(__name__)


def get_enabled_metrics(db: Session) -> List[PerformanceMetric]:
    return db.query(PerformanceMetric).filter(
        PerformanceMetric.enabled == True
    ).order_by(PerformanceMetric.category, PerformanceMetric.name).all()


def get_metric_data_for_product(db: Session, product_id: str, reporting_period: str) -> List[PerformanceMetricData]:
    return db.query(PerformanceMetricData).options(
        joinedload(PerformanceMetricData.metric)
    ).filter(
        PerformanceMetricData.product_id == product_id,
        PerformanceMetricData.reporting_period == reporting_period
    ).all()


def _find_row(db: Session, metric_id: int, product_id: str, reporting_period: str) -> Optional[PerformanceMetricData]:
    return db.query(PerformanceMetricData).filter(
        PerformanceMetricData.metric_id == metric_id,
        PerformanceMetricData.product_id == product_id,
        PerformanceMetricData.reporting_period == reporting_period
    ).first()


def _apply_values(
    row: PerformanceMetricData,
    value: Optional[str],
    is_null_return: bool,
    comment: Optional[str],
    submitted_by: str,
) -> None:
    now = utc_now()
    row.value = value
    row.is_null_return = is_null_return
    row.comment = comment
    row.submitted_by = submitted_by
    row.submitted_at = now
    row.updated_at = now


def save_metric_value(
    db: Session,
    metric_id: int,
    product_id: str,
    reporting_period: str,
    value: Optional[str],
    is_null_return: bool,
    submitted_by: str,
    comment: Optional[str] = None,
) -> PerformanceMetricData:
    """
    Create or update the single value row for a metric, product and period.

    The caller is expected to have validated the value and to commit.

    Args:
        db: Database session
        metric_id: Performance metric being reported
        product_id: FIPS product id
        reporting_period: Period key, e.g. "2025-august"
        value: Raw value (stored as entered)
        is_null_return: True when reported as not applicable
        submitted_by: Email of the reporting user
        comment: Optional free-text comment

    Returns:
        The stored row
    """
    row = _find_row(db, metric_id, product_id, reporting_period)
    if row is not None:
        _apply_values(row, value, is_null_return, comment, submitted_by)
        db.flush()
        return row

    row = PerformanceMetricData(
        metric_id=metric_id,
        product_id=product_id,
        reporting_period=reporting_period,
    )
    _apply_values(row, value, is_null_return, comment, submitted_by)
    row.created_at = row.updated_at
    try:
        with db.begin_nested():
            db.add(row)
    except IntegrityError:
        logger.warning(
            "Concurrent insert for metric_id=%s product_id=%s period=%s; updating existing row.",
            metric_id, product_id, reporting_period
        )
        row = _find_row(db, metric_id, product_id, reporting_period)
        if row is None:
            raise
        _apply_values(row, value, is_null_return, comment, submitted_by)
        db.flush()
    return row


def calculate_product_status(
    enabled_metrics: List[PerformanceMetric],
    rows: List[PerformanceMetricData],
) -> tuple[int, int, PerformanceStatus]:
    """Return (completed, total, status) for one product's rows in one period."""
    enabled_ids = [m.metric_id for m in enabled_metrics]
    completed = count_completed(
        (RecordedValue(metric_id=r.metric_id, value=r.value, is_null_return=r.is_null_return) for r in rows),
        enabled_metric_ids=enabled_ids,
    )
    total = len(enabled_ids)
    return completed, total, calculate_performance_status(completed, total)


def get_product_performance_status(db: Session, product_id: str, reporting_period: str) -> PerformanceStatus:
    _, _, status = calculate_product_status(
        get_enabled_metrics(db),
        get_metric_data_for_product(db, product_id, reporting_period),
    )
    return status


def is_product_submitted(rows: List[PerformanceMetricData]) -> bool:
    return any(r.is_submitted for r in rows)
