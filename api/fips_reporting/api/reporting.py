"""Monthly reporting routes: periods, returns, metric value entry and submission."""
import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from fips_reporting.core.database import get_db
from fips_reporting.core.deps import get_current_user, require_write_access, resolve_product
from fips_reporting.core.errors import (
    InvalidReportingPeriodError,
    ProductNotCompleteError,
    ReturnNotReadyError,
)
from fips_reporting.core.metric_data import (
    calculate_product_status,
    get_enabled_metrics,
    get_metric_data_for_product,
    is_product_submitted,
    save_metric_value,
)
from fips_reporting.core.metric_validation import (
    UnknownMeasureError,
    load_metric_definition,
    validate_metric_value,
)
from fips_reporting.core.reporting_period import ReportingPeriodInfo, get_period_info, list_reporting_periods
from fips_reporting.core.reporting_status import RecordedValue, SubmissionStatus, calculate_submission_status
from fips_reporting.core.submission import (
    get_return_summary,
    is_product_return_submitted,
    submit_product,
    submit_return,
)
from fips_reporting.models.audit_log import AuditLog
from fips_reporting.models.performance_metric import PerformanceMetric
from fips_reporting.models.user import User
from fips_reporting.schemas.reporting import (
    MetricValueResponse,
    MetricValueSave,
    MonthOverviewResponse,
    ProductPerformanceResponse,
    ProductSubmitResponse,
    ReportingPeriodResponse,
    ReturnSubmitResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def create_audit_log(db: Session, entity_type: str, entity_id: int, action: str, user_id: int, changes: dict = None):
    """Create an audit log entry for value saves and submissions."""
    audit_log = AuditLog(
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        user_id=user_id,
        changes=changes
    )
    db.add(audit_log)


def _resolve_period(year: int, month: str) -> ReportingPeriodInfo:
    try:
        return get_period_info(year, month)
    except InvalidReportingPeriodError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )


@router.get("/periods", response_model=List[ReportingPeriodResponse])
def list_periods(
    current_user: User = Depends(get_current_user)
):
    """Recent reporting periods with their due dates, newest first."""
    return list_reporting_periods()


@router.get("/{year}/{month}", response_model=MonthOverviewResponse)
def get_month_overview(
    year: int,
    month: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """The caller's return for a month: due date, product statuses and submission state."""
    period = _resolve_period(year, month)
    summary = get_return_summary(db, current_user.email, period.key)

    return {
        "period": period,
        "completed_products": summary.completed_products,
        "total_products": summary.total_products,
        "is_submitted": summary.is_submitted,
        "submitted_at": summary.submitted_at,
        "submission_status": summary.submission_status,
        "state": summary.state,
        "products": summary.products,
    }


@router.get("/{year}/{month}/products/{fips_id}", response_model=ProductPerformanceResponse)
def get_product_performance(
    year: int,
    month: str,
    fips_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Enabled metrics for a product with the values reported for the month."""
    period = _resolve_period(year, month)
    product = resolve_product(db, current_user, fips_id)

    enabled_metrics = get_enabled_metrics(db)
    rows = get_metric_data_for_product(db, product.product_id, period.key)
    completed, total, performance_status = calculate_product_status(enabled_metrics, rows)
    rows_by_metric = {row.metric_id: row for row in rows}

    metrics = []
    for metric in enabled_metrics:
        row = rows_by_metric.get(metric.metric_id)
        recorded = RecordedValue(
            metric_id=metric.metric_id,
            value=row.value if row else None,
            is_null_return=row.is_null_return if row else False,
        )
        metrics.append({
            "metric_id": metric.metric_id,
            "unique_id": metric.unique_id,
            "name": metric.name,
            "description": metric.description,
            "category": metric.category,
            "measure": metric.measure,
            "mandatory": metric.mandatory,
            "validation_criteria": metric.validation_criteria,
            "can_report_null_return": metric.can_report_null_return,
            "notice": metric.notice,
            "value": recorded.value,
            "comment": row.comment if row else None,
            "is_null_return": recorded.is_null_return,
            "is_complete": recorded.is_complete,
        })

    return {
        "period": period,
        "product_id": product.product_id,
        "product_name": product.product_name,
        "phase": product.phase,
        "completed_metrics": completed,
        "total_metrics": total,
        "performance_status": performance_status,
        "submission_status": calculate_submission_status(
            performance_status,
            is_product_return_submitted(db, product.product_id, period.key) or is_product_submitted(rows)
        ),
        "metrics": metrics,
    }


@router.post("/{year}/{month}/products/{fips_id}/metrics/{metric_id}", response_model=MetricValueResponse)
def save_product_metric_value(
    year: int,
    month: str,
    fips_id: str,
    metric_id: int,
    payload: MetricValueSave,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Validate and store one metric value for a product and month.

    Validation failures return 422 with the offending field, the message to
    display and the submitted value.
    """
    period = _resolve_period(year, month)
    product = resolve_product(db, current_user, fips_id, for_update=True)

    metric = db.query(PerformanceMetric).filter(
        PerformanceMetric.metric_id == metric_id,
        PerformanceMetric.enabled == True
    ).first()
    if not metric:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Performance metric not found"
        )

    try:
        definition = load_metric_definition(metric)
    except UnknownMeasureError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e)
        )

    result = validate_metric_value(definition, payload.value, payload.is_null_return)
    if not result.is_valid:
        logger.info(
            "Rejected value for metric %s, product %s, period %s: %s",
            metric.unique_id, product.product_id, period.key, result.error_message
        )
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "field": result.field_name,
                "message": result.error_message,
                "value": payload.value,
                "is_null_return": payload.is_null_return,
            }
        )

    # A null return is only recorded when the metric allows it
    is_null_return = payload.is_null_return and definition.null_return_allowed
    row = save_metric_value(
        db,
        metric_id=metric.metric_id,
        product_id=product.product_id,
        reporting_period=period.key,
        value=None if is_null_return else payload.value,
        is_null_return=is_null_return,
        submitted_by=current_user.email,
        comment=payload.comment,
    )
    create_audit_log(
        db=db,
        entity_type="PerformanceMetricData",
        entity_id=row.data_id,
        action="SAVE",
        user_id=current_user.user_id,
        changes={
            "metric_id": metric.metric_id,
            "product_id": product.product_id,
            "reporting_period": period.key,
            "is_null_return": is_null_return
        }
    )
    db.commit()
    db.refresh(row)
    logger.info(
        "Saved metric %s for product %s, period %s by %s",
        metric.unique_id, product.product_id, period.key, current_user.email
    )

    return row


@router.post("/{year}/{month}/products/{fips_id}/submit", response_model=ProductSubmitResponse)
def submit_product_report(
    year: int,
    month: str,
    fips_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Submit one product's values for the month. The product must be Complete."""
    period = _resolve_period(year, month)
    product = resolve_product(db, current_user, fips_id, for_update=True)

    try:
        locked = submit_product(db, current_user.email, period.key, product)
    except ProductNotCompleteError as e:
        logger.info("Product submit rejected: %s", e)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    db.commit()

    return {
        "product_id": product.product_id,
        "reporting_period": period.key,
        "submission_status": SubmissionStatus.SUBMITTED,
        "values_locked": locked,
    }


@router.post("/{year}/{month}/submit", response_model=ReturnSubmitResponse)
def submit_month_return(
    year: int,
    month: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Submit the caller's whole return for the month.

    Every allocated product must be Complete; otherwise 400 with the list of
    incomplete products and nothing is recorded.
    """
    period = _resolve_period(year, month)
    require_write_access(current_user)

    try:
        record = submit_return(db, current_user.email, period.key, submitted_by=current_user.email)
    except ReturnNotReadyError as e:
        logger.info("Return submit rejected: %s", e)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": str(e),
                "incomplete_products": e.incomplete_products,
            }
        )

    db.flush()
    create_audit_log(
        db=db,
        entity_type="ReportSubmission",
        entity_id=record.submission_id,
        action="SUBMIT",
        user_id=current_user.user_id,
        changes={"reporting_period": period.key}
    )
    db.commit()
    db.refresh(record)

    return record
