"""Performance metric library routes."""
import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from fips_reporting.core.database import get_db
from fips_reporting.core.deps import get_current_user, require_admin
from fips_reporting.core.metric_validation import UnknownMeasureError, find_criteria_problems, parse_measure
from fips_reporting.models.user import User
from fips_reporting.models.performance_metric import PerformanceMetric
from fips_reporting.models.audit_log import AuditLog
from fips_reporting.schemas.performance_metric import (
    PerformanceMetricCreate,
    PerformanceMetricResponse,
    PerformanceMetricUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def create_audit_log(db: Session, entity_type: str, entity_id: int, action: str, user_id: int, changes: dict = None):
    """Create an audit log entry for metric library changes."""
    audit_log = AuditLog(
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        user_id=user_id,
        changes=changes
    )
    db.add(audit_log)


def _get_metric_or_404(db: Session, metric_id: int) -> PerformanceMetric:
    metric = db.query(PerformanceMetric).filter(
        PerformanceMetric.metric_id == metric_id
    ).first()
    if not metric:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Performance metric not found"
        )
    return metric


# ============================================================================
# READ ENDPOINTS - Available to all authenticated users
# ============================================================================

@router.get("/performance-metrics", response_model=List[PerformanceMetricResponse])
def list_performance_metrics(
    enabled_only: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """List the metric library, optionally restricted to enabled metrics."""
    query = db.query(PerformanceMetric)
    if enabled_only:
        query = query.filter(PerformanceMetric.enabled == True)
    return query.order_by(PerformanceMetric.category, PerformanceMetric.name).all()


@router.get("/performance-metrics/{metric_id}", response_model=PerformanceMetricResponse)
def get_performance_metric(
    metric_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return _get_metric_or_404(db, metric_id)


# ============================================================================
# ADMIN ENDPOINTS
# ============================================================================

@router.post("/performance-metrics", response_model=PerformanceMetricResponse, status_code=status.HTTP_201_CREATED)
def create_performance_metric(
    metric_data: PerformanceMetricCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Create a new performance metric (Admin only)."""
    existing = db.query(PerformanceMetric).filter(
        PerformanceMetric.unique_id == metric_data.unique_id
    ).first()

    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Performance metric with unique id '{metric_data.unique_id}' already exists"
        )

    metric = PerformanceMetric(
        **metric_data.model_dump(),
        created_by=current_user.email,
        updated_by=current_user.email
    )
    db.add(metric)
    db.flush()

    create_audit_log(
        db=db,
        entity_type="PerformanceMetric",
        entity_id=metric.metric_id,
        action="CREATE",
        user_id=current_user.user_id,
        changes={
            "unique_id": metric.unique_id,
            "name": metric.name,
            "measure": metric.measure,
            "enabled": metric.enabled
        }
    )

    db.commit()
    db.refresh(metric)
    logger.info("Performance metric %s created by %s", metric.unique_id, current_user.email)

    return metric


@router.patch("/performance-metrics/{metric_id}", response_model=PerformanceMetricResponse)
def update_performance_metric(
    metric_id: int,
    update_data: PerformanceMetricUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Update a performance metric (Admin only)."""
    metric = _get_metric_or_404(db, metric_id)
    updates = update_data.model_dump(exclude_unset=True)

    # Criteria must still fit the measure after the update
    measure = updates.get("measure", metric.measure)
    criteria = updates.get("validation_criteria", metric.validation_criteria)
    try:
        problems = find_criteria_problems(parse_measure(measure), criteria)
    except UnknownMeasureError as e:
        problems = [str(e)]
    if problems:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Invalid validation criteria: " + "; ".join(problems)
        )

    changes = {}
    for field, value in updates.items():
        old_value = getattr(metric, field)
        if old_value != value:
            changes[field] = {"old": old_value, "new": value}
            setattr(metric, field, value)

    if changes:
        metric.updated_by = current_user.email
        create_audit_log(
            db=db,
            entity_type="PerformanceMetric",
            entity_id=metric.metric_id,
            action="UPDATE",
            user_id=current_user.user_id,
            changes=changes
        )

    db.commit()
    db.refresh(metric)

    return metric


def _set_enabled(db: Session, metric_id: int, enabled: bool, current_user: User) -> PerformanceMetric:
    metric = _get_metric_or_404(db, metric_id)
    if metric.enabled != enabled:
        metric.enabled = enabled
        metric.updated_by = current_user.email
        create_audit_log(
            db=db,
            entity_type="PerformanceMetric",
            entity_id=metric.metric_id,
            action="ENABLE" if enabled else "DISABLE",
            user_id=current_user.user_id,
            changes={"enabled": {"old": not enabled, "new": enabled}}
        )
        db.commit()
        db.refresh(metric)
        logger.info(
            "Performance metric %s %s by %s",
            metric.unique_id, "enabled" if enabled else "disabled", current_user.email
        )
    return metric


@router.post("/performance-metrics/{metric_id}/enable", response_model=PerformanceMetricResponse)
def enable_performance_metric(
    metric_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Enable a metric so it counts towards product completion (Admin only)."""
    return _set_enabled(db, metric_id, True, current_user)


@router.post("/performance-metrics/{metric_id}/disable", response_model=PerformanceMetricResponse)
def disable_performance_metric(
    metric_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Disable a metric; its stored values are kept but no longer counted (Admin only)."""
    return _set_enabled(db, metric_id, False, current_user)


@router.delete("/performance-metrics/{metric_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_performance_metric(
    metric_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Delete a metric (Admin only). Cascades to its reported values."""
    metric = _get_metric_or_404(db, metric_id)

    create_audit_log(
        db=db,
        entity_type="PerformanceMetric",
        entity_id=metric.metric_id,
        action="DELETE",
        user_id=current_user.user_id,
        changes={"unique_id": metric.unique_id, "name": metric.name}
    )
    logger.info("Performance metric %s deleted by %s", metric.unique_id, current_user.email)
    db.delete(metric)
    db.commit()

    return None
