"""Product milestone routes: listing with RAG status, edits, progress updates and the overdue list."""
import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from fips_reporting.core.database import get_db
from fips_reporting.core.deps import get_current_user, require_write_access, resolve_product
from fips_reporting.core.milestones import (
    add_milestone_update,
    calculate_rag_status,
    create_milestone,
    get_milestone,
    get_milestones_for_product,
    get_milestones_for_products,
    get_overdue_milestones,
    is_overdue,
    summarize_milestones,
    update_milestone,
)
from fips_reporting.core.roles import can_view_all_products, is_admin
from fips_reporting.core.time import utc_today
from fips_reporting.models.audit_log import AuditLog
from fips_reporting.models.milestone import Milestone
from fips_reporting.models.user import User
from fips_reporting.schemas.milestone import (
    MilestoneCreate,
    MilestoneDetailResponse,
    MilestoneEdit,
    MilestoneOverviewResponse,
    MilestoneResponse,
    MilestoneUpdateCreate,
    MilestoneUpdateResponse,
)
from fips_reporting.services.product_directory import find_product_for_user, get_products_for_user

logger = logging.getLogger(__name__)

router = APIRouter()


def create_audit_log(db: Session, entity_type: str, entity_id: int, action: str, user_id: int, changes: dict = None):
    """Create an audit log entry for milestone changes."""
    audit_log = AuditLog(
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        user_id=user_id,
        changes=changes
    )
    db.add(audit_log)


def milestone_to_response(milestone: Milestone, today=None, include_updates: bool = False) -> dict:
    """Convert a milestone to a response dict with its derived RAG status."""
    today = today or utc_today()
    data = {
        "milestone_id": milestone.milestone_id,
        "product_id": milestone.product_id,
        "product_name": milestone.product_name,
        "title": milestone.title,
        "description": milestone.description,
        "status": milestone.status,
        "priority": milestone.priority,
        "target_date": milestone.target_date,
        "actual_date": milestone.actual_date,
        "rag_status": calculate_rag_status(milestone.status, milestone.target_date, today).value,
        "is_overdue": is_overdue(milestone, today),
        "created_by": milestone.created_by,
        "created_at": milestone.created_at,
        "updated_by": milestone.updated_by,
        "updated_at": milestone.updated_at,
    }
    if include_updates:
        data["updates"] = milestone.updates
    return data


def _get_milestone_or_404(db: Session, milestone_id: int) -> Milestone:
    milestone = get_milestone(db, milestone_id)
    if not milestone:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Milestone not found"
        )
    return milestone


def _check_milestone_access(db: Session, current_user: User, milestone: Milestone, for_update: bool = False) -> None:
    """Same rules as product access: owners and admins write, central operations only view."""
    if for_update:
        require_write_access(current_user)
    if find_product_for_user(db, current_user.email, milestone.product_id):
        return
    allowed = is_admin(current_user) if for_update else can_view_all_products(current_user)
    if not allowed:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Product is not allocated to you"
        )


@router.get("/milestones/overview", response_model=MilestoneOverviewResponse)
def get_milestones_overview(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Milestone counts and RAG breakdown across the caller's allocated products."""
    product_ids = [p.product_id for p in get_products_for_user(db, current_user.email)]
    milestones = get_milestones_for_products(db, product_ids)
    today = utc_today()
    summary = summarize_milestones(milestones, today)

    return {
        "total": summary.total,
        "completed": summary.completed,
        "in_progress": summary.in_progress,
        "not_started": summary.not_started,
        "overdue": summary.overdue,
        "completion_percentage": summary.completion_percentage,
        "rag_counts": summary.rag_counts,
        "milestones": [milestone_to_response(m, today) for m in milestones],
    }


@router.get("/milestones/overdue", response_model=List[MilestoneResponse])
def list_overdue_milestones(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Open milestones past their target date across all products (admin and central operations)."""
    if not can_view_all_products(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin or central operations access required"
        )
    today = utc_today()
    return [milestone_to_response(m, today) for m in get_overdue_milestones(db, today)]


@router.get("/milestones/products/{fips_id}", response_model=List[MilestoneResponse])
def list_product_milestones(
    fips_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Milestones for a product, earliest target date first."""
    product = resolve_product(db, current_user, fips_id)
    today = utc_today()
    return [milestone_to_response(m, today) for m in get_milestones_for_product(db, product.product_id)]


@router.post("/milestones/products/{fips_id}", response_model=MilestoneResponse, status_code=status.HTTP_201_CREATED)
def create_product_milestone(
    fips_id: str,
    milestone_data: MilestoneCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create a milestone for a product."""
    product = resolve_product(db, current_user, fips_id, for_update=True)
    milestone = create_milestone(db, product, milestone_data.model_dump(), created_by=current_user.email)

    create_audit_log(
        db=db,
        entity_type="Milestone",
        entity_id=milestone.milestone_id,
        action="CREATE",
        user_id=current_user.user_id,
        changes={
            "product_id": product.product_id,
            "title": milestone.title,
            "status": milestone.status
        }
    )
    db.commit()
    db.refresh(milestone)

    return milestone_to_response(milestone)


@router.get("/milestones/{milestone_id}", response_model=MilestoneDetailResponse)
def get_milestone_detail(
    milestone_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """A milestone with its progress updates, newest first."""
    milestone = _get_milestone_or_404(db, milestone_id)
    _check_milestone_access(db, current_user, milestone)
    return milestone_to_response(milestone, include_updates=True)


@router.patch("/milestones/{milestone_id}", response_model=MilestoneResponse)
def edit_milestone(
    milestone_id: int,
    milestone_data: MilestoneEdit,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Edit a milestone. Moving it to Completed records today's date as the actual date."""
    milestone = _get_milestone_or_404(db, milestone_id)
    _check_milestone_access(db, current_user, milestone, for_update=True)

    changes = update_milestone(
        db, milestone, milestone_data.model_dump(exclude_unset=True), updated_by=current_user.email
    )
    if changes:
        create_audit_log(
            db=db,
            entity_type="Milestone",
            entity_id=milestone.milestone_id,
            action="UPDATE",
            user_id=current_user.user_id,
            changes=changes
        )
    db.commit()
    db.refresh(milestone)

    return milestone_to_response(milestone)


@router.post(
    "/milestones/{milestone_id}/updates",
    response_model=MilestoneUpdateResponse,
    status_code=status.HTTP_201_CREATED
)
def add_progress_update(
    milestone_id: int,
    update_data: MilestoneUpdateCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Add a progress update to a milestone, optionally changing its status."""
    milestone = _get_milestone_or_404(db, milestone_id)
    _check_milestone_access(db, current_user, milestone, for_update=True)

    old_status = milestone.status
    update = add_milestone_update(
        db,
        milestone,
        update_text=update_data.update_text,
        updated_by=current_user.email,
        status_change=update_data.status_change,
    )
    changes = {"update_id": update.update_id}
    if milestone.status != old_status:
        changes["status"] = {"old": old_status, "new": milestone.status}
    create_audit_log(
        db=db,
        entity_type="Milestone",
        entity_id=milestone.milestone_id,
        action="UPDATE",
        user_id=current_user.user_id,
        changes=changes
    )
    db.commit()
    db.refresh(update)

    return update


@router.delete("/milestones/{milestone_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_milestone(
    milestone_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Delete a milestone and its progress updates."""
    milestone = _get_milestone_or_404(db, milestone_id)
    _check_milestone_access(db, current_user, milestone, for_update=True)

    create_audit_log(
        db=db,
        entity_type="Milestone",
        entity_id=milestone.milestone_id,
        action="DELETE",
        user_id=current_user.user_id,
        changes={"product_id": milestone.product_id, "title": milestone.title}
    )
    logger.info("Milestone %s deleted by %s", milestone.milestone_id, current_user.email)
    db.delete(milestone)
    db.commit()
