"""Product milestones: RAG derivation, overdue tracking and progress updates.

RAG status is derived on read from a milestone's status and target date:
Completed milestones are Green, Cancelled ones Grey, and open milestones are
Red once past their target date, Amber within the due-soon window (or with
no target date) and Green otherwise.
"""
import enum
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session, selectinload

from fips_reporting.core.config import settings
from fips_reporting.core.time import utc_now, utc_today
from fips_reporting.models.milestone import Milestone, MilestoneStatus, MilestoneUpdate
from fips_reporting.services.product_directory import AssignedProduct

logger = logging.getLogger(__name__)

CLOSED_STATUSES = (MilestoneStatus.COMPLETED.value, MilestoneStatus.CANCELLED.value)


class RagStatus(str, enum.Enum):
    RED = "Red"
    AMBER = "Amber"
    GREEN = "Green"
    GREY = "Grey"


@dataclass
class MilestoneSummary:
    """Milestone counts across a set of products."""
    total: int = 0
    completed: int = 0
    in_progress: int = 0
    overdue: int = 0
    not_started: int = 0
    rag_counts: dict = field(default_factory=dict)

    @property
    def completion_percentage(self) -> float:
        return round(self.completed / self.total * 100, 1) if self.total else 0.0


def calculate_rag_status(
    status: str,
    target_date: Optional[date],
    today: Optional[date] = None,
    due_soon_days: Optional[int] = None,
) -> RagStatus:
    """Traffic-light status of a milestone (date-only comparison)."""
    if status == MilestoneStatus.COMPLETED.value:
        return RagStatus.GREEN
    if status == MilestoneStatus.CANCELLED.value:
        return RagStatus.GREY
    if target_date is None:
        return RagStatus.AMBER

    today = today or utc_today()
    window = settings.DUE_SOON_DAYS if due_soon_days is None else due_soon_days
    days_until_target = (target_date - today).days
    if days_until_target < 0:
        return RagStatus.RED
    if days_until_target <= window:
        return RagStatus.AMBER
    return RagStatus.GREEN


def is_overdue(milestone: Milestone, today: Optional[date] = None) -> bool:
    """Open milestone that is marked Overdue or is past its target date."""
    if milestone.status in CLOSED_STATUSES:
        return False
    if milestone.status == MilestoneStatus.OVERDUE.value:
        return True
    today = today or utc_today()
    return milestone.target_date is not None and milestone.target_date < today


def summarize_milestones(milestones: Iterable[Milestone], today: Optional[date] = None) -> MilestoneSummary:
    today = today or utc_today()
    summary = MilestoneSummary()
    for milestone in milestones:
        summary.total += 1
        if milestone.status == MilestoneStatus.COMPLETED.value:
            summary.completed += 1
        elif milestone.status == MilestoneStatus.IN_PROGRESS.value:
            summary.in_progress += 1
        elif milestone.status == MilestoneStatus.NOT_STARTED.value:
            summary.not_started += 1
        if is_overdue(milestone, today):
            summary.overdue += 1
        rag = calculate_rag_status(milestone.status, milestone.target_date, today).value
        summary.rag_counts[rag] = summary.rag_counts.get(rag, 0) + 1
    return summary


def _ordered(query):
    # Milestones without a target date sort last
    return query.order_by(
        Milestone.target_date.is_(None),
        Milestone.target_date,
        Milestone.milestone_id
    )


def get_milestone(db: Session, milestone_id: int) -> Optional[Milestone]:
    return db.query(Milestone).options(
        selectinload(Milestone.updates)
    ).filter(Milestone.milestone_id == milestone_id).first()


def get_milestones_for_products(db: Session, product_ids: List[str]) -> List[Milestone]:
    if not product_ids:
        return []
    return _ordered(
        db.query(Milestone).filter(Milestone.product_id.in_(product_ids))
    ).all()


def get_milestones_for_product(db: Session, product_id: str) -> List[Milestone]:
    return get_milestones_for_products(db, [product_id])


def get_overdue_milestones(db: Session, today: Optional[date] = None) -> List[Milestone]:
    """Open milestones whose target date has passed, earliest first."""
    today = today or utc_today()
    return _ordered(
        db.query(Milestone).filter(
            Milestone.target_date.is_not(None),
            Milestone.target_date < today,
            Milestone.status.not_in(CLOSED_STATUSES)
        )
    ).all()


def get_milestones_by_status(db: Session, status: MilestoneStatus) -> List[Milestone]:
    return _ordered(
        db.query(Milestone).filter(Milestone.status == status.value)
    ).all()


def _plain(value):
    return value.value if isinstance(value, enum.Enum) else value


def _apply_status(milestone: Milestone, status: str) -> None:
    milestone.status = status
    if status == MilestoneStatus.COMPLETED.value and milestone.actual_date is None:
        milestone.actual_date = utc_today()


def create_milestone(db: Session, product: AssignedProduct, data: dict, created_by: str) -> Milestone:
    """Create a milestone for a product. The caller commits."""
    milestone = Milestone(
        product_id=product.product_id,
        product_name=product.product_name,
        created_by=created_by,
        **{k: _plain(v) for k, v in data.items() if k != "status"}
    )
    _apply_status(milestone, _plain(data.get("status")) or MilestoneStatus.NOT_STARTED.value)
    db.add(milestone)
    db.flush()
    logger.info("Milestone %s created for product %s by %s", milestone.milestone_id, product.product_id, created_by)
    return milestone


def update_milestone(db: Session, milestone: Milestone, changes: dict, updated_by: str) -> dict:
    """Apply field changes and return {field: {"old", "new"}} for the ones that differ."""
    audit = {}
    for field_name, value in changes.items():
        value = _plain(value)
        old_value = getattr(milestone, field_name)
        if old_value == value:
            continue
        if field_name == "status":
            _apply_status(milestone, value)
        else:
            setattr(milestone, field_name, value)
        audit[field_name] = {
            "old": old_value.isoformat() if isinstance(old_value, date) else old_value,
            "new": value.isoformat() if isinstance(value, date) else value,
        }

    if audit:
        milestone.updated_by = updated_by
        milestone.updated_at = utc_now()
        db.flush()
    return audit


def add_milestone_update(
    db: Session,
    milestone: Milestone,
    update_text: str,
    updated_by: str,
    status_change: Optional[str] = None,
) -> MilestoneUpdate:
    """Record a progress note. A status change is applied to the milestone as well."""
    now = utc_now()
    update = MilestoneUpdate(
        milestone_id=milestone.milestone_id,
        update_text=update_text,
        status_change=_plain(status_change),
        updated_by=updated_by,
        update_date=now,
    )
    db.add(update)
    if status_change and _plain(status_change) != milestone.status:
        _apply_status(milestone, _plain(status_change))
    milestone.updated_by = updated_by
    milestone.updated_at = now
    db.flush()
    return update
