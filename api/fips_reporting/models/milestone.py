"""Product milestones and the progress updates recorded against them."""
import enum
from datetime import date, datetime
from typing import Optional, List
from sqlalchemy import String, Integer, Text, Date, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from fips_reporting.core.time import utc_now
from fips_reporting.models.base import Base


class MilestoneStatus(str, enum.Enum):
    """Delivery status of a milestone."""
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    OVERDUE = "Overdue"
    CANCELLED = "Cancelled"


class MilestonePriority(str, enum.Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class Milestone(Base):
    """A dated delivery milestone for a FIPS product."""
    __tablename__ = "milestones"

    milestone_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    product_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    product_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(50), nullable=False, default=MilestoneStatus.NOT_STARTED.value
    )
    priority: Mapped[str] = mapped_column(
        String(50), nullable=False, default=MilestonePriority.MEDIUM.value
    )
    target_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    actual_date: Mapped[Optional[date]] = mapped_column(
        Date, nullable=True,
        comment="Date the milestone was completed"
    )
    created_by: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
    updated_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Relationships
    updates: Mapped[List["MilestoneUpdate"]] = relationship(
        "MilestoneUpdate",
        back_populates="milestone",
        cascade="all, delete-orphan",
        order_by=lambda: [MilestoneUpdate.update_date.desc(), MilestoneUpdate.update_id.desc()]
    )


class MilestoneUpdate(Base):
    """Progress note on a milestone, optionally recording a status change."""
    __tablename__ = "milestone_updates"

    update_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    milestone_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("milestones.milestone_id", ondelete="CASCADE"), nullable=False, index=True
    )
    update_text: Mapped[str] = mapped_column(Text, nullable=False)
    status_change: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    updated_by: Mapped[str] = mapped_column(String(255), nullable=False)
    update_date: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)

    # Relationships
    milestone: Mapped["Milestone"] = relationship("Milestone", back_populates="updates")
