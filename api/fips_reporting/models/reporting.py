"""Product allocations and return submissions."""
import enum
from datetime import datetime
from typing import Optional
from sqlalchemy import String, Integer, DateTime, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from fips_reporting.core.time import utc_now
from fips_reporting.models.base import Base


class SubmissionRecordStatus(str, enum.Enum):
    """Status of a return. Absence of a record means not submitted."""
    SUBMITTED = "Submitted"


class ProductAllocation(Base):
    """Links a FIPS product to a user who reports on it."""
    __tablename__ = "product_allocations"
    __table_args__ = (
        UniqueConstraint("product_id", "user_email", name="uq_product_allocation_product_user"),
    )

    allocation_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    product_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    product_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phase: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    user_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    allocated_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
    allocated_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)


class ReportSubmission(Base):
    """Marks a user's whole return for a reporting period as finalized."""
    __tablename__ = "report_submissions"
    __table_args__ = (
        UniqueConstraint("user_email", "reporting_period", name="uq_report_submission_user_period"),
    )

    submission_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    reporting_period: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=SubmissionRecordStatus.SUBMITTED.value
    )
    submitted_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
    submitted_by: Mapped[str] = mapped_column(String(255), nullable=False)
