"""Performance metrics and the monthly values reported against them."""
import enum
from datetime import datetime
from typing import Optional, List
from sqlalchemy import String, Integer, Text, Boolean, ForeignKey, DateTime, JSON, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from fips_reporting.core.time import utc_now
from fips_reporting.models.base import Base


class MetricMeasure(str, enum.Enum):
    """Data kind of a performance metric, controlling how values are validated."""
    NUMBER = "number"
    DECIMAL = "decimal"
    PERCENTAGE = "percentage"
    BOOLEAN = "boolean"
    SINGLE_OPTION = "single_option"
    MULTIPLE_OPTION = "multiple_option"
    TEXT = "text"


class PerformanceMetric(Base):
    """Administrator-defined metric that product owners report on each month."""
    __tablename__ = "performance_metrics"

    metric_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    unique_id: Mapped[str] = mapped_column(
        String(50), unique=True, nullable=False,
        comment="Stable external identifier, e.g. PM-001"
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Legal, DSIT, DfE, DDT
    mandate: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    legal_regulatory: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    notice: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    applicable_phases: Mapped[Optional[list]] = mapped_column(
        JSON, nullable=True,
        comment="Product lifecycle phases (Discovery, Alpha, Beta, Live, Retired) the metric applies to"
    )

    measure: Mapped[str] = mapped_column(
        String(50), nullable=False, default=MetricMeasure.NUMBER.value
    )
    mandatory: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    validation_criteria: Mapped[Optional[str]] = mapped_column(
        Text, nullable=True,
        comment="min:/max: clauses for numeric measures, comma-separated options for option measures"
    )
    can_report_null_return: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now, onupdate=utc_now, nullable=False)
    created_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    updated_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    data: Mapped[List["PerformanceMetricData"]] = relationship(
        "PerformanceMetricData", back_populates="metric",
        cascade="all, delete-orphan"
    )


class PerformanceMetricData(Base):
    """One reported value for one metric, one product and one reporting period."""
    __tablename__ = "performance_metric_data"
    __table_args__ = (
        UniqueConstraint("metric_id", "product_id", "reporting_period",
                         name="uq_metric_data_metric_product_period"),
    )

    data_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    metric_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("performance_metrics.metric_id", ondelete="CASCADE"),
        nullable=False, index=True
    )
    product_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    reporting_period: Mapped[str] = mapped_column(String(20), nullable=False, index=True)

    value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_null_return: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_submitted: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
        comment="Locked as part of a finalized return"
    )

    submitted_by: Mapped[str] = mapped_column(String(255), nullable=False)
    submitted_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    metric: Mapped["PerformanceMetric"] = relationship(
        "PerformanceMetric", back_populates="data"
    )
