"""Reporting schemas: periods, returns, product performance and value entry."""
from datetime import date, datetime
from typing import Optional, List
from pydantic import BaseModel

from fips_reporting.core.reporting_status import (
    DueDateStatus,
    PerformanceStatus,
    ReturnState,
    SubmissionStatus,
)


class ReportingPeriodResponse(BaseModel):
    key: str
    year: int
    month: int
    display_name: str
    period_label: str
    due_date: date
    due_date_status: DueDateStatus

    class Config:
        from_attributes = True


class ProductStatusResponse(BaseModel):
    """Status of one allocated product within a return."""
    product_id: str
    product_name: str
    phase: Optional[str] = None
    completed_metrics: int
    total_metrics: int
    performance_status: PerformanceStatus
    submission_status: SubmissionStatus

    class Config:
        from_attributes = True


class MonthOverviewResponse(BaseModel):
    """A user's return for one reporting period."""
    period: ReportingPeriodResponse
    completed_products: int
    total_products: int
    is_submitted: bool
    submitted_at: Optional[datetime] = None
    submission_status: SubmissionStatus
    state: ReturnState
    products: List[ProductStatusResponse] = []


class MetricValueResponse(BaseModel):
    """A stored value row."""
    data_id: int
    metric_id: int
    product_id: str
    reporting_period: str
    value: Optional[str] = None
    comment: Optional[str] = None
    is_null_return: bool
    is_submitted: bool
    submitted_by: str
    submitted_at: datetime

    class Config:
        from_attributes = True


class ProductMetricResponse(BaseModel):
    """A metric definition together with the product's value for the period."""
    metric_id: int
    unique_id: str
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    measure: str
    mandatory: bool
    validation_criteria: Optional[str] = None
    can_report_null_return: bool
    notice: Optional[str] = None
    value: Optional[str] = None
    comment: Optional[str] = None
    is_null_return: bool = False
    is_complete: bool = False


class ProductPerformanceResponse(BaseModel):
    period: ReportingPeriodResponse
    product_id: str
    product_name: str
    phase: Optional[str] = None
    completed_metrics: int
    total_metrics: int
    performance_status: PerformanceStatus
    submission_status: SubmissionStatus
    metrics: List[ProductMetricResponse] = []


class MetricValueSave(BaseModel):
    """Payload for entering one metric value."""
    value: Optional[str] = None
    is_null_return: bool = False
    comment: Optional[str] = None


class ProductSubmitResponse(BaseModel):
    product_id: str
    reporting_period: str
    submission_status: SubmissionStatus
    values_locked: int


class ReturnSubmitResponse(BaseModel):
    submission_id: int
    user_email: str
    reporting_period: str
    status: str
    submitted_at: datetime
    submitted_by: str

    class Config:
        from_attributes = True
