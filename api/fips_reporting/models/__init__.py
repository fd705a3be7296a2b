"""Models package."""
from fips_reporting.models.user import User, UserRole
from fips_reporting.models.audit_log import AuditLog
from fips_reporting.models.performance_metric import (
    MetricMeasure,
    PerformanceMetric,
    PerformanceMetricData,
)
from fips_reporting.models.reporting import (
    ProductAllocation,
    ReportSubmission,
    SubmissionRecordStatus,
)
from fips_reporting.models.milestone import (
    Milestone,
    MilestonePriority,
    MilestoneStatus,
    MilestoneUpdate,
)

__all__ = [
    "User", "UserRole",
    "AuditLog",
    # Performance metrics and reported values
    "MetricMeasure",
    "PerformanceMetric",
    "PerformanceMetricData",
    # Allocations and return submissions
    "ProductAllocation",
    "ReportSubmission",
    "SubmissionRecordStatus",
    # Product milestones
    "Milestone",
    "MilestonePriority",
    "MilestoneStatus",
    "MilestoneUpdate",
]
