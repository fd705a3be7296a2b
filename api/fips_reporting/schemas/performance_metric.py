"""Performance metric schemas."""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, field_validator, model_validator

from fips_reporting.core.metric_validation import find_criteria_problems, parse_measure


def _normalize_measure(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    # Raises UnknownMeasureError (a ValueError) for unrecognised kinds
    return parse_measure(value).value


class PerformanceMetricBase(BaseModel):
    """Base schema for a performance metric."""
    unique_id: str
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    mandate: Optional[str] = None
    legal_regulatory: bool = False
    notice: Optional[str] = None
    applicable_phases: Optional[List[str]] = None
    measure: str = "number"
    mandatory: bool = False
    validation_criteria: Optional[str] = None
    can_report_null_return: bool = False
    enabled: bool = True


class PerformanceMetricCreate(PerformanceMetricBase):
    """Create schema for a performance metric."""

    @field_validator("measure")
    @classmethod
    def validate_measure(cls, v: str) -> str:
        return _normalize_measure(v)

    @model_validator(mode="after")
    def validate_criteria_fit_measure(self):
        problems = find_criteria_problems(parse_measure(self.measure), self.validation_criteria)
        if problems:
            raise ValueError("Invalid validation criteria: " + "; ".join(problems))
        return self


class PerformanceMetricUpdate(BaseModel):
    """Update schema for a performance metric (all fields optional).

    Criteria are checked against the resulting measure by the router, since
    either may be omitted here.
    """
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    mandate: Optional[str] = None
    legal_regulatory: Optional[bool] = None
    notice: Optional[str] = None
    applicable_phases: Optional[List[str]] = None
    measure: Optional[str] = None
    mandatory: Optional[bool] = None
    validation_criteria: Optional[str] = None
    can_report_null_return: Optional[bool] = None
    enabled: Optional[bool] = None

    @field_validator("measure")
    @classmethod
    def validate_measure(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_measure(v)


class PerformanceMetricResponse(PerformanceMetricBase):
    """Response schema for a performance metric."""
    metric_id: int
    created_at: datetime
    updated_at: datetime
    created_by: Optional[str] = None
    updated_by: Optional[str] = None

    class Config:
        from_attributes = True
