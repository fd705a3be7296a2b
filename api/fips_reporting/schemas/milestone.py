"""Milestone schemas."""
from datetime import date, datetime
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator

from fips_reporting.models.milestone import MilestonePriority, MilestoneStatus


class MilestoneBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    status: MilestoneStatus = MilestoneStatus.NOT_STARTED
    priority: MilestonePriority = MilestonePriority.MEDIUM
    target_date: Optional[date] = None

    class Config:
        use_enum_values = True


class MilestoneCreate(MilestoneBase):
    pass


class MilestoneEdit(BaseModel):
    """Partial edit of a milestone (all fields optional)."""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    status: Optional[MilestoneStatus] = None
    priority: Optional[MilestonePriority] = None
    target_date: Optional[date] = None
    actual_date: Optional[date] = None

    class Config:
        use_enum_values = True

    @field_validator("title", "status", "priority")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class MilestoneUpdateCreate(BaseModel):
    """Progress note, optionally moving the milestone to a new status."""
    update_text: str = Field(..., min_length=1, max_length=2000)
    status_change: Optional[MilestoneStatus] = None

    class Config:
        use_enum_values = True


class MilestoneUpdateResponse(BaseModel):
    update_id: int
    milestone_id: int
    update_text: str
    status_change: Optional[str] = None
    updated_by: str
    update_date: datetime

    class Config:
        from_attributes = True


class MilestoneResponse(BaseModel):
    milestone_id: int
    product_id: str
    product_name: Optional[str] = None
    title: str
    description: Optional[str] = None
    status: str
    priority: str
    target_date: Optional[date] = None
    actual_date: Optional[date] = None
    rag_status: str
    is_overdue: bool = False
    created_by: str
    created_at: datetime
    updated_by: Optional[str] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MilestoneDetailResponse(MilestoneResponse):
    updates: List[MilestoneUpdateResponse] = []


class MilestoneOverviewResponse(BaseModel):
    """Milestone counts and RAG breakdown across the caller's products."""
    total: int
    completed: int
    in_progress: int
    not_started: int
    overdue: int
    completion_percentage: float
    rag_counts: dict
    milestones: List[MilestoneResponse]
