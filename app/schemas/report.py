"""
Pydantic schemas for Report and its status timeline
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class ReportCreate(BaseModel):
    """Schema for filing a report"""
    title: str = Field(..., min_length=1, max_length=255, description="Short incident title")
    description: Optional[str] = Field(None, description="What happened")
    incident_type: Optional[str] = Field(None, max_length=50, description="Incident category, e.g. phishing")


class ReportResponse(BaseModel):
    """Schema for report response"""
    id: int
    user_id: int
    tracking_code: str
    title: str
    description: Optional[str] = None
    incident_type: Optional[str] = None
    status: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class StatusUpdate(BaseModel):
    """Schema for an admin status change"""
    status: str = Field(..., description="New report status")
    notes: Optional[str] = Field(None, max_length=2000, description="Admin notes for the timeline")


class StatusChangeResponse(BaseModel):
    """One entry of a report's status timeline"""
    report_id: int
    from_status: Optional[str] = None
    to_status: str
    actor_id: Optional[int] = None
    notes: Optional[str] = None
    at: datetime

    class Config:
        from_attributes = True


class StatusUpdateResult(BaseModel):
    """Outcome of a status change; warnings never undo the change itself"""
    report: ReportResponse
    feedback_requested: bool = False
    warnings: list[str] = Field(default_factory=list)


class ReportListResponse(BaseModel):
    """Schema for a page of reports"""
    total: int = Field(..., description="Total number of matching reports")
    page: int
    per_page: int
    reports: list[ReportResponse]
