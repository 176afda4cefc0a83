"""
Pydantic schemas for feedback tokens, metrics and submissions
"""
from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field


class IssuedToken(BaseModel):
    """
    Result of issuing a feedback token.

    The only place the plaintext secret is observable; callers compose the
    notification from it and then drop it.
    """
    id: int
    secret: str
    expires_at: datetime
    feedback_url: str


class TokenDescriptor(BaseModel):
    """What a valid token grants: the report to rate and who may rate it"""
    token_id: int
    report_id: int
    user_id: int
    report_title: str
    user_email: str


class FeedbackSubmit(BaseModel):
    """Schema for a feedback form submission"""
    token: str = Field(..., min_length=1, description="Token from the feedback link")
    overall_rating: int = Field(..., ge=1, le=5)
    communication_rating: Optional[int] = Field(None, ge=1, le=5)
    resolution_speed_rating: Optional[int] = Field(None, ge=1, le=5)
    professionalism_rating: Optional[int] = Field(None, ge=1, le=5)
    would_recommend: Optional[Literal["yes", "no", "maybe"]] = None
    comments: Optional[str] = Field(None, max_length=5000)


class FeedbackResponse(BaseModel):
    """Schema for stored feedback"""
    id: int
    report_id: int
    overall_rating: int
    submitted_at: datetime

    class Config:
        from_attributes = True


class FeedbackMetricsResponse(BaseModel):
    """Feedback funnel timestamps for one report"""
    report_id: int
    token_generated_at: datetime
    token_sent_at: Optional[datetime] = None
    link_clicked_at: Optional[datetime] = None
    feedback_started_at: Optional[datetime] = None
    feedback_completed_at: Optional[datetime] = None
    time_to_click_hours: Optional[int] = None
    time_to_complete_hours: Optional[int] = None

    class Config:
        from_attributes = True


class CleanupResponse(BaseModel):
    """Schema for the expired-token sweep"""
    deactivated: int = Field(..., description="Number of tokens deactivated")


class FeedbackDetail(BaseModel):
    """Schema for one feedback entry in the admin listing"""
    id: int
    report_id: int
    user_id: int
    overall_rating: int
    communication_rating: Optional[int] = None
    resolution_speed_rating: Optional[int] = None
    professionalism_rating: Optional[int] = None
    would_recommend: Optional[str] = None
    comments: Optional[str] = None
    submitted_at: datetime

    class Config:
        from_attributes = True


class FeedbackListResponse(BaseModel):
    """Schema for a page of feedback"""
    total: int = Field(..., description="Total number of feedback entries")
    page: int
    per_page: int
    feedback: list[FeedbackDetail]


class MonthlyTrend(BaseModel):
    month: str = Field(..., description="YYYY-MM")
    count: int
    avg_rating: float


class FeedbackAnalytics(BaseModel):
    """Aggregate satisfaction figures"""
    avg_rating: float = Field(..., description="Mean overall rating, 2 decimals; 0 when there is no feedback")
    total_feedback: int
    rating_distribution: dict[int, int] = Field(default_factory=dict, description="overall_rating -> count")
    monthly_trends: list[MonthlyTrend] = Field(default_factory=list)
