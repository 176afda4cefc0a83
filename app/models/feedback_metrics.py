"""
Database model for FeedbackMetrics
"""
from sqlalchemy import Column, Integer, DateTime, ForeignKey

from app.core.database import Base

# Timestamp fields that may be stamped after issuance
STAMPABLE_FIELDS = (
    "token_sent_at",
    "link_clicked_at",
    "feedback_started_at",
    "feedback_completed_at",
)


class FeedbackMetrics(Base):
    """FeedbackMetrics model - one feedback funnel per report (generated -> sent -> clicked -> completed)"""
    __tablename__ = "feedback_metrics"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    report_id = Column(Integer, ForeignKey("reports.id", ondelete="CASCADE"), nullable=False, unique=True)
    token_generated_at = Column(DateTime, nullable=False)
    token_sent_at = Column(DateTime, nullable=True)
    link_clicked_at = Column(DateTime, nullable=True)
    feedback_started_at = Column(DateTime, nullable=True)
    feedback_completed_at = Column(DateTime, nullable=True)
    time_to_click_hours = Column(Integer, nullable=True)
    time_to_complete_hours = Column(Integer, nullable=True)

    def __repr__(self):
        return f"<FeedbackMetrics(report_id={self.report_id})>"
