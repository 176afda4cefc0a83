"""
Database model for Report
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship

from app.core.database import Base

STATUS_PENDING = "Pending"
STATUS_UNDER_REVIEW = "Under Review"
STATUS_IN_PROGRESS = "In Progress"
STATUS_RESOLVED = "Resolved"
STATUS_CLOSED = "Closed"
STATUS_REJECTED = "Rejected"

REPORT_STATUSES = (
    STATUS_PENDING,
    STATUS_UNDER_REVIEW,
    STATUS_IN_PROGRESS,
    STATUS_RESOLVED,
    STATUS_CLOSED,
    STATUS_REJECTED,
)


class Report(Base):
    """Report model - a citizen's cybercrime incident report"""
    __tablename__ = "reports"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    tracking_code = Column(String(20), nullable=False, unique=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    incident_type = Column(String(50), nullable=True)  # e.g. "phishing", "identity_theft", "online_fraud"
    status = Column(String(20), nullable=False, default=STATUS_PENDING, index=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    owner = relationship("User")

    def __repr__(self):
        return f"<Report(id={self.id}, tracking_code='{self.tracking_code}', status='{self.status}')>"
