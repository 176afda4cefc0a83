"""
Database model for Feedback
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey

from app.core.clock import utcnow
from app.core.database import Base


class Feedback(Base):
    """Feedback model - a citizen's rating of how their resolved report was handled"""
    __tablename__ = "feedback"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    report_id = Column(Integer, ForeignKey("reports.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    token_id = Column(Integer, ForeignKey("feedback_tokens.id", ondelete="SET NULL"), nullable=True, unique=True)
    overall_rating = Column(Integer, nullable=False)  # 1-5
    communication_rating = Column(Integer, nullable=True)
    resolution_speed_rating = Column(Integer, nullable=True)
    professionalism_rating = Column(Integer, nullable=True)
    would_recommend = Column(String(10), nullable=True)  # "yes", "no", "maybe"
    comments = Column(Text, nullable=True)
    submitted_at = Column(DateTime, default=utcnow, nullable=False)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(String(500), nullable=True)

    def __repr__(self):
        return f"<Feedback(id={self.id}, report_id={self.report_id}, overall_rating={self.overall_rating})>"
