"""
Database model for FeedbackToken
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Index, and_

from app.core.clock import utcnow
from app.core.database import Base


class FeedbackToken(Base):
    """FeedbackToken model - single-use, time-limited right to leave feedback on one resolved report"""
    __tablename__ = "feedback_tokens"
    __table_args__ = (
        Index("ix_feedback_tokens_report_user", "report_id", "user_id"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    report_id = Column(Integer, ForeignKey("reports.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    token_hash = Column(String(64), nullable=False, unique=True, index=True)  # sha256 hex, never the plaintext
    created_at = Column(DateTime, default=utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)
    used_at = Column(DateTime, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(String(500), nullable=True)

    def is_live(self, now) -> bool:
        """Active, unexpired and unused"""
        return bool(self.is_active) and self.used_at is None and self.expires_at >= now

    @classmethod
    def live_criteria(cls, now):
        """SQL form of is_live, for queries and bulk updates"""
        return and_(
            cls.is_active == True,  # noqa: E712
            cls.used_at.is_(None),
            cls.expires_at >= now,
        )

    def __repr__(self):
        return f"<FeedbackToken(id={self.id}, report_id={self.report_id}, active={self.is_active})>"
