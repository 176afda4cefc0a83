"""
Database model for StatusChangeEvent
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey

from app.core.clock import utcnow
from app.core.database import Base


class StatusChangeEvent(Base):
    """Append-only log of report status transitions, read back as the report timeline"""
    __tablename__ = "status_change_events"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    report_id = Column(Integer, ForeignKey("reports.id", ondelete="CASCADE"), nullable=False, index=True)
    from_status = Column(String(20), nullable=True)  # None for the initial "Pending" entry
    to_status = Column(String(20), nullable=False)
    actor_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    notes = Column(Text, nullable=True)
    at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<StatusChangeEvent(report_id={self.report_id}, '{self.from_status}' -> '{self.to_status}')>"
