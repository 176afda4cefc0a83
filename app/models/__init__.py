"""
Database models for CyberCrime Hive
"""
from app.models.user import User
from app.models.report import Report
from app.models.status_change_event import StatusChangeEvent
from app.models.feedback_token import FeedbackToken
from app.models.feedback_metrics import FeedbackMetrics
from app.models.feedback import Feedback

__all__ = [
    "User",
    "Report",
    "StatusChangeEvent",
    "FeedbackToken",
    "FeedbackMetrics",
    "Feedback",
]
