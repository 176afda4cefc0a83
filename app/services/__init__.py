"""
Services package - High-level business logic layer
"""
from app.services.user_service import UserService
from app.services.report_service import ReportService
from app.services.feedback_token_service import FeedbackTokenService
from app.services.feedback_service import FeedbackService
from app.services.metrics_recorder import MetricsRecorder
from app.services.feedback_mailer import FeedbackMailer

__all__ = [
    "UserService",
    "ReportService",
    "FeedbackTokenService",
    "FeedbackService",
    "MetricsRecorder",
    "FeedbackMailer",
]
