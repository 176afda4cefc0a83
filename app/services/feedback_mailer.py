"""
Feedback request email composition and delivery
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.core.config import Settings, settings
from app.integrations.mail_client import MailClient, MailException
from app.models.report import Report
from app.services.metrics_recorder import MetricsRecorder

logger = logging.getLogger(__name__)


class FeedbackMailer:
    """Sends the "your report is resolved, tell us how we did" email"""

    def __init__(self, db: Session, config: Settings = settings, client: Optional[MailClient] = None):
        self.config = config
        self.client = client or MailClient(config)
        self.metrics = MetricsRecorder(db)

    def compose(self, report: Report, feedback_url: str) -> str:
        days = max(1, self.config.FEEDBACK_TOKEN_EXPIRY_HOURS // 24)
        lines = [
            f"Dear {report.owner.full_name},",
            "",
            f"Your cybercrime report \"{report.title}\" ({report.tracking_code}) has been resolved.",
            "We would appreciate your feedback to help us improve our services.",
            "",
            "Please click the following link to provide your feedback:",
            feedback_url,
            "",
            f"This feedback link will expire in {days} days and can be used once.",
            "",
            "Thank you for using our service.",
            "",
            "Best regards,",
            f"{self.config.SITE_NAME} Team",
        ]
        return "\n".join(lines) + "\n"

    def send_feedback_request(self, report: Report, feedback_url: str) -> bool:
        """
        Email the report owner a feedback link

        Args:
            report: Resolved report (owner must be loaded or loadable)
            feedback_url: Link embedding the plaintext token

        Returns:
            True if the mail was handed off, False if delivery failed
        """
        subject = f"{self.config.SITE_NAME}: how did we handle your report?"
        try:
            self.client.send(report.owner.email, subject, self.compose(report, feedback_url))
        except MailException as e:
            logger.error(f"Feedback email failed for report {report.id}: {str(e)}")
            return False

        self.metrics.stamp(report.id, "token_sent_at")
        return True
