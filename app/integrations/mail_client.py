"""
SMTP mail client
"""
import logging
import smtplib
from email.message import EmailMessage

from app.core.config import Settings

logger = logging.getLogger(__name__)


class MailException(Exception):
    """Mail delivery exception"""
    pass


class MailClient:
    """Plain-text SMTP client; logs instead of sending when MAIL_ENABLED is off"""

    def __init__(self, config: Settings):
        self.config = config

    def send(self, to_address: str, subject: str, body: str) -> None:
        """
        Send a plain-text email

        Args:
            to_address: Recipient address
            subject: Subject line
            body: Plain-text body

        Raises:
            MailException: If the SMTP exchange fails
        """
        if not self.config.MAIL_ENABLED:
            # Body may carry a secret link, so only the envelope is logged
            logger.info(f"Mail disabled, not sending '{subject}' to {to_address}")
            return

        message = EmailMessage()
        message["From"] = self.config.MAIL_FROM
        message["To"] = to_address
        message["Subject"] = subject
        message.set_content(body)

        try:
            with smtplib.SMTP(self.config.SMTP_HOST, self.config.SMTP_PORT, timeout=30) as smtp:
                smtp.starttls()
                if self.config.SMTP_USER:
                    smtp.login(self.config.SMTP_USER, self.config.SMTP_PASSWORD)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise MailException(f"Failed to send mail to {to_address}: {str(e)}")
