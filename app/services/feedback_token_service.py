"""
Feedback token lifecycle: issue, validate, mark used, sweep expired
"""
import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.clock import utcnow
from app.core.config import Settings, settings
from app.core.context import RequestContext
from app.core.errors import FeedbackError, InvalidStateError, NotFoundError
from app.integrations.links import build_feedback_url
from app.models.feedback_token import FeedbackToken
from app.models.report import Report, STATUS_RESOLVED
from app.models.user import User
from app.schemas.feedback import IssuedToken, TokenDescriptor
from app.services.metrics_recorder import MetricsRecorder
from app.services.token_codec import generate_token, hash_token

logger = logging.getLogger(__name__)


class FeedbackTokenService:
    """
    Issues and checks single-use feedback tokens for resolved reports.

    Only the SHA-256 digest of a token is stored. The plaintext secret is
    returned once from issue() and is never recoverable afterwards.

    Issuing a token while a live one exists for the same report and owner
    rotates it: the old token is deactivated and a new one is minted in the
    same transaction, under a row lock on the report, so at most one live
    token exists per (report, user) pair.
    """

    def __init__(self, db: Session, config: Settings = settings):
        self.db = db
        self.config = config
        self.metrics = MetricsRecorder(db)

    def issue(
        self,
        report_id: int,
        user_id: int,
        expiry_hours: Optional[int] = None,
        ctx: Optional[RequestContext] = None
    ) -> IssuedToken:
        """
        Issue a feedback token for a resolved report

        Args:
            report_id: Resolved report the token authorizes feedback for
            user_id: Owner of the report
            expiry_hours: Token lifetime, defaults to FEEDBACK_TOKEN_EXPIRY_HOURS
            ctx: Request context whose IP and user agent are recorded for audit

        Returns:
            IssuedToken with the plaintext secret and feedback URL

        Raises:
            NotFoundError: If the report does not exist or is not owned by user_id
            InvalidStateError: If the report is not Resolved
        """
        if expiry_hours is None:
            expiry_hours = self.config.FEEDBACK_TOKEN_EXPIRY_HOURS
        ctx = ctx or RequestContext()

        try:
            report = self.db.query(Report)\
                .filter(Report.id == report_id, Report.user_id == user_id)\
                .with_for_update()\
                .first()
            if not report:
                raise NotFoundError(f"Report {report_id} not found for user {user_id}")
            if report.status != STATUS_RESOLVED:
                raise InvalidStateError(
                    f"Report {report_id} is '{report.status}', feedback tokens require '{STATUS_RESOLVED}'"
                )

            now = utcnow()
            superseded = self._deactivate_live_tokens(report_id, user_id, now)

            secret = generate_token()
            token = FeedbackToken(
                report_id=report_id,
                user_id=user_id,
                token_hash=hash_token(secret),
                created_at=now,
                expires_at=now + timedelta(hours=expiry_hours),
                is_active=True,
                ip_address=ctx.ip_address,
                user_agent=(ctx.user_agent or "")[:500] or None,
            )
            self.db.add(token)
            self.db.flush()

            self.metrics.start(report_id, now)
            self.db.commit()
        except FeedbackError:
            self.db.rollback()
            raise
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Failed to issue feedback token for report {report_id}")
            raise

        if superseded:
            logger.info(f"Rotated {superseded} live feedback token(s) for report {report_id}")
        logger.info(f"Issued feedback token {token.id} for report {report_id}, expires {token.expires_at}")

        return IssuedToken(
            id=token.id,
            secret=secret,
            expires_at=token.expires_at,
            feedback_url=build_feedback_url(secret, self.config),
        )

    def _deactivate_live_tokens(self, report_id: int, user_id: int, now) -> int:
        return self.db.query(FeedbackToken)\
            .filter(
                FeedbackToken.report_id == report_id,
                FeedbackToken.user_id == user_id,
                FeedbackToken.live_criteria(now),
            )\
            .update({FeedbackToken.is_active: False}, synchronize_session=False)

    def validate(self, secret: str) -> Optional[TokenDescriptor]:
        """
        Check a presented token and record the link click

        Unknown, expired and already-used tokens all return None; callers
        facing the browser must not tell them apart.

        Args:
            secret: Plaintext token from the feedback link

        Returns:
            TokenDescriptor if the token is live, None otherwise
        """
        if not secret:
            return None

        row = self.db.query(FeedbackToken, Report.title, User.email)\
            .join(Report, FeedbackToken.report_id == Report.id)\
            .join(User, FeedbackToken.user_id == User.id)\
            .filter(
                FeedbackToken.token_hash == hash_token(secret),
                FeedbackToken.is_active == True,  # noqa: E712
            )\
            .first()

        if row is None:
            logger.info("Feedback token rejected: unknown or inactive")
            return None

        token, report_title, user_email = row
        if not token.is_live(utcnow()):
            reason = "already used" if token.used_at is not None else "expired"
            logger.info(f"Feedback token {token.id} rejected: {reason}")
            return None

        self.metrics.stamp(token.report_id, "link_clicked_at")

        return TokenDescriptor(
            token_id=token.id,
            report_id=token.report_id,
            user_id=token.user_id,
            report_title=report_title,
            user_email=user_email,
        )

    def mark_used(self, secret: str) -> bool:
        """
        Consume a token after its feedback has been saved

        The first call sets used_at; repeated calls keep that first time.
        Call this only once the feedback is durably stored.

        Args:
            secret: Plaintext token from the feedback link

        Returns:
            True if an active token with this secret exists, False otherwise
        """
        token = self.db.query(FeedbackToken)\
            .filter(
                FeedbackToken.token_hash == hash_token(secret),
                FeedbackToken.is_active == True,  # noqa: E712
            )\
            .first()
        if token is None:
            return False

        if token.used_at is None:
            token.used_at = utcnow()
            try:
                self.db.commit()
            except SQLAlchemyError:
                self.db.rollback()
                raise
            logger.info(f"Feedback token {token.id} marked used")
        return True

    def cleanup_expired(self) -> int:
        """
        Deactivate every active token past its expiry; rows are kept for audit

        Returns:
            Number of tokens deactivated
        """
        try:
            count = self.db.query(FeedbackToken)\
                .filter(
                    FeedbackToken.expires_at < utcnow(),
                    FeedbackToken.is_active == True,  # noqa: E712
                )\
                .update({FeedbackToken.is_active: False}, synchronize_session=False)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        logger.info(f"Deactivated {count} expired feedback token(s)")
        return count
