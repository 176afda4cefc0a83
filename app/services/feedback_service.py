"""
Feedback submission and admin reporting over collected feedback
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.clock import utcnow
from app.core.config import Settings, settings
from app.core.context import RequestContext
from app.models.feedback import Feedback
from app.schemas.feedback import FeedbackAnalytics, FeedbackSubmit, MonthlyTrend
from app.services.feedback_token_service import FeedbackTokenService

logger = logging.getLogger(__name__)

TREND_MONTHS = 6


class FeedbackService:
    """Service for accepting citizen feedback through a token link and reporting on it"""

    def __init__(self, db: Session, config: Settings = settings):
        self.db = db
        self.tokens = FeedbackTokenService(db, config)

    def submit(self, payload: FeedbackSubmit, ctx: RequestContext) -> Optional[Feedback]:
        """
        Record feedback for the report a token grants access to

        The feedback row is committed before the token is marked used, so
        a failed save leaves the link usable for a retry.

        Args:
            payload: Ratings and comments, including the token
            ctx: Request context of the submitting browser

        Returns:
            Stored Feedback, or None if the token is not valid
        """
        descriptor = self.tokens.validate(payload.token)
        if descriptor is None:
            return None

        if self._already_submitted(descriptor.token_id):
            logger.warning(f"Feedback for token {descriptor.token_id} already stored, consuming token")
            self.tokens.mark_used(payload.token)
            return None

        self.tokens.metrics.stamp(descriptor.report_id, "feedback_started_at")

        try:
            feedback = Feedback(
                report_id=descriptor.report_id,
                user_id=descriptor.user_id,
                token_id=descriptor.token_id,
                overall_rating=payload.overall_rating,
                communication_rating=payload.communication_rating,
                resolution_speed_rating=payload.resolution_speed_rating,
                professionalism_rating=payload.professionalism_rating,
                would_recommend=payload.would_recommend,
                comments=payload.comments,
                ip_address=ctx.ip_address,
                user_agent=(ctx.user_agent or "")[:500] or None,
            )
            self.db.add(feedback)
            self.db.commit()
            self.db.refresh(feedback)
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Failed to save feedback for report {descriptor.report_id}")
            raise

        # Detach so a rollback below cannot expire the saved row's loaded state
        self.db.expunge(feedback)
        try:
            self.tokens.mark_used(payload.token)
            self.tokens.metrics.stamp(descriptor.report_id, "feedback_completed_at")
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Feedback {feedback.id} saved but token {descriptor.token_id} was not consumed")
        logger.info(f"Feedback {feedback.id} recorded for report {descriptor.report_id}")
        return feedback

    def _already_submitted(self, token_id: int) -> bool:
        return self.db.query(Feedback.id).filter(Feedback.token_id == token_id).first() is not None

    def list_feedback(self, page: int = 1, per_page: int = 20) -> tuple[int, list[Feedback]]:
        """All feedback, newest first, one page at a time"""
        query = self.db.query(Feedback)
        total = query.count()
        items = query\
            .order_by(Feedback.submitted_at.desc(), Feedback.id.desc())\
            .offset((max(1, page) - 1) * per_page)\
            .limit(per_page)\
            .all()
        return total, items

    def get_analytics(self, now: Optional[datetime] = None) -> FeedbackAnalytics:
        """
        Aggregate ratings for the admin dashboard

        Monthly trends cover the current month and the five before it.
        """
        now = now or utcnow()

        total = self.db.query(func.count(Feedback.id)).scalar() or 0
        average = self.db.query(func.avg(Feedback.overall_rating))\
            .filter(Feedback.overall_rating > 0)\
            .scalar()

        distribution = {
            rating: count
            for rating, count in self.db.query(Feedback.overall_rating, func.count(Feedback.id))
            .filter(Feedback.overall_rating > 0)
            .group_by(Feedback.overall_rating)
            .order_by(Feedback.overall_rating)
            .all()
        }

        # Grouped by "YYYY-MM" in Python, portable across backends
        since = _months_back(now, TREND_MONTHS - 1)
        buckets: dict[str, list[int]] = {}
        rows = self.db.query(Feedback.submitted_at, Feedback.overall_rating)\
            .filter(Feedback.submitted_at >= since)\
            .all()
        for submitted_at, rating in rows:
            buckets.setdefault(submitted_at.strftime("%Y-%m"), []).append(rating)

        return FeedbackAnalytics(
            avg_rating=round(float(average or 0), 2),
            total_feedback=total,
            rating_distribution=distribution,
            monthly_trends=[
                MonthlyTrend(month=month, count=len(ratings), avg_rating=round(sum(ratings) / len(ratings), 2))
                for month, ratings in sorted(buckets.items())
            ],
        )


def _months_back(now: datetime, months: int) -> datetime:
    """Midnight on the first day of the month `months` before now's month"""
    index = now.year * 12 + (now.month - 1) - months
    return datetime(index // 12, index % 12 + 1, 1)
