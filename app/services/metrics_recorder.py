"""
Feedback funnel metrics: generated -> sent -> clicked -> started -> completed
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.clock import utcnow, whole_hours_between
from app.core.errors import InvalidArgumentError
from app.models.feedback_metrics import FeedbackMetrics, STAMPABLE_FIELDS

logger = logging.getLogger(__name__)

FIELD_ALIASES = {
    "tokenSentAt": "token_sent_at",
    "linkClickedAt": "link_clicked_at",
    "feedbackStartedAt": "feedback_started_at",
    "feedbackCompletedAt": "feedback_completed_at",
}

# Timestamp field -> derived duration computed when it is first set
DERIVED_HOURS = {
    "link_clicked_at": "time_to_click_hours",
    "feedback_completed_at": "time_to_complete_hours",
}


class MetricsRecorder:
    """Records the first occurrence of each feedback funnel event for a report"""

    def __init__(self, db: Session):
        self.db = db

    def start(self, report_id: int, now: Optional[datetime] = None) -> FeedbackMetrics:
        """
        Open (or reopen) the funnel for a report at token generation time.

        Flushes but does not commit, so it joins the issuer's transaction.
        A report that is issued a new token starts a fresh funnel.
        """
        now = now or utcnow()
        metrics = self.get(report_id)
        if metrics is None:
            metrics = FeedbackMetrics(report_id=report_id, token_generated_at=now)
            self.db.add(metrics)
        else:
            metrics.token_generated_at = now
            for field in STAMPABLE_FIELDS:
                setattr(metrics, field, None)
            for derived in DERIVED_HOURS.values():
                setattr(metrics, derived, None)
        self.db.flush()
        return metrics

    def get(self, report_id: int) -> Optional[FeedbackMetrics]:
        return self.db.query(FeedbackMetrics).filter(FeedbackMetrics.report_id == report_id).first()

    def stamp(self, report_id: int, field: str) -> Optional[FeedbackMetrics]:
        """
        Set one funnel timestamp to now, only if it is still unset

        Args:
            report_id: Report whose funnel to update
            field: One of the stampable fields (snake_case or camelCase)

        Returns:
            The metrics row, or None if the report has no funnel yet

        Raises:
            InvalidArgumentError: If field is not a stampable field
        """
        column = FIELD_ALIASES.get(field, field)
        if column not in STAMPABLE_FIELDS:
            raise InvalidArgumentError(f"Invalid metrics field: {field}")

        metrics = self.get(report_id)
        if metrics is None:
            logger.warning(f"No feedback metrics for report {report_id}, skipping {column}")
            return None

        if getattr(metrics, column) is not None:
            return metrics

        now = utcnow()
        setattr(metrics, column, now)
        derived = DERIVED_HOURS.get(column)
        if derived and getattr(metrics, derived) is None:
            setattr(metrics, derived, whole_hours_between(metrics.token_generated_at, now))

        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        return metrics
