"""
Feedback routes

The public router serves the page behind emailed feedback links. It never
says why a link is rejected: unknown, expired and used tokens all get the
same response.
"""
import logging

from sqlalchemy.orm import Session
from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.core.context import RequestContext, get_request_context
from app.core.database import get_db
from app.routes.deps import require_admin
from app.schemas.feedback import (
    CleanupResponse, FeedbackAnalytics, FeedbackDetail, FeedbackListResponse, FeedbackMetricsResponse,
    FeedbackResponse, FeedbackSubmit, TokenDescriptor
)
from app.services.feedback_service import FeedbackService
from app.services.feedback_token_service import FeedbackTokenService
from app.services.metrics_recorder import MetricsRecorder

logger = logging.getLogger(__name__)

INVALID_LINK_MESSAGE = "This feedback link is no longer valid."

router = APIRouter(prefix="/feedback", tags=["feedback"])
admin_router = APIRouter(prefix="/admin", tags=["feedback-admin"])


def _invalid_link() -> HTTPException:
    return HTTPException(status_code=status.HTTP_410_GONE, detail=INVALID_LINK_MESSAGE)


@router.get(
    "/",
    response_model=TokenDescriptor,
    summary="Open a feedback link"
)
def open_feedback_link(
    token: str = Query("", description="Token from the feedback email"),
    db: Session = Depends(get_db)
):
    """Validate the link token and return what the feedback form needs"""
    descriptor = FeedbackTokenService(db).validate(token)
    if descriptor is None:
        raise _invalid_link()
    return descriptor


@router.post(
    "/",
    response_model=FeedbackResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit feedback"
)
def submit_feedback(
    payload: FeedbackSubmit,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    feedback = FeedbackService(db).submit(payload, ctx)
    if feedback is None:
        raise _invalid_link()
    return feedback


@admin_router.get(
    "/reports/{report_id}/feedback-metrics",
    response_model=FeedbackMetricsResponse,
    summary="Feedback funnel for a report"
)
def get_feedback_metrics(
    report_id: int,
    _: RequestContext = Depends(require_admin),
    db: Session = Depends(get_db)
):
    metrics = MetricsRecorder(db).get(report_id)
    if metrics is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No feedback metrics for report {report_id}"
        )
    return metrics


@admin_router.post(
    "/feedback-tokens/cleanup",
    response_model=CleanupResponse,
    summary="Deactivate expired feedback tokens"
)
def cleanup_expired_tokens(
    _: RequestContext = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Meant for a periodic maintenance job"""
    return CleanupResponse(deactivated=FeedbackTokenService(db).cleanup_expired())


@admin_router.get(
    "/feedback",
    response_model=FeedbackListResponse,
    summary="List collected feedback"
)
def list_feedback(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    _: RequestContext = Depends(require_admin),
    db: Session = Depends(get_db)
):
    total, items = FeedbackService(db).list_feedback(page=page, per_page=per_page)
    return FeedbackListResponse(
        total=total, page=page, per_page=per_page, feedback=[FeedbackDetail.model_validate(f) for f in items]
    )


@admin_router.get(
    "/feedback/analytics",
    response_model=FeedbackAnalytics,
    summary="Feedback satisfaction analytics",
    description="Average rating, totals, rating distribution and the last six months of trends"
)
def feedback_analytics(
    _: RequestContext = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return FeedbackService(db).get_analytics()
