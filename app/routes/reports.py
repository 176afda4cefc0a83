"""
Report routes: filing, lookup, admin status workflow and timeline
"""
from sqlalchemy.orm import Session
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.core.context import RequestContext
from app.core.database import get_db
from app.core.errors import FeedbackError
from app.routes.deps import http_error, require_admin, require_user
from app.schemas.report import (
    ReportCreate, ReportListResponse, ReportResponse, StatusUpdate, StatusUpdateResult, StatusChangeResponse
)
from app.services.report_service import DEFAULT_PAGE_SIZE, ReportService
from app.services.user_service import UserService

router = APIRouter(tags=["reports"])


@router.post(
    "/reports",
    response_model=ReportResponse,
    status_code=status.HTTP_201_CREATED,
    summary="File a report"
)
def create_report(
    report_data: ReportCreate,
    ctx: RequestContext = Depends(require_user),
    db: Session = Depends(get_db)
):
    """File a new incident report as the calling user"""
    try:
        return ReportService(db).create_report(ctx.user_id, report_data)
    except FeedbackError as e:
        raise http_error(e)


@router.get(
    "/reports",
    response_model=list[ReportResponse],
    summary="My reports"
)
def list_my_reports(
    ctx: RequestContext = Depends(require_user),
    db: Session = Depends(get_db)
):
    """The calling user's own reports, newest first"""
    return ReportService(db).list_user_reports(ctx.user_id)


@router.get(
    "/reports/track/{tracking_code}",
    response_model=ReportResponse,
    summary="Track a report by its code"
)
def track_report(
    tracking_code: str,
    ctx: RequestContext = Depends(require_user),
    db: Session = Depends(get_db)
):
    """Owners can track their own reports; admins can track any"""
    report = ReportService(db).get_by_tracking_code(tracking_code)
    if not report or (report.user_id != ctx.user_id and not UserService.is_admin(db, ctx.user_id)):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No report found with that tracking code"
        )
    return report


@router.get(
    "/reports/{report_id}",
    response_model=ReportResponse,
    summary="Get report by ID"
)
def get_report(
    report_id: int,
    ctx: RequestContext = Depends(require_user),
    db: Session = Depends(get_db)
):
    """Owners see their own reports; admins see all"""
    report = ReportService(db).get_report(report_id)
    if not report or (report.user_id != ctx.user_id and not UserService.is_admin(db, ctx.user_id)):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Report with ID {report_id} not found"
        )
    return report


@router.get(
    "/reports/{report_id}/timeline",
    response_model=list[StatusChangeResponse],
    summary="Report status history"
)
def get_timeline(
    report_id: int,
    ctx: RequestContext = Depends(require_user),
    db: Session = Depends(get_db)
):
    service = ReportService(db)
    report = service.get_report(report_id)
    if not report or (report.user_id != ctx.user_id and not UserService.is_admin(db, ctx.user_id)):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Report with ID {report_id} not found"
        )
    return service.get_timeline(report_id)


@router.patch(
    "/admin/reports/{report_id}/status",
    response_model=StatusUpdateResult,
    summary="Update report status",
    description="""
    Move a report to a new status.

    Resolving a report also emails its owner a single-use feedback link.
    Failures in that step are returned as warnings; the status change stands.
    """
)
def update_status(
    report_id: int,
    update: StatusUpdate,
    ctx: RequestContext = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        return ReportService(db).update_status(report_id, update.status, ctx, notes=update.notes)
    except FeedbackError as e:
        raise http_error(e)


@router.get(
    "/admin/reports",
    response_model=ReportListResponse,
    summary="List and search reports"
)
def list_reports(
    status_filter: Optional[str] = Query(None, alias="status", description="Only this status"),
    incident_type: Optional[str] = Query(None, description="Only this incident type"),
    search: Optional[str] = Query(None, max_length=100, description="Title, description, tracking code or owner"),
    page: int = Query(1, ge=1),
    per_page: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=100),
    _: RequestContext = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        total, reports = ReportService(db).search_reports(
            status=status_filter,
            incident_type=incident_type,
            search=search,
            page=page,
            per_page=per_page
        )
    except FeedbackError as e:
        raise http_error(e)
    return ReportListResponse(
        total=total, page=page, per_page=per_page,
        reports=[ReportResponse.model_validate(r) for r in reports]
    )
