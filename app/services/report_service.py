"""
Report business logic: filing, lookup, status workflow and timeline
"""
import logging
import secrets
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import Settings, settings
from app.core.context import RequestContext
from app.core.errors import FeedbackError, InvalidArgumentError, NotFoundError
from app.models.report import Report, REPORT_STATUSES, STATUS_PENDING, STATUS_RESOLVED
from app.models.status_change_event import StatusChangeEvent
from app.models.user import User
from app.schemas.report import ReportCreate, StatusUpdateResult, ReportResponse
from app.services.feedback_mailer import FeedbackMailer
from app.services.feedback_token_service import FeedbackTokenService

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20


def generate_tracking_code() -> str:
    return "CCH-" + secrets.token_hex(4).upper()


class ReportService:
    """
    Service for report-related business logic

    Every status change is appended to the status_change_events log,
    which is the source of the report timeline. Resolving a report also
    requests feedback from its owner; that step can fail without undoing
    the status change.
    """

    def __init__(
        self,
        db: Session,
        config: Settings = settings,
        mailer: Optional[FeedbackMailer] = None
    ):
        self.db = db
        self.config = config
        self.tokens = FeedbackTokenService(db, config)
        self.mailer = mailer or FeedbackMailer(db, config)

    def create_report(self, user_id: int, report_data: ReportCreate) -> Report:
        """
        File a new report as Pending

        Args:
            user_id: Reporting user
            report_data: Report creation data

        Returns:
            Created report

        Raises:
            NotFoundError: If the user does not exist
        """
        if not self.db.query(User).filter(User.id == user_id).first():
            raise NotFoundError(f"User with ID {user_id} not found")

        try:
            report = Report(
                user_id=user_id,
                tracking_code=generate_tracking_code(),
                title=report_data.title,
                description=report_data.description,
                incident_type=report_data.incident_type,
                status=STATUS_PENDING,
            )
            self.db.add(report)
            self.db.flush()
            self.db.add(StatusChangeEvent(
                report_id=report.id,
                from_status=None,
                to_status=STATUS_PENDING,
                actor_id=user_id,
                notes="Report submitted",
            ))
            self.db.commit()
            self.db.refresh(report)
        except IntegrityError:
            self.db.rollback()
            raise
        logger.info(f"Report {report.id} filed by user {user_id} ({report.tracking_code})")
        return report

    def get_report(self, report_id: int) -> Optional[Report]:
        return self.db.query(Report).filter(Report.id == report_id).first()

    def update_status(
        self,
        report_id: int,
        new_status: str,
        ctx: RequestContext,
        notes: Optional[str] = None
    ) -> StatusUpdateResult:
        """
        Move a report to a new status and record it on the timeline

        Args:
            report_id: Report to update
            new_status: One of REPORT_STATUSES
            ctx: Acting admin's request context
            notes: Optional notes stored with the timeline entry

        Returns:
            StatusUpdateResult with the updated report and any soft warnings

        Raises:
            InvalidArgumentError: If new_status is not a known status
            NotFoundError: If the report does not exist
        """
        if new_status not in REPORT_STATUSES:
            raise InvalidArgumentError(f"Unknown report status: {new_status}")

        report = self.get_report(report_id)
        if not report:
            raise NotFoundError(f"Report with ID {report_id} not found")

        previous = report.status
        if previous == new_status:
            return StatusUpdateResult(
                report=ReportResponse.model_validate(report),
                warnings=[f"Report is already '{new_status}'"],
            )

        try:
            report.status = new_status
            self.db.add(StatusChangeEvent(
                report_id=report.id,
                from_status=previous,
                to_status=new_status,
                actor_id=ctx.user_id,
                notes=notes,
            ))
            self.db.commit()
            self.db.refresh(report)
        except SQLAlchemyError:
            self.db.rollback()
            raise
        logger.info(f"Report {report_id} status '{previous}' -> '{new_status}' by user {ctx.user_id}")

        result = StatusUpdateResult(report=ReportResponse.model_validate(report))
        if new_status == STATUS_RESOLVED:
            self._request_feedback(report, ctx, result)
        return result

    def _request_feedback(self, report: Report, ctx: RequestContext, result: StatusUpdateResult) -> None:
        try:
            issued = self.tokens.issue(report.id, report.user_id, ctx=ctx)
        except (FeedbackError, SQLAlchemyError) as e:
            logger.warning(f"Could not issue feedback token for report {report.id}: {str(e)}")
            result.warnings.append("Feedback link could not be generated")
            return

        try:
            sent = self.mailer.send_feedback_request(report, issued.feedback_url)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"Feedback email bookkeeping failed for report {report.id}: {str(e)}")
            result.warnings.append("Feedback email status could not be recorded")
            return

        if sent:
            result.feedback_requested = True
        else:
            result.warnings.append("Feedback email could not be sent")

    def get_timeline(self, report_id: int) -> list[StatusChangeEvent]:
        """
        Status history of a report, oldest first

        Raises:
            NotFoundError: If the report does not exist
        """
        if not self.get_report(report_id):
            raise NotFoundError(f"Report with ID {report_id} not found")
        return self.db.query(StatusChangeEvent)\
            .filter(StatusChangeEvent.report_id == report_id)\
            .order_by(StatusChangeEvent.at, StatusChangeEvent.id)\
            .all()

    def get_by_tracking_code(self, tracking_code: str) -> Optional[Report]:
        code = (tracking_code or "").strip().upper()
        if not code:
            return None
        return self.db.query(Report).filter(Report.tracking_code == code).first()

    def list_user_reports(self, user_id: int) -> list[Report]:
        """A citizen's own reports, newest first"""
        return self.db.query(Report)\
            .filter(Report.user_id == user_id)\
            .order_by(Report.created_at.desc(), Report.id.desc())\
            .all()

    def search_reports(
        self,
        status: Optional[str] = None,
        incident_type: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        per_page: int = DEFAULT_PAGE_SIZE
    ) -> tuple[int, list[Report]]:
        """
        Admin report listing with filters and pagination

        Args:
            status: Only reports in this status
            incident_type: Only reports of this incident type
            search: Substring matched against title, description,
                tracking code, and the owner's name and email
            page: 1-based page number
            per_page: Page size

        Returns:
            (total matching reports, reports on the requested page), newest first

        Raises:
            InvalidArgumentError: If status is not a known status
        """
        if status and status not in REPORT_STATUSES:
            raise InvalidArgumentError(f"Unknown report status: {status}")

        query = self.db.query(Report).join(User, Report.user_id == User.id)
        if status:
            query = query.filter(Report.status == status)
        if incident_type:
            query = query.filter(Report.incident_type == incident_type)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                Report.title.ilike(pattern),
                Report.description.ilike(pattern),
                Report.tracking_code.ilike(pattern),
                User.full_name.ilike(pattern),
                User.email.ilike(pattern),
            ))

        total = query.count()
        page = max(1, page)
        reports = query\
            .order_by(Report.created_at.desc(), Report.id.desc())\
            .offset((page - 1) * per_page)\
            .limit(per_page)\
            .all()
        return total, reports
