"""
Shared route dependencies and error translation
"""
from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.context import RequestContext, get_request_context
from app.core.database import get_db
from app.core.errors import ErrorKind, FeedbackError
from app.services.user_service import UserService

STATUS_FOR_KIND = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.INVALID_STATE: status.HTTP_409_CONFLICT,
    ErrorKind.INVALID_ARGUMENT: status.HTTP_400_BAD_REQUEST,
}


def http_error(e: FeedbackError) -> HTTPException:
    return HTTPException(status_code=STATUS_FOR_KIND[e.kind], detail=e.message)


def require_user(ctx: RequestContext = Depends(get_request_context)) -> RequestContext:
    if ctx.user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return ctx


def require_admin(
    ctx: RequestContext = Depends(require_user),
    db: Session = Depends(get_db)
) -> RequestContext:
    if not UserService.is_admin(db, ctx.user_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return ctx
