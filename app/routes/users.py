"""
User management routes
"""
from sqlalchemy.orm import Session
from fastapi import APIRouter, Depends, HTTPException, status

from app.core.context import RequestContext, get_request_context
from app.core.database import get_db
from app.models.user import ROLE_ADMIN
from app.routes.deps import require_admin, require_user
from app.services.user_service import UserService
from app.schemas.user import UserCreate, UserResponse, UserListResponse

router = APIRouter(prefix="/users", tags=["users"])


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    description="Create a citizen account, or an admin account when called by an admin"
)
def create_user(
    user_data: UserCreate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    """
    Register a new user

    - **email**: Unique login and notification address
    - **full_name**: User's full name
    - **role**: "user" (default) or "admin"; the first admin may be created
      without authentication, later ones only by an admin
    """
    if user_data.role == ROLE_ADMIN and UserService.admin_exists(db) \
            and not UserService.is_admin(db, ctx.user_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required to create admin accounts"
        )
    try:
        return UserService.create_user(db, user_data)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )


@router.get(
    "",
    response_model=UserListResponse,
    summary="Get all users",
    description="Retrieve all users in the system (admin only)"
)
def get_users(
    _: RequestContext = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Get all users

    Returns a list of all users and the total count
    """
    users = UserService.get_all_users(db)
    return UserListResponse(
        total=len(users),
        users=users
    )


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    summary="Get user by ID",
    description="Retrieve a user; callers may read themselves, admins anyone"
)
def get_user(
    user_id: int,
    ctx: RequestContext = Depends(require_user),
    db: Session = Depends(get_db)
):
    """
    Get a specific user by ID

    - **user_id**: The user's ID
    """
    user = None
    if ctx.user_id == user_id or UserService.is_admin(db, ctx.user_id):
        user = UserService.get_user_by_id(db, user_id)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User with ID {user_id} not found"
        )

    return user
