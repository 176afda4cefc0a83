"""
User business logic service
"""
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from app.models.user import User, ROLE_ADMIN
from app.schemas.user import UserCreate


class UserService:
    """Service for user-related business logic"""

    @staticmethod
    def create_user(db: Session, user_data: UserCreate) -> User:
        """
        Create a new user

        Args:
            db: Database session
            user_data: User creation data

        Returns:
            Created user object

        Raises:
            ValueError: If the email is already registered
        """
        try:
            new_user = User(
                email=user_data.email.lower(),
                full_name=user_data.full_name,
                role=user_data.role
            )
            db.add(new_user)
            db.commit()
            db.refresh(new_user)
            return new_user
        except IntegrityError:
            db.rollback()
            raise ValueError(f"User with email {user_data.email} already exists")

    @staticmethod
    def get_all_users(db: Session) -> list[User]:
        """
        Get all users

        Args:
            db: Database session

        Returns:
            List of all users
        """
        return db.query(User).order_by(User.id).all()

    @staticmethod
    def get_user_by_id(db: Session, user_id: int) -> User:
        """
        Get a user by ID

        Args:
            db: Database session
            user_id: User ID

        Returns:
            User object if found, None otherwise
        """
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def is_admin(db: Session, user_id) -> bool:
        if user_id is None:
            return False
        user = UserService.get_user_by_id(db, user_id)
        return user is not None and user.role == ROLE_ADMIN

    @staticmethod
    def admin_exists(db: Session) -> bool:
        return db.query(User).filter(User.role == ROLE_ADMIN).first() is not None
