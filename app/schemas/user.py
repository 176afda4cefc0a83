"""
Pydantic schemas for User
"""
from datetime import datetime
from pydantic import BaseModel, Field, field_validator

from app.models.user import ROLE_USER, USER_ROLES


class UserCreate(BaseModel):
    """Schema for creating a user"""
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$", description="Login and notification address")
    full_name: str = Field(..., min_length=1, max_length=100, description="User's full name")
    role: str = Field(ROLE_USER, description="Account role")

    @field_validator("role")
    @classmethod
    def _known_role(cls, v: str) -> str:
        if v not in USER_ROLES:
            raise ValueError(f"role must be one of {', '.join(USER_ROLES)}")
        return v


class UserResponse(BaseModel):
    """Schema for user response"""
    id: int
    email: str
    full_name: str
    role: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True  # ORM mode for Pydantic v2


class UserListResponse(BaseModel):
    """Schema for list of users"""
    total: int = Field(..., description="Total number of users")
    users: list[UserResponse] = Field(..., description="List of users")
