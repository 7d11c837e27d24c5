"""
Pydantic schemas for user-related requests and responses.
"""
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, field_validator


USERNAME_PATTERN = r"^[a-zA-Z0-9._-]+$"
EMAIL_MAX_LENGTH = 200


def check_email_length(v: str | None) -> str | None:
    """EmailStr takes no length constraint, so the column limit is checked by hand."""
    if v is not None and len(v) > EMAIL_MAX_LENGTH:
        raise ValueError(f"Email must be at most {EMAIL_MAX_LENGTH} characters")
    return v


class UserBase(BaseModel):
    """Base user schema with common fields."""
    username: str = Field(..., min_length=1, max_length=100, pattern=USERNAME_PATTERN)
    email: EmailStr

    @field_validator("email")
    @classmethod
    def email_fits_column(cls, v: str) -> str:
        return check_email_length(v)


class UserCreate(UserBase):
    """Schema for creating a new user."""
    is_active: bool = True


class UserUpdate(BaseModel):
    """Schema for updating user information."""
    username: str | None = Field(None, min_length=1, max_length=100, pattern=USERNAME_PATTERN)
    email: EmailStr | None = None
    is_active: bool | None = None

    @field_validator("email")
    @classmethod
    def email_fits_column(cls, v: str | None) -> str | None:
        return check_email_length(v)


class UserResponse(UserBase):
    """Schema for user responses."""
    id: int
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}
