"""
Pydantic schemas for group-related requests and responses.
"""
from datetime import datetime
from pydantic import BaseModel, Field


class GroupBase(BaseModel):
    """Base group schema."""
    name: str = Field(..., min_length=1, max_length=150, description="Unique group name")
    description: str | None = Field(None, max_length=300, description="Group description")


class GroupCreate(GroupBase):
    """Schema for creating a new group."""
    pass


class GroupUpdate(BaseModel):
    """Schema for updating a group."""
    name: str | None = Field(None, min_length=1, max_length=150)
    description: str | None = Field(None, max_length=300)


class GroupResponse(GroupBase):
    """Schema for group response."""
    id: int
    created_at: datetime

    model_config = {"from_attributes": True}
