"""
Pydantic schemas for permissions and effective permission views.
"""
from typing import List
from pydantic import BaseModel, Field, ConfigDict, field_validator


def check_permission_name(v: str | None) -> str | None:
    """Validate permission name format."""
    if v is not None and not v.replace('_', '').replace('.', '').replace(':', '').replace('-', '').isalnum():
        raise ValueError('Permission name must contain only alphanumeric characters, dots, colons, hyphens and underscores')
    return v


class PermissionBase(BaseModel):
    """Base permission schema."""
    name: str = Field(..., min_length=1, max_length=150, description="Unique permission name, e.g. 'user.read'")
    description: str | None = Field(None, max_length=300, description="Permission description")


class PermissionCreate(PermissionBase):
    """Schema for creating a new permission."""

    @field_validator('name')
    @classmethod
    def name_alphanumeric_dots(cls, v: str) -> str:
        return check_permission_name(v)


class PermissionUpdate(BaseModel):
    """Schema for updating a permission."""
    name: str | None = Field(None, min_length=1, max_length=150)
    description: str | None = Field(None, max_length=300)

    @field_validator('name')
    @classmethod
    def name_alphanumeric_dots(cls, v: str | None) -> str | None:
        return check_permission_name(v)


class PermissionResponse(PermissionBase):
    """Schema for permission response."""
    id: int

    model_config = ConfigDict(from_attributes=True)


class EffectivePermissions(BaseModel):
    """
    Effective permission view of one user.

    all_permissions is the deduplicated union of the other two lists, sorted
    by permission name.
    """
    user_id: int
    username: str
    direct_permissions: List[str] = []
    group_inherited_permissions: List[str] = []
    all_permissions: List[str] = []
