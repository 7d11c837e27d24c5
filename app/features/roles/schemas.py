"""
Pydantic schemas for role-related requests and responses.
"""
from datetime import datetime
from typing import List
from pydantic import BaseModel, Field, ConfigDict

from app.features.permissions.schemas import PermissionResponse


class RoleBase(BaseModel):
    """Base role schema."""
    name: str = Field(..., min_length=1, max_length=100, description="Unique role name")
    description: str | None = Field(None, max_length=300, description="Role description")


class RoleCreate(RoleBase):
    """Schema for creating a new role."""
    pass


class RoleUpdate(BaseModel):
    """Schema for updating a role."""
    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=300)


class RoleResponse(RoleBase):
    """Schema for role response."""
    id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RoleWithPermissions(RoleResponse):
    """Schema for role with permissions."""
    permissions: List[PermissionResponse] = []
