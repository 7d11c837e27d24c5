"""
Pydantic schemas for assignment requests.
"""
from typing import Annotated

from pydantic import BaseModel, Field


PositiveId = Annotated[int, Field(gt=0)]


class AssignRoleToUser(BaseModel):
    """Schema for assigning a role directly to a user."""
    user_id: int = Field(..., gt=0, description="User ID")
    role_id: int = Field(..., gt=0, description="Role ID")


class AssignRoleToGroup(BaseModel):
    """Schema for assigning a role to a group."""
    group_id: int = Field(..., gt=0, description="Group ID")
    role_id: int = Field(..., gt=0, description="Role ID")


class AssignUserToGroup(BaseModel):
    """Schema for adding a user to a group."""
    user_id: int = Field(..., gt=0, description="User ID")
    group_id: int = Field(..., gt=0, description="Group ID")


class AssignPermissionToRole(BaseModel):
    """Schema for assigning a permission to a role."""
    role_id: int = Field(..., gt=0, description="Role ID")
    permission_id: int = Field(..., gt=0, description="Permission ID")


class BulkAssignRolesToUser(BaseModel):
    """Schema for assigning several roles to one user."""
    user_id: int = Field(..., gt=0)
    role_ids: list[PositiveId] = Field(..., min_length=1, description="Role IDs to assign")


class BulkAssignUsersToGroup(BaseModel):
    """Schema for adding several users to one group."""
    group_id: int = Field(..., gt=0)
    user_ids: list[PositiveId] = Field(..., min_length=1, description="User IDs to add")


class BulkAssignPermissionsToRole(BaseModel):
    """Schema for assigning several permissions to one role."""
    role_id: int = Field(..., gt=0)
    permission_ids: list[PositiveId] = Field(..., min_length=1, description="Permission IDs to assign")


class AssignmentResponse(BaseModel):
    message: str


class BulkAssignmentResponse(BaseModel):
    """Number of edges actually inserted (already-present edges are skipped)."""
    count: int
    message: str
