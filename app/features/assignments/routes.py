"""
Assignment API routes.

Single-edge endpoints translate the service's boolean results: an assignment
that already exists is a 400, removing a missing one is a 404.
"""
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import config
from app.core.cache import CacheKeys, CacheService, get_cache, get_cache_keys
from app.core.database.engine import get_db
from app.core.rate_limit import limiter
from app.features.assignments.schemas import (
    AssignRoleToUser,
    AssignRoleToGroup,
    AssignUserToGroup,
    AssignPermissionToRole,
    BulkAssignRolesToUser,
    BulkAssignUsersToGroup,
    BulkAssignPermissionsToRole,
    AssignmentResponse,
    BulkAssignmentResponse,
)
from app.features.assignments.service import AssignmentService
from app.features.users.dependencies import require_permission


router = APIRouter()


def get_assignment_service(
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
    keys: CacheKeys = Depends(get_cache_keys),
) -> AssignmentService:
    return AssignmentService(db, cache, keys)


def assigned(created: bool, message: str) -> AssignmentResponse:
    if not created:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Assignment already exists")
    return AssignmentResponse(message=message)


def removed(deleted: bool, message: str) -> AssignmentResponse:
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assignment not found")
    return AssignmentResponse(message=message)


# ============================================================================
# User-Role
# ============================================================================

@router.post("/user-role", response_model=AssignmentResponse, dependencies=[Depends(require_permission("role.write"))])
async def assign_role_to_user(
    assignment: AssignRoleToUser,
    service: AssignmentService = Depends(get_assignment_service),
):
    created = await service.assign_role_to_user(assignment.user_id, assignment.role_id)
    return assigned(created, "Role assigned to user successfully")


@router.delete(
    "/user-role/{user_id}/{role_id}",
    response_model=AssignmentResponse,
    dependencies=[Depends(require_permission("role.write"))],
)
async def remove_role_from_user(
    user_id: int,
    role_id: int,
    service: AssignmentService = Depends(get_assignment_service),
):
    deleted = await service.remove_role_from_user(user_id, role_id)
    return removed(deleted, "Role removed from user successfully")


# ============================================================================
# Group-Role
# ============================================================================

@router.post("/group-role", response_model=AssignmentResponse, dependencies=[Depends(require_permission("role.write"))])
async def assign_role_to_group(
    assignment: AssignRoleToGroup,
    service: AssignmentService = Depends(get_assignment_service),
):
    """Assign a role to a group. Every member inherits the role's permissions."""
    created = await service.assign_role_to_group(assignment.group_id, assignment.role_id)
    return assigned(created, "Role assigned to group successfully")


@router.delete(
    "/group-role/{group_id}/{role_id}",
    response_model=AssignmentResponse,
    dependencies=[Depends(require_permission("role.write"))],
)
async def remove_role_from_group(
    group_id: int,
    role_id: int,
    service: AssignmentService = Depends(get_assignment_service),
):
    deleted = await service.remove_role_from_group(group_id, role_id)
    return removed(deleted, "Role removed from group successfully")


# ============================================================================
# User-Group
# ============================================================================

@router.post("/user-group", response_model=AssignmentResponse, dependencies=[Depends(require_permission("group.write"))])
async def assign_user_to_group(
    assignment: AssignUserToGroup,
    service: AssignmentService = Depends(get_assignment_service),
):
    created = await service.assign_user_to_group(assignment.user_id, assignment.group_id)
    return assigned(created, "User added to group successfully")


@router.delete(
    "/user-group/{user_id}/{group_id}",
    response_model=AssignmentResponse,
    dependencies=[Depends(require_permission("group.write"))],
)
async def remove_user_from_group(
    user_id: int,
    group_id: int,
    service: AssignmentService = Depends(get_assignment_service),
):
    deleted = await service.remove_user_from_group(user_id, group_id)
    return removed(deleted, "User removed from group successfully")


# ============================================================================
# Role-Permission
# ============================================================================

@router.post(
    "/role-permission",
    response_model=AssignmentResponse,
    dependencies=[Depends(require_permission("permission.write"))],
)
async def assign_permission_to_role(
    assignment: AssignPermissionToRole,
    service: AssignmentService = Depends(get_assignment_service),
):
    created = await service.assign_permission_to_role(assignment.role_id, assignment.permission_id)
    return assigned(created, "Permission assigned to role successfully")


@router.delete(
    "/role-permission/{role_id}/{permission_id}",
    response_model=AssignmentResponse,
    dependencies=[Depends(require_permission("permission.write"))],
)
async def remove_permission_from_role(
    role_id: int,
    permission_id: int,
    service: AssignmentService = Depends(get_assignment_service),
):
    deleted = await service.remove_permission_from_role(role_id, permission_id)
    return removed(deleted, "Permission removed from role successfully")


# ============================================================================
# Bulk
# ============================================================================

@router.post(
    "/bulk/user-roles",
    response_model=BulkAssignmentResponse,
    dependencies=[Depends(require_permission("role.write"))],
)
@limiter.limit(config.BULK_RATE_LIMIT)
async def bulk_assign_roles_to_user(
    request: Request,
    assignment: BulkAssignRolesToUser,
    service: AssignmentService = Depends(get_assignment_service),
):
    """Assign several roles to a user, skipping those already assigned."""
    count = await service.bulk_assign_roles_to_user(assignment.user_id, assignment.role_ids)
    return BulkAssignmentResponse(count=count, message=f"{count} roles assigned to user")


@router.post(
    "/bulk/group-users",
    response_model=BulkAssignmentResponse,
    dependencies=[Depends(require_permission("group.write"))],
)
@limiter.limit(config.BULK_RATE_LIMIT)
async def bulk_assign_users_to_group(
    request: Request,
    assignment: BulkAssignUsersToGroup,
    service: AssignmentService = Depends(get_assignment_service),
):
    """Add several users to a group, skipping existing members."""
    count = await service.bulk_assign_users_to_group(assignment.group_id, assignment.user_ids)
    return BulkAssignmentResponse(count=count, message=f"{count} users added to group")


@router.post(
    "/bulk/role-permissions",
    response_model=BulkAssignmentResponse,
    dependencies=[Depends(require_permission("permission.write"))],
)
@limiter.limit(config.BULK_RATE_LIMIT)
async def bulk_assign_permissions_to_role(
    request: Request,
    assignment: BulkAssignPermissionsToRole,
    service: AssignmentService = Depends(get_assignment_service),
):
    """Assign several permissions to a role, skipping those already assigned."""
    count = await service.bulk_assign_permissions_to_role(assignment.role_id, assignment.permission_ids)
    return BulkAssignmentResponse(count=count, message=f"{count} permissions assigned to role")
