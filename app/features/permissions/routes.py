"""
Permission management API routes.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cache import CacheKeys, CacheService, get_cache, get_cache_keys
from app.core.database.engine import get_db
from app.core.pagination import Page, PaginationParams
from app.features.permissions.schemas import PermissionCreate, PermissionUpdate, PermissionResponse
from app.features.permissions.service import PermissionService
from app.features.users.dependencies import require_permission


router = APIRouter()


def get_permission_service(
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
    keys: CacheKeys = Depends(get_cache_keys),
) -> PermissionService:
    return PermissionService(db, cache, keys)


@router.get(
    "",
    response_model=Page[PermissionResponse],
    dependencies=[Depends(require_permission("permission.read"))],
)
async def list_permissions(
    name: str | None = None,
    params: PaginationParams = Depends(),
    service: PermissionService = Depends(get_permission_service),
):
    """List permissions, optionally filtered by a name substring."""
    return await service.list(params, name=name)


@router.get(
    "/{permission_id}",
    response_model=PermissionResponse,
    dependencies=[Depends(require_permission("permission.read"))],
)
async def get_permission(permission_id: int, service: PermissionService = Depends(get_permission_service)):
    return await service.get(permission_id)


@router.post(
    "",
    response_model=PermissionResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permission("permission.write"))],
)
async def create_permission(permission: PermissionCreate, service: PermissionService = Depends(get_permission_service)):
    return await service.create(permission)


@router.put(
    "/{permission_id}",
    response_model=PermissionResponse,
    dependencies=[Depends(require_permission("permission.write"))],
)
async def update_permission(
    permission_id: int,
    permission_update: PermissionUpdate,
    service: PermissionService = Depends(get_permission_service),
):
    """Update a permission. Renaming it changes every effective permission set that includes it."""
    return await service.update(permission_id, permission_update)


@router.delete(
    "/{permission_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_permission("permission.delete"))],
)
async def delete_permission(permission_id: int, service: PermissionService = Depends(get_permission_service)):
    await service.delete(permission_id)
