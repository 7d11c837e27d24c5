"""
Role management API routes.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cache import CacheKeys, CacheService, get_cache, get_cache_keys
from app.core.database.engine import get_db
from app.core.pagination import Page, PaginationParams
from app.features.roles.schemas import RoleCreate, RoleUpdate, RoleResponse, RoleWithPermissions
from app.features.roles.service import RoleService
from app.features.users.dependencies import require_permission


router = APIRouter()


def get_role_service(
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
    keys: CacheKeys = Depends(get_cache_keys),
) -> RoleService:
    return RoleService(db, cache, keys)


@router.get("", response_model=Page[RoleResponse], dependencies=[Depends(require_permission("role.read"))])
async def list_roles(
    name: str | None = None,
    params: PaginationParams = Depends(),
    service: RoleService = Depends(get_role_service),
):
    return await service.list(params, name=name)


@router.get(
    "/{role_id}",
    response_model=RoleWithPermissions,
    dependencies=[Depends(require_permission("role.read"))],
)
async def get_role(role_id: int, service: RoleService = Depends(get_role_service)):
    """Get a role with its permissions."""
    return await service.get(role_id)


@router.post(
    "",
    response_model=RoleWithPermissions,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permission("role.write"))],
)
async def create_role(role: RoleCreate, service: RoleService = Depends(get_role_service)):
    return await service.create(role)


@router.put(
    "/{role_id}",
    response_model=RoleWithPermissions,
    dependencies=[Depends(require_permission("role.write"))],
)
async def update_role(role_id: int, role_update: RoleUpdate, service: RoleService = Depends(get_role_service)):
    return await service.update(role_id, role_update)


@router.delete(
    "/{role_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_permission("role.delete"))],
)
async def delete_role(role_id: int, service: RoleService = Depends(get_role_service)):
    """Delete a role and every user, group and permission assignment it has."""
    await service.delete(role_id)
