"""
Group management API routes.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cache import CacheKeys, CacheService, get_cache, get_cache_keys
from app.core.database.engine import get_db
from app.core.pagination import Page, PaginationParams
from app.features.groups.schemas import GroupCreate, GroupUpdate, GroupResponse
from app.features.groups.service import GroupService
from app.features.users.dependencies import require_permission


router = APIRouter()


def get_group_service(
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
    keys: CacheKeys = Depends(get_cache_keys),
) -> GroupService:
    return GroupService(db, cache, keys)


@router.get("", response_model=Page[GroupResponse], dependencies=[Depends(require_permission("group.read"))])
async def list_groups(
    name: str | None = None,
    params: PaginationParams = Depends(),
    service: GroupService = Depends(get_group_service),
):
    return await service.list(params, name=name)


@router.get("/{group_id}", response_model=GroupResponse, dependencies=[Depends(require_permission("group.read"))])
async def get_group(group_id: int, service: GroupService = Depends(get_group_service)):
    return await service.get(group_id)


@router.post(
    "",
    response_model=GroupResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permission("group.write"))],
)
async def create_group(group: GroupCreate, service: GroupService = Depends(get_group_service)):
    return await service.create(group)


@router.put("/{group_id}", response_model=GroupResponse, dependencies=[Depends(require_permission("group.write"))])
async def update_group(group_id: int, group_update: GroupUpdate, service: GroupService = Depends(get_group_service)):
    return await service.update(group_id, group_update)


@router.delete(
    "/{group_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_permission("group.delete"))],
)
async def delete_group(group_id: int, service: GroupService = Depends(get_group_service)):
    """Delete a group. Members lose the permissions inherited through it."""
    await service.delete(group_id)
