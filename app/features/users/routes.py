"""
User management API routes.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cache import CacheKeys, CacheService, get_cache, get_cache_keys
from app.core.database.engine import get_db
from app.core.pagination import Page, PaginationParams
from app.features.permissions.resolver import PermissionResolver
from app.features.permissions.schemas import EffectivePermissions
from app.features.users.dependencies import require_permission
from app.features.users.schemas import UserCreate, UserUpdate, UserResponse
from app.features.users.service import UserService


router = APIRouter()


def get_user_service(
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
    keys: CacheKeys = Depends(get_cache_keys),
) -> UserService:
    return UserService(db, cache, keys)


def get_permission_resolver(
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
    keys: CacheKeys = Depends(get_cache_keys),
) -> PermissionResolver:
    return PermissionResolver(db, cache, keys)


@router.get("", response_model=Page[UserResponse], dependencies=[Depends(require_permission("user.read"))])
async def list_users(
    username: str | None = None,
    email: str | None = None,
    is_active: bool | None = None,
    params: PaginationParams = Depends(),
    service: UserService = Depends(get_user_service),
):
    """List users, optionally filtered by username or email substring and active flag."""
    return await service.list(params, username=username, email=email, is_active=is_active)


@router.get("/{user_id}", response_model=UserResponse, dependencies=[Depends(require_permission("user.read"))])
async def get_user(user_id: int, service: UserService = Depends(get_user_service)):
    return await service.get(user_id)


@router.get(
    "/{user_id}/permissions",
    response_model=EffectivePermissions,
    dependencies=[Depends(require_permission("user.read"))],
)
async def get_user_permissions(user_id: int, resolver: PermissionResolver = Depends(get_permission_resolver)):
    """
    Get the effective permissions of a user.

    Returns the permissions granted through directly assigned roles, those
    inherited through group roles, and their sorted union. The result may be
    served from cache for up to the permissions TTL.
    """
    return await resolver.resolve(user_id)


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permission("user.write"))],
)
async def create_user(user: UserCreate, service: UserService = Depends(get_user_service)):
    """Create a user. Username and email must be unique."""
    return await service.create(user)


@router.put("/{user_id}", response_model=UserResponse, dependencies=[Depends(require_permission("user.write"))])
async def update_user(user_id: int, user_update: UserUpdate, service: UserService = Depends(get_user_service)):
    """Update the provided fields of a user."""
    return await service.update(user_id, user_update)


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_permission("user.delete"))],
)
async def delete_user(user_id: int, service: UserService = Depends(get_user_service)):
    """Delete a user together with its role and group assignments."""
    await service.delete(user_id)
