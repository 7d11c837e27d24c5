"""
Effective permission resolution.

A user's permissions come from two fixed-depth paths through the assignment
graph:

    user -> user_roles -> role_permissions -> permission            (direct)
    user -> user_groups -> group_roles -> role_permissions -> permission (group-inherited)

Results are cached per user under the user-permissions prefix. A cached value
is returned as-is until it expires or is invalidated by a mutation of any edge
that may feed into it; readers must treat it as eventually consistent.
"""
from pydantic import ValidationError
from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cache import CacheKeys, CacheService
from app.core.exceptions import NotFoundError
from app.features.assignments.models import user_roles, group_roles, user_groups, role_permissions
from app.features.permissions.models import Permission
from app.features.permissions.schemas import EffectivePermissions
from app.features.users.models import User
from app.utils import get_logger


log = get_logger(__name__)


def direct_permissions_stmt(user_id: int) -> Select:
    """Permission names reachable through roles assigned straight to the user."""
    return (
        select(Permission.name)
        .join(role_permissions, role_permissions.c.permission_id == Permission.id)
        .join(user_roles, user_roles.c.role_id == role_permissions.c.role_id)
        .where(user_roles.c.user_id == user_id)
        .distinct()
        .order_by(Permission.name)
    )


def group_permissions_stmt(user_id: int) -> Select:
    """Permission names reachable through roles of the groups the user belongs to."""
    return (
        select(Permission.name)
        .join(role_permissions, role_permissions.c.permission_id == Permission.id)
        .join(group_roles, group_roles.c.role_id == role_permissions.c.role_id)
        .join(user_groups, user_groups.c.group_id == group_roles.c.group_id)
        .where(user_groups.c.user_id == user_id)
        .distinct()
        .order_by(Permission.name)
    )


class PermissionResolver:
    """
    Computes and caches the effective permission view of a user.

    Also owns invalidation of the per-user permission cache, so every writer
    that changes an edge goes through the same key layout.
    """

    def __init__(self, db: AsyncSession, cache: CacheService, keys: CacheKeys):
        self.db = db
        self.cache = cache
        self.keys = keys

    async def resolve(self, user_id: int) -> EffectivePermissions:
        """
        Return direct, group-inherited and combined permissions for a user.

        Raises:
            NotFoundError: if no user with this id exists (checked on cache miss only)
        """
        cache_key = self.keys.user_permissions(user_id)
        cached = await self.cache.get(cache_key)
        if cached is not None:
            try:
                permissions = EffectivePermissions.model_validate(cached)
            except ValidationError:
                log.warning("Ignoring malformed cached permissions for user %s", user_id)
            else:
                log.info("User %s permissions retrieved from cache", user_id)
                return permissions

        permissions = await self._load(user_id)
        await self.cache.set(cache_key, permissions, self.keys.permissions_ttl)
        return permissions

    async def _load(self, user_id: int) -> EffectivePermissions:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError.for_entity("User", user_id)

        direct = list((await self.db.execute(direct_permissions_stmt(user_id))).scalars().all())
        inherited = list((await self.db.execute(group_permissions_stmt(user_id))).scalars().all())

        return EffectivePermissions(
            user_id=user.id,
            username=user.username,
            direct_permissions=direct,
            group_inherited_permissions=inherited,
            all_permissions=sorted(set(direct) | set(inherited)),
        )

    async def invalidate(self, user_id: int) -> None:
        """Drop the cached permission view of one user."""
        await self.cache.delete(self.keys.user_permissions(user_id))

    async def invalidate_all(self) -> None:
        """
        Drop every cached permission view.

        Used when a group-role or role-permission edge changes: the affected
        users are not known without an extra query, so all entries go.
        """
        removed = await self.cache.delete_by_pattern(self.keys.all_user_permissions)
        log.debug("Invalidated %d cached permission sets", removed)
