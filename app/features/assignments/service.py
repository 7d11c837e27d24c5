"""
Assignment management for the four edge relations.

Every mutation commits first and invalidates afterwards; cache failures are
logged by CacheService and never undo or fail a committed mutation.

Invalidation scope per edge type:
- user-role, user-group: the affected user's permission entry only
- group-role: every permission entry (group members are not looked up)
- role-permission: every permission entry, plus the cached role
"""
from dataclasses import dataclass
from typing import Iterable

from sqlalchemy import Table, delete, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cache import CacheKeys, CacheService
from app.core.exceptions import ConflictError, NotFoundError
from app.features.assignments.models import user_roles, group_roles, user_groups, role_permissions
from app.features.groups.models import Group
from app.features.permissions.models import Permission
from app.features.permissions.resolver import PermissionResolver
from app.features.roles.models import Role
from app.features.users.models import User
from app.utils import get_logger


log = get_logger(__name__)


@dataclass(frozen=True)
class Edge:
    """An association table seen as left_id -> right_id."""
    table: Table
    left_column: str
    right_column: str
    left_model: type
    right_model: type

    @property
    def left(self):
        return self.table.c[self.left_column]

    @property
    def right(self):
        return self.table.c[self.right_column]

    def row(self, left_id: int, right_id: int) -> dict:
        return {self.left_column: left_id, self.right_column: right_id}


USER_ROLE = Edge(user_roles, "user_id", "role_id", User, Role)
GROUP_ROLE = Edge(group_roles, "group_id", "role_id", Group, Role)
USER_GROUP = Edge(user_groups, "user_id", "group_id", User, Group)
GROUP_USER = Edge(user_groups, "group_id", "user_id", Group, User)
ROLE_PERMISSION = Edge(role_permissions, "role_id", "permission_id", Role, Permission)


class AssignmentService:
    """
    Creates and removes assignment edges and keeps the permission cache in step.

    Single-edge assign methods return True when the edge was created and False
    when it already existed. Remove methods return False when there was no
    such edge. Missing endpoint entities raise NotFoundError.
    """

    def __init__(self, db: AsyncSession, cache: CacheService, keys: CacheKeys):
        self.db = db
        self.cache = cache
        self.keys = keys
        self.resolver = PermissionResolver(db, cache, keys)

    # ------------------------------------------------------------------
    # User <-> Role
    # ------------------------------------------------------------------

    async def assign_role_to_user(self, user_id: int, role_id: int) -> bool:
        created = await self._assign(USER_ROLE, user_id, role_id)
        if created:
            await self.resolver.invalidate(user_id)
        return created

    async def remove_role_from_user(self, user_id: int, role_id: int) -> bool:
        removed = await self._remove(USER_ROLE, user_id, role_id)
        if removed:
            await self.resolver.invalidate(user_id)
        return removed

    # ------------------------------------------------------------------
    # Group <-> Role
    # ------------------------------------------------------------------

    async def assign_role_to_group(self, group_id: int, role_id: int) -> bool:
        created = await self._assign(GROUP_ROLE, group_id, role_id)
        if created:
            await self.resolver.invalidate_all()
        return created

    async def remove_role_from_group(self, group_id: int, role_id: int) -> bool:
        removed = await self._remove(GROUP_ROLE, group_id, role_id)
        if removed:
            await self.resolver.invalidate_all()
        return removed

    # ------------------------------------------------------------------
    # User <-> Group
    # ------------------------------------------------------------------

    async def assign_user_to_group(self, user_id: int, group_id: int) -> bool:
        created = await self._assign(USER_GROUP, user_id, group_id)
        if created:
            await self.resolver.invalidate(user_id)
        return created

    async def remove_user_from_group(self, user_id: int, group_id: int) -> bool:
        removed = await self._remove(USER_GROUP, user_id, group_id)
        if removed:
            await self.resolver.invalidate(user_id)
        return removed

    # ------------------------------------------------------------------
    # Role <-> Permission
    # ------------------------------------------------------------------

    async def assign_permission_to_role(self, role_id: int, permission_id: int) -> bool:
        created = await self._assign(ROLE_PERMISSION, role_id, permission_id)
        if created:
            await self._invalidate_role(role_id)
        return created

    async def remove_permission_from_role(self, role_id: int, permission_id: int) -> bool:
        removed = await self._remove(ROLE_PERMISSION, role_id, permission_id)
        if removed:
            await self._invalidate_role(role_id)
        return removed

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------

    async def bulk_assign_roles_to_user(self, user_id: int, role_ids: Iterable[int]) -> int:
        inserted = await self._bulk_assign(USER_ROLE, user_id, role_ids)
        if inserted:
            await self.resolver.invalidate(user_id)
        return len(inserted)

    async def bulk_assign_users_to_group(self, group_id: int, user_ids: Iterable[int]) -> int:
        inserted = await self._bulk_assign(GROUP_USER, group_id, user_ids)
        for user_id in inserted:
            await self.resolver.invalidate(user_id)
        return len(inserted)

    async def bulk_assign_permissions_to_role(self, role_id: int, permission_ids: Iterable[int]) -> int:
        inserted = await self._bulk_assign(ROLE_PERMISSION, role_id, permission_ids)
        if inserted:
            await self._invalidate_role(role_id)
        return len(inserted)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _invalidate_role(self, role_id: int) -> None:
        await self.resolver.invalidate_all()
        await self.cache.delete(self.keys.role(role_id))

    async def _require(self, model: type, entity_id: int) -> None:
        if await self.db.get(model, entity_id) is None:
            raise NotFoundError.for_entity(model.__name__, entity_id)

    async def _edge_exists(self, edge: Edge, left_id: int, right_id: int) -> bool:
        result = await self.db.execute(
            select(edge.left).where(edge.left == left_id, edge.right == right_id)
        )
        return result.first() is not None

    async def _assign(self, edge: Edge, left_id: int, right_id: int) -> bool:
        await self._require(edge.left_model, left_id)
        await self._require(edge.right_model, right_id)

        if await self._edge_exists(edge, left_id, right_id):
            return False

        try:
            await self.db.execute(insert(edge.table).values(**edge.row(left_id, right_id)))
            await self.db.commit()
        except IntegrityError:
            # Lost a race against a concurrent insert of the same pair
            await self.db.rollback()
            if await self._edge_exists(edge, left_id, right_id):
                log.info("Concurrent %s assignment detected for (%s, %s)", edge.table.name, left_id, right_id)
                return False
            raise

        log.info("Created %s edge (%s, %s)", edge.table.name, left_id, right_id)
        return True

    async def _remove(self, edge: Edge, left_id: int, right_id: int) -> bool:
        result = await self.db.execute(
            delete(edge.table).where(edge.left == left_id, edge.right == right_id)
        )
        if result.rowcount == 0:
            return False
        await self.db.commit()
        log.info("Removed %s edge (%s, %s)", edge.table.name, left_id, right_id)
        return True

    async def _bulk_assign(self, edge: Edge, left_id: int, right_ids: Iterable[int]) -> list[int]:
        """
        Insert the edges from left_id to every right id not already assigned.

        Returns the right ids actually inserted, in input order.
        """
        requested = list(dict.fromkeys(right_ids))
        await self._require(edge.left_model, left_id)
        if not requested:
            return []

        found = await self.db.execute(
            select(edge.right_model.id).where(edge.right_model.id.in_(requested))
        )
        missing = set(requested) - set(found.scalars().all())
        if missing:
            raise NotFoundError(
                f"{edge.right_model.__name__} not found: {', '.join(str(i) for i in sorted(missing))}"
            )

        existing = await self.db.execute(
            select(edge.right).where(edge.left == left_id, edge.right.in_(requested))
        )
        already_assigned = set(existing.scalars().all())
        new_ids = [right_id for right_id in requested if right_id not in already_assigned]
        if not new_ids:
            return []

        try:
            await self.db.execute(insert(edge.table), [edge.row(left_id, right_id) for right_id in new_ids])
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Assignment changed concurrently, no edges were inserted")

        log.info("Bulk inserted %d %s edges for %s %s", len(new_ids), edge.table.name, edge.left_column, left_id)
        return new_ids
