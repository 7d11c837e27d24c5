"""
Role management.

Roles are cached together with their permissions, so the cached entry is also
dropped whenever a role-permission edge or a permission changes.
"""
from typing import Any

from sqlalchemy import select

from app.core.pagination import Page, PaginationParams
from app.core.service import EntityService
from app.features.assignments.models import role_permissions
from app.features.permissions.models import Permission
from app.features.permissions.resolver import PermissionResolver
from app.features.permissions.schemas import PermissionResponse
from app.features.roles.models import Role
from app.features.roles.schemas import RoleResponse, RoleWithPermissions


class RoleService(EntityService[Role, RoleWithPermissions]):
    model = Role
    response_schema = RoleWithPermissions
    entity_name = "Role"
    conflict_detail = "Role with this name already exists"
    nullable_fields = ("description",)

    def cache_key(self, entity_id: int) -> str:
        return self.keys.role(entity_id)

    async def list(self, params: PaginationParams, name: str | None = None) -> Page[RoleResponse]:
        stmt = select(Role).order_by(Role.id)
        if name:
            stmt = stmt.where(Role.name.contains(name))
        return await self.page(stmt, params, RoleResponse)

    async def to_response(self, row: Role) -> RoleWithPermissions:
        result = await self.db.execute(
            select(Permission)
            .join(role_permissions, role_permissions.c.permission_id == Permission.id)
            .where(role_permissions.c.role_id == row.id)
            .order_by(Permission.name)
        )
        return RoleWithPermissions(
            **RoleResponse.model_validate(row).model_dump(),
            permissions=[PermissionResponse.model_validate(p) for p in result.scalars().all()],
        )

    async def after_update(self, row: Role, changes: dict[str, Any]) -> None:
        await super().after_update(row, changes)
        await PermissionResolver(self.db, self.cache, self.keys).invalidate_all()

    async def after_delete(self, entity_id: int) -> None:
        await super().after_delete(entity_id)
        await PermissionResolver(self.db, self.cache, self.keys).invalidate_all()
