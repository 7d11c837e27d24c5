"""
Permission management.
"""
from typing import Any

from sqlalchemy import select

from app.core.pagination import Page, PaginationParams
from app.core.service import EntityService
from app.features.permissions.models import Permission
from app.features.permissions.resolver import PermissionResolver
from app.features.permissions.schemas import PermissionResponse


class PermissionService(EntityService[Permission, PermissionResponse]):
    model = Permission
    response_schema = PermissionResponse
    entity_name = "Permission"
    conflict_detail = "Permission with this name already exists"
    nullable_fields = ("description",)

    def cache_key(self, entity_id: int) -> str:
        return self.keys.permission(entity_id)

    async def list(self, params: PaginationParams, name: str | None = None) -> Page[PermissionResponse]:
        stmt = select(Permission).order_by(Permission.id)
        if name:
            stmt = stmt.where(Permission.name.contains(name))
        return await self.page(stmt, params, PermissionResponse)

    async def after_update(self, row: Permission, changes: dict[str, Any]) -> None:
        await super().after_update(row, changes)
        await PermissionResolver(self.db, self.cache, self.keys).invalidate_all()
        if changes:
            await self.cache.delete_by_pattern(self.keys.all_roles)

    async def after_delete(self, entity_id: int) -> None:
        await super().after_delete(entity_id)
        await PermissionResolver(self.db, self.cache, self.keys).invalidate_all()
        await self.cache.delete_by_pattern(self.keys.all_roles)
