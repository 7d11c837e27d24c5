"""
Group management.
"""
from sqlalchemy import select

from app.core.pagination import Page, PaginationParams
from app.core.service import EntityService
from app.features.groups.models import Group
from app.features.groups.schemas import GroupResponse
from app.features.permissions.resolver import PermissionResolver


class GroupService(EntityService[Group, GroupResponse]):
    model = Group
    response_schema = GroupResponse
    entity_name = "Group"
    conflict_detail = "Group with this name already exists"
    nullable_fields = ("description",)

    def cache_key(self, entity_id: int) -> str:
        return self.keys.group(entity_id)

    async def list(self, params: PaginationParams, name: str | None = None) -> Page[GroupResponse]:
        stmt = select(Group).order_by(Group.id)
        if name:
            stmt = stmt.where(Group.name.contains(name))
        return await self.page(stmt, params, GroupResponse)

    async def after_delete(self, entity_id: int) -> None:
        await super().after_delete(entity_id)
        # Memberships and group roles cascaded away with the group
        await PermissionResolver(self.db, self.cache, self.keys).invalidate_all()
