"""
User management.
"""
from typing import Any

from sqlalchemy import select

from app.core.pagination import Page, PaginationParams
from app.core.service import EntityService
from app.features.permissions.resolver import PermissionResolver
from app.features.users.models import User
from app.features.users.schemas import UserResponse


class UserService(EntityService[User, UserResponse]):
    model = User
    response_schema = UserResponse
    entity_name = "User"
    conflict_detail = "User with this username or email already exists"

    def cache_key(self, entity_id: int) -> str:
        return self.keys.user(entity_id)

    async def list(
        self,
        params: PaginationParams,
        username: str | None = None,
        email: str | None = None,
        is_active: bool | None = None,
    ) -> Page[UserResponse]:
        stmt = select(User).order_by(User.id)
        if username:
            stmt = stmt.where(User.username.contains(username))
        if email:
            stmt = stmt.where(User.email.contains(email))
        if is_active is not None:
            stmt = stmt.where(User.is_active == is_active)
        return await self.page(stmt, params, UserResponse)

    async def after_update(self, row: User, changes: dict[str, Any]) -> None:
        await super().after_update(row, changes)
        # The effective permission view carries the username
        await PermissionResolver(self.db, self.cache, self.keys).invalidate(row.id)

    async def after_delete(self, entity_id: int) -> None:
        await super().after_delete(entity_id)
        await PermissionResolver(self.db, self.cache, self.keys).invalidate(entity_id)
