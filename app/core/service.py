"""
Shared CRUD behaviour for the entity services.

Subclasses name their model, response schema and cache key, and override the
invalidation hooks that run after a committed update or delete.
"""
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy import Select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cache import CacheKeys, CacheService
from app.core.exceptions import ConflictError, NotFoundError
from app.core.pagination import Page, PaginationParams, paginate
from app.utils import get_logger


log = get_logger(__name__)

ModelT = TypeVar("ModelT")
ResponseT = TypeVar("ResponseT", bound=BaseModel)


class EntityService(Generic[ModelT, ResponseT]):
    model: type
    response_schema: type[BaseModel]
    entity_name: str
    conflict_detail: str
    # Columns an update may set to null; null for any other column means "leave as is"
    nullable_fields: tuple[str, ...] = ()

    def __init__(self, db: AsyncSession, cache: CacheService, keys: CacheKeys):
        self.db = db
        self.cache = cache
        self.keys = keys

    def cache_key(self, entity_id: int) -> str:
        raise NotImplementedError

    async def to_response(self, row: ModelT) -> ResponseT:
        return self.response_schema.model_validate(row)

    async def after_update(self, row: ModelT, changes: dict[str, Any]) -> None:
        await self.cache.delete(self.cache_key(row.id))

    async def after_delete(self, entity_id: int) -> None:
        await self.cache.delete(self.cache_key(entity_id))

    async def page(self, stmt: Select, params: PaginationParams, schema: type[BaseModel]) -> Page:
        rows, metadata = await paginate(self.db, stmt, params)
        return Page(items=[schema.model_validate(row) for row in rows], metadata=metadata)

    async def get_row(self, entity_id: int) -> ModelT:
        row = await self.db.get(self.model, entity_id)
        if row is None:
            raise NotFoundError.for_entity(self.entity_name, entity_id)
        return row

    async def get(self, entity_id: int) -> ResponseT:
        cache_key = self.cache_key(entity_id)
        cached = await self.cache.get(cache_key)
        if cached is not None:
            try:
                response = self.response_schema.model_validate(cached)
            except ValidationError:
                log.warning("Ignoring malformed cache entry %s", cache_key)
            else:
                log.info("%s %s retrieved from cache", self.entity_name, entity_id)
                return response

        response = await self.to_response(await self.get_row(entity_id))
        await self.cache.set(cache_key, response, self.keys.entity_ttl)
        return response

    async def create(self, data: BaseModel) -> ResponseT:
        row = self.model(**data.model_dump())
        self.db.add(row)
        await self._commit()
        await self.db.refresh(row)

        response = await self.to_response(row)
        await self.cache.set(self.cache_key(row.id), response, self.keys.entity_ttl)
        log.info("%s %s created", self.entity_name, row.id)
        return response

    async def update(self, entity_id: int, data: BaseModel) -> ResponseT:
        row = await self.get_row(entity_id)
        changes = {
            field: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if value is not None or field in self.nullable_fields
        }
        for field, value in changes.items():
            setattr(row, field, value)
        await self._commit()
        await self.db.refresh(row)

        await self.after_update(row, changes)
        log.info("%s %s updated", self.entity_name, entity_id)
        return await self.to_response(row)

    async def delete(self, entity_id: int) -> None:
        row = await self.get_row(entity_id)
        await self.db.delete(row)
        await self.db.commit()

        await self.after_delete(entity_id)
        log.info("%s %s deleted", self.entity_name, entity_id)

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError(self.conflict_detail)
