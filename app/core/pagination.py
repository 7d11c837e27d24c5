"""
Page-number pagination shared by the entity list endpoints.
"""
import math
from typing import Generic, List, TypeVar

from fastapi import Query
from pydantic import BaseModel
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import config


T = TypeVar("T")


class PaginationMetadata(BaseModel):
    current_page: int
    page_size: int
    total_count: int
    total_pages: int
    has_previous: bool
    has_next: bool


class Page(BaseModel, Generic[T]):
    """Schema for a paginated list response."""
    items: List[T]
    metadata: PaginationMetadata


class PaginationParams:
    """
    Query parameters for list endpoints.

    page_size is capped at MAX_PAGE_SIZE rather than rejected.
    """

    def __init__(
        self,
        page_number: int = Query(1, ge=1),
        page_size: int = Query(config.DEFAULT_PAGE_SIZE, ge=1),
    ):
        self.page_number = page_number
        self.page_size = min(page_size, config.MAX_PAGE_SIZE)

    @property
    def offset(self) -> int:
        return (self.page_number - 1) * self.page_size


async def paginate(db: AsyncSession, stmt: Select, params: PaginationParams) -> tuple[list, PaginationMetadata]:
    """
    Run a filtered select with offset/limit and build its pagination metadata.

    The statement must already carry its ORDER BY.
    """
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = (await db.execute(count_stmt)).scalar() or 0

    result = await db.execute(stmt.offset(params.offset).limit(params.page_size))
    rows = list(result.scalars().all())

    metadata = PaginationMetadata(
        current_page=params.page_number,
        page_size=params.page_size,
        total_count=total,
        total_pages=math.ceil(total / params.page_size),
        has_previous=params.page_number > 1,
        has_next=params.page_number * params.page_size < total,
    )
    return rows, metadata
