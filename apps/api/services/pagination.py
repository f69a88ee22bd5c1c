"""Page/limit adapter over unexecuted select statements."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from config import settings
from services.errors import InvalidArgumentError
from services.projections import nest_row

T = TypeVar("T", bound=BaseModel)

TOTAL_COUNT_LABEL = "__total_count"


@dataclass(frozen=True)
class PageParams:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class Page(BaseModel, Generic[T]):
    items: List[T]
    total_count: int
    limit: int
    page: int
    total_pages: int
    has_prev_page: bool
    has_next_page: bool
    prev_page: Optional[int] = None
    next_page: Optional[int] = None


def _parse_positive_int(value: Any, field: str, default: int) -> int:
    if value is None:
        return default
    text = str(value).strip()
    if not text:
        return default
    try:
        number = int(text, 10)
    except ValueError as exc:
        raise InvalidArgumentError(f"{field} must be an integer") from exc
    if number < 1:
        raise InvalidArgumentError(f"{field} must be at least 1")
    return number


def parse_page_params(page: Any = None, limit: Any = None) -> PageParams:
    """Coerce raw page/limit input, rejecting anything that is not a positive integer."""
    parsed_page = _parse_positive_int(page, "page", 1)
    parsed_limit = _parse_positive_int(limit, "limit", max(int(settings.DEFAULT_PAGE_LIMIT), 1))
    max_limit = max(int(settings.MAX_PAGE_LIMIT), 1)
    return PageParams(page=parsed_page, limit=min(parsed_limit, max_limit))


async def count_rows(db: AsyncSession, statement: Select) -> int:
    counted = select(func.count()).select_from(statement.order_by(None).subquery())
    result = await db.execute(counted)
    return int(result.scalar() or 0)


def build_page(items: List[Any], total_count: int, params: PageParams) -> dict:
    total_pages = max(math.ceil(total_count / params.limit), 1)
    has_prev = params.page > 1
    has_next = params.page < total_pages
    return {
        "items": items,
        "total_count": total_count,
        "limit": params.limit,
        "page": params.page,
        "total_pages": total_pages,
        "has_prev_page": has_prev,
        "has_next_page": has_next,
        "prev_page": params.page - 1 if has_prev else None,
        "next_page": params.page + 1 if has_next else None,
    }


async def paginate(
    db: AsyncSession,
    statement: Select,
    params: PageParams,
    item_model: Type[T],
) -> Page[T]:
    """Execute one window of ``statement`` and wrap it in a page envelope.

    The total comes from a ``count(*) OVER ()`` column of the same statement,
    so the count and the rows share one snapshot. A page past the end returns
    no rows to read it from; only then is a separate count issued.
    """
    windowed = (
        statement.add_columns(func.count().over().label(TOTAL_COUNT_LABEL))
        .limit(params.limit)
        .offset(params.offset)
    )
    rows = (await db.execute(windowed)).all()

    if rows:
        total_count = int(rows[0]._mapping[TOTAL_COUNT_LABEL])
    elif params.page == 1:
        total_count = 0
    else:
        total_count = await count_rows(db, statement)

    items = []
    for row in rows:
        mapping = {key: value for key, value in row._mapping.items() if key != TOTAL_COUNT_LABEL}
        items.append(item_model.model_validate(nest_row(mapping)))

    return Page[item_model].model_validate(build_page(items, total_count, params))
