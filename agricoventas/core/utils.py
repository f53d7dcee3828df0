"""
Utility functions for the application.
"""
import math

from typing import Type, TypeVar, List, Any, Dict, Tuple
from pydantic import BaseModel
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar('T', bound=BaseModel)


def model_to_schema(db_model: Any, schema_class: Type[T]) -> T:
    """
    Convert a SQLAlchemy model instance to a Pydantic schema instance.

    Every relationship the schema reads has to be loaded already; async
    sessions cannot lazy load on attribute access.
    """
    return schema_class.model_validate(db_model, from_attributes=True)


def models_to_schemas(db_models: List[Any], schema_class: Type[T]) -> List[T]:
    return [model_to_schema(model, schema_class) for model in db_models]


def build_pagination(total: int, page: int, limit: int) -> Dict[str, int]:
    """Pagination block attached to every list response."""
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "pages": math.ceil(total / limit) if limit else 0,
    }


async def count_rows(db: AsyncSession, stmt: Select) -> int:
    """Count the rows a filtered select would return, ignoring ordering."""
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    return (await db.scalar(count_stmt)) or 0


async def paginate_query(
    db: AsyncSession,
    stmt: Select,
    page: int = 1,
    limit: int = 10,
) -> Tuple[List[Any], Dict[str, int]]:
    """
    Paginate a SQLAlchemy select of ORM entities.

    Args:
        db: Database session
        stmt: Filtered and ordered select; loader options are allowed
        page: Page number (1-indexed)
        limit: Number of items per page

    Returns:
        Tuple of (items on the page, pagination block)
    """
    page = max(page, 1)
    total = await count_rows(db, stmt)
    result = await db.execute(stmt.offset((page - 1) * limit).limit(limit))
    items = list(result.scalars().unique().all())
    return items, build_pagination(total, page, limit)
