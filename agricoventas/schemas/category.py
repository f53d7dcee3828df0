from typing import Optional

from pydantic import Field

from agricoventas.schemas.base import BaseSchema, TimestampedSchema


class CategoryCreate(BaseSchema):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    parent_id: Optional[int] = None


class CategoryUpdate(BaseSchema):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    parent_id: Optional[int] = None


class CategoryRead(TimestampedSchema):
    id: int
    name: str
    description: Optional[str] = None
    parent_id: Optional[int] = None


class CategoryBrief(BaseSchema):
    id: int
    name: str
