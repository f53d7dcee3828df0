from typing import Optional

from pydantic import Field

from agricoventas.schemas.base import BaseSchema, TimestampedSchema
from agricoventas.schemas.user import UserSummary


class ReviewCreate(BaseSchema):
    product_id: int
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=2000)
    order_id: Optional[int] = None


class ReviewUpdate(BaseSchema):
    rating: Optional[int] = Field(None, ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=2000)


class ReviewModerate(BaseSchema):
    is_approved: bool


class ReviewRead(TimestampedSchema):
    id: int
    user_id: int
    product_id: int
    order_id: Optional[int] = None
    rating: int
    comment: Optional[str] = None
    is_verified_purchase: bool
    is_approved: bool
    user: Optional[UserSummary] = None
