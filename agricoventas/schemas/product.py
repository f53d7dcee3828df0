"""
Schemas for product-related API endpoints.
"""
from typing import Optional, List

from pydantic import Field, field_validator

from agricoventas.schemas.base import BaseSchema, TimestampedSchema
from agricoventas.schemas.category import CategoryBrief
from agricoventas.schemas.location import LocationRead
from agricoventas.schemas.user import UserSummary


class ProductValidationMixin(BaseSchema):
    """Shared cleanup for create and update payloads"""

    @field_validator('name', 'unit_measure', mode='before', check_fields=False)
    @classmethod
    def strip_text(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator('base_price', mode='before', check_fields=False)
    @classmethod
    def validate_price(cls, v):
        if v is None or v == '':
            return None
        try:
            return float(v)
        except (ValueError, TypeError):
            raise ValueError(f'Base price must be a valid number, got: {v}')


class ProductImageCreate(BaseSchema):
    image_url: str
    alt_text: Optional[str] = None
    is_primary: bool = False
    display_order: int = 0


class ProductImageRead(ProductImageCreate):
    id: int
    product_id: int


class ProductCreate(ProductValidationMixin):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    base_price: float = Field(..., gt=0)
    stock_quantity: int = Field(0, ge=0)
    unit_measure: str = Field(..., min_length=1, max_length=50)
    category_id: Optional[int] = None
    origin_location_id: Optional[int] = None
    # Only honoured for admins listing on behalf of a seller
    seller_id: Optional[int] = None
    is_featured: bool = False
    is_active: bool = True
    images: List[ProductImageCreate] = []


class ProductUpdate(ProductValidationMixin):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    base_price: Optional[float] = Field(None, gt=0)
    stock_quantity: Optional[int] = Field(None, ge=0)
    unit_measure: Optional[str] = Field(None, min_length=1, max_length=50)
    category_id: Optional[int] = None
    origin_location_id: Optional[int] = None
    is_featured: Optional[bool] = None
    is_active: Optional[bool] = None


class ProductRead(TimestampedSchema):
    id: int
    name: str
    description: Optional[str] = None
    base_price: float
    stock_quantity: int
    unit_measure: str
    seller_id: int
    category_id: Optional[int] = None
    origin_location_id: Optional[int] = None
    is_featured: bool
    is_active: bool
    images: List[ProductImageRead] = []
    seller: Optional[UserSummary] = None
    category: Optional[CategoryBrief] = None
    origin_location: Optional[LocationRead] = None
    average_rating: float = 0.0
    review_count: int = 0
    region: Optional[str] = None


class ProductBrief(BaseSchema):
    id: int
    name: str
    seller_id: int
    unit_measure: str


class ProductFilters(BaseSchema):
    category_id: Optional[int] = None
    seller_id: Optional[int] = None
    search: Optional[str] = None
    min_price: Optional[float] = Field(None, ge=0)
    max_price: Optional[float] = Field(None, ge=0)
    is_featured: Optional[bool] = None
    is_active: Optional[bool] = True
    origin_location_id: Optional[int] = None
    city: Optional[str] = None
    department: Optional[str] = None
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)
    sort: Optional[str] = None
    sort_by: str = "createdAt"
    sort_order: str = "desc"
