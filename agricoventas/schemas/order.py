"""
Schemas for orders and their line items.
"""
from datetime import datetime
from typing import Optional, List

from pydantic import Field

from agricoventas.core.enums import OrderStatus, PaymentStatus, PaymentMethod
from agricoventas.schemas.base import BaseSchema, TimestampedSchema
from agricoventas.schemas.product import ProductBrief
from agricoventas.schemas.user import UserSummary


class OrderItemCreate(BaseSchema):
    product_id: int
    quantity: int = Field(..., gt=0)


class OrderCreate(BaseSchema):
    buyer_user_id: Optional[int] = None
    items: List[OrderItemCreate] = Field(..., min_length=1)
    payment_method: PaymentMethod = PaymentMethod.CASH
    notes: Optional[str] = None


class OrderUpdate(BaseSchema):
    status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None
    tracking_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class OrderStatusUpdate(BaseSchema):
    status: OrderStatus


class OrderCancel(BaseSchema):
    cancel_reason: str = Field(..., min_length=1)


class OrderItemRead(BaseSchema):
    id: int
    product_id: Optional[int] = None
    quantity: int
    unit_price: float
    subtotal: float
    product: Optional[ProductBrief] = None


class OrderRead(TimestampedSchema):
    id: int
    buyer_user_id: int
    status: OrderStatus
    total_amount: float
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    tracking_number: Optional[str] = None
    notes: Optional[str] = None
    cancel_reason: Optional[str] = None
    items: List[OrderItemRead] = []
    buyer: Optional[UserSummary] = None


class SellerOrderRead(OrderRead):
    seller_total: float


class OrderFilters(BaseSchema):
    buyer_user_id: Optional[int] = None
    seller_id: Optional[int] = None
    status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None
    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)
    sort_by: str = "createdAt"
    sort_order: str = "desc"
