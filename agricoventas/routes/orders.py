from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from agricoventas.core.enums import OrderStatus, PaymentStatus
from agricoventas.core.responses import success
from agricoventas.dependencies import get_current_user, get_db, require_admin, require_seller
from agricoventas.models.user import User
from agricoventas.schemas.order import (
    OrderCancel,
    OrderCreate,
    OrderFilters,
    OrderRead,
    OrderStatusUpdate,
    OrderUpdate,
)
from agricoventas.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_order(
    data: OrderCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    order = await OrderService(db).create_order(current_user, data)
    return success(OrderRead.model_validate(order))


@router.get("")
async def list_orders(
    buyer_user_id: Optional[int] = Query(None, alias="buyerUserId"),
    seller_id: Optional[int] = Query(None, alias="sellerId"),
    order_status: Optional[OrderStatus] = Query(None, alias="status"),
    payment_status: Optional[PaymentStatus] = Query(None, alias="paymentStatus"),
    from_date: Optional[datetime] = Query(None, alias="fromDate"),
    to_date: Optional[datetime] = Query(None, alias="toDate"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder", pattern="^(asc|desc)$"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    filters = OrderFilters(
        buyer_user_id=buyer_user_id,
        seller_id=seller_id,
        status=order_status,
        payment_status=payment_status,
        from_date=from_date,
        to_date=to_date,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    orders, pagination = await OrderService(db).list_orders(current_user, filters)
    return success({
        "orders": [OrderRead.model_validate(order) for order in orders],
        "pagination": pagination,
    })


@router.get("/seller")
async def seller_orders(
    order_status: Optional[OrderStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(require_seller),
    db: AsyncSession = Depends(get_db),
):
    orders, pagination = await OrderService(db).get_seller_orders(
        current_user.id, page, limit, order_status
    )
    return success({"orders": orders, "pagination": pagination})


@router.get("/{order_id}")
async def get_order(
    order_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    order = await OrderService(db).get_order_for_user(order_id, current_user)
    return success(OrderRead.model_validate(order))


@router.put("/{order_id}")
async def update_order(
    order_id: int,
    data: OrderUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    order = await OrderService(db).update_order(order_id, data, admin)
    return success(OrderRead.model_validate(order))


@router.put("/{order_id}/status")
async def update_order_status(
    order_id: int,
    data: OrderStatusUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    order = await OrderService(db).update_order_status(order_id, data.status, admin)
    return success(OrderRead.model_validate(order))


@router.post("/{order_id}/cancel")
async def cancel_order(
    order_id: int,
    data: OrderCancel,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    order = await OrderService(db).cancel_order(order_id, current_user, data.cancel_reason)
    return success(OrderRead.model_validate(order))
