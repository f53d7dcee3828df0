"""
Order Service

Places, reads, updates and cancels orders:
- Placement runs in one transaction: each product row is locked, checked for
  availability and stock, priced from its current base price and decremented.
  Any failure rolls back the whole order.
- Cancellation puts every line item's quantity back on its product and flips
  the status, in one transaction. Shipped or delivered orders cannot be cancelled.

Notifications are sent after commit and never fail the request.
"""

import logging
from collections import OrderedDict
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from agricoventas.core.enums import OrderStatus, PaymentStatus, UserType
from agricoventas.core.exceptions import (
    NotFoundError,
    OrderPlacementError,
    OrderStateError,
    PermissionDeniedError,
)
from agricoventas.core.utils import paginate_query
from agricoventas.models.order import Order, OrderItem
from agricoventas.models.product import Product
from agricoventas.models.user import User
from agricoventas.schemas.order import (
    OrderCreate,
    OrderFilters,
    OrderItemRead,
    OrderRead,
    OrderUpdate,
    SellerOrderRead,
)
from agricoventas.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    "createdAt": Order.created_at,
    "totalAmount": Order.total_amount,
    "updatedAt": Order.updated_at,
}

ADMIN_CANCEL_REASON = "Cancelled by administrator"

CANCELLABLE_STATUSES = (OrderStatus.PENDING, OrderStatus.PROCESSING)


class OrderService:
    """
    Order lifecycle for buyers, sellers and admins.

    Stock consistency relies on row locks: every product touched by a
    placement or cancellation is read with SELECT ... FOR UPDATE, so
    concurrent orders on the same product serialize on that row. Status
    changes lock the order row first and re-check its status under the lock.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.notifications = NotificationService(db)

    def _order_query(self):
        return select(Order).options(
            selectinload(Order.items).selectinload(OrderItem.product),
            selectinload(Order.buyer),
        )

    async def _lock_product(self, product_id: int) -> Optional[Product]:
        result = await self.db.execute(
            select(Product)
            .where(Product.id == product_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_order(self, order_id: int, for_update: bool = False) -> Order:
        stmt = self._order_query().where(Order.id == order_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.db.execute(stmt.execution_options(populate_existing=True))
        order = result.scalar_one_or_none()
        if not order:
            raise NotFoundError("Order not found")
        return order

    async def get_order_for_user(self, order_id: int, user: User) -> Order:
        """Admins, the buyer and any seller with a line in the order may view it."""
        order = await self.get_order(order_id)
        if user.user_type == UserType.ADMIN or order.buyer_user_id == user.id:
            return order
        if any(item.product and item.product.seller_id == user.id for item in order.items):
            return order
        raise PermissionDeniedError("You do not have permission to view this order")

    async def create_order(self, user: User, data: OrderCreate) -> Order:
        """
        Place an order atomically.

        Args:
            user: Authenticated user placing the order
            data: Buyer, line items and payment method

        Returns:
            The persisted order with items, products and buyer loaded

        Raises:
            PermissionDeniedError: A non-admin ordering for someone else
            NotFoundError: Explicit buyer does not exist
            OrderPlacementError: A product is missing, inactive or short on stock
        """
        actor_id = user.id
        is_admin = user.user_type == UserType.ADMIN
        buyer_id = data.buyer_user_id or actor_id

        if buyer_id != actor_id:
            if not is_admin:
                raise PermissionDeniedError("You can only place orders for yourself")
            buyer = await self.db.get(User, buyer_id)
            if not buyer or not buyer.is_active:
                raise NotFoundError("Buyer not found")

        try:
            items: List[OrderItem] = []
            total = 0.0
            first_seller_id = None

            for line in data.items:
                product = await self._lock_product(line.product_id)
                if product is None:
                    raise OrderPlacementError(
                        f"Product with ID {line.product_id} not found",
                        details={"productId": line.product_id},
                    )
                if not product.is_active:
                    raise OrderPlacementError(
                        f"Product {product.name} is not available",
                        details={"productId": product.id},
                    )
                if product.stock_quantity < line.quantity:
                    raise OrderPlacementError(
                        f"Insufficient quantity for product {product.name}",
                        details={
                            "productId": product.id,
                            "available": product.stock_quantity,
                            "requested": line.quantity,
                        },
                    )

                unit_price = product.base_price
                subtotal = round(unit_price * line.quantity, 2)
                product.stock_quantity -= line.quantity

                items.append(OrderItem(
                    product=product,
                    quantity=line.quantity,
                    unit_price=unit_price,
                    subtotal=subtotal,
                ))
                total += subtotal
                if first_seller_id is None:
                    first_seller_id = product.seller_id

            order = Order(
                buyer_user_id=buyer_id,
                status=OrderStatus.PENDING,
                payment_status=PaymentStatus.PENDING,
                payment_method=data.payment_method,
                notes=data.notes,
                total_amount=round(total, 2),
                items=items,
            )
            self.db.add(order)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        order_id = order.id
        total_amount = order.total_amount
        logger.info(
            f"Order {order_id} placed by user {actor_id} for buyer {buyer_id}: "
            f"{len(items)} items, total {total_amount}"
        )

        try:
            await self.notifications.notify_order_placed(buyer_id, first_seller_id, order_id, total_amount)
        except Exception as e:
            logger.error(f"Failed to send order notifications for order {order_id}: {str(e)}")

        return await self.get_order(order_id)

    async def cancel_order(self, order_id: int, user: User, reason: str) -> Order:
        """
        Cancel an order and put its quantities back on stock.

        The order row is locked before its status is checked, and the status
        flip only applies while the order is still cancellable, so a
        concurrent cancellation can never restore the same stock twice.

        Raises:
            PermissionDeniedError: Neither the buyer nor an admin
            OrderStateError: Order already shipped, delivered or cancelled
        """
        actor_id = user.id
        is_admin = user.user_type == UserType.ADMIN
        restored = {}

        try:
            order = await self.get_order(order_id, for_update=True)
            if not is_admin and order.buyer_user_id != actor_id:
                raise PermissionDeniedError("You do not have permission to cancel this order")
            if order.status in (OrderStatus.SHIPPED, OrderStatus.DELIVERED):
                raise OrderStateError("Cannot cancel an order that has been shipped or delivered")
            if order.status == OrderStatus.CANCELLED:
                raise OrderStateError("Order is already cancelled")

            previous_status = order.status
            buyer_id = order.buyer_user_id

            for item in order.items:
                if item.product_id is None:
                    continue
                product = await self._lock_product(item.product_id)
                if product is None:
                    continue
                product.stock_quantity += item.quantity
                restored[product.id] = restored.get(product.id, 0) + item.quantity

            result = await self.db.execute(
                update(Order)
                .where(Order.id == order_id, Order.status.in_(CANCELLABLE_STATUSES))
                .values(status=OrderStatus.CANCELLED, cancel_reason=reason)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise OrderStateError("Order is no longer cancellable")
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Order {order_id} cancelled by user {actor_id}; restored stock {restored}")

        try:
            await self.notifications.notify_order_status_change(
                buyer_id, order_id, previous_status.value, OrderStatus.CANCELLED.value
            )
        except Exception as e:
            logger.error(f"Failed to send cancellation notice for order {order_id}: {str(e)}")

        return await self.get_order(order_id)

    async def update_order_status(self, order_id: int, status: OrderStatus, admin: User) -> Order:
        if status == OrderStatus.CANCELLED:
            return await self.cancel_order(order_id, admin, ADMIN_CANCEL_REASON)
        return await self.update_order(order_id, OrderUpdate(status=status), admin)

    async def update_order(self, order_id: int, data: OrderUpdate, admin: User) -> Order:
        """
        Admin update of status, payment status, tracking number and notes.

        Moving to CANCELLED goes through cancel_order so stock is restored.
        """
        changes = data.model_dump(exclude_unset=True)
        new_status = changes.pop("status", None)

        if new_status == OrderStatus.CANCELLED:
            current = await self.get_order(order_id)
            if current.status != OrderStatus.CANCELLED:
                await self.cancel_order(order_id, admin, changes.get("notes") or ADMIN_CANCEL_REASON)
            new_status = None

        try:
            order = await self.get_order(order_id, for_update=True)
            if new_status is not None and new_status != order.status and order.status == OrderStatus.CANCELLED:
                raise OrderStateError("Cannot change the status of a cancelled order")

            previous_status = order.status
            previous_payment = order.payment_status

            if new_status is not None:
                order.status = new_status
            for field, value in changes.items():
                setattr(order, field, value)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        buyer_id = order.buyer_user_id
        current_status = order.status
        paid_now = order.payment_status == PaymentStatus.PAID and previous_payment != PaymentStatus.PAID
        seller_totals = self.seller_totals(order) if paid_now else {}

        if current_status != previous_status:
            logger.info(f"Order {order_id} status {previous_status.value} -> {current_status.value}")
            try:
                await self.notifications.notify_order_status_change(
                    buyer_id, order_id, previous_status.value, current_status.value
                )
            except Exception as e:
                logger.error(f"Failed to send status notice for order {order_id}: {str(e)}")

        for seller_id, amount in seller_totals.items():
            try:
                await self.notifications.notify_payment_received(seller_id, order_id, amount)
            except Exception as e:
                logger.error(f"Failed to send payment notice for order {order_id}: {str(e)}")

        return await self.get_order(order_id)

    @staticmethod
    def seller_totals(order: Order) -> Dict[int, float]:
        totals: Dict[int, float] = OrderedDict()
        for item in order.items:
            if item.product is None:
                continue
            totals[item.product.seller_id] = round(totals.get(item.product.seller_id, 0.0) + item.subtotal, 2)
        return totals

    async def list_orders(self, user: User, filters: OrderFilters) -> Tuple[List[Order], Dict[str, int]]:
        """
        List orders visible to the user.

        Buyers only see their own orders and sellers only orders containing
        their products, whatever filters they pass.
        """
        stmt = self._order_query()

        buyer_id = filters.buyer_user_id
        seller_id = filters.seller_id
        if user.user_type == UserType.BUYER:
            buyer_id = user.id
        elif user.user_type == UserType.SELLER:
            seller_id = user.id

        if buyer_id is not None:
            stmt = stmt.where(Order.buyer_user_id == buyer_id)
        if seller_id is not None:
            stmt = stmt.where(Order.items.any(OrderItem.product.has(Product.seller_id == seller_id)))
        if filters.status:
            stmt = stmt.where(Order.status == filters.status)
        if filters.payment_status:
            stmt = stmt.where(Order.payment_status == filters.payment_status)
        if filters.from_date:
            stmt = stmt.where(Order.created_at >= filters.from_date)
        if filters.to_date:
            stmt = stmt.where(Order.created_at <= filters.to_date)

        sort_column = SORT_FIELDS.get(filters.sort_by, Order.created_at)
        if filters.sort_order.lower() == "asc":
            stmt = stmt.order_by(sort_column.asc(), Order.id.asc())
        else:
            stmt = stmt.order_by(sort_column.desc(), Order.id.desc())

        return await paginate_query(self.db, stmt, filters.page, filters.limit)

    async def get_seller_orders(
        self,
        seller_id: int,
        page: int = 1,
        limit: int = 10,
        status: Optional[OrderStatus] = None,
    ) -> Tuple[List[SellerOrderRead], Dict[str, int]]:
        """Orders containing the seller's products, trimmed to the seller's lines."""
        filters = OrderFilters(seller_id=seller_id, status=status, page=page, limit=limit)
        stmt = self._order_query().where(
            Order.items.any(OrderItem.product.has(Product.seller_id == seller_id))
        )
        if filters.status:
            stmt = stmt.where(Order.status == filters.status)
        stmt = stmt.order_by(Order.created_at.desc(), Order.id.desc())
        orders, pagination = await paginate_query(self.db, stmt, filters.page, filters.limit)

        results = []
        for order in orders:
            seller_items = [
                item for item in order.items
                if item.product is not None and item.product.seller_id == seller_id
            ]
            base = OrderRead.model_validate(order).model_dump(exclude={"items"})
            results.append(SellerOrderRead(
                **base,
                items=[OrderItemRead.model_validate(item) for item in seller_items],
                seller_total=round(sum(item.subtotal for item in seller_items), 2),
            ))
        return results, pagination
