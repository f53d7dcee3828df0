# tests/unit/services/test_order_service.py
import pytest
from sqlalchemy import func, select

from agricoventas.core.enums import NotificationType, OrderStatus, PaymentStatus, UserType
from agricoventas.core.exceptions import OrderPlacementError, OrderStateError, PermissionDeniedError
from agricoventas.models.notification import UserNotification
from agricoventas.models.order import Order
from agricoventas.models.product import Product
from agricoventas.schemas.order import OrderCreate, OrderFilters, OrderItemCreate, OrderUpdate
from agricoventas.services.notification_service import NotificationService
from agricoventas.services.order_service import OrderService


def order_for(*lines):
    return OrderCreate(items=[OrderItemCreate(product_id=pid, quantity=qty) for pid, qty in lines])


async def stock_of(db_session, product_id):
    result = await db_session.execute(
        select(Product.stock_quantity)
        .where(Product.id == product_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def order_count(db_session):
    return await db_session.scalar(select(func.count(Order.id)))


# --- create_order ---

async def test_create_order_takes_all_remaining_stock(db_session, buyer, product):
    """Ordering exactly the available quantity succeeds and leaves zero."""
    order = await OrderService(db_session).create_order(buyer, order_for((product.id, 5)))

    assert order.status == OrderStatus.PENDING
    assert order.payment_status == PaymentStatus.PENDING
    assert order.buyer_user_id == buyer.id
    assert len(order.items) == 1
    assert order.items[0].unit_price == 100.0
    assert order.items[0].subtotal == 500.0
    assert order.total_amount == 500.0
    assert await stock_of(db_session, product.id) == 0


async def test_create_order_insufficient_stock_changes_nothing(db_session, buyer, product):
    product_id = product.id

    with pytest.raises(OrderPlacementError) as exc_info:
        await OrderService(db_session).create_order(buyer, order_for((product_id, 6)))

    assert "Insufficient quantity" in exc_info.value.message
    assert exc_info.value.status_code == 400
    assert await stock_of(db_session, product_id) == 5
    assert await order_count(db_session) == 0


async def test_create_order_failure_on_later_line_rolls_back_earlier_lines(
    db_session, buyer, seller, create_product
):
    first = await create_product(seller, name="Panela", stock_quantity=10)
    second = await create_product(seller, name="Cacao", stock_quantity=1)
    first_id, second_id = first.id, second.id

    with pytest.raises(OrderPlacementError):
        await OrderService(db_session).create_order(buyer, order_for((first_id, 4), (second_id, 2)))

    assert await stock_of(db_session, first_id) == 10
    assert await stock_of(db_session, second_id) == 1
    assert await order_count(db_session) == 0


async def test_create_order_total_is_sum_of_subtotals(db_session, buyer, seller, create_product):
    coffee = await create_product(seller, name="Café", base_price=12500.5, stock_quantity=20)
    panela = await create_product(seller, name="Panela", base_price=3200, stock_quantity=20)

    order = await OrderService(db_session).create_order(buyer, order_for((coffee.id, 3), (panela.id, 2)))

    assert order.total_amount == pytest.approx(sum(item.subtotal for item in order.items))
    assert order.total_amount == pytest.approx(12500.5 * 3 + 3200 * 2)
    assert await stock_of(db_session, coffee.id) == 17
    assert await stock_of(db_session, panela.id) == 18


async def test_create_order_repeated_product_checks_cumulative_stock(db_session, buyer, product):
    product_id = product.id

    with pytest.raises(OrderPlacementError):
        await OrderService(db_session).create_order(buyer, order_for((product_id, 3), (product_id, 3)))

    assert await stock_of(db_session, product_id) == 5


async def test_create_order_missing_product(db_session, buyer):
    with pytest.raises(OrderPlacementError) as exc_info:
        await OrderService(db_session).create_order(buyer, order_for((9999, 1)))

    assert exc_info.value.message == "Product with ID 9999 not found"


async def test_create_order_inactive_product(db_session, buyer, seller, create_product):
    hidden = await create_product(seller, name="Mango", is_active=False)

    with pytest.raises(OrderPlacementError) as exc_info:
        await OrderService(db_session).create_order(buyer, order_for((hidden.id, 1)))

    assert exc_info.value.message == "Product Mango is not available"


async def test_create_order_notifies_buyer_and_seller(db_session, buyer, seller, product):
    order = await OrderService(db_session).create_order(buyer, order_for((product.id, 2)))

    result = await db_session.execute(
        select(UserNotification).where(UserNotification.related_entity_id == order.id)
    )
    by_recipient = {n.recipient_user_id: n for n in result.scalars().all()}

    assert by_recipient[buyer.id].type == NotificationType.ORDER_PLACED.value
    assert by_recipient[seller.id].type == NotificationType.NEW_ORDER.value
    assert f"#{order.id:06d}" in by_recipient[buyer.id].message


async def test_create_order_survives_notification_failure(db_session, buyer, product, mocker):
    """A failing notification must not undo a committed order."""
    mocker.patch.object(NotificationService, "notify_order_placed", side_effect=RuntimeError("smtp down"))

    order = await OrderService(db_session).create_order(buyer, order_for((product.id, 1)))

    assert order.id is not None
    assert await order_count(db_session) == 1
    assert await stock_of(db_session, product.id) == 4


async def test_buyer_cannot_order_for_someone_else(db_session, buyer, create_user, product):
    other = await create_user("otro")
    data = OrderCreate(buyer_user_id=other.id, items=[OrderItemCreate(product_id=product.id, quantity=1)])

    with pytest.raises(PermissionDeniedError):
        await OrderService(db_session).create_order(buyer, data)


async def test_admin_can_order_for_a_buyer(db_session, admin, buyer, product):
    data = OrderCreate(buyer_user_id=buyer.id, items=[OrderItemCreate(product_id=product.id, quantity=1)])

    order = await OrderService(db_session).create_order(admin, data)

    assert order.buyer_user_id == buyer.id


# --- cancel_order ---

async def test_cancel_order_restores_stock(db_session, buyer, product):
    service = OrderService(db_session)
    order = await service.create_order(buyer, order_for((product.id, 3)))
    assert await stock_of(db_session, product.id) == 2

    cancelled = await service.cancel_order(order.id, buyer, "Ya no lo necesito")

    assert cancelled.status == OrderStatus.CANCELLED
    assert cancelled.cancel_reason == "Ya no lo necesito"
    assert await stock_of(db_session, product.id) == 5


async def test_cancel_processing_order_restores_stock(db_session, admin, buyer, product):
    service = OrderService(db_session)
    order = await service.create_order(buyer, order_for((product.id, 2)))
    await service.update_order_status(order.id, OrderStatus.PROCESSING, admin)
    assert await stock_of(db_session, product.id) == 3

    cancelled = await service.cancel_order(order.id, buyer, "Pedido duplicado")

    assert cancelled.status == OrderStatus.CANCELLED
    assert await stock_of(db_session, product.id) == 5


async def test_cancel_shipped_order_is_rejected(db_session, admin, buyer, product):
    product_id = product.id
    service = OrderService(db_session)
    order = await service.create_order(buyer, order_for((product_id, 1)))
    await service.update_order_status(order.id, OrderStatus.SHIPPED, admin)

    with pytest.raises(OrderStateError) as exc_info:
        await service.cancel_order(order.id, buyer, "Tarde")

    assert exc_info.value.message == "Cannot cancel an order that has been shipped or delivered"
    assert await stock_of(db_session, product_id) == 4


async def test_cancel_delivered_order_is_rejected(db_session, admin, buyer, product):
    product_id = product.id
    service = OrderService(db_session)
    order = await service.create_order(buyer, order_for((product_id, 2)))
    order_id = order.id
    await service.update_order_status(order_id, OrderStatus.DELIVERED, admin)

    with pytest.raises(OrderStateError):
        await service.cancel_order(order_id, buyer, "Llego dañado")

    assert await stock_of(db_session, product_id) == 3
    assert (await service.get_order(order_id)).status == OrderStatus.DELIVERED


async def test_cancel_twice_is_rejected(db_session, buyer, product):
    product_id = product.id
    service = OrderService(db_session)
    order = await service.create_order(buyer, order_for((product_id, 1)))
    await service.cancel_order(order.id, buyer, "Error")

    with pytest.raises(OrderStateError):
        await service.cancel_order(order.id, buyer, "Otra vez")

    assert await stock_of(db_session, product_id) == 5


async def test_concurrent_cancellations_restore_stock_once(db_session, session_factory, buyer, product, mocker):
    """A cancellation that loses the race must not put the stock back again."""
    product_id = product.id
    order = await OrderService(db_session).create_order(buyer, order_for((product_id, 2)))
    order_id = order.id
    assert await stock_of(db_session, product_id) == 3

    async with session_factory() as first, session_factory() as second:
        winner = OrderService(first)
        loser = OrderService(second)
        lock_product = loser._lock_product

        async def lock_after_winner(pid):
            await winner.cancel_order(order_id, buyer, "Cancelado desde la app")
            return await lock_product(pid)

        mocker.patch.object(loser, "_lock_product", side_effect=lock_after_winner)

        with pytest.raises(OrderStateError):
            await loser.cancel_order(order_id, buyer, "Cancelado desde la web")

    assert await stock_of(db_session, product_id) == 5
    assert (await OrderService(db_session).get_order(order_id)).cancel_reason == "Cancelado desde la app"


async def test_other_buyer_cannot_cancel(db_session, buyer, create_user, product):
    service = OrderService(db_session)
    order = await service.create_order(buyer, order_for((product.id, 1)))
    stranger = await create_user("extrano")

    with pytest.raises(PermissionDeniedError):
        await service.cancel_order(order.id, stranger, "No es mio")


# --- status updates ---

async def test_update_status_notifies_buyer(db_session, admin, buyer, product):
    service = OrderService(db_session)
    order = await service.create_order(buyer, order_for((product.id, 1)))

    updated = await service.update_order_status(order.id, OrderStatus.PROCESSING, admin)

    assert updated.status == OrderStatus.PROCESSING
    result = await db_session.execute(
        select(UserNotification).where(
            UserNotification.recipient_user_id == buyer.id,
            UserNotification.type == NotificationType.ORDER_STATUS.value,
        )
    )
    notice = result.scalar_one()
    assert "PENDING" in notice.message and "PROCESSING" in notice.message


async def test_status_cancelled_goes_through_cancellation(db_session, admin, buyer, product):
    service = OrderService(db_session)
    order = await service.create_order(buyer, order_for((product.id, 2)))

    updated = await service.update_order_status(order.id, OrderStatus.CANCELLED, admin)

    assert updated.status == OrderStatus.CANCELLED
    assert await stock_of(db_session, product.id) == 5


async def test_marking_paid_notifies_seller(db_session, admin, buyer, seller, product):
    service = OrderService(db_session)
    order = await service.create_order(buyer, order_for((product.id, 2)))

    await service.update_order(order.id, OrderUpdate(payment_status=PaymentStatus.PAID), admin)

    count = await db_session.scalar(
        select(func.count(UserNotification.id)).where(
            UserNotification.recipient_user_id == seller.id,
            UserNotification.type == NotificationType.PAYMENT_RECEIVED.value,
        )
    )
    assert count == 1


# --- listing ---

async def test_list_orders_scopes_buyers_to_their_own(db_session, buyer, create_user, product):
    service = OrderService(db_session)
    other = await create_user("vecino")
    await service.create_order(buyer, order_for((product.id, 1)))
    await service.create_order(other, order_for((product.id, 1)))

    orders, pagination = await service.list_orders(buyer, OrderFilters(buyer_user_id=other.id))

    assert pagination["total"] == 1
    assert all(order.buyer_user_id == buyer.id for order in orders)


async def test_seller_orders_only_include_their_lines(db_session, buyer, seller, create_user, create_product):
    other_seller = await create_user("finca", UserType.SELLER)
    mine = await create_product(seller, name="Café", base_price=50, stock_quantity=10)
    theirs = await create_product(other_seller, name="Queso", base_price=30, stock_quantity=10)
    service = OrderService(db_session)
    await service.create_order(buyer, order_for((mine.id, 2), (theirs.id, 1)))

    orders, pagination = await service.get_seller_orders(seller.id)

    assert pagination["total"] == 1
    assert [item.product_id for item in orders[0].items] == [mine.id]
    assert orders[0].seller_total == 100
    assert orders[0].total_amount == 130
