# tests/unit/services/test_notification_service.py
import pytest
from sqlalchemy import func, select

from agricoventas.core.enums import NotificationType, RelatedEntityType, UserType
from agricoventas.core.exceptions import NotFoundError, PermissionDeniedError
from agricoventas.models.notification import UserNotification
from agricoventas.services.notification_service import (
    NotificationService,
    format_amount,
    format_order_number,
)


def test_format_order_number():
    assert format_order_number(42) == "#000042"
    assert format_order_number(1234567) == "#1234567"


def test_format_amount_uses_colombian_grouping():
    assert format_amount(1500000) == "1.500.000"
    assert format_amount(2500.5) == "2.500,5"
    assert format_amount(200) == "200"


async def test_create_and_read_flow(db_session, buyer):
    service = NotificationService(db_session)
    first = await service.create_notification(
        buyer.id, NotificationType.ORDER_STATUS, "Titulo", "Mensaje", RelatedEntityType.ORDER, 1
    )
    await service.create_notification(buyer.id, NotificationType.LOW_STOCK, "Otro", "Mensaje")

    assert first.type == "ORDER_STATUS"
    assert first.related_entity_type == "ORDER"
    assert await service.unread_count(buyer.id) == 2

    await service.mark_as_read(first.id, buyer)
    assert await service.unread_count(buyer.id) == 1

    assert await service.mark_all_as_read(buyer.id) == 1
    assert await service.unread_count(buyer.id) == 0

    notifications, pagination = await service.list_for_user(buyer.id)
    assert pagination["total"] == 2
    assert all(n.is_read for n in notifications)


async def test_only_recipient_can_touch_notification(db_session, buyer, seller):
    service = NotificationService(db_session)
    notice = await service.create_notification(buyer.id, NotificationType.ORDER_STATUS, "T", "M")

    with pytest.raises(PermissionDeniedError):
        await service.mark_as_read(notice.id, seller)
    with pytest.raises(PermissionDeniedError):
        await service.delete_notification(notice.id, seller)
    with pytest.raises(NotFoundError):
        await service.mark_as_read(999, buyer)

    await service.delete_notification(notice.id, buyer)
    assert await db_session.scalar(select(func.count(UserNotification.id))) == 0


async def test_create_failure_is_swallowed(db_session, buyer, mocker):
    service = NotificationService(db_session)
    mocker.patch.object(db_session, "commit", side_effect=RuntimeError("database is locked"))

    result = await service.notify_low_stock(buyer.id, 1, "Café", 3)

    assert result is None


async def test_admins_notified_about_new_certification(db_session, admin, create_user):
    second_admin = await create_user("admin2", UserType.ADMIN)
    await create_user("admin3", UserType.ADMIN, is_active=False)

    await NotificationService(db_session).notify_admins_new_certification("Juan Pérez", 7, "ICA")

    result = await db_session.execute(
        select(UserNotification.recipient_user_id).where(
            UserNotification.type == NotificationType.NEW_CERTIFICATION.value
        )
    )
    assert sorted(result.scalars().all()) == sorted([admin.id, second_admin.id])
