# tests/test_routes/test_notification_routes.py
import pytest

from agricoventas.core.enums import NotificationType
from agricoventas.services.notification_service import NotificationService


@pytest.fixture
async def notifications(db_session, buyer):
    service = NotificationService(db_session)
    for order_id in (1, 2):
        await service.create_notification(
            buyer.id, NotificationType.ORDER_STATUS, "Estado del Pedido", f"Pedido {order_id}"
        )
    return await service.list_for_user(buyer.id)


async def test_list_and_count(client, buyer, notifications, auth_headers):
    response = await client.get("/api/notifications", headers=auth_headers(buyer))

    data = response.json()["data"]
    assert data["unreadCount"] == 2
    assert data["pagination"]["total"] == 2

    count = await client.get("/api/notifications/unread-count", headers=auth_headers(buyer))
    assert count.json()["data"] == {"count": 2}


async def test_mark_one_read(client, buyer, notifications, auth_headers):
    notification_id = notifications[0][0].id

    response = await client.patch(f"/api/notifications/{notification_id}/read", headers=auth_headers(buyer))

    assert response.json()["data"]["isRead"] is True
    unread = await client.get("/api/notifications", params={"unreadOnly": True}, headers=auth_headers(buyer))
    assert len(unread.json()["data"]["notifications"]) == 1


async def test_mark_all_read(client, buyer, notifications, auth_headers):
    response = await client.patch("/api/notifications/mark-all-read", headers=auth_headers(buyer))

    assert response.json()["data"] == {"updated": 2}


async def test_other_user_cannot_touch_notification(client, seller, notifications, auth_headers):
    notification_id = notifications[0][0].id

    read = await client.patch(f"/api/notifications/{notification_id}/read", headers=auth_headers(seller))
    delete = await client.delete(f"/api/notifications/{notification_id}", headers=auth_headers(seller))

    assert read.status_code == 403
    assert delete.status_code == 403


async def test_delete_notification(client, buyer, notifications, auth_headers):
    notification_id = notifications[0][0].id

    response = await client.delete(f"/api/notifications/{notification_id}", headers=auth_headers(buyer))
    assert response.status_code == 200

    missing = await client.delete(f"/api/notifications/{notification_id}", headers=auth_headers(buyer))
    assert missing.status_code == 404
