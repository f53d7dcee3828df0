from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from agricoventas.core.responses import success
from agricoventas.dependencies import get_current_user, get_db
from agricoventas.models.user import User
from agricoventas.schemas.notification import NotificationRead
from agricoventas.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("")
async def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    unread_only: bool = Query(False, alias="unreadOnly"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = NotificationService(db)
    notifications, pagination = await service.list_for_user(current_user.id, page, limit, unread_only)
    return success({
        "notifications": [NotificationRead.model_validate(n) for n in notifications],
        "pagination": pagination,
        "unreadCount": await service.unread_count(current_user.id),
    })


@router.get("/unread-count")
async def unread_count(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return success({"count": await NotificationService(db).unread_count(current_user.id)})


@router.patch("/mark-all-read")
async def mark_all_read(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    updated = await NotificationService(db).mark_all_as_read(current_user.id)
    return success({"updated": updated})


@router.patch("/{notification_id}/read")
async def mark_read(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    notification = await NotificationService(db).mark_as_read(notification_id, current_user)
    return success(NotificationRead.model_validate(notification))


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await NotificationService(db).delete_notification(notification_id, current_user)
    return success({"message": "Notification deleted"})
