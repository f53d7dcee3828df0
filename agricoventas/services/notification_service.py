# agricoventas/services/notification_service.py
"""
In-app notifications.

The ``notify_*`` helpers are best-effort: they run after the primary change
has been committed, commit on their own and never raise.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select, func, update, delete
from sqlalchemy.ext.asyncio import AsyncSession

from agricoventas.core.enums import NotificationType, RelatedEntityType, UserType, CertificationStatus
from agricoventas.core.exceptions import NotFoundError, PermissionDeniedError
from agricoventas.core.utils import paginate_query
from agricoventas.models.notification import UserNotification
from agricoventas.models.user import User

logger = logging.getLogger(__name__)


def format_order_number(order_id: int) -> str:
    return f"#{order_id:06d}"


def format_amount(amount: float) -> str:
    # Colombian grouping: 1.234.567,5
    text = f"{amount:,.2f}".rstrip("0").rstrip(".")
    return text.replace(",", "_").replace(".", ",").replace("_", ".")


class NotificationService:
    def __init__(self, db: AsyncSession):
        self.db = db

    # Queries

    async def list_for_user(
        self,
        user_id: int,
        page: int = 1,
        limit: int = 20,
        unread_only: bool = False,
    ) -> Tuple[List[UserNotification], Dict[str, int]]:
        stmt = select(UserNotification).where(UserNotification.recipient_user_id == user_id)
        if unread_only:
            stmt = stmt.where(UserNotification.is_read.is_(False))
        stmt = stmt.order_by(UserNotification.created_at.desc(), UserNotification.id.desc())
        return await paginate_query(self.db, stmt, page, limit)

    async def unread_count(self, user_id: int) -> int:
        stmt = select(func.count(UserNotification.id)).where(
            UserNotification.recipient_user_id == user_id,
            UserNotification.is_read.is_(False),
        )
        return (await self.db.scalar(stmt)) or 0

    async def _get_owned(self, notification_id: int, user: User) -> UserNotification:
        notification = await self.db.get(UserNotification, notification_id)
        if not notification:
            raise NotFoundError("Notification not found")
        if notification.recipient_user_id != user.id:
            raise PermissionDeniedError("You do not have permission to access this notification")
        return notification

    async def mark_as_read(self, notification_id: int, user: User) -> UserNotification:
        notification = await self._get_owned(notification_id, user)
        notification.is_read = True
        await self.db.commit()
        return notification

    async def mark_all_as_read(self, user_id: int) -> int:
        result = await self.db.execute(
            update(UserNotification)
            .where(
                UserNotification.recipient_user_id == user_id,
                UserNotification.is_read.is_(False),
            )
            .values(is_read=True)
        )
        await self.db.commit()
        return result.rowcount or 0

    async def delete_notification(self, notification_id: int, user: User) -> None:
        notification = await self._get_owned(notification_id, user)
        await self.db.execute(delete(UserNotification).where(UserNotification.id == notification.id))
        await self.db.commit()

    # Best-effort creation

    async def create_notification(
        self,
        recipient_user_id: int,
        type: NotificationType,
        title: str,
        message: str,
        related_entity_type: Optional[RelatedEntityType] = None,
        related_entity_id: Optional[int] = None,
    ) -> Optional[UserNotification]:
        return await self.create_many([
            dict(
                recipient_user_id=recipient_user_id,
                type=type,
                title=title,
                message=message,
                related_entity_type=related_entity_type,
                related_entity_id=related_entity_id,
            )
        ])

    async def create_many(self, payloads: List[Dict[str, Any]]) -> Optional[UserNotification]:
        """
        Insert notifications and commit.

        Returns:
            The last notification created, or None when nothing was written
        """
        try:
            created = None
            for payload in payloads:
                created = UserNotification(
                    recipient_user_id=payload["recipient_user_id"],
                    type=NotificationType(payload["type"]).value,
                    title=payload["title"],
                    message=payload["message"],
                    related_entity_type=(
                        RelatedEntityType(payload["related_entity_type"]).value
                        if payload.get("related_entity_type") else None
                    ),
                    related_entity_id=payload.get("related_entity_id"),
                )
                self.db.add(created)
            await self.db.commit()
            return created
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Error creating notification: {str(e)}")
            return None

    async def notify_product_created(self, seller_id: int, product_id: int, product_name: str):
        return await self.create_notification(
            seller_id,
            NotificationType.PRODUCT_CREATED,
            "Producto Creado",
            f'Tu producto "{product_name}" ha sido creado exitosamente.',
            RelatedEntityType.PRODUCT,
            product_id,
        )

    async def notify_order_status_change(self, buyer_id: int, order_id: int, previous_status: str, new_status: str):
        return await self.create_notification(
            buyer_id,
            NotificationType.ORDER_STATUS,
            "Estado de Pedido Actualizado",
            f"Tu pedido {format_order_number(order_id)} ha cambiado de estado {previous_status} a {new_status}.",
            RelatedEntityType.ORDER,
            order_id,
        )

    async def notify_order_placed(self, buyer_id: int, seller_id: Optional[int], order_id: int, total_amount: float):
        number = format_order_number(order_id)
        amount = format_amount(total_amount)
        payloads = [
            dict(
                recipient_user_id=buyer_id,
                type=NotificationType.ORDER_PLACED,
                title="Pedido Realizado",
                message=f"Has realizado un pedido por ${amount}. Número de pedido: {number}",
                related_entity_type=RelatedEntityType.ORDER,
                related_entity_id=order_id,
            )
        ]
        if seller_id is not None:
            payloads.append(dict(
                recipient_user_id=seller_id,
                type=NotificationType.NEW_ORDER,
                title="Nuevo Pedido Recibido",
                message=f"Has recibido un nuevo pedido por ${amount}. Número de pedido: {number}",
                related_entity_type=RelatedEntityType.ORDER,
                related_entity_id=order_id,
            ))
        return await self.create_many(payloads)

    async def notify_low_stock(self, seller_id: int, product_id: int, product_name: str, current_stock: int):
        return await self.create_notification(
            seller_id,
            NotificationType.LOW_STOCK,
            "Stock Bajo",
            f'Tu producto "{product_name}" tiene stock bajo ({current_stock} unidades restantes).',
            RelatedEntityType.PRODUCT,
            product_id,
        )

    async def notify_certification_uploaded(self, user_id: int, certification_id: int, certification_name: str, is_update: bool):
        if is_update:
            return await self.create_notification(
                user_id,
                NotificationType.CERTIFICATION_UPDATED,
                "Certificación Actualizada",
                f'Tu certificación "{certification_name}" ha sido actualizada y está pendiente de verificación.',
                RelatedEntityType.CERTIFICATION,
                certification_id,
            )
        return await self.create_notification(
            user_id,
            NotificationType.CERTIFICATION_UPLOADED,
            "Certificación Subida",
            f'Tu certificación "{certification_name}" ha sido subida y está pendiente de verificación.',
            RelatedEntityType.CERTIFICATION,
            certification_id,
        )

    async def notify_admins_new_certification(self, display_name: str, certification_id: int, certification_name: str):
        try:
            result = await self.db.execute(
                select(User.id).where(User.user_type == UserType.ADMIN, User.is_active.is_(True))
            )
            admin_ids = list(result.scalars().all())
        except Exception as e:
            logger.error(f"Error loading admins for certification notice: {str(e)}")
            return None

        if not admin_ids:
            logger.warning("No active admins to notify about certification %s", certification_id)
            return None

        return await self.create_many([
            dict(
                recipient_user_id=admin_id,
                type=NotificationType.NEW_CERTIFICATION,
                title="Nueva Certificación para Revisar",
                message=f'{display_name} ha enviado una certificación "{certification_name}" que requiere verificación.',
                related_entity_type=RelatedEntityType.CERTIFICATION,
                related_entity_id=certification_id,
            )
            for admin_id in admin_ids
        ])

    async def notify_certification_status(
        self,
        user_id: int,
        certification_id: int,
        certification_name: str,
        status: CertificationStatus,
        rejection_reason: Optional[str] = None,
    ):
        status_text = "aprobada" if status == CertificationStatus.VERIFIED else "rechazada"
        message = f'Tu certificación "{certification_name}" ha sido {status_text}.'
        if rejection_reason:
            message = f"{message} Motivo: {rejection_reason}"
        return await self.create_notification(
            user_id,
            NotificationType.CERTIFICATION_STATUS,
            "Estado de Certificación",
            message,
            RelatedEntityType.CERTIFICATION,
            certification_id,
        )

    async def notify_product_review(self, seller_id: int, product_id: int, product_name: str, rating: int):
        return await self.create_notification(
            seller_id,
            NotificationType.PRODUCT_REVIEW,
            "Nueva Reseña",
            f'Tu producto "{product_name}" ha recibido una nueva reseña con calificación de {rating} estrellas.',
            RelatedEntityType.PRODUCT,
            product_id,
        )

    async def notify_payment_received(self, seller_id: int, order_id: int, amount: float):
        return await self.create_notification(
            seller_id,
            NotificationType.PAYMENT_RECEIVED,
            "Pago Recibido",
            f"Has recibido un pago de ${format_amount(amount)} por el pedido {format_order_number(order_id)}.",
            RelatedEntityType.ORDER,
            order_id,
        )
