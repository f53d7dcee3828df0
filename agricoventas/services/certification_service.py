# agricoventas/services/certification_service.py
"""
Seller certifications and the gate that checks them.

A seller is fully certified when every code in REQUIRED_CERTIFICATIONS has
a VERIFIED row; there is no partial credit.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from agricoventas.core.enums import CertificationStatus, REQUIRED_CERTIFICATIONS, UserType
from agricoventas.core.exceptions import (
    CertificationRequiredError,
    NotFoundError,
    PermissionDeniedError,
)
from agricoventas.core.utils import paginate_query
from agricoventas.models.certification import UserCertification
from agricoventas.models.user import User
from agricoventas.schemas.certification import CertificationCreate
from agricoventas.services.notification_service import NotificationService
from agricoventas.services.storage import MediaStorage

logger = logging.getLogger(__name__)


def ensure_owner_or_admin(user_id: int, actor: User, message: str) -> None:
    if actor.user_type != UserType.ADMIN and actor.id != user_id:
        raise PermissionDeniedError(message)


class CertificationService:
    def __init__(self, db: AsyncSession, storage: Optional[MediaStorage] = None):
        self.db = db
        self.storage = storage
        self.notifications = NotificationService(db)

    # Gate

    async def _verified_types(self, user_id: int) -> set:
        result = await self.db.execute(
            select(UserCertification.certification_type).where(
                UserCertification.user_id == user_id,
                UserCertification.status == CertificationStatus.VERIFIED,
            )
        )
        return set(result.scalars().all())

    async def has_required_certifications(self, user_id: int) -> bool:
        verified = await self._verified_types(user_id)
        return all(code in verified for code in REQUIRED_CERTIFICATIONS)

    async def get_missing_certifications(self, user_id: int) -> List[str]:
        verified = await self._verified_types(user_id)
        return [code for code in REQUIRED_CERTIFICATIONS if code not in verified]

    async def get_certifications_count(self, user_id: int) -> Dict[str, int]:
        verified = await self._verified_types(user_id)
        return {
            "verified": sum(1 for code in REQUIRED_CERTIFICATIONS if code in verified),
            "total": len(REQUIRED_CERTIFICATIONS),
        }

    async def get_verification_summary(self, user_id: int) -> Dict[str, object]:
        count = await self.get_certifications_count(user_id)
        return {
            "has_all_certifications": count["verified"] == count["total"],
            "certifications_count": count,
        }

    async def ensure_seller_certified(self, user: User) -> None:
        """Raise unless the user is an admin or holds every required certification."""
        if user.user_type == UserType.ADMIN:
            return
        missing = await self.get_missing_certifications(user.id)
        if missing:
            raise CertificationRequiredError(
                "All required certifications must be verified before selling",
                details={"missing": missing},
            )

    # Management

    async def upload_certification(self, user: User, data: CertificationCreate) -> UserCertification:
        """
        Create or replace the user's certification of the given type.

        A replacement goes back to PENDING and loses its verification.
        """
        result = await self.db.execute(
            select(UserCertification).where(
                UserCertification.user_id == user.id,
                UserCertification.certification_type == data.certification_type,
            )
        )
        certification = result.scalar_one_or_none()
        is_update = certification is not None
        user_id = user.id
        display_name = user.full_name or user.username
        previous_image = certification.image_url if certification else None

        try:
            if certification is None:
                certification = UserCertification(user_id=user_id)
                self.db.add(certification)

            certification.certification_type = data.certification_type
            certification.certification_name = data.certification_name or data.certification_type
            certification.certificate_number = data.certificate_number
            certification.issued_date = data.issued_date
            certification.expiry_date = data.expiry_date
            certification.image_url = data.image_url
            certification.status = CertificationStatus.PENDING
            certification.uploaded_at = datetime.now(timezone.utc)
            certification.verified_at = None
            certification.verifier_admin_id = None
            certification.rejection_reason = None

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            f"Certification {certification.certification_type} "
            f"{'updated' if is_update else 'uploaded'} for user {user_id}"
        )

        if previous_image and previous_image != certification.image_url and self.storage:
            self.storage.delete(previous_image)

        certification_id = certification.id
        certification_name = certification.certification_name
        await self.notifications.notify_certification_uploaded(
            user_id, certification_id, certification_name, is_update
        )
        await self.notifications.notify_admins_new_certification(
            display_name, certification_id, certification_name
        )
        await self.db.refresh(certification)
        return certification

    async def get_certification(self, certification_id: int) -> UserCertification:
        certification = await self.db.get(UserCertification, certification_id)
        if not certification:
            raise NotFoundError("Certification not found")
        return certification

    async def get_for_actor(self, certification_id: int, actor: User) -> UserCertification:
        certification = await self.get_certification(certification_id)
        ensure_owner_or_admin(
            certification.user_id, actor, "You do not have permission to view this certification"
        )
        return certification

    async def list_user_certifications(self, user_id: int) -> List[UserCertification]:
        result = await self.db.execute(
            select(UserCertification)
            .where(UserCertification.user_id == user_id)
            .order_by(UserCertification.uploaded_at.desc())
        )
        return list(result.scalars().all())

    async def get_required_status(self, user_id: int) -> Dict[str, Optional[UserCertification]]:
        certifications = await self.list_user_certifications(user_id)
        by_type = {c.certification_type: c for c in certifications}
        return {code: by_type.get(code) for code in REQUIRED_CERTIFICATIONS}

    async def list_for_admin(
        self,
        status: Optional[CertificationStatus] = None,
        user_id: Optional[int] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[UserCertification], Dict[str, int]]:
        stmt = select(UserCertification).options(selectinload(UserCertification.user))
        if status:
            stmt = stmt.where(UserCertification.status == status)
        if user_id:
            stmt = stmt.where(UserCertification.user_id == user_id)
        stmt = stmt.order_by(UserCertification.uploaded_at.desc(), UserCertification.id.desc())
        return await paginate_query(self.db, stmt, page, limit)

    async def _set_status(
        self,
        certification_id: int,
        admin: User,
        status: CertificationStatus,
        rejection_reason: Optional[str] = None,
    ) -> UserCertification:
        certification = await self.get_certification(certification_id)
        try:
            certification.status = status
            certification.verified_at = datetime.now(timezone.utc)
            certification.verifier_admin_id = admin.id
            certification.rejection_reason = rejection_reason
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Certification {certification.id} set to {status.value} by admin {admin.id}")
        await self.notifications.notify_certification_status(
            certification.user_id,
            certification.id,
            certification.certification_name or certification.certification_type,
            status,
            rejection_reason,
        )
        await self.db.refresh(certification)
        return certification

    async def approve(self, certification_id: int, admin: User) -> UserCertification:
        return await self._set_status(certification_id, admin, CertificationStatus.VERIFIED)

    async def reject(self, certification_id: int, admin: User, reason: str) -> UserCertification:
        return await self._set_status(certification_id, admin, CertificationStatus.REJECTED, reason)
