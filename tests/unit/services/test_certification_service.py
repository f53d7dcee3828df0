# tests/unit/services/test_certification_service.py
import pytest
from sqlalchemy import select

from agricoventas.core.enums import CertificationStatus, NotificationType, UserType
from agricoventas.core.exceptions import CertificationRequiredError
from agricoventas.models.certification import UserCertification
from agricoventas.models.notification import UserNotification
from agricoventas.schemas.certification import CertificationCreate
from agricoventas.services.certification_service import CertificationService


def upload(code, url="/media/certifications/doc.pdf"):
    return CertificationCreate(certification_type=code, image_url=url)


async def add_certification(db_session, user, code, status):
    db_session.add(UserCertification(
        user_id=user.id,
        certification_type=code,
        image_url=f"/media/certifications/{code}.pdf",
        status=status,
    ))
    await db_session.commit()


async def test_no_certifications(db_session, seller):
    service = CertificationService(db_session)

    assert await service.has_required_certifications(seller.id) is False
    assert await service.get_certifications_count(seller.id) == {"verified": 0, "total": 4}


async def test_three_of_four_verified_fails_gate(db_session, seller):
    for code in ("INVIMA", "ICA", "REGISTRO_SANITARIO"):
        await add_certification(db_session, seller, code, CertificationStatus.VERIFIED)
    await add_certification(db_session, seller, "CERTIFICADO_ORGANICO", CertificationStatus.PENDING)
    service = CertificationService(db_session)

    assert await service.has_required_certifications(seller.id) is False
    assert await service.get_certifications_count(seller.id) == {"verified": 3, "total": 4}
    assert await service.get_missing_certifications(seller.id) == ["CERTIFICADO_ORGANICO"]


async def test_all_verified_passes_gate(db_session, certified_seller):
    service = CertificationService(db_session)

    assert await service.has_required_certifications(certified_seller.id) is True
    summary = await service.get_verification_summary(certified_seller.id)
    assert summary["has_all_certifications"] is True
    assert summary["certifications_count"] == {"verified": 4, "total": 4}


async def test_ensure_seller_certified_lists_missing(db_session, seller):
    with pytest.raises(CertificationRequiredError) as exc_info:
        await CertificationService(db_session).ensure_seller_certified(seller)

    assert exc_info.value.status_code == 403
    assert len(exc_info.value.details["missing"]) == 4


async def test_admin_bypasses_gate(db_session, admin):
    await CertificationService(db_session).ensure_seller_certified(admin)


async def test_upload_notifies_user_and_admins(db_session, seller, admin):
    certification = await CertificationService(db_session).upload_certification(seller, upload("ICA"))

    assert certification.status == CertificationStatus.PENDING
    assert certification.certification_name == "ICA"

    result = await db_session.execute(select(UserNotification))
    notices = {(n.recipient_user_id, n.type) for n in result.scalars().all()}
    assert (seller.id, NotificationType.CERTIFICATION_UPLOADED.value) in notices
    assert (admin.id, NotificationType.NEW_CERTIFICATION.value) in notices


async def test_reupload_resets_verification(db_session, seller, admin):
    service = CertificationService(db_session)
    first = await service.upload_certification(seller, upload("INVIMA", "/media/certifications/a.pdf"))
    await service.approve(first.id, admin)

    again = await service.upload_certification(seller, upload("INVIMA", "/media/certifications/b.pdf"))

    assert again.id == first.id
    assert again.status == CertificationStatus.PENDING
    assert again.verified_at is None
    assert again.verifier_admin_id is None
    assert again.image_url == "/media/certifications/b.pdf"

    result = await db_session.execute(
        select(UserNotification).where(
            UserNotification.recipient_user_id == seller.id,
            UserNotification.type == NotificationType.CERTIFICATION_UPDATED.value,
        )
    )
    assert result.scalar_one() is not None


async def test_approve_and_reject(db_session, seller, admin):
    service = CertificationService(db_session)
    cert = await service.upload_certification(seller, upload("ICA"))

    approved = await service.approve(cert.id, admin)
    assert approved.status == CertificationStatus.VERIFIED
    assert approved.verifier_admin_id == admin.id
    assert approved.verified_at is not None

    rejected = await service.reject(cert.id, admin, "Documento ilegible")
    assert rejected.status == CertificationStatus.REJECTED
    assert rejected.rejection_reason == "Documento ilegible"


async def test_required_status_map(db_session, seller):
    service = CertificationService(db_session)
    await service.upload_certification(seller, upload("ICA"))

    statuses = await service.get_required_status(seller.id)

    assert set(statuses) == {"INVIMA", "ICA", "REGISTRO_SANITARIO", "CERTIFICADO_ORGANICO"}
    assert statuses["ICA"] is not None
    assert statuses["INVIMA"] is None
