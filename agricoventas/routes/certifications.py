from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from agricoventas.core.enums import CertificationStatus
from agricoventas.core.responses import success
from agricoventas.dependencies import (
    get_current_user,
    get_db,
    get_media_storage,
    require_admin,
    resolve_user_id,
)
from agricoventas.models.user import User
from agricoventas.schemas.certification import (
    CertificationCreate,
    CertificationRead,
    CertificationReject,
    CertificationWithUser,
    VerificationSummary,
)
from agricoventas.services.certification_service import CertificationService, ensure_owner_or_admin
from agricoventas.services.storage import MediaStorage

router = APIRouter(prefix="/certifications", tags=["certifications"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def upload_certification(
    data: CertificationCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage),
):
    certification = await CertificationService(db, storage).upload_certification(current_user, data)
    return success(CertificationRead.model_validate(certification))


@router.get("/admin")
async def list_certifications(
    cert_status: Optional[CertificationStatus] = Query(None, alias="status"),
    user_id: Optional[int] = Query(None, alias="userId"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    certifications, pagination = await CertificationService(db).list_for_admin(
        cert_status, user_id, page, limit
    )
    return success({
        "certifications": [CertificationWithUser.model_validate(c) for c in certifications],
        "pagination": pagination,
    })


@router.get("/verify/{user_id}")
async def verification_summary(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    target_id = resolve_user_id(user_id, current_user)
    ensure_owner_or_admin(target_id, current_user, "You do not have permission to view these certifications")
    summary = await CertificationService(db).get_verification_summary(target_id)
    return success(VerificationSummary.model_validate(summary))


@router.get("/user/{user_id}")
async def user_certifications(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    target_id = resolve_user_id(user_id, current_user)
    ensure_owner_or_admin(target_id, current_user, "You do not have permission to view these certifications")
    certifications = await CertificationService(db).list_user_certifications(target_id)
    return success([CertificationRead.model_validate(c) for c in certifications])


@router.get("/user/{user_id}/required-status")
async def required_status(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    target_id = resolve_user_id(user_id, current_user)
    ensure_owner_or_admin(target_id, current_user, "You do not have permission to view these certifications")
    statuses = await CertificationService(db).get_required_status(target_id)
    return success({
        code: CertificationRead.model_validate(cert) if cert else None
        for code, cert in statuses.items()
    })


@router.get("/{certification_id}")
async def get_certification(
    certification_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    certification = await CertificationService(db).get_for_actor(certification_id, current_user)
    return success(CertificationRead.model_validate(certification))


@router.put("/approve/{certification_id}")
async def approve_certification(
    certification_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    certification = await CertificationService(db).approve(certification_id, admin)
    return success(CertificationRead.model_validate(certification))


@router.put("/reject/{certification_id}")
async def reject_certification(
    certification_id: int,
    data: CertificationReject,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    certification = await CertificationService(db).reject(certification_id, admin, data.rejection_reason)
    return success(CertificationRead.model_validate(certification))
