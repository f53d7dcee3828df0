"""
Multipart upload endpoints. Files land in MediaStorage and the returned
URL is stored on the owning record.
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from agricoventas.core.responses import success
from agricoventas.dependencies import get_current_user, get_db, get_media_storage
from agricoventas.models.user import User
from agricoventas.schemas.certification import CertificationCreate, CertificationRead
from agricoventas.schemas.user import UserRead
from agricoventas.services.certification_service import CertificationService
from agricoventas.services.storage import (
    CERTIFICATION_FOLDER,
    DOCUMENT_TYPES,
    IMAGE_TYPES,
    PROFILE_FOLDER,
    MediaStorage,
)
from agricoventas.services.user_service import UserService


router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.post("/profile")
async def upload_profile_image(
    profile_image: UploadFile = File(..., alias="profileImage"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage),
):
    image_url = await storage.save(profile_image, PROFILE_FOLDER, IMAGE_TYPES)
    user = await UserService(db, storage).set_profile_image(current_user, image_url)
    return success({"imageUrl": image_url, "user": UserRead.model_validate(user)})


@router.post("/certifications", status_code=status.HTTP_201_CREATED)
async def upload_certification_document(
    certification_document: UploadFile = File(..., alias="certificationDocument"),
    certification_type: Optional[str] = Form(None, alias="certificationType"),
    certification_name: Optional[str] = Form(None, alias="certificationName"),
    certificate_number: Optional[str] = Form(None, alias="certificateNumber"),
    issued_date: Optional[date] = Form(None, alias="issuedDate"),
    expiry_date: Optional[date] = Form(None, alias="expiryDate"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage),
):
    document_url = await storage.save(certification_document, CERTIFICATION_FOLDER, DOCUMENT_TYPES)
    if not certification_type:
        return success({"documentUrl": document_url})

    data = CertificationCreate(
        certification_type=certification_type,
        certification_name=certification_name,
        certificate_number=certificate_number,
        issued_date=issued_date,
        expiry_date=expiry_date,
        image_url=document_url,
    )
    certification = await CertificationService(db, storage).upload_certification(current_user, data)
    return success({
        "documentUrl": document_url,
        "certification": CertificationRead.model_validate(certification),
    })
