from datetime import date, datetime
from typing import Optional

from pydantic import Field

from agricoventas.core.enums import CertificationStatus
from agricoventas.schemas.base import BaseSchema
from agricoventas.schemas.user import UserSummary


class CertificationCreate(BaseSchema):
    certification_type: str = Field(..., min_length=1, max_length=50)
    certification_name: Optional[str] = Field(None, max_length=200)
    certificate_number: Optional[str] = Field(None, max_length=100)
    issued_date: Optional[date] = None
    expiry_date: Optional[date] = None
    image_url: str = Field(..., min_length=1)


class CertificationReject(BaseSchema):
    rejection_reason: str = Field(..., min_length=1)


class CertificationRead(BaseSchema):
    id: int
    user_id: int
    certification_type: str
    certification_name: Optional[str] = None
    certificate_number: Optional[str] = None
    issued_date: Optional[date] = None
    expiry_date: Optional[date] = None
    image_url: str
    status: CertificationStatus
    uploaded_at: datetime
    verified_at: Optional[datetime] = None
    verifier_admin_id: Optional[int] = None
    rejection_reason: Optional[str] = None


class CertificationWithUser(CertificationRead):
    user: Optional[UserSummary] = None


class CertificationsCount(BaseSchema):
    verified: int
    total: int


class VerificationSummary(BaseSchema):
    has_all_certifications: bool
    certifications_count: CertificationsCount
