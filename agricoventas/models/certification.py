# agricoventas/models/certification.py

from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, UniqueConstraint, Enum as SAEnum
from sqlalchemy.orm import relationship

from ..database import Base
from ..core.enums import CertificationStatus
from ._timestamps import utc_now, updated_at_column


class UserCertification(Base):
    """One certificate document per user and certification type."""

    __tablename__ = "user_certifications"
    __table_args__ = (
        UniqueConstraint("user_id", "certification_type", name="uq_user_certifications_user_type"),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    certification_type = Column(String(50), nullable=False, index=True)
    certification_name = Column(String(200), nullable=True)
    certificate_number = Column(String(100), nullable=True)
    issued_date = Column(Date, nullable=True)
    expiry_date = Column(Date, nullable=True)
    image_url = Column(String, nullable=False)

    status = Column(
        SAEnum(CertificationStatus, name="certification_status"),
        nullable=False,
        default=CertificationStatus.PENDING,
        index=True,
    )
    uploaded_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    verified_at = Column(DateTime(timezone=True), nullable=True)
    verifier_admin_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    rejection_reason = Column(Text, nullable=True)

    updated_at = updated_at_column()

    user = relationship("User", foreign_keys=[user_id])
    verifier = relationship("User", foreign_keys=[verifier_admin_id])

    def __repr__(self) -> str:
        return (
            f"<UserCertification id={self.id} user={self.user_id} "
            f"type={self.certification_type} status={self.status}>"
        )
