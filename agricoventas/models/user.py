# agricoventas/models/user.py

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum as SAEnum
from sqlalchemy.orm import relationship

from ..database import Base
from ..core.enums import UserType, SubscriptionType
from ._timestamps import created_at_column, updated_at_column


class User(Base):
    """Marketplace account: admins, sellers and buyers share one table."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(30), unique=True, nullable=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)

    user_type = Column(SAEnum(UserType, name="user_type"), nullable=False, default=UserType.BUYER)
    subscription_type = Column(
        SAEnum(SubscriptionType, name="subscription_type"),
        nullable=False,
        default=SubscriptionType.NORMAL,
    )
    profile_image = Column(String, nullable=True)

    # Plain id, no foreign key: locations also point back at users
    primary_location_id = Column(Integer, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    refresh_token = Column(String, nullable=True)
    last_login = Column(DateTime(timezone=True), nullable=True)

    created_at = created_at_column()
    updated_at = updated_at_column()

    locations = relationship("Location", back_populates="user", cascade="all, delete-orphan")

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username} type={self.user_type}>"
