# agricoventas/models/location.py

from sqlalchemy import Column, Integer, String, Float, ForeignKey
from sqlalchemy.orm import relationship

from ..database import Base
from ._timestamps import created_at_column, updated_at_column


class Location(Base):
    __tablename__ = "locations"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)

    address_line1 = Column(String(255), nullable=False)
    address_line2 = Column(String(255), nullable=True)
    city = Column(String(100), nullable=False, index=True)
    department = Column(String(100), nullable=False, index=True)
    postal_code = Column(String(20), nullable=True)
    country = Column(String(100), nullable=False, default="Colombia")
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    created_at = created_at_column()
    updated_at = updated_at_column()

    user = relationship("User", back_populates="locations")

    @property
    def region(self) -> str:
        return f"{self.city}, {self.department}"

    def __repr__(self) -> str:
        return f"<Location id={self.id} user={self.user_id} city={self.city}>"
