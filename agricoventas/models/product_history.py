# agricoventas/models/product_history.py

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON, Enum as SAEnum
from sqlalchemy.orm import relationship

from ..database import Base
from ..core.enums import ChangeType
from ._timestamps import utc_now


class ProductHistory(Base):
    """One field-level change to a product."""

    __tablename__ = "product_history"

    id = Column(Integer, primary_key=True)
    # No foreign key: rows outlive the product they describe
    product_id = Column(Integer, index=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), index=True, nullable=True)
    change_type = Column(SAEnum(ChangeType, name="change_type"), nullable=False, index=True)
    change_field = Column(String(50), nullable=True, index=True)
    old_value = Column(Text, nullable=True)
    new_value = Column(Text, nullable=True)
    additional_info = Column(JSON, nullable=True)
    timestamp = Column(DateTime(timezone=True), nullable=False, default=utc_now, index=True)

    user = relationship("User")

    def __repr__(self) -> str:
        return (
            f"<ProductHistory id={self.id} product={self.product_id} {self.change_type} "
            f"{self.change_field}: {self.old_value!r} -> {self.new_value!r}>"
        )
