# agricoventas/models/category.py

from sqlalchemy import Column, Integer, String, Text, ForeignKey
from sqlalchemy.orm import relationship

from ..database import Base
from ._timestamps import created_at_column, updated_at_column


class Category(Base):
    """Product category; at most two levels (parent and subcategory)."""

    __tablename__ = "categories"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    parent_id = Column(Integer, ForeignKey("categories.id"), index=True, nullable=True)

    created_at = created_at_column()
    updated_at = updated_at_column()

    parent = relationship("Category", remote_side=[id], back_populates="children")
    children = relationship("Category", back_populates="parent", order_by="Category.name")

    def __repr__(self) -> str:
        return f"<Category id={self.id} name={self.name} parent={self.parent_id}>"
