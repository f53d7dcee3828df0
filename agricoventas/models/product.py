# agricoventas/models/product.py

from sqlalchemy import Column, Integer, String, Text, Float, Boolean, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from ..database import Base
from ._timestamps import created_at_column, updated_at_column


class Product(Base):
    """A seller's listing. stock_quantity is shared by every order placed against it."""

    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("base_price > 0", name="ck_products_base_price_positive"),
        CheckConstraint("stock_quantity >= 0", name="ck_products_stock_non_negative"),
    )

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=True)
    base_price = Column(Float, nullable=False)
    stock_quantity = Column(Integer, nullable=False, default=0)
    unit_measure = Column(String(50), nullable=False)

    seller_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), index=True, nullable=True)
    origin_location_id = Column(Integer, ForeignKey("locations.id"), index=True, nullable=True)

    is_featured = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = created_at_column()
    updated_at = updated_at_column()

    seller = relationship("User")
    category = relationship("Category")
    origin_location = relationship("Location")
    images = relationship(
        "ProductImage",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductImage.display_order",
    )
    reviews = relationship("Review", back_populates="product", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return (
            f"<Product id={self.id} name={self.name} price={self.base_price} "
            f"stock={self.stock_quantity} seller={self.seller_id}>"
        )


class ProductImage(Base):
    __tablename__ = "product_images"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), index=True, nullable=False)
    image_url = Column(String, nullable=False)
    alt_text = Column(String(255), nullable=True)
    is_primary = Column(Boolean, nullable=False, default=False)
    display_order = Column(Integer, nullable=False, default=0)

    created_at = created_at_column()

    product = relationship("Product", back_populates="images")

    def __repr__(self) -> str:
        return f"<ProductImage id={self.id} product={self.product_id} primary={self.is_primary}>"
