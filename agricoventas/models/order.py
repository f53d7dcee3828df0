# agricoventas/models/order.py

from sqlalchemy import Column, Integer, String, Text, Float, ForeignKey, Enum as SAEnum
from sqlalchemy.orm import relationship

from ..database import Base
from ..core.enums import OrderStatus, PaymentStatus, PaymentMethod
from ._timestamps import created_at_column, updated_at_column


class Order(Base):
    """A buyer's order. Items are written in the same transaction as the order."""

    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    buyer_user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)

    status = Column(SAEnum(OrderStatus, name="order_status"), nullable=False, default=OrderStatus.PENDING, index=True)
    total_amount = Column(Float, nullable=False)
    payment_method = Column(SAEnum(PaymentMethod, name="payment_method"), nullable=False, default=PaymentMethod.CASH)
    payment_status = Column(SAEnum(PaymentStatus, name="payment_status"), nullable=False, default=PaymentStatus.PENDING)
    tracking_number = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    cancel_reason = Column(Text, nullable=True)

    created_at = created_at_column()
    updated_at = updated_at_column()

    buyer = relationship("User")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id")

    def __repr__(self) -> str:
        return (
            f"<Order id={self.id} buyer={self.buyer_user_id} status={self.status} "
            f"total={self.total_amount}>"
        )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), index=True, nullable=False)
    # Nulled when the product is deleted; the price snapshot stays
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), index=True, nullable=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Float, nullable=False)
    subtotal = Column(Float, nullable=False)

    created_at = created_at_column()

    order = relationship("Order", back_populates="items")
    product = relationship("Product")

    def __repr__(self) -> str:
        return f"<OrderItem id={self.id} order={self.order_id} product={self.product_id} qty={self.quantity}>"
