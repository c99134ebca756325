from sqlalchemy import (
    Column, Integer, String, Float, DateTime, ForeignKey, Enum, CheckConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum

from electronics_store.database import Base


class OrderStatus(str, enum.Enum):
    """Enum for order status."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Order(Base):
    """
    Order model representing a placed customer order.

    Attributes:
        id: Unique identifier for the order
        client_name: Customer name
        client_email: Customer email
        client_phone: Customer phone, empty string when not given
        total_amount: Sum of price * quantity over the order items
        status: Current status of the order
        created_at: Timestamp when order was created
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    client_name = Column(String(255), nullable=False)
    client_email = Column(String(255), nullable=False)
    client_phone = Column(String(50), nullable=False, default="")
    total_amount = Column(Float, nullable=False)
    status = Column(
        Enum(OrderStatus, values_callable=lambda e: [s.value for s in e]),
        default=OrderStatus.PENDING,
        nullable=False,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )

    __table_args__ = (
        CheckConstraint('total_amount >= 0', name='check_total_non_negative'),
    )

    def __repr__(self):
        return f"<Order(id={self.id}, total_amount={self.total_amount}, status='{self.status}')>"


class OrderItem(Base):
    """
    A single order line.

    ``price`` is the product price captured when the order was placed, so
    later catalog price changes never alter past orders.
    """
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    price = Column(Float, nullable=False)

    order = relationship("Order", back_populates="items")
    product = relationship("Product")

    __table_args__ = (
        CheckConstraint('quantity >= 1', name='check_quantity_positive'),
    )

    @property
    def product_name(self):
        """Current name of the referenced product."""
        return self.product.name if self.product else None

    def __repr__(self):
        return (
            f"<OrderItem(order_id={self.order_id}, product_id={self.product_id}, "
            f"quantity={self.quantity})>"
        )
