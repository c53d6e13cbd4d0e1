"""
Order database models.

An order groups one or more priced trips for billing.
"""

from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.billing_enums import OrderStatus


class Order(Base):
    """
    Order model.

    ``total_amount`` is the sum of its item amounts.
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    order_number = Column(String(40), unique=True, index=True, nullable=False)
    user_id = Column(String(64), ForeignKey('profiles.id'), nullable=False, index=True)

    status = Column(Enum(OrderStatus), default=OrderStatus.PENDING, nullable=False, index=True)
    total_amount = Column(Float, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    items = relationship(
        "OrderItem",
        order_by="OrderItem.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self):
        return f"<Order(id={self.id}, number='{self.order_number}', status='{self.status.value}')>"


class OrderItem(Base):
    """
    Order line linking a trip and the amount billed for it.

    A trip can be billed through one order only.
    """
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey('orders.id', ondelete="CASCADE"), nullable=False, index=True)
    trip_id = Column(Integer, ForeignKey('trips.id'), nullable=False, unique=True, index=True)
    amount = Column(Float, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<OrderItem(order_id={self.order_id}, trip_id={self.trip_id}, amount={self.amount})>"
