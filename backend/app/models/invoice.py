"""
Invoice database model.

Billing document issued for a single order.
"""

from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, Enum
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.billing_enums import InvoiceStatus


class Invoice(Base):
    """
    Invoice model.

    Numbered ``INV-YYYYMM-NNNN`` from ``sequence``, which restarts every month
    and widens past four digits once a month exceeds 9999 invoices.
    Follows the workflow: PENDING -> PAID, or PENDING -> OVERDUE -> PAID.
    """
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    invoice_number = Column(String(40), unique=True, index=True, nullable=False)
    sequence = Column(Integer, nullable=False)  # Position within the issue month

    order_id = Column(Integer, ForeignKey('orders.id'), nullable=False, unique=True, index=True)
    user_id = Column(String(64), ForeignKey('profiles.id'), nullable=False, index=True)

    amount = Column(Float, nullable=False)
    issue_date = Column(DateTime(timezone=True), nullable=False)
    due_date = Column(DateTime(timezone=True), nullable=False)

    status = Column(Enum(InvoiceStatus), default=InvoiceStatus.PENDING, nullable=False, index=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Invoice(id={self.id}, number='{self.invoice_number}', status='{self.status.value}')>"
