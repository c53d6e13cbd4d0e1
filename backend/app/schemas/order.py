"""
Order and invoice schemas.
"""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from backend.app.models.billing_enums import InvoiceStatus, OrderStatus


class OrderCreate(BaseModel):
    """Schema for grouping recorded trips into an order."""
    trip_ids: List[int] = Field(..., min_length=1)
    status: OrderStatus = OrderStatus.PENDING


class OrderUpdate(BaseModel):
    status: OrderStatus


class OrderItemResponse(BaseModel):
    id: int
    trip_id: int
    amount: float
    created_at: datetime

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    """Schema for order response."""
    id: int
    order_number: str
    user_id: str
    status: OrderStatus
    total_amount: float
    created_at: datetime
    updated_at: datetime
    items: List[OrderItemResponse] = []

    class Config:
        from_attributes = True


class OrderListResponse(BaseModel):
    orders: List[OrderResponse]
    total: int
    page: int
    page_size: int


class InvoiceCreate(BaseModel):
    """
    Schema for issuing an invoice.

    ``issue_date`` defaults to now and ``due_date`` to the configured
    number of days after it.
    """
    order_id: int
    issue_date: Optional[datetime] = None
    due_date: Optional[datetime] = None


class InvoiceUpdate(BaseModel):
    status: Optional[InvoiceStatus] = None
    due_date: Optional[datetime] = None


class InvoiceResponse(BaseModel):
    """Schema for invoice response."""
    id: int
    invoice_number: str
    order_id: int
    user_id: str
    amount: float
    issue_date: datetime
    due_date: datetime
    status: InvoiceStatus
    paid_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class InvoiceListResponse(BaseModel):
    invoices: List[InvoiceResponse]
    total: int
    page: int
    page_size: int
