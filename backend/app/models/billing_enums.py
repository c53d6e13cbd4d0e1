"""
Billing enumerations.
"""

import enum


class AdjustmentType(str, enum.Enum):
    """How a surcharge or discount rate is interpreted."""
    PERCENTAGE = "percentage"  # Percent of the running subtotal
    FIXED = "fixed"  # Absolute currency amount


class AdjustmentKind(str, enum.Enum):
    """Direction of a rate adjustment."""
    SURCHARGE = "surcharge"
    DISCOUNT = "discount"


class OrderStatus(str, enum.Enum):
    """Order status enumeration."""
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELED = "canceled"


class InvoiceStatus(str, enum.Enum):
    """Invoice status enumeration."""
    PENDING = "pending"  # Issued, waiting for payment
    PAID = "paid"
    OVERDUE = "overdue"  # Past due date without payment
