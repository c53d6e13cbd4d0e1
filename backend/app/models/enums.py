"""
User roles enumeration.

Defines the role types for the transit fare system.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        ADMIN: Manages rate tables, user profiles and sees all billing data
        USER: Dispatcher/driver who records trips, orders and invoices (default role)
    """
    ADMIN = "ADMIN"
    USER = "USER"
