"""
Database models.
"""

from .base import Base, TimestampMixin
from .role_config import RoleConfigRecord

__all__ = [
    "Base",
    "TimestampMixin",
    "RoleConfigRecord",
]
