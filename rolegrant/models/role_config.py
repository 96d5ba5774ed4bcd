"""
Role configuration record.

One row per storage key, holding a whole RoleConfig as JSON.
"""

from typing import Any

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class RoleConfigRecord(Base, TimestampMixin):
    """Persisted role configuration (role_permissions, role_hierarchy, role_labels)."""

    __tablename__ = "role_configs"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    def __repr__(self) -> str:
        return f"<RoleConfigRecord {self.key}>"
