"""Role granter implementations."""

from .persistable import PersistableRoleGranterAdapter
from .static import StaticRoleGranterAdapter

__all__ = [
    "PersistableRoleGranterAdapter",
    "StaticRoleGranterAdapter",
]
