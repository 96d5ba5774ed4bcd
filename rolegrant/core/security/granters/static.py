"""
Static role granter - role configuration from a fixed config object.

For simple apps and tests. Not persistable.

Usage:
    granter = StaticRoleGranterAdapter({
        "role_hierarchy": {"ROLE_ADMIN": ["ROLE_USER"]},
        "role_permissions": {
            "ROLE_USER": ["entity:*:read", "entity:*:list"],
            "ROLE_ADMIN": ["entity:**"],
        },
        "role_labels": {"ROLE_ADMIN": "Administrator"},
    })
"""

from typing import Any, Iterable, Mapping

from ..interfaces import RoleConfig, RoleGranterAdapter
from ..registry import GranterRegistry


@GranterRegistry.granter("static")
class StaticRoleGranterAdapter(RoleGranterAdapter):
    """Role granter over an in-memory RoleConfig."""

    def __init__(self, config: RoleConfig | Mapping[str, Any] | None = None):
        self._config = RoleConfig.from_data(config)

    def get_permissions(self, role: str) -> list[str]:
        return list(self._config.role_permissions.get(role, []))

    def get_roles(self) -> list[str]:
        """Roles with permissions, hierarchy entries, or referenced as a parent."""
        roles = dict.fromkeys(self._config.roles())
        for parents in self._config.role_hierarchy.values():
            roles.update(dict.fromkeys(parents))
        return list(roles)

    def get_hierarchy(self) -> dict[str, list[str]]:
        return {role: list(p) for role, p in self._config.role_hierarchy.items()}

    def get_labels(self) -> dict[str, str]:
        return dict(self._config.role_labels)

    # Runtime updates (tests, hot reload)

    def set_role_permissions(self, role: str, permissions: Iterable[str]) -> None:
        self._config.role_permissions[role] = list(permissions)

    def set_role_hierarchy(self, role: str, parents: Iterable[str]) -> None:
        self._config.role_hierarchy[role] = list(parents)
