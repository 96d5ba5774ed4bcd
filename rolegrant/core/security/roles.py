"""
Role Service - Manage roles through a role granter.

Usage:
    service = RoleService(granter)

    # Create a role with permissions
    role = await service.create_role(
        "ROLE_EDITOR",
        label="Editor",
        permissions=["entity:posts:create", "entity:posts:update"],
        inherits=["ROLE_USER"],
    )

    # Search roles
    roles = await service.list_roles(search="edit")
"""

from typing import Iterable

from .interfaces import RoleData, RoleGranterAdapter, RoleGranterError


class RoleService:
    """
    Service for listing and editing roles.

    Reads work with any granter. Writes require a persistable granter.
    """

    def __init__(self, granter: RoleGranterAdapter):
        self.granter = granter

    def _role_data(self, name: str) -> RoleData:
        getter = getattr(self.granter, "get_role", None)
        if getter is not None:
            role = getter(name)
            if role is not None:
                return role

        return RoleData(
            name=name,
            label=self.granter.get_labels().get(name) or name,
            permissions=self.granter.get_permissions(name),
            inherits=self.granter.get_hierarchy().get(name, []),
        )

    def _require_writable(self) -> None:
        if not self.granter.can_persist:
            raise RoleGranterError("Role granter is read-only")

    # ============================================================
    # QUERIES
    # ============================================================

    async def list_roles(self, search: str | None = None) -> list[RoleData]:
        """
        List all roles.

        Args:
            search: Case-insensitive filter on role name and label
        """
        await self.granter.ensure_ready()
        roles = [self._role_data(name) for name in self.granter.get_roles()]

        if search:
            needle = search.lower()
            roles = [
                role for role in roles
                if needle in role.name.lower() or needle in role.label.lower()
            ]
        return roles

    async def get_role(self, name: str) -> RoleData | None:
        """Get role by name."""
        await self.granter.ensure_ready()
        if name not in self.granter.get_roles():
            return None
        return self._role_data(name)

    async def get_roles(self, names: Iterable[str]) -> list[RoleData]:
        """Get several roles by name, unknown names skipped."""
        await self.granter.ensure_ready()
        known = set(self.granter.get_roles())
        return [self._role_data(name) for name in names if name in known]

    # ============================================================
    # ROLE MANAGEMENT
    # ============================================================

    async def create_role(
        self,
        name: str,
        label: str | None = None,
        permissions: list[str] | None = None,
        inherits: list[str] | None = None,
    ) -> RoleData:
        """
        Create a new role.

        Raises:
            RoleGranterError: If the granter is read-only
            RoleExistsError: If the role already exists
        """
        self._require_writable()
        await self.granter.ensure_ready()
        return await self.granter.create_role(
            name,
            label=label,
            permissions=permissions,
            inherits=inherits,
        )

    async def update_role(
        self,
        name: str,
        label: str | None = None,
        permissions: list[str] | None = None,
        inherits: list[str] | None = None,
    ) -> RoleData:
        """
        Update role properties. None leaves a field unchanged.

        Raises:
            RoleGranterError: If the granter is read-only
            RoleNotFoundError: If the role does not exist
        """
        self._require_writable()
        await self.granter.ensure_ready()
        return await self.granter.update_role(
            name,
            label=label,
            permissions=permissions,
            inherits=inherits,
        )

    async def delete_role(self, name: str) -> None:
        """
        Delete a role.

        Raises:
            RoleGranterError: If the granter is read-only
            RoleNotFoundError: If the role does not exist
        """
        self._require_writable()
        await self.granter.ensure_ready()
        await self.granter.remove_role(name)
