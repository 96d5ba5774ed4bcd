"""
Security checker - the "is this action allowed" entry point.

Combines a role granter (role -> patterns), the role hierarchy and the
permission matcher:

    checker = SecurityChecker(granter)

    checker.is_granted(["ROLE_USER"], "entity:books:read")   # permission check
    checker.is_granted(["ROLE_ADMIN"], "ROLE_USER")          # role check

Attributes starting with ROLE_ are role checks resolved through the
hierarchy. Everything else is a permission check against the union of
the patterns of every reachable role.
"""

from typing import Any, Iterable

from .hierarchy import RoleHierarchy
from .interfaces import PolicyDecision, PolicyEngine, RoleGranterAdapter
from .matcher import PermissionMatcher

ROLE_PREFIX = "ROLE_"
ASSIGN_ROLES_PERMISSION = "security:roles:assign"


def _as_roles(roles: str | Iterable[str] | None) -> list[str]:
    if not roles:
        return []
    if isinstance(roles, str):
        return [roles]
    return [role for role in roles if role]


class SecurityChecker:
    """
    Permission checks over a role granter.

    Args:
        granter: Source of role permissions and hierarchy
        resolve_hierarchy: When False, only the listed roles count
    """

    def __init__(self, granter: RoleGranterAdapter, resolve_hierarchy: bool = True):
        self.granter = granter
        self.resolve_hierarchy = resolve_hierarchy

    @property
    def role_hierarchy(self) -> RoleHierarchy:
        """Built per access so granter edits are picked up."""
        if not self.resolve_hierarchy:
            return RoleHierarchy()
        return RoleHierarchy(self.granter.get_hierarchy())

    def get_reachable_roles(self, roles: str | Iterable[str] | None) -> list[str]:
        hierarchy = self.role_hierarchy
        reachable: dict[str, None] = {}
        for role in _as_roles(roles):
            reachable.update(dict.fromkeys(hierarchy.get_reachable_roles(role)))
        return list(reachable)

    def get_permissions_for(
        self,
        roles: str | Iterable[str] | None,
        extra_permissions: Iterable[str] | None = None,
    ) -> list[str]:
        """Patterns granted to the roles (inherited included) plus extras."""
        permissions: dict[str, None] = {}
        for role in self.get_reachable_roles(roles):
            permissions.update(dict.fromkeys(self.granter.get_permissions(role)))
        if extra_permissions:
            permissions.update(dict.fromkeys(extra_permissions))
        return list(permissions)

    def is_granted(
        self,
        roles: str | Iterable[str] | None,
        attribute: str,
        extra_permissions: Iterable[str] | None = None,
    ) -> bool:
        """
        Check a role (ROLE_*) or a permission for the given roles.

        Unknown roles simply grant nothing.
        """
        if attribute.startswith(ROLE_PREFIX):
            return self.role_hierarchy.is_granted_role(_as_roles(roles), attribute)

        patterns = self.get_permissions_for(roles, extra_permissions)
        return PermissionMatcher.any(patterns, attribute)

    def is_granted_actor(self, actor: Any, attribute: str) -> bool:
        """
        Check an actor object.

        Reads `roles` (or a single `role`) and optional per-actor
        `permissions` attributes. A missing actor is never granted.
        """
        if actor is None:
            return False
        return self.is_granted(
            actor_roles(actor),
            attribute,
            getattr(actor, "permissions", None),
        )

    def can_assign_role(self, roles: str | Iterable[str] | None, target_role: str) -> bool:
        """True if the roles may assign roles and themselves hold target_role."""
        return (
            self.is_granted(roles, ASSIGN_ROLES_PERMISSION)
            and self.is_granted(roles, target_role)
        )

    def get_assignable_roles(self, roles: str | Iterable[str] | None) -> list[str]:
        """Every role reachable from the given roles, if they may assign roles."""
        if not self.is_granted(roles, ASSIGN_ROLES_PERMISSION):
            return []
        return self.get_reachable_roles(roles)


def actor_roles(actor: Any) -> list[str]:
    """Roles of an actor object (`roles` list or single `role`)."""
    roles = getattr(actor, "roles", None)
    if roles:
        return _as_roles(roles)
    return _as_roles(getattr(actor, "role", None))


class RoleGranterPolicyEngine(PolicyEngine):
    """
    PolicyEngine backed by a SecurityChecker.

    Waits for the granter to be ready before each evaluation.
    """

    def __init__(self, checker: SecurityChecker):
        self.checker = checker

    async def evaluate(
        self,
        actor: Any,
        action: str,
        context: dict[str, Any] | None = None,
    ) -> PolicyDecision:
        if actor is None:
            return PolicyDecision.deny("No actor")

        await self.checker.granter.ensure_ready()

        if self.checker.is_granted_actor(actor, action):
            return PolicyDecision.allow(f"Has permission: {action}")
        return PolicyDecision.deny(f"Missing permission: {action}")

    async def get_permissions(self, actor: Any) -> set[str]:
        if actor is None:
            return set()
        await self.checker.granter.ensure_ready()
        return set(self.checker.get_permissions_for(
            actor_roles(actor),
            getattr(actor, "permissions", None),
        ))
