"""
Role hierarchy resolution.

Roles form a directed graph where a role inherits every permission of
the roles it lists as parents:

    hierarchy = RoleHierarchy({
        "ROLE_ADMIN": ["ROLE_USER"],
        "ROLE_SUPER_ADMIN": ["ROLE_ADMIN"],
    })
    hierarchy.get_reachable_roles("ROLE_SUPER_ADMIN")
    # ["ROLE_SUPER_ADMIN", "ROLE_ADMIN", "ROLE_USER"]

Granters only store the hierarchy; flattening happens here.
"""

from collections import deque
from typing import Iterable, Mapping


class RoleHierarchy:
    """Breadth-first role resolution. Cycles are tolerated."""

    def __init__(self, hierarchy: Mapping[str, Iterable[str]] | None = None):
        self.map: dict[str, list[str]] = {
            role: list(parents) for role, parents in (hierarchy or {}).items()
        }

    def get_reachable_roles(self, role: str) -> list[str]:
        """The role itself plus every role it inherits from, nearest first."""
        visited: dict[str, None] = {}
        queue = deque([role])

        while queue:
            current = queue.popleft()
            if current in visited:
                continue
            visited[current] = None
            queue.extend(self.map.get(current, []))

        return list(visited)

    def is_granted_role(self, user_roles: str | Iterable[str], required_role: str) -> bool:
        """True if any of the roles is, or inherits from, required_role."""
        if isinstance(user_roles, str):
            user_roles = [user_roles]

        return any(
            required_role in self.get_reachable_roles(role)
            for role in user_roles
        )

    def get_roles_granting(self, target_role: str) -> list[str]:
        """Roles that reach target_role (the role itself included)."""
        grantors = [
            role for role in self.map
            if self.is_granted_role(role, target_role)
        ]
        if target_role not in grantors:
            grantors.append(target_role)
        return grantors

    def validate(self) -> bool:
        """False if the hierarchy contains a cycle."""
        visiting: set[str] = set()
        done: set[str] = set()

        def has_cycle(role: str) -> bool:
            if role in done:
                return False
            if role in visiting:
                return True
            visiting.add(role)
            for parent in self.map.get(role, []):
                if has_cycle(parent):
                    return True
            visiting.discard(role)
            done.add(role)
            return False

        return not any(has_cycle(role) for role in self.map)
