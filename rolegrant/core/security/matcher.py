"""
Wildcard permission matching.

Permission format: namespace:target:action

Two wildcard segments are supported:
- `*` matches exactly one segment
- `**` matches zero or more segments, anywhere in the pattern

Examples:
    entity:books:read      - specific permission
    entity:books:*         - any action on books
    entity:*:read          - read on any entity
    entity:**              - all entity permissions
    entity:**:read         - read at any depth under entity
    **                     - super admin (matches everything)

Usage:
    PermissionMatcher.matches("entity:*:read", "entity:books:read")  # True
    PermissionMatcher.any(["entity:**"], "entity:books:read")        # True
"""

from typing import Iterable

SEPARATOR = ":"
ONE_SEGMENT = "*"
ANY_SEGMENTS = "**"


class PermissionMatcher:
    """Stateless matcher. Comparison is case-sensitive, no trimming."""

    @staticmethod
    def matches(pattern: str, permission: str) -> bool:
        """
        Check if a pattern covers a permission.

        Examples:
            matches("entity:books:read", "entity:books:read")  # True (exact)
            matches("entity:*:read", "entity:books:read")      # True
            matches("entity:*:read", "entity:a:b:read")        # False (* = exactly one)
            matches("entity:**", "entity:books:read")          # True
            matches("entity:**:read", "entity:a:b:read")       # True
            matches("entity:**:read", "entity:books:delete")   # False
            matches("**", "anything:here")                     # True
        """
        if pattern == ANY_SEGMENTS:
            return True

        return _match_parts(pattern.split(SEPARATOR), permission.split(SEPARATOR))

    @classmethod
    def any(cls, patterns: Iterable[str] | None, permission: str) -> bool:
        """
        Check if any pattern covers the permission.

        Example:
            perms = ["entity:*:read", "entity:*:list", "auth:impersonate"]
            PermissionMatcher.any(perms, "entity:books:read")    # True
            PermissionMatcher.any(perms, "entity:books:delete")  # False
        """
        if not patterns:
            return False
        return any(cls.matches(pattern, permission) for pattern in patterns)

    @classmethod
    def filter(cls, permissions: Iterable[str], pattern: str) -> list[str]:
        """Permissions covered by the pattern, in input order."""
        return [p for p in permissions if cls.matches(pattern, p)]

    @classmethod
    def expand(cls, pattern: str, registry: Iterable[str]) -> list[str]:
        """
        Expand a pattern against registered permission keys.

        Shows what a wildcard grant actually covers, e.g. in a role editor.

        Example:
            keys = ["entity:books:read", "entity:books:create", "entity:loans:read"]
            PermissionMatcher.expand("entity:*:read", keys)
            # ["entity:books:read", "entity:loans:read"]
        """
        return [key for key in registry if cls.matches(pattern, key)]


def _match_parts(pattern: list[str], permission: list[str]) -> bool:
    """Segment-wise match, backtracking over what a `**` consumes."""
    for index, segment in enumerate(pattern):
        if segment == ANY_SEGMENTS:
            rest = pattern[index + 1:]
            # Trailing ** takes the rest, including nothing
            if not rest:
                return True
            return any(
                _match_parts(rest, permission[skip:])
                for skip in range(index, len(permission) + 1)
            )

        if index >= len(permission):
            return False

        if segment != ONE_SEGMENT and segment != permission[index]:
            return False

    # No implicit trailing wildcard
    return len(pattern) == len(permission)
