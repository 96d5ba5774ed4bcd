"""
Security interfaces - Core abstractions.

These define the contracts that granters, stores and policy engines follow.
Application code depends ONLY on these interfaces, never on implementations.

- RoleConfig: role -> permissions / parents / labels (the persisted shape)
- RoleGranterAdapter: where a role's permissions come from
- RoleConfigStore: where a RoleConfig is loaded from and persisted to
- PolicyEngine: actor + action -> PolicyDecision
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Protocol, runtime_checkable


# Role given to unauthenticated actors (fixed convention, not configurable)
ANONYMOUS_ROLE = "ROLE_ANONYMOUS"


# ============================================================
# ROLE CONFIGURATION
# ============================================================

class MergeStrategy(str, Enum):
    """
    How loaded configuration combines with defaults.

    - EXTEND: loaded roles override default roles key by key
    - REPLACE: loaded data only, defaults discarded
    - DEFAULTS_ONLY: loaded data ignored
    """
    EXTEND = "extend"
    REPLACE = "replace"
    DEFAULTS_ONLY = "defaults-only"


@dataclass
class RoleConfig:
    """
    Role configuration - three independently keyed maps.

    A role may appear in any subset of them (e.g., a hierarchy
    entry without explicit permissions).

    Attributes:
        role_permissions: Role -> permission patterns
        role_hierarchy: Role -> roles it inherits from
        role_labels: Role -> display label
    """
    role_permissions: dict[str, list[str]] = field(default_factory=dict)
    role_hierarchy: dict[str, list[str]] = field(default_factory=dict)
    role_labels: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_data(cls, data: "RoleConfig | Mapping[str, Any] | None") -> "RoleConfig":
        """
        Build an independent RoleConfig from a RoleConfig or a plain mapping.

        Content is copied, not validated.
        """
        if data is None:
            return cls()
        if isinstance(data, RoleConfig):
            return data.copy()
        return cls(
            role_permissions={
                role: list(perms or [])
                for role, perms in (data.get("role_permissions") or {}).items()
            },
            role_hierarchy={
                role: list(parents or [])
                for role, parents in (data.get("role_hierarchy") or {}).items()
            },
            role_labels=dict(data.get("role_labels") or {}),
        )

    def copy(self) -> "RoleConfig":
        return RoleConfig(
            role_permissions={r: list(p) for r, p in self.role_permissions.items()},
            role_hierarchy={r: list(p) for r, p in self.role_hierarchy.items()},
            role_labels=dict(self.role_labels),
        )

    def roles(self) -> list[str]:
        """Roles present in any of the three maps, first-seen order."""
        seen: dict[str, None] = {}
        for mapping in (self.role_permissions, self.role_hierarchy, self.role_labels):
            for role in mapping:
                seen.setdefault(role, None)
        return list(seen)

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable dict."""
        return {
            "role_hierarchy": {r: list(p) for r, p in self.role_hierarchy.items()},
            "role_permissions": {r: list(p) for r, p in self.role_permissions.items()},
            "role_labels": dict(self.role_labels),
        }


@dataclass
class RoleData:
    """Complete view of one role, for role management UIs."""
    name: str
    label: str
    permissions: list[str] = field(default_factory=list)
    inherits: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "label": self.label,
            "permissions": list(self.permissions),
            "inherits": list(self.inherits),
        }


# ============================================================
# ROLE GRANTER
# ============================================================

class RoleGranterAdapter(ABC):
    """
    Abstract role -> permissions mapping.

    Abstracts HOW roles and permissions are stored:
    - StaticRoleGranterAdapter: fixed config object (simple apps, tests)
    - PersistableRoleGranterAdapter: load/persist callbacks (any storage)

    Query methods never return internal state by reference.
    """

    @abstractmethod
    def get_permissions(self, role: str) -> list[str]:
        """Permission patterns granted to a role ([] for unknown roles)."""
        pass

    @abstractmethod
    def get_roles(self) -> list[str]:
        """All defined role names."""
        pass

    @abstractmethod
    def get_hierarchy(self) -> dict[str, list[str]]:
        """Role -> inherited roles."""
        pass

    def get_labels(self) -> dict[str, str]:
        """Role -> display label."""
        return {}

    def get_anonymous_role(self) -> str:
        """Role for unauthenticated actors. Always ROLE_ANONYMOUS."""
        return ANONYMOUS_ROLE

    def get_role_meta(self, role: str) -> dict[str, str] | None:
        """Display metadata for a role, if any."""
        label = self.get_labels().get(role)
        if not label:
            return None
        return {"label": label}

    @property
    def can_persist(self) -> bool:
        """Whether the adapter supports editing + saving."""
        return False

    async def ensure_ready(self) -> "RoleGranterAdapter":
        """Wait until the adapter can answer queries."""
        return self


# ============================================================
# ROLE CONFIG STORE
# ============================================================

@runtime_checkable
class RoleConfigStore(Protocol):
    """
    Protocol for role configuration storage.

    Implementations keep the whole RoleConfig as one JSON record:
    - MemoryRoleStore: In-process (testing/dev)
    - RedisRoleStore: Redis key
    - DatabaseRoleStore: SQL row
    """

    async def load(self) -> RoleConfig | None:
        """Stored configuration, or None if nothing is stored."""
        ...

    async def persist(self, config: RoleConfig) -> None:
        """Replace the stored configuration."""
        ...


# ============================================================
# POLICY DECISION
# ============================================================

@dataclass
class PolicyDecision:
    """
    Result of a policy evaluation.

    Attributes:
        allowed: Whether the action is permitted
        reason: Human-readable explanation (for errors/logging)
        metadata: Additional data (matched roles, etc.)
    """
    allowed: bool
    reason: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def allow(cls, reason: str | None = None) -> "PolicyDecision":
        return cls(allowed=True, reason=reason)

    @classmethod
    def deny(cls, reason: str = "Permission denied") -> "PolicyDecision":
        return cls(allowed=False, reason=reason)


# ============================================================
# POLICY ENGINE
# ============================================================

class PolicyEngine(ABC):
    """
    Abstract policy engine interface.

    Evaluates whether an actor can perform an action.
    """

    @abstractmethod
    async def evaluate(
        self,
        actor: Any,
        action: str,
        context: dict[str, Any] | None = None,
    ) -> PolicyDecision:
        """
        Evaluate if actor can perform action.

        Args:
            actor: The user/service performing the action
            action: Permission string (e.g., "entity:books:read")
            context: Additional context

        Returns:
            PolicyDecision with allowed status and reason
        """
        pass

    @abstractmethod
    async def get_permissions(self, actor: Any) -> set[str]:
        """All permission patterns the actor holds."""
        pass


# ============================================================
# ERRORS
# ============================================================

class RoleGranterError(ValueError):
    """Raised when a role operation cannot be applied."""
    pass


class RoleExistsError(RoleGranterError):
    """Raised when creating a role that already exists."""
    pass


class RoleNotFoundError(RoleGranterError):
    """Raised when updating or removing a role that does not exist."""
    pass
