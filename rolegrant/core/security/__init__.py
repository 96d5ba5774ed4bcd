"""
Security module - wildcard permissions over persistable roles.

Usage Levels:
=============

Level 1: Pattern Matching
-------------------------
    from rolegrant.core.security import PermissionMatcher

    PermissionMatcher.matches("entity:*:read", "entity:books:read")  # True
    PermissionMatcher.any(["entity:**"], "entity:books:delete")     # True

Level 2: Static Roles
---------------------
    from rolegrant.core.security import SecurityChecker, StaticRoleGranterAdapter

    checker = SecurityChecker(StaticRoleGranterAdapter({
        "role_hierarchy": {"ROLE_ADMIN": ["ROLE_USER"]},
        "role_permissions": {"ROLE_USER": ["entity:*:read"]},
    }))
    checker.is_granted(["ROLE_ADMIN"], "entity:books:read")  # True (inherited)

Level 3: Persistable Roles
--------------------------
    from rolegrant.core.security import create_role_granter

    granter = create_role_granter(fixed=FIXED_ROLES, defaults=DEFAULT_ROLES)
    await granter.ensure_ready()
    granter.add_role_permissions("ROLE_USER", ["entity:books:create"])
    await granter.persist()

Level 4: FastAPI
----------------
    from rolegrant.core.security import require_permission

    @router.get("/books", dependencies=[Depends(require_permission("entity:books:read"))])
    async def list_books():
        ...

Configuration:
==============

Environment variables (or .env):
- ROLEGRANT_GRANTER_ADAPTER: "persistable" (default), "static"
- ROLEGRANT_GRANTER_MERGE_STRATEGY: "extend" (default), "replace", "defaults-only"
- ROLEGRANT_STORE_BACKEND: "memory" (default), "redis", "database"

Extensibility:
=============

Add custom stores:
    @GranterRegistry.store("s3")
    class S3RoleStore:
        ...
"""

# Core interfaces (for type hints and custom implementations)
from .interfaces import (
    ANONYMOUS_ROLE,
    MergeStrategy,
    RoleConfig,
    RoleData,
    RoleGranterAdapter,
    RoleConfigStore,
    PolicyDecision,
    PolicyEngine,
    RoleGranterError,
    RoleExistsError,
    RoleNotFoundError,
)

# Matching and catalog
from .matcher import PermissionMatcher
from .permissions import (
    PermissionRegistry,
    PermissionEntry,
    PermissionMeta,
    RegisterOptions,
    EntityOptions,
)

# Decisions
from .hierarchy import RoleHierarchy
from .checker import SecurityChecker, RoleGranterPolicyEngine

# Registry (for extending with custom implementations)
from .registry import GranterRegistry, create_role_granter, create_store

# Default implementations (auto-registered)
from .granters import PersistableRoleGranterAdapter, StaticRoleGranterAdapter

# Service
from .roles import RoleService

# Dependencies (what you'll use in routes)
from .dependencies import (
    CurrentRoles,
    Checker,
    get_current_roles,
    get_security_checker,
    require_permission,
)

__all__ = [
    # Interfaces
    "ANONYMOUS_ROLE",
    "MergeStrategy",
    "RoleConfig",
    "RoleData",
    "RoleGranterAdapter",
    "RoleConfigStore",
    "PolicyDecision",
    "PolicyEngine",
    "RoleGranterError",
    "RoleExistsError",
    "RoleNotFoundError",
    # Matching and catalog
    "PermissionMatcher",
    "PermissionRegistry",
    "PermissionEntry",
    "PermissionMeta",
    "RegisterOptions",
    "EntityOptions",
    # Decisions
    "RoleHierarchy",
    "SecurityChecker",
    "RoleGranterPolicyEngine",
    # Registry
    "GranterRegistry",
    "create_role_granter",
    "create_store",
    # Default implementations
    "PersistableRoleGranterAdapter",
    "StaticRoleGranterAdapter",
    # Service
    "RoleService",
    # Dependencies
    "CurrentRoles",
    "Checker",
    "get_current_roles",
    "get_security_checker",
    "require_permission",
]
