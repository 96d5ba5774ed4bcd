"""
Permission registry - catalog of every known permission.

Modules declare their permission vocabulary at startup; admin tooling
queries the catalog to render "what can be permissioned". The registry
does not take part in authorization decisions.

Usage:
    registry = PermissionRegistry()

    # Entity permissions (auto-prefixed with "entity:")
    registry.register("books", {"read": "View books"}, RegisterOptions(is_entity=True))
    # -> entity:books:read

    # System permissions
    registry.register("auth", {
        "impersonate": PermissionMeta("Impersonate", "Act as another user"),
    })
    # -> auth:impersonate

    # Standard CRUD set, with ownership variants
    registry.register_entity("loans", EntityOptions(has_ownership=True))
    # -> entity:loans:{read,list,create,update,delete}
    # -> entity-own:loans:{read,update,delete}

    registry.get_grouped()  # {"entity:books": [...], "auth": [...], ...}
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Union

logger = logging.getLogger(__name__)

ENTITY_PREFIX = "entity"
ENTITY_OWN_PREFIX = "entity-own"
DEFAULT_ENTITY_ACTIONS = ("read", "list", "create", "update", "delete")
NON_OWNED_ACTIONS = ("list", "create")


@dataclass(frozen=True)
class PermissionMeta:
    """Detailed permission definition (label + description)."""
    label: str
    description: str | None = None


# A definition is either a bare label or a detailed meta
PermissionDef = Union[str, PermissionMeta]


@dataclass(frozen=True)
class PermissionEntry:
    """
    A registered permission.

    Attributes:
        key: Full permission key (e.g., "entity:books:read")
        namespace: Key without its last segment (e.g., "entity:books")
        action: Last segment (e.g., "read")
        module: Module that registered it
        custom: True for ad-hoc registrations, False for generated entity CRUD
    """
    key: str
    namespace: str
    action: str
    module: str | None
    label: str
    description: str | None = None
    custom: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "namespace": self.namespace,
            "action": self.action,
            "module": self.module,
            "label": self.label,
            "description": self.description,
            "custom": self.custom,
        }


@dataclass
class RegisterOptions:
    """Options for PermissionRegistry.register()."""
    is_entity: bool = False
    module: str | None = None


@dataclass
class EntityOptions:
    """
    Options for PermissionRegistry.register_entity().

    own_actions defaults to every action except list and create.
    """
    module: str | None = None
    actions: list[str] = field(default_factory=lambda: list(DEFAULT_ENTITY_ACTIONS))
    has_ownership: bool = False
    own_actions: list[str] | None = None


class PermissionRegistry:
    """
    In-memory permission catalog.

    Output order follows registration order.
    """

    def __init__(self):
        self._permissions: dict[str, PermissionEntry] = {}

    # ============================================================
    # REGISTRATION
    # ============================================================

    def register(
        self,
        namespace: str,
        defs: Mapping[str, PermissionDef],
        options: RegisterOptions | None = None,
    ) -> None:
        """
        Register permissions under a namespace.

        Args:
            namespace: Prefix (e.g., "books", "auth", "admin:config")
            defs: action -> label or PermissionMeta
            options: is_entity prefixes the namespace with "entity:"
        """
        options = options or RegisterOptions()
        if options.is_entity:
            namespace = f"{ENTITY_PREFIX}:{namespace}"
        self._register(namespace, defs, module=options.module, custom=True)

    def register_entity(
        self,
        entity_name: str,
        options: EntityOptions | None = None,
    ) -> None:
        """
        Register standard CRUD permissions for an entity.

        With has_ownership, also registers entity-own:<entity>:<action>
        for ownership-scoped access.
        """
        options = options or EntityOptions()

        defs = {
            action: PermissionMeta(
                label=f"{_capitalize(action)} {entity_name}",
                description=f"Can {action} {entity_name} records",
            )
            for action in options.actions
        }
        self._register(
            f"{ENTITY_PREFIX}:{entity_name}",
            defs,
            module=options.module,
            custom=False,
        )

        if not options.has_ownership:
            return

        own_actions = options.own_actions
        if own_actions is None:
            own_actions = [a for a in options.actions if a not in NON_OWNED_ACTIONS]

        own_defs = {
            action: PermissionMeta(
                label=f"{_capitalize(action)} own {entity_name}",
                description=f"Can {action} own {entity_name} records",
            )
            for action in own_actions
        }
        self._register(
            f"{ENTITY_OWN_PREFIX}:{entity_name}",
            own_defs,
            module=options.module,
            custom=False,
        )

    def unregister(self, namespace: str) -> None:
        """Remove every permission directly under the namespace."""
        prefix = f"{namespace}:"
        removed = [key for key in self._permissions if key.startswith(prefix)]
        for key in removed:
            del self._permissions[key]
        logger.debug(f"Unregistered {len(removed)} permissions from {namespace}")

    def _register(
        self,
        namespace: str,
        defs: Mapping[str, PermissionDef],
        module: str | None,
        custom: bool,
    ) -> None:
        for action, definition in defs.items():
            key = f"{namespace}:{action}"
            label, description = _split_definition(definition)
            self._permissions[key] = PermissionEntry(
                key=key,
                namespace=namespace,
                action=action,
                module=module,
                label=label or action,
                description=description,
                custom=custom,
            )
        logger.debug(f"Registered {len(defs)} permissions under {namespace}")

    # ============================================================
    # QUERIES
    # ============================================================

    def exists(self, key: str) -> bool:
        """Check if a permission is registered."""
        return key in self._permissions

    def get(self, key: str) -> PermissionEntry | None:
        """Get a single permission entry."""
        return self._permissions.get(key)

    def get_all(self) -> list[PermissionEntry]:
        """All registered permissions."""
        return list(self._permissions.values())

    def get_keys(self) -> list[str]:
        """All registered permission keys."""
        return list(self._permissions.keys())

    def get_grouped(self) -> dict[str, list[PermissionEntry]]:
        """
        Permissions grouped by namespace.

        Example:
            {
                "entity:books": [PermissionEntry(key="entity:books:read", ...)],
                "auth": [PermissionEntry(key="auth:impersonate", ...)],
            }
        """
        groups: dict[str, list[PermissionEntry]] = {}
        for entry in self._permissions.values():
            groups.setdefault(entry.namespace, []).append(entry)
        return groups

    def get_by_namespace(self, prefix: str) -> list[PermissionEntry]:
        """Permissions in the namespace or any namespace nested under it."""
        nested = f"{prefix}:"
        return [
            entry for entry in self._permissions.values()
            if entry.namespace == prefix or entry.namespace.startswith(nested)
        ]

    def get_by_module(self, module_name: str) -> list[PermissionEntry]:
        """Permissions registered by a module."""
        return [e for e in self._permissions.values() if e.module == module_name]

    def get_entity_permissions(self) -> list[PermissionEntry]:
        """Entity permissions (entity:* and entity-own:* namespaces)."""
        return [e for e in self._permissions.values() if _is_entity(e)]

    def get_system_permissions(self) -> list[PermissionEntry]:
        """Everything that is not an entity permission."""
        return [e for e in self._permissions.values() if not _is_entity(e)]

    @property
    def size(self) -> int:
        return len(self._permissions)

    def __len__(self) -> int:
        return len(self._permissions)

    def __contains__(self, key: object) -> bool:
        return key in self._permissions


def _split_definition(definition: Any) -> tuple[str | None, str | None]:
    """Label and description from a str, PermissionMeta or mapping."""
    if isinstance(definition, str):
        return definition, None
    if isinstance(definition, PermissionMeta):
        return definition.label, definition.description
    if isinstance(definition, Mapping):
        return definition.get("label"), definition.get("description")
    return None, None


def _is_entity(entry: PermissionEntry) -> bool:
    return entry.namespace.startswith(ENTITY_PREFIX)


def _capitalize(value: str) -> str:
    return value[:1].upper() + value[1:]
