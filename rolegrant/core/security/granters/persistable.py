"""
Persistable role granter - role -> permissions with load/persist callbacks.

Loads the role mapping from any source (Redis, database, remote config
service) and persists edits back.

Layers (highest priority first):
1. fixed - code-level grants, always present, never overridden
2. loaded - data returned by the load callback
3. defaults - used before load, and when load returns None or fails

Usage:
    granter = PersistableRoleGranterAdapter(
        fixed={
            "role_permissions": {
                "ROLE_ANONYMOUS": ["auth:login", "auth:register"],
                "ROLE_USER": ["auth:logout", "profile:read"],
            },
        },
        defaults={
            "role_permissions": {
                "ROLE_USER": ["entity:*:read"],
                "ROLE_ADMIN": ["entity:**"],
            },
        },
        load=fetch_roles,        # sync or async, returns RoleConfig | dict | None
        persist=save_roles,      # sync or async, receives RoleConfig
        auto_load=False,
    )

    await granter.load()
    granter.add_role_permissions("ROLE_USER", ["entity:books:create"])
    await granter.persist()
"""

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Iterable, Mapping, Union

import structlog

from ..interfaces import (
    MergeStrategy,
    RoleConfig,
    RoleConfigStore,
    RoleData,
    RoleExistsError,
    RoleGranterAdapter,
    RoleNotFoundError,
)
from ..registry import GranterRegistry

logger = structlog.get_logger()

RoleConfigLike = Union[RoleConfig, Mapping[str, Any]]
LoadCallback = Callable[[], Union[RoleConfigLike, None, Awaitable[RoleConfigLike | None]]]
PersistCallback = Callable[[RoleConfig], Union[None, Awaitable[None]]]


@GranterRegistry.granter("persistable")
class PersistableRoleGranterAdapter(RoleGranterAdapter):
    """
    Role granter backed by injected load/persist callbacks.

    States: unloaded -> loading -> loaded. Concurrent load() calls share
    one in-flight load, concurrent persist() calls share one in-flight
    persist. Mutations are synchronous and mark the adapter dirty.

    Failure semantics:
    - load() never raises: errors fall back to defaults + fixed
    - persist() re-raises the callback error and stays dirty
    """

    def __init__(
        self,
        *,
        fixed: RoleConfigLike | None = None,
        defaults: RoleConfigLike | None = None,
        load: LoadCallback | None = None,
        persist: PersistCallback | None = None,
        merge_strategy: MergeStrategy | str = MergeStrategy.EXTEND,
        auto_load: bool = True,
    ):
        self._load_fn = load
        self._persist_fn = persist
        self.merge_strategy = MergeStrategy(merge_strategy)
        self.auto_load = auto_load

        self._fixed = RoleConfig.from_data(fixed)
        self._defaults = RoleConfig.from_data(defaults)

        # Current state (starts with defaults, fixed applied on read)
        self._current = self._defaults.copy()

        self._loaded = False
        self._dirty = False
        self._version = 0
        self._loading: asyncio.Future | None = None
        self._persisting: asyncio.Future | None = None
        # Edits made while a load is in flight, None when not loading
        self._pending: list[Callable[[RoleConfig], None]] | None = None

    @classmethod
    def from_store(
        cls,
        store: RoleConfigStore,
        **kwargs: Any,
    ) -> "PersistableRoleGranterAdapter":
        """Create a granter that loads from and persists to a store."""
        return cls(load=store.load, persist=store.persist, **kwargs)

    # ============================================================
    # LOADING
    # ============================================================

    async def load(self) -> None:
        """
        Load configuration through the load callback.

        Joins the in-flight load if one is running, so the callback
        runs at most once per logical load. Edits made while the load
        is in flight are replayed on top of its result.
        """
        if self._load_fn is None:
            self._loaded = True
            return

        if self._loading is None:
            self._pending = []
            self._loading = asyncio.ensure_future(self._do_load())
            self._loading.add_done_callback(self._load_finished)

        await asyncio.shield(self._loading)

    def _load_finished(self, task: asyncio.Future) -> None:
        self._loading = None
        if not task.cancelled():
            task.exception()

    async def _do_load(self) -> None:
        logger.debug("Loading role config", merge_strategy=self.merge_strategy.value)
        try:
            data = await _maybe_await(self._load_fn())
            if data is None:
                logger.info("Role config load returned nothing, using defaults")
                self._current = self._defaults.copy()
            else:
                self.apply_data(data)
        except Exception as e:
            logger.warning("Role config load failed, using defaults", error=str(e))
            self._current = self._defaults.copy()

        pending, self._pending = self._pending or [], None
        for edit in pending:
            edit(self._current)
        if pending:
            logger.info("Replayed edits made during load", edits=len(pending))
        else:
            self._dirty = False

        self._loaded = True
        self._version += 1

    def apply_data(self, data: RoleConfigLike) -> None:
        """
        Apply loaded data according to the merge strategy.

        extend: loaded roles replace default roles of the same name
            (role level, not permission level), default-only roles stay.
        replace: loaded data only.
        defaults-only: loaded data ignored.
        """
        loaded = RoleConfig.from_data(data)

        if self.merge_strategy is MergeStrategy.REPLACE:
            self._current = loaded
        elif self.merge_strategy is MergeStrategy.DEFAULTS_ONLY:
            self._current = self._defaults.copy()
        else:
            merged = self._defaults.copy()
            merged.role_permissions.update(loaded.role_permissions)
            merged.role_hierarchy.update(loaded.role_hierarchy)
            merged.role_labels.update(loaded.role_labels)
            self._current = merged

        logger.debug("Role config applied", roles=len(self._current.roles()))

    async def ensure_ready(self) -> "PersistableRoleGranterAdapter":
        """Load on first use when auto_load is on. Returns self."""
        if self.auto_load and not self._loaded:
            await self.load()
        return self

    # ============================================================
    # PERSISTENCE
    # ============================================================

    async def persist(self) -> None:
        """
        Write current state through the persist callback.

        Joins the in-flight persist if one is running. Callback errors
        propagate and leave the adapter dirty.
        """
        if self._persist_fn is None:
            logger.warning("No persist callback configured, skipping persist")
            return

        if self._persisting is None:
            self._persisting = asyncio.ensure_future(self._do_persist())
            self._persisting.add_done_callback(self._persist_finished)

        await asyncio.shield(self._persisting)

    def _persist_finished(self, task: asyncio.Future) -> None:
        self._persisting = None
        # Retrieved here too, in case every awaiting caller was cancelled
        if not task.cancelled():
            task.exception()

    async def _do_persist(self) -> None:
        version = self._version
        snapshot = self._snapshot()
        try:
            await _maybe_await(self._persist_fn(snapshot))
        except Exception as e:
            logger.error("Role config persist failed", error=str(e))
            raise

        # Mutations made while persisting stay dirty
        if version == self._version:
            self._dirty = False
        logger.info("Role config persisted", roles=len(snapshot.roles()))

    def _snapshot(self) -> RoleConfig:
        """Current state without fixed data (fixed is code, not storage)."""
        fixed = self._fixed
        permissions = {}
        for role, perms in self._current.role_permissions.items():
            fixed_perms = fixed.role_permissions.get(role, [])
            permissions[role] = [p for p in perms if p not in fixed_perms]

        return RoleConfig(
            role_permissions=permissions,
            role_hierarchy={
                role: list(parents)
                for role, parents in self._current.role_hierarchy.items()
                if role not in fixed.role_hierarchy
            },
            role_labels={
                role: label
                for role, label in self._current.role_labels.items()
                if role not in fixed.role_labels
            },
        )

    # ============================================================
    # QUERIES
    # ============================================================

    def get_permissions(self, role: str) -> list[str]:
        """Current permissions with fixed permissions unioned in."""
        base = self._current.role_permissions.get(role, [])
        fixed = self._fixed.role_permissions.get(role, [])
        return list(dict.fromkeys([*base, *fixed]))

    def get_roles(self) -> list[str]:
        """Roles defined in any current or fixed map."""
        return list(dict.fromkeys([*self._current.roles(), *self._fixed.roles()]))

    def get_hierarchy(self) -> dict[str, list[str]]:
        """Current hierarchy, fixed entries win."""
        merged = {**self._current.role_hierarchy, **self._fixed.role_hierarchy}
        return {role: list(parents) for role, parents in merged.items()}

    def get_labels(self) -> dict[str, str]:
        """Current labels, fixed entries win."""
        return {**self._current.role_labels, **self._fixed.role_labels}

    def role_exists(self, role: str) -> bool:
        return role in self._current.roles() or role in self._fixed.roles()

    def get_role(self, role: str) -> RoleData | None:
        """Complete role view, or None for unknown roles."""
        if not self.role_exists(role):
            return None
        return RoleData(
            name=role,
            label=self.get_labels().get(role) or role,
            permissions=self.get_permissions(role),
            inherits=self.get_hierarchy().get(role, []),
        )

    def to_json(self) -> RoleConfig:
        """Snapshot of the effective state (fixed included)."""
        roles = dict.fromkeys([
            *self._current.role_permissions,
            *self._fixed.role_permissions,
        ])
        return RoleConfig(
            role_permissions={role: self.get_permissions(role) for role in roles},
            role_hierarchy=self.get_hierarchy(),
            role_labels=self.get_labels(),
        )

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    @property
    def can_persist(self) -> bool:
        return self._persist_fn is not None

    # ============================================================
    # MUTATIONS
    # ============================================================

    def set_role_permissions(self, role: str, permissions: Iterable[str]) -> "PersistableRoleGranterAdapter":
        """Replace a role's permissions."""
        permissions = list(permissions)

        def edit(config: RoleConfig) -> None:
            config.role_permissions[role] = list(permissions)

        return self._apply(edit)

    def add_role_permissions(self, role: str, permissions: Iterable[str]) -> "PersistableRoleGranterAdapter":
        """Add permissions to a role (no duplicates)."""
        added = list(permissions)

        def edit(config: RoleConfig) -> None:
            current = config.role_permissions.get(role, [])
            config.role_permissions[role] = list(dict.fromkeys([*current, *added]))

        return self._apply(edit)

    def remove_role_permissions(self, role: str, permissions: Iterable[str]) -> "PersistableRoleGranterAdapter":
        """Remove permissions from a role."""
        removed = set(permissions)

        def edit(config: RoleConfig) -> None:
            current = config.role_permissions.get(role, [])
            config.role_permissions[role] = [p for p in current if p not in removed]

        return self._apply(edit)

    def set_role_hierarchy(self, role: str, parents: Iterable[str]) -> "PersistableRoleGranterAdapter":
        """Set the roles a role inherits from."""
        parents = list(parents)

        def edit(config: RoleConfig) -> None:
            config.role_hierarchy[role] = list(parents)

        return self._apply(edit)

    def set_role_label(self, role: str, label: str) -> "PersistableRoleGranterAdapter":
        def edit(config: RoleConfig) -> None:
            config.role_labels[role] = label

        return self._apply(edit)

    def delete_role(self, role: str) -> "PersistableRoleGranterAdapter":
        """Remove a role from all three maps. Fixed entries are unaffected."""
        def edit(config: RoleConfig) -> None:
            config.role_permissions.pop(role, None)
            config.role_hierarchy.pop(role, None)
            config.role_labels.pop(role, None)

        return self._apply(edit)

    def reset(self) -> "PersistableRoleGranterAdapter":
        """Restore defaults, discarding loaded data and edits."""
        self._restore_defaults(self._current)
        if self._pending is not None:
            self._pending.append(self._restore_defaults)
        self._dirty = False
        self._version += 1
        return self

    def _restore_defaults(self, config: RoleConfig) -> None:
        defaults = self._defaults.copy()
        config.role_permissions = defaults.role_permissions
        config.role_hierarchy = defaults.role_hierarchy
        config.role_labels = defaults.role_labels

    def _apply(self, edit: Callable[[RoleConfig], None]) -> "PersistableRoleGranterAdapter":
        """Apply an edit to the current state and mark dirty."""
        edit(self._current)
        if self._pending is not None:
            self._pending.append(edit)
        self._dirty = True
        self._version += 1
        return self

    # ============================================================
    # ROLE CRUD (auto-persist)
    # ============================================================

    async def create_role(
        self,
        name: str,
        label: str | None = None,
        permissions: Iterable[str] | None = None,
        inherits: Iterable[str] | None = None,
    ) -> RoleData:
        """
        Create a role and persist if possible.

        Raises:
            RoleExistsError: If the role already exists
        """
        if self.role_exists(name):
            raise RoleExistsError(f"Role '{name}' already exists")

        permissions = list(permissions or [])
        inherits = list(inherits or [])

        def edit(config: RoleConfig) -> None:
            config.role_permissions[name] = list(permissions)
            if label:
                config.role_labels[name] = label
            if inherits:
                config.role_hierarchy[name] = list(inherits)

        self._apply(edit)

        if self.can_persist:
            await self.persist()
        return self.get_role(name)

    async def update_role(
        self,
        name: str,
        label: str | None = None,
        permissions: Iterable[str] | None = None,
        inherits: Iterable[str] | None = None,
    ) -> RoleData:
        """
        Update the given fields of a role and persist if possible.

        Raises:
            RoleNotFoundError: If the role does not exist
        """
        if not self.role_exists(name):
            raise RoleNotFoundError(f"Role '{name}' does not exist")

        permissions = None if permissions is None else list(permissions)
        inherits = None if inherits is None else list(inherits)

        def edit(config: RoleConfig) -> None:
            if permissions is not None:
                config.role_permissions[name] = list(permissions)
            if label is not None:
                config.role_labels[name] = label
            if inherits is not None:
                config.role_hierarchy[name] = list(inherits)

        self._apply(edit)

        if self.can_persist:
            await self.persist()
        return self.get_role(name)

    async def remove_role(self, name: str) -> None:
        """
        Delete a role and persist if possible.

        Raises:
            RoleNotFoundError: If the role does not exist
        """
        if not self.role_exists(name):
            raise RoleNotFoundError(f"Role '{name}' does not exist")

        self.delete_role(name)
        if self.can_persist:
            await self.persist()


async def _maybe_await(value: Any) -> Any:
    """Resolve sync and async callback results alike."""
    if inspect.isawaitable(value):
        return await value
    return value
