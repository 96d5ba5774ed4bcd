"""
Role granter plugin registry.

Allows registering role granters and role config stores without
modifying core code. Implementations register themselves using
decorators.

Usage:
    @GranterRegistry.store("s3")
    class S3RoleStore:
        async def load(self) -> RoleConfig | None: ...
        async def persist(self, config: RoleConfig) -> None: ...

    # Later, get by name:
    store = GranterRegistry.get_store("s3", key="roles")

    # Or build the configured granter:
    granter = create_role_granter(fixed=FIXED_ROLES, defaults=DEFAULT_ROLES)
"""

import logging
from typing import Any, Callable, Type

from ..config import Settings, get_settings
from .interfaces import RoleConfig, RoleConfigStore, RoleGranterAdapter

logger = logging.getLogger(__name__)


class GranterRegistry:
    """
    Central registry for role granter components.

    Components register themselves using decorators.
    """

    _granters: dict[str, Type[RoleGranterAdapter]] = {}
    _stores: dict[str, Type[RoleConfigStore]] = {}

    # ============================================================
    # REGISTRATION DECORATORS
    # ============================================================

    @classmethod
    def granter(cls, name: str) -> Callable[[Type[RoleGranterAdapter]], Type[RoleGranterAdapter]]:
        """
        Decorator to register a role granter.

        Usage:
            @GranterRegistry.granter("static")
            class StaticRoleGranterAdapter(RoleGranterAdapter):
                ...
        """
        def decorator(granter_class: Type[RoleGranterAdapter]) -> Type[RoleGranterAdapter]:
            cls._granters[name] = granter_class
            logger.info(f"Registered role granter: {name}")
            return granter_class
        return decorator

    @classmethod
    def store(cls, name: str) -> Callable[[Type[Any]], Type[Any]]:
        """
        Decorator to register a role config store.

        Usage:
            @GranterRegistry.store("redis")
            class RedisRoleStore:
                ...
        """
        def decorator(store_class: Type[Any]) -> Type[Any]:
            cls._stores[name] = store_class
            logger.info(f"Registered role store: {name}")
            return store_class
        return decorator

    # ============================================================
    # GETTERS
    # ============================================================

    @classmethod
    def get_granter(cls, name: str, **kwargs: Any) -> RoleGranterAdapter:
        """
        Get a role granter by name.

        Raises:
            ValueError: If granter not found
        """
        granter_class = cls._granters.get(name)
        if not granter_class:
            available = list(cls._granters.keys())
            raise ValueError(
                f"Unknown role granter: '{name}'. "
                f"Available: {available}"
            )
        return granter_class(**kwargs)

    @classmethod
    def get_store(cls, name: str, **kwargs: Any) -> RoleConfigStore:
        """
        Get a role config store by name.

        Raises:
            ValueError: If store not found
        """
        store_class = cls._stores.get(name)
        if not store_class:
            available = list(cls._stores.keys())
            raise ValueError(
                f"Unknown role store: '{name}'. "
                f"Available: {available}"
            )
        return store_class(**kwargs)

    # ============================================================
    # INTROSPECTION
    # ============================================================

    @classmethod
    def list_granters(cls) -> list[str]:
        return list(cls._granters.keys())

    @classmethod
    def list_stores(cls) -> list[str]:
        return list(cls._stores.keys())

    @classmethod
    def has_granter(cls, name: str) -> bool:
        return name in cls._granters

    @classmethod
    def has_store(cls, name: str) -> bool:
        return name in cls._stores


# ============================================================
# FACTORY
# ============================================================

def _register_builtins() -> None:
    # Import to register default implementations
    from . import granters  # noqa: F401
    from ...implementations import stores  # noqa: F401


def create_store(settings: Settings | None = None) -> RoleConfigStore:
    """Build the store named by ROLEGRANT_STORE_BACKEND."""
    _register_builtins()
    settings = settings or get_settings()
    store_settings = settings.store

    return GranterRegistry.get_store(
        store_settings.backend,
        key=store_settings.key,
        redis_url=store_settings.redis_url,
        prefix=store_settings.redis_prefix,
        database_url=store_settings.database_url,
    )


def create_role_granter(
    settings: Settings | None = None,
    *,
    fixed: RoleConfig | dict[str, Any] | None = None,
    defaults: RoleConfig | dict[str, Any] | None = None,
    store: RoleConfigStore | None = None,
) -> RoleGranterAdapter:
    """
    Build the role granter named by ROLEGRANT_GRANTER_ADAPTER.

    The static granter serves defaults with fixed permissions unioned
    in. Persistable granters are wired to `store`, or to the configured
    store backend when none is given.

    Raises:
        ValueError: If the adapter or store name is not registered
    """
    _register_builtins()
    settings = settings or get_settings()
    granter_settings = settings.granter

    if granter_settings.adapter == "static":
        config = RoleConfig.from_data(defaults)
        fixed_config = RoleConfig.from_data(fixed)
        for role, perms in fixed_config.role_permissions.items():
            current = config.role_permissions.get(role, [])
            config.role_permissions[role] = list(dict.fromkeys([*current, *perms]))
        config.role_hierarchy.update(fixed_config.role_hierarchy)
        config.role_labels.update(fixed_config.role_labels)
        return GranterRegistry.get_granter("static", config=config)

    store = store or create_store(settings)
    return GranterRegistry.get_granter(
        granter_settings.adapter,
        fixed=fixed,
        defaults=defaults,
        load=store.load,
        persist=store.persist,
        merge_strategy=granter_settings.merge_strategy,
        auto_load=granter_settings.auto_load,
    )
