"""
Redis role config store.
"""

from __future__ import annotations

import json
from typing import Any

import redis.asyncio as redis

from rolegrant.core.security.interfaces import RoleConfig
from rolegrant.core.security.registry import GranterRegistry


@GranterRegistry.store("redis")
class RedisRoleStore:
    """
    Stores the RoleConfig as a JSON string under one Redis key.

    Usage:
        store = RedisRoleStore(redis_url="redis://localhost:6379/0")
        await store.connect()

        granter = PersistableRoleGranterAdapter.from_store(store)

    An existing client can be passed instead of connecting.
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        key: str = "rolegrant_roles",
        prefix: str = "",
        client: redis.Redis | None = None,
        **kwargs: Any,
    ):
        self.redis_url = redis_url
        self.key = key
        self.prefix = prefix
        self._client = client

    async def connect(self) -> None:
        """Connect to Redis."""
        if self._client is None:
            self._client = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            raise RuntimeError("Store not connected. Call connect() first.")
        return self._client

    @property
    def full_key(self) -> str:
        """Key with prefix prepended."""
        return f"{self.prefix}{self.key}" if self.prefix else self.key

    async def load(self) -> RoleConfig | None:
        if self._client is None:
            await self.connect()

        raw = await self.client.get(self.full_key)
        if raw is None:
            return None
        return RoleConfig.from_data(json.loads(raw))

    async def persist(self, config: RoleConfig) -> None:
        if self._client is None:
            await self.connect()

        await self.client.set(self.full_key, json.dumps(config.to_dict()))

    async def clear(self) -> None:
        await self.client.delete(self.full_key)
