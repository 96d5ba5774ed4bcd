"""
In-memory role config store.

For development and testing. Data is lost on restart.
"""

import json
from typing import Any

from rolegrant.core.security.interfaces import RoleConfig
from rolegrant.core.security.registry import GranterRegistry


@GranterRegistry.store("memory")
class MemoryRoleStore:
    """
    Stores the serialized RoleConfig in a dict.

    Pass a shared `data` dict to let several stores see the same records.
    """

    def __init__(
        self,
        key: str = "rolegrant_roles",
        data: dict[str, str] | None = None,
        **kwargs: Any,
    ):
        self.key = key
        self.data = data if data is not None else {}

    async def load(self) -> RoleConfig | None:
        raw = self.data.get(self.key)
        if raw is None:
            return None
        return RoleConfig.from_data(json.loads(raw))

    async def persist(self, config: RoleConfig) -> None:
        self.data[self.key] = json.dumps(config.to_dict())

    async def clear(self) -> None:
        self.data.pop(self.key, None)
