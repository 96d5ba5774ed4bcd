"""
Role config stores.

Each store keeps one RoleConfig as a single JSON record under a key:
- memory: In-process dict (testing/dev)
- redis: Redis string key
- database: SQL row (role_configs table)
"""

from .memory import MemoryRoleStore
from .redis import RedisRoleStore
from .database import DatabaseRoleStore

__all__ = [
    "MemoryRoleStore",
    "RedisRoleStore",
    "DatabaseRoleStore",
]
