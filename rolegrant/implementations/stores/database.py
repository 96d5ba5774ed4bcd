"""
Database role config store.

One row per key in the role_configs table.
"""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from rolegrant.core.security.interfaces import RoleConfig
from rolegrant.core.security.registry import GranterRegistry
from rolegrant.models import Base, RoleConfigRecord


@GranterRegistry.store("database")
class DatabaseRoleStore:
    """
    SQL-backed role config storage.

    Each load/persist runs in its own session and transaction.

    Usage:
        store = DatabaseRoleStore(database_url="postgresql+asyncpg://...")
        await store.init()   # create tables

    Or share the application's session factory:
        store = DatabaseRoleStore(session_maker=async_session_factory)
    """

    def __init__(
        self,
        database_url: str | None = None,
        key: str = "rolegrant_roles",
        session_maker: async_sessionmaker[AsyncSession] | None = None,
        **kwargs: Any,
    ):
        self.key = key
        self._engine: AsyncEngine | None = None

        if session_maker is None:
            if not database_url:
                raise ValueError("DatabaseRoleStore needs database_url or session_maker")
            self._engine = create_async_engine(database_url)
            session_maker = async_sessionmaker(
                self._engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
        self.session_maker = session_maker

    async def init(self) -> None:
        """Create the role_configs table (owned engine only)."""
        if self._engine is None:
            return
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        """Dispose the owned engine."""
        if self._engine is not None:
            await self._engine.dispose()

    async def load(self) -> RoleConfig | None:
        async with self.session_maker() as db:
            query = select(RoleConfigRecord).where(RoleConfigRecord.key == self.key)
            result = await db.execute(query)
            record = result.scalar_one_or_none()

            if not record:
                return None
            return RoleConfig.from_data(record.data)

    async def persist(self, config: RoleConfig) -> None:
        """Upsert the record for this key."""
        async with self.session_maker() as db:
            query = select(RoleConfigRecord).where(RoleConfigRecord.key == self.key)
            result = await db.execute(query)
            record = result.scalar_one_or_none()

            if record:
                record.data = config.to_dict()
            else:
                db.add(RoleConfigRecord(key=self.key, data=config.to_dict()))

            await db.commit()
