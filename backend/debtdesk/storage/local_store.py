"""
Local record store.

Durable, process-local snapshots of entity records keyed by entity name.
Each entity maps to an insertion-ordered list of flat record dicts.

Two backends:
- InMemoryRecordStore: dict of lists, for tests and ephemeral runs
- SqlRecordStore: one JSON row per entity through SQLAlchemy's async engine,
  which survives process restarts (SQLite via aiosqlite by default)
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import DateTime, String, Text, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from debtdesk.core.config import LocalStoreSettings
from debtdesk.core.exceptions import StorageWriteError

logger = logging.getLogger(__name__)


class RecordStore(ABC):
    """Abstract local store of entity snapshots."""

    def __init__(self) -> None:
        self._write_lock = asyncio.Lock()

    @abstractmethod
    async def load_for_write(self, entity: str) -> list[dict[str, Any]]:
        """
        Return all records for ``entity`` ahead of a rewrite.

        Raises StorageWriteError when the medium cannot be read. Anything
        that rewrites the sequence reads it through here, not load_all.
        """

    async def load_all(self, entity: str) -> list[dict[str, Any]]:
        """Return all records for ``entity`` in insertion order; never raises."""
        try:
            return await self.load_for_write(entity)
        except StorageWriteError as e:
            logger.error(f"Local store read failed for {entity}: {e.message}")
            return []

    @abstractmethod
    async def _write(self, entity: str, records: list[dict[str, Any]]) -> None:
        """Persist the full sequence for ``entity``."""

    async def save_all(self, entity: str, records: list[dict[str, Any]]) -> None:
        """Overwrite the full sequence for ``entity``."""
        async with self._write_lock:
            await self._write(entity, list(records))

    async def append_one(self, entity: str, record: dict[str, Any]) -> None:
        """Append one record; serialised against other writes of this store."""
        async with self._write_lock:
            records = await self.load_for_write(entity)
            records.append(record)
            await self._write(entity, records)

    async def init(self) -> None:
        """Prepare the underlying medium."""

    async def close(self) -> None:
        """Release the underlying medium."""


class InMemoryRecordStore(RecordStore):
    """Record store held in process memory."""

    def __init__(self, capacity: int | None = None) -> None:
        super().__init__()
        self.capacity = capacity
        self._data: dict[str, list[dict[str, Any]]] = {}

    async def load_for_write(self, entity: str) -> list[dict[str, Any]]:
        return copy.deepcopy(self._data.get(entity, []))

    async def _write(self, entity: str, records: list[dict[str, Any]]) -> None:
        if self.capacity is not None and len(records) > self.capacity:
            raise StorageWriteError(
                f"Local store capacity exceeded for {entity}: {len(records)} > {self.capacity}",
                entity=entity,
                operation="write",
            )
        self._data[entity] = copy.deepcopy(records)

    def entities(self) -> list[str]:
        return list(self._data.keys())


class _Base(DeclarativeBase):
    """Declarative base for local store tables."""
    pass


class LocalSnapshot(_Base):
    """One serialized record sequence per entity."""

    __tablename__ = "local_snapshots"

    entity: Mapped[str] = mapped_column(String(64), primary_key=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )


class SqlRecordStore(RecordStore):
    """
    Record store persisted through SQLAlchemy's async engine.

    Usage:
        store = SqlRecordStore("sqlite+aiosqlite:///debtdesk_local.db")
        await store.init()
        await store.append_one("cases", {"id": "local_1", ...})
    """

    def __init__(
        self,
        database_url: str,
        capacity: int | None = None,
        engine: AsyncEngine | None = None,
    ) -> None:
        super().__init__()
        self.database_url = database_url
        self.capacity = capacity
        self._engine = engine or create_async_engine(database_url, echo=False)
        self._session_maker = async_sessionmaker(self._engine, expire_on_commit=False)
        self._initialized = False

    async def init(self) -> None:
        if self._initialized:
            return
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(_Base.metadata.create_all)
        except SQLAlchemyError as e:
            raise StorageWriteError(
                f"Cannot initialise local store at {self.database_url}: {e}",
                operation="init",
            ) from e
        self._initialized = True
        logger.info(f"Local record store ready at {self.database_url}")

    async def close(self) -> None:
        await self._engine.dispose()

    async def load_for_write(self, entity: str) -> list[dict[str, Any]]:
        await self.init()
        try:
            async with self._session_maker() as session:
                result = await session.execute(
                    select(LocalSnapshot.payload).where(LocalSnapshot.entity == entity)
                )
                payload = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StorageWriteError(
                f"Local store read failed for {entity}: {e}",
                entity=entity,
                operation="read",
            ) from e

        if not payload:
            return []

        try:
            records = json.loads(payload)
        except json.JSONDecodeError as e:
            raise StorageWriteError(
                f"Corrupt local snapshot for {entity}: {e}",
                entity=entity,
                operation="read",
            ) from e

        if not isinstance(records, list):
            raise StorageWriteError(
                f"Local snapshot for {entity} is not a list",
                entity=entity,
                operation="read",
            )
        return records

    async def _write(self, entity: str, records: list[dict[str, Any]]) -> None:
        if self.capacity is not None and len(records) > self.capacity:
            raise StorageWriteError(
                f"Local store capacity exceeded for {entity}: {len(records)} > {self.capacity}",
                entity=entity,
                operation="write",
            )

        await self.init()
        payload = json.dumps(records, ensure_ascii=False, default=str)

        try:
            async with self._session_maker() as session:
                async with session.begin():
                    row = await session.get(LocalSnapshot, entity)
                    if row is None:
                        session.add(LocalSnapshot(entity=entity, payload=payload))
                    else:
                        row.payload = payload
        except SQLAlchemyError as e:
            raise StorageWriteError(
                f"Local store write failed for {entity}: {e}",
                entity=entity,
                operation="write",
            ) from e


def create_record_store(settings: LocalStoreSettings) -> RecordStore:
    """Create the record store selected by configuration."""
    if settings.backend == "sql":
        return SqlRecordStore(settings.resolve_database_url(), capacity=settings.capacity)
    return InMemoryRecordStore(capacity=settings.capacity)
