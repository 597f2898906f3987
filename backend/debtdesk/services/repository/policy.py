"""
Reconciliation policy.

Decides, per entity category and operation, which source is consulted or
written and how results from both sources are merged.

| Category       | Read                                   | Write                         |
|----------------|----------------------------------------|-------------------------------|
| remote_primary | remote, local snapshot on outage*      | remote only, no local mirror  |
| local_only     | local                                  | local                         |
| hybrid         | remote ∪ local, remote wins on same id | new: local; existing: by id   |

(*) only when the entity allows fallback.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from debtdesk.core.exceptions import NotFound, RemoteUnavailable
from debtdesk.core.retry import RetryPolicy, retry_remote
from debtdesk.domain.metadata.registry import EntityDefinition
from debtdesk.domain.models.enums import PolicyCategory, RecordSource
from debtdesk.domain.models.record import FIELD_ALIASES, Record
from debtdesk.infrastructure.logging import get_logger
from debtdesk.services.repository.ids import IdGenerator
from debtdesk.storage.local_store import RecordStore
from debtdesk.storage.remote_client import RemoteStoreClient

logger = get_logger(__name__)


def to_records(entity: str, rows: Iterable[Mapping[str, Any]], source: RecordSource) -> list[Record]:
    """Convert store rows to records, skipping rows without an id."""
    records = []
    for row in rows:
        if row.get("id") in (None, ""):
            logger.warning(f"Skipping {source.value} {entity} row without id")
            continue
        records.append(Record.from_dict(entity, dict(row), source))
    return records


def merge_hybrid(remote: list[Record], local: list[Record]) -> list[Record]:
    """
    Union of both sources deduplicated by id, remote winning.

    Output: remote records in remote order, then the local records whose id
    the remote did not return, in stored order.
    """
    by_id: dict[str, Record] = {}
    for record in local:
        by_id[record.id] = record
    for record in remote:
        by_id[record.id] = record

    merged: list[Record] = []
    seen: set[str] = set()
    for record in remote:
        if record.id not in seen:
            merged.append(by_id[record.id])
            seen.add(record.id)
    for record in local:
        if record.id not in seen:
            merged.append(record)
            seen.add(record.id)
    return merged


class ReconciliationPolicy:
    """Source selection and merge rules for the repository facade."""

    def __init__(
        self,
        store: RecordStore,
        remote: RemoteStoreClient,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self.store = store
        self.remote = remote
        self.retry_policy = retry_policy or RetryPolicy()

    # ------------------------------------------------------------------ reads

    async def _remote_rows(self, entity: str, filters: Mapping[str, Any] | None) -> list[Record]:
        rows = await retry_remote(
            lambda: self.remote.list(entity, filters),
            self.retry_policy,
            description=f"remote list {entity}",
        )
        return to_records(entity, rows, RecordSource.REMOTE)

    async def _local_rows(self, entity: str) -> list[Record]:
        return to_records(entity, await self.store.load_all(entity), RecordSource.LOCAL)

    async def read_all(
        self,
        definition: EntityDefinition,
        filters: Mapping[str, Any] | None = None,
    ) -> list[Record]:
        """
        Read every record of an entity according to its category.

        ``filters`` are only pushed to the remote for remote-primary
        entities; the caller applies the full filter afterwards.
        """
        entity = definition.name

        if definition.category == PolicyCategory.LOCAL_ONLY:
            return await self._local_rows(entity)

        if definition.category == PolicyCategory.HYBRID:
            try:
                remote = await self._remote_rows(entity, None)
            except RemoteUnavailable as e:
                if not definition.allows_local_fallback:
                    raise
                logger.warning_with_context(
                    f"Remote unavailable for hybrid entity {entity}, serving local records only",
                    context={"entity": entity, "error": str(e)},
                )
                remote = []
            local = await self._local_rows(entity)
            return merge_hybrid(remote, local)

        pushdown = {FIELD_ALIASES.get(k, k): v for k, v in (filters or {}).items()} or None
        try:
            return await self._remote_rows(entity, pushdown)
        except RemoteUnavailable as e:
            if not definition.allows_local_fallback:
                raise
            logger.warning_with_context(
                f"Remote unavailable for {entity}, falling back to local snapshot",
                context={"entity": entity, "error": str(e)},
            )
            return await self._local_rows(entity)

    async def _find_local(self, entity: str, record_id: str) -> Record:
        for record in await self._local_rows(entity):
            if record.id == record_id:
                return record
        raise NotFound(entity, record_id)

    async def read_one(self, definition: EntityDefinition, record_id: str) -> Record:
        """Read one record; NotFound when no consulted source holds it."""
        entity = definition.name

        if definition.category == PolicyCategory.LOCAL_ONLY:
            return await self._find_local(entity, record_id)

        if definition.category == PolicyCategory.HYBRID and IdGenerator.is_local(record_id):
            return await self._find_local(entity, record_id)

        async def fetch() -> dict[str, Any]:
            return await self.remote.get(entity, record_id)

        try:
            row = await retry_remote(fetch, self.retry_policy, description=f"remote get {entity}/{record_id}")
            return Record.from_dict(entity, row, RecordSource.REMOTE)
        except NotFound:
            if definition.category == PolicyCategory.HYBRID:
                return await self._find_local(entity, record_id)
            raise
        except RemoteUnavailable as e:
            if not definition.allows_local_fallback:
                raise
            logger.warning_with_context(
                f"Remote unavailable for {entity}/{record_id}, looking up local copy",
                context={"entity": entity, "id": record_id, "error": str(e)},
            )
            return await self._find_local(entity, record_id)

    # ----------------------------------------------------------------- writes

    @staticmethod
    def create_target(definition: EntityDefinition) -> RecordSource:
        """Where a new record of this entity is written."""
        if definition.category == PolicyCategory.REMOTE_PRIMARY:
            return RecordSource.REMOTE
        return RecordSource.LOCAL

    @staticmethod
    def record_target(definition: EntityDefinition, record_id: str) -> RecordSource:
        """Where an existing record is updated."""
        if definition.category == PolicyCategory.REMOTE_PRIMARY:
            return RecordSource.REMOTE
        if definition.category == PolicyCategory.LOCAL_ONLY:
            return RecordSource.LOCAL
        return RecordSource.LOCAL if IdGenerator.is_local(record_id) else RecordSource.REMOTE

    @staticmethod
    def delete_targets(definition: EntityDefinition, record_id: str) -> list[RecordSource]:
        """Sources purged by a delete; hybrid deletes always drop local copies."""
        if definition.category == PolicyCategory.REMOTE_PRIMARY:
            return [RecordSource.REMOTE]
        if definition.category == PolicyCategory.LOCAL_ONLY:
            return [RecordSource.LOCAL]
        if IdGenerator.is_local(record_id):
            return [RecordSource.LOCAL]
        return [RecordSource.LOCAL, RecordSource.REMOTE]
