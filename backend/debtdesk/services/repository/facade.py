"""
Repository facade.

The single entry point for callers: uniform async CRUD and query
operations over entity names, backed by the reconciliation policy.

Usage:
    repo = Repository(store=InMemoryRecordStore(), remote=client)
    case = await repo.create("cases", {"debtor_name": "Jane Doe"})
    logs = await repo.filter("activity_logs", {"case_id": case.id}, "activity_date")
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import Any, Mapping

from debtdesk.core.exceptions import NotFound, RemoteUnavailable, ValidationError
from debtdesk.core.retry import RetryPolicy
from debtdesk.domain.metadata.registry import EntityDefinition, EntityRegistry, default_registry
from debtdesk.domain.models.enums import PolicyCategory, RecordSource
from debtdesk.domain.models.record import Record, utcnow
from debtdesk.domain.query import apply_filters, apply_order
from debtdesk.infrastructure.logging import get_logger, log_context
from debtdesk.services.repository.hooks import HookRegistry, default_hooks
from debtdesk.services.repository.ids import IdGenerator
from debtdesk.services.repository.policy import ReconciliationPolicy
from debtdesk.storage.local_store import RecordStore
from debtdesk.storage.remote_client import RemoteStoreClient

logger = get_logger(__name__)


class Repository:
    """Uniform CRUD and query API per entity name."""

    def __init__(
        self,
        store: RecordStore,
        remote: RemoteStoreClient,
        registry: EntityRegistry | None = None,
        retry_policy: RetryPolicy | None = None,
        id_generator: IdGenerator | None = None,
        hooks: HookRegistry | None = None,
    ) -> None:
        self.store = store
        self.remote = remote
        self.registry = registry or default_registry()
        self.policy = ReconciliationPolicy(store, remote, retry_policy)
        self.ids = id_generator or IdGenerator()
        self.hooks = hooks if hooks is not None else default_hooks()
        self._local_locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def __aenter__(self) -> "Repository":
        await self.store.init()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self.remote.close()
        await self.store.close()

    def definition(self, entity: str) -> EntityDefinition:
        return self.registry.resolve(entity)

    # ------------------------------------------------------------------ reads

    async def list(self, entity: str, order_by: str | None = None) -> list[Record]:
        definition = self.definition(entity)
        with log_context(entity=entity, operation="list"):
            records = await self.policy.read_all(definition)
        return apply_order(records, order_by)

    async def filter(
        self,
        entity: str,
        filters: Mapping[str, Any],
        order_by: str | None = None,
    ) -> list[Record]:
        definition = self.definition(entity)
        if not isinstance(filters, Mapping):
            raise ValidationError(
                f"{entity} filters must be a mapping, got {type(filters).__name__}",
                entity=entity,
            )
        with log_context(entity=entity, operation="filter"):
            records = await self.policy.read_all(definition, filters)
        return apply_order(apply_filters(records, filters), order_by)

    async def get(self, entity: str, record_id: str) -> Record:
        definition = self.definition(entity)
        with log_context(entity=entity, operation="get", id=record_id):
            return await self.policy.read_one(definition, str(record_id))

    # ----------------------------------------------------------------- writes

    async def create(
        self,
        entity: str,
        fields: Mapping[str, Any],
        actor: str | None = None,
    ) -> Record:
        """
        Create a record in the entity's write target.

        Assigns id and timestamps, then runs the entity's post-create hooks
        best-effort: a failing hook never undoes or fails the create.
        """
        definition = self.definition(entity)
        definition.validate_create(fields)
        target = self.policy.create_target(definition)

        record = self._new_record(entity, fields, actor, local=target == RecordSource.LOCAL)

        with log_context(entity=entity, operation="create", actor=actor):
            if target == RecordSource.LOCAL:
                async with self._local_locks[entity]:
                    await self.store.append_one(entity, record.to_storage())
            else:
                row = await self.remote.create(entity, record.to_storage())
                record = Record.from_dict(entity, {**record.to_storage(), **row}, RecordSource.REMOTE)

            logger.info_with_context(
                f"Created {entity}/{record.id}",
                context={"source": record.source.value},
            )
            await self.hooks.run_create(self, record, actor)
        return record

    async def update(
        self,
        entity: str,
        record_id: str,
        fields: Mapping[str, Any],
        actor: str | None = None,
    ) -> Record:
        """Merge ``fields`` into an existing record and bump updated_at."""
        definition = self.definition(entity)
        definition.validate_update(fields)
        record_id = str(record_id)

        changes = dict(fields)
        if actor:
            changes["updated_by"] = actor
        target = self.policy.record_target(definition, record_id)
        now = utcnow()

        with log_context(entity=entity, operation="update", id=record_id, actor=actor):
            if target == RecordSource.LOCAL:
                before, after = await self._update_local(entity, record_id, changes, now)
            else:
                before, after = await self._update_remote(entity, record_id, changes, now)

            logger.info_with_context(
                f"Updated {entity}/{record_id}",
                context={"source": after.source.value, "fields": sorted(fields.keys())},
            )
            await self.hooks.run_update(self, before, after, actor)
        return after

    async def delete(self, entity: str, record_id: str) -> None:
        """Remove a record from its write target(s); deleting a missing id succeeds."""
        definition = self.definition(entity)
        record_id = str(record_id)

        with log_context(entity=entity, operation="delete", id=record_id):
            for target in self.policy.delete_targets(definition, record_id):
                if target == RecordSource.LOCAL:
                    await self._delete_local(entity, record_id)
                    continue
                try:
                    await self.remote.delete(entity, record_id)
                except NotFound:
                    logger.debug(f"Delete of missing remote {entity}/{record_id} ignored")
            logger.info(f"Deleted {entity}/{record_id}")

    async def bulk_create(
        self,
        entity: str,
        rows: list[Mapping[str, Any]],
        actor: str | None = None,
    ) -> list[Record]:
        """
        Create a batch of records on the remote store only.

        Every row is validated before any I/O. Any remote failure fails the
        whole batch with RemoteUnavailable; there is no partial-success report
        and no post-create hooks run.
        """
        definition = self.definition(entity)
        if definition.category == PolicyCategory.LOCAL_ONLY:
            raise ValidationError(f"{entity} is local-only and cannot be bulk created remotely", entity=entity)
        if not isinstance(rows, (list, tuple)):
            raise ValidationError(f"{entity} bulk rows must be a list", entity=entity)
        for row in rows:
            definition.validate_create(row)
        if not rows:
            return []

        records = [self._new_record(entity, row, actor, local=False) for row in rows]

        with log_context(entity=entity, operation="bulk_create", actor=actor):
            try:
                created = await self.remote.bulk_create(entity, [r.to_storage() for r in records])
            except NotFound as e:
                raise RemoteUnavailable(f"Bulk create on {entity} failed: {e}", entity=entity) from e

            if len(created) != len(records):
                raise RemoteUnavailable(
                    f"Bulk create on {entity} stored {len(created)} of {len(records)} rows",
                    entity=entity,
                )
            logger.info(f"Bulk created {len(created)} {entity} records")

        return [
            Record.from_dict(entity, {**sent.to_storage(), **row}, RecordSource.REMOTE)
            for sent, row in zip(records, created)
        ]

    # ---------------------------------------------------------------- helpers

    def _new_record(
        self,
        entity: str,
        fields: Mapping[str, Any],
        actor: str | None,
        local: bool,
    ) -> Record:
        now = utcnow()
        data = {k: v for k, v in fields.items() if k not in Record.CORE_FIELDS}
        if actor:
            data.setdefault("created_by", actor)
        return Record(
            entity=entity,
            id=self.ids.next_id(local=local),
            created_at=now,
            updated_at=now,
            data=data,
            source=RecordSource.LOCAL if local else RecordSource.REMOTE,
        )

    async def _update_local(
        self,
        entity: str,
        record_id: str,
        changes: dict[str, Any],
        now,
    ) -> tuple[Record, Record]:
        async with self._local_locks[entity]:
            rows = await self.store.load_for_write(entity)
            for index, row in enumerate(rows):
                if str(row.get("id")) == record_id:
                    before = Record.from_dict(entity, row, RecordSource.LOCAL)
                    after = before.merged(changes, now)
                    rows[index] = after.to_storage()
                    await self.store.save_all(entity, rows)
                    return before, after
        raise NotFound(entity, record_id)

    async def _update_remote(
        self,
        entity: str,
        record_id: str,
        changes: dict[str, Any],
        now,
    ) -> tuple[Record, Record]:
        before = Record.from_dict(entity, await self.remote.get(entity, record_id), RecordSource.REMOTE)
        expected = before.merged(changes, now)
        payload = {**changes, "updated_at": expected.updated_at.isoformat()}
        row = await self.remote.update(entity, record_id, payload)
        after = Record.from_dict(entity, {**expected.to_storage(), **row}, RecordSource.REMOTE)
        return before, after

    async def _delete_local(self, entity: str, record_id: str) -> None:
        async with self._local_locks[entity]:
            rows = await self.store.load_for_write(entity)
            kept = [row for row in rows if str(row.get("id")) != record_id]
            if len(kept) != len(rows):
                await self.store.save_all(entity, kept)
