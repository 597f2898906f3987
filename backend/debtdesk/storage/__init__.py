"""
Storage Module - the two record sources.

Provides:
- local_store: durable process-local snapshots (memory or SQL)
- remote_client: CRUD against the remote service (HTTP or in-memory)
"""

from debtdesk.storage.local_store import (
    InMemoryRecordStore,
    RecordStore,
    SqlRecordStore,
    create_record_store,
)
from debtdesk.storage.remote_client import (
    HttpRemoteStoreClient,
    InMemoryRemoteStoreClient,
    RemoteStoreClient,
    create_remote_client,
)

__all__ = [
    "InMemoryRecordStore",
    "RecordStore",
    "SqlRecordStore",
    "create_record_store",
    "HttpRemoteStoreClient",
    "InMemoryRemoteStoreClient",
    "RemoteStoreClient",
    "create_remote_client",
]
