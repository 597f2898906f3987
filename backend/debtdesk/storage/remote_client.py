"""
Remote store client.

CRUD against the remote service, one entity at a time. Records travel as
flat dicts. The client makes one attempt per call with a bounded wait and
keeps no cache; retries are the repository facade's decision.

Errors:
- RemoteUnavailable: transport failure, timeout, or service-side error
- NotFound: get/update/delete of an id the service does not hold
- ValidationError: the service rejected the payload (400/422)
"""

from __future__ import annotations

import asyncio
import copy
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Mapping, TypeVar

from debtdesk.core.config import RemoteSettings
from debtdesk.core.exceptions import NotFound, RemoteUnavailable, ValidationError
from debtdesk.core.http_client import HttpClient, HttpClientError, HttpMethod, HttpResponse
from debtdesk.domain.query import apply_filters, is_membership

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RemoteStoreClient(ABC):
    """Abstract remote store client."""

    def __init__(self, timeout: float = 10.0) -> None:
        self.timeout = timeout

    async def _bounded(self, entity: str, operation: str, call: Awaitable[T]) -> T:
        """Await ``call`` for at most ``timeout`` seconds."""
        try:
            return await asyncio.wait_for(call, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise RemoteUnavailable(
                f"Remote {operation} on {entity} timed out after {self.timeout}s",
                entity=entity,
            ) from e

    async def list(self, entity: str, filters: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        return await self._bounded(entity, "list", self._list(entity, filters))

    async def get(self, entity: str, record_id: str) -> dict[str, Any]:
        return await self._bounded(entity, "get", self._get(entity, record_id))

    async def create(self, entity: str, fields: dict[str, Any]) -> dict[str, Any]:
        return await self._bounded(entity, "create", self._create(entity, fields))

    async def update(self, entity: str, record_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        return await self._bounded(entity, "update", self._update(entity, record_id, fields))

    async def delete(self, entity: str, record_id: str) -> None:
        await self._bounded(entity, "delete", self._delete(entity, record_id))

    async def bulk_create(self, entity: str, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        return await self._bounded(entity, "bulk_create", self._bulk_create(entity, rows))

    async def close(self) -> None:
        """Release connection-level resources."""

    @abstractmethod
    async def _list(self, entity: str, filters: Mapping[str, Any] | None) -> list[dict[str, Any]]:
        ...

    @abstractmethod
    async def _get(self, entity: str, record_id: str) -> dict[str, Any]:
        ...

    @abstractmethod
    async def _create(self, entity: str, fields: dict[str, Any]) -> dict[str, Any]:
        ...

    @abstractmethod
    async def _update(self, entity: str, record_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        ...

    @abstractmethod
    async def _delete(self, entity: str, record_id: str) -> None:
        ...

    @abstractmethod
    async def _bulk_create(self, entity: str, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        ...


def format_predicate(value: Any) -> str:
    """Render one filter condition as a PostgREST predicate."""
    if is_membership(value):
        return "in.(" + ",".join(_quote(v) for v in value) + ")"
    if value is None:
        return "is.null"
    return f"eq.{_scalar(value)}"


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _quote(value: Any) -> str:
    text = _scalar(value)
    if any(ch in text for ch in ',()"'):
        escaped = text.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return text


class HttpRemoteStoreClient(RemoteStoreClient):
    """
    Remote store over a PostgREST-style tabular HTTP protocol.

    Resource path is ``{base_url}/rest/v1/{entity}``; filters become query
    predicates (``status=eq.paid``, ``id=in.(1,2)``).

    Usage:
        client = HttpRemoteStoreClient("https://xyz.supabase.co", api_key=key)
        rows = await client.list("cases", {"status": "new"})
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = 10.0,
        verify_ssl: bool = True,
        http_client: HttpClient | None = None,
    ) -> None:
        super().__init__(timeout=timeout)
        self.base_url = base_url.rstrip("/")
        headers = {"Accept": "application/json"}
        if api_key:
            headers["apikey"] = api_key
            headers["Authorization"] = f"Bearer {api_key}"
        self._http = http_client or HttpClient(
            default_headers=headers,
            default_timeout=timeout,
            verify_ssl=verify_ssl,
        )

    @classmethod
    def from_settings(cls, settings: RemoteSettings) -> "HttpRemoteStoreClient":
        return cls(
            base_url=settings.base_url,
            api_key=settings.resolve_api_key(),
            timeout=settings.timeout,
            verify_ssl=settings.verify_ssl,
        )

    def _url(self, entity: str) -> str:
        return f"{self.base_url}/rest/v1/{entity}"

    async def close(self) -> None:
        await self._http.close()

    async def _send(
        self,
        entity: str,
        method: HttpMethod,
        params: dict[str, str] | None = None,
        json: Any = None,
        write: bool = False,
        record_id: str | None = None,
    ) -> HttpResponse:
        headers = {"Prefer": "return=representation"} if write else None
        try:
            response = await self._http.request(
                method,
                self._url(entity),
                params=params,
                headers=headers,
                json=json,
                timeout=self.timeout,
            )
        except HttpClientError as e:
            raise RemoteUnavailable(str(e), entity=entity, url=self._url(entity)) from e

        if response.ok:
            return response

        if response.status == 404 and record_id is not None:
            raise NotFound(entity, record_id)
        if response.status in (400, 422):
            raise ValidationError(
                f"Remote rejected {method.value} on {entity}: {response.body[:200]}",
                entity=entity,
            )
        raise RemoteUnavailable(
            f"Remote {method.value} on {entity} returned {response.status}",
            entity=entity,
            url=self._url(entity),
            status_code=response.status,
        )

    @staticmethod
    def _rows(entity: str, response: HttpResponse) -> list[dict[str, Any]]:
        payload = response.json
        if payload is None and response.status == 204:
            return []
        if isinstance(payload, dict):
            payload = [payload]
        if not isinstance(payload, list) or not all(isinstance(r, dict) for r in payload):
            raise RemoteUnavailable(
                f"Unexpected payload from remote {entity}: {response.body[:200]}",
                entity=entity,
                status_code=response.status,
            )
        return payload

    async def _list(self, entity: str, filters: Mapping[str, Any] | None) -> list[dict[str, Any]]:
        params = {"select": "*"}
        for name, value in (filters or {}).items():
            params[name] = format_predicate(value)
        response = await self._send(entity, HttpMethod.GET, params=params)
        return self._rows(entity, response)

    async def _get(self, entity: str, record_id: str) -> dict[str, Any]:
        response = await self._send(
            entity,
            HttpMethod.GET,
            params={"select": "*", "id": f"eq.{record_id}"},
            record_id=record_id,
        )
        rows = self._rows(entity, response)
        if not rows:
            raise NotFound(entity, record_id)
        return rows[0]

    async def _create(self, entity: str, fields: dict[str, Any]) -> dict[str, Any]:
        response = await self._send(entity, HttpMethod.POST, json=fields, write=True)
        rows = self._rows(entity, response)
        return rows[0] if rows else dict(fields)

    async def _update(self, entity: str, record_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        response = await self._send(
            entity,
            HttpMethod.PATCH,
            params={"id": f"eq.{record_id}"},
            json=fields,
            write=True,
            record_id=record_id,
        )
        rows = self._rows(entity, response)
        if not rows:
            raise NotFound(entity, record_id)
        return rows[0]

    async def _delete(self, entity: str, record_id: str) -> None:
        response = await self._send(
            entity,
            HttpMethod.DELETE,
            params={"id": f"eq.{record_id}"},
            write=True,
            record_id=record_id,
        )
        if not self._rows(entity, response):
            raise NotFound(entity, record_id)

    async def _bulk_create(self, entity: str, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        response = await self._send(entity, HttpMethod.POST, json=rows, write=True)
        created = self._rows(entity, response)
        return created or [dict(r) for r in rows]


class InMemoryRemoteStoreClient(RemoteStoreClient):
    """
    Process-local stand-in for the remote service.

    Used when no remote URL is configured and in tests. ``available=False``
    simulates an outage; ``latency`` adds a suspension point per call and,
    when longer than ``timeout``, exercises the bounded wait.
    """

    def __init__(
        self,
        tables: dict[str, list[dict[str, Any]]] | None = None,
        timeout: float = 10.0,
        latency: float = 0.0,
        available: bool = True,
    ) -> None:
        super().__init__(timeout=timeout)
        self.tables: dict[str, list[dict[str, Any]]] = copy.deepcopy(tables or {})
        self.latency = latency
        self.available = available
        self.calls: list[tuple[str, str]] = []

    async def _enter(self, entity: str, operation: str) -> None:
        self.calls.append((operation, entity))
        await asyncio.sleep(self.latency)
        if not self.available:
            raise RemoteUnavailable(f"Remote store unavailable for {operation} on {entity}", entity=entity)

    def _table(self, entity: str) -> list[dict[str, Any]]:
        return self.tables.setdefault(entity, [])

    def _find(self, entity: str, record_id: str) -> int:
        for index, row in enumerate(self._table(entity)):
            if str(row.get("id")) == record_id:
                return index
        raise NotFound(entity, record_id)

    async def _list(self, entity: str, filters: Mapping[str, Any] | None) -> list[dict[str, Any]]:
        await self._enter(entity, "list")
        return copy.deepcopy(apply_filters(self._table(entity), filters))

    async def _get(self, entity: str, record_id: str) -> dict[str, Any]:
        await self._enter(entity, "get")
        return copy.deepcopy(self._table(entity)[self._find(entity, record_id)])

    async def _create(self, entity: str, fields: dict[str, Any]) -> dict[str, Any]:
        await self._enter(entity, "create")
        row = copy.deepcopy(fields)
        self._table(entity).append(row)
        return copy.deepcopy(row)

    async def _update(self, entity: str, record_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        await self._enter(entity, "update")
        index = self._find(entity, record_id)
        row = self._table(entity)[index]
        row.update(copy.deepcopy(fields))
        return copy.deepcopy(row)

    async def _delete(self, entity: str, record_id: str) -> None:
        await self._enter(entity, "delete")
        del self._table(entity)[self._find(entity, record_id)]

    async def _bulk_create(self, entity: str, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        await self._enter(entity, "bulk_create")
        created = copy.deepcopy(rows)
        self._table(entity).extend(created)
        return copy.deepcopy(created)


def create_remote_client(settings: RemoteSettings) -> RemoteStoreClient:
    """Create the remote client selected by configuration."""
    if settings.base_url:
        return HttpRemoteStoreClient.from_settings(settings)
    logger.warning("No remote URL configured, using the in-memory remote store")
    return InMemoryRemoteStoreClient(timeout=settings.timeout)
