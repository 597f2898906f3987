"""
Tests for the remote store clients.

The HTTP client is replaced with an AsyncMock so the PostgREST request
shape and the status-code mapping can be checked without a server.
"""

import pytest
from unittest.mock import AsyncMock

from debtdesk.core.config import RemoteSettings
from debtdesk.core.exceptions import NotFound, RemoteUnavailable, ValidationError
from debtdesk.core.http_client import HttpClient, HttpClientError, HttpMethod, HttpResponse
from debtdesk.storage import HttpRemoteStoreClient, InMemoryRemoteStoreClient, create_remote_client
from debtdesk.storage.remote_client import format_predicate


@pytest.fixture
def http():
    mock = AsyncMock(spec=HttpClient)
    mock.request.return_value = HttpResponse(status=200, json=[], body="[]")
    return mock


@pytest.fixture
def client(http):
    return HttpRemoteStoreClient("https://example.supabase.co/", api_key="key", http_client=http)


class TestFormatPredicate:
    """Tests for PostgREST predicate rendering."""

    def test_equality(self):
        assert format_predicate("paid") == "eq.paid"
        assert format_predicate(True) == "eq.true"

    def test_membership(self):
        assert format_predicate(["a", "b"]) == "in.(a,b)"
        assert format_predicate(["x,y"]) == 'in.("x,y")'

    def test_null(self):
        assert format_predicate(None) == "is.null"


class TestHttpRemoteStoreClient:
    """Tests for HttpRemoteStoreClient."""

    @pytest.mark.asyncio
    async def test_list_with_filters(self, client, http):
        http.request.return_value = HttpResponse(status=200, json=[{"id": "1"}], body="")

        rows = await client.list("cases", {"status": "new", "priority": ["high", "low"]})

        assert rows == [{"id": "1"}]
        args, kwargs = http.request.call_args
        assert args == (HttpMethod.GET, "https://example.supabase.co/rest/v1/cases")
        assert kwargs["params"] == {"select": "*", "status": "eq.new", "priority": "in.(high,low)"}

    @pytest.mark.asyncio
    async def test_create_requests_representation(self, client, http):
        http.request.return_value = HttpResponse(status=201, json=[{"id": "p1", "name": "Q1"}], body="")

        row = await client.create("portfolios", {"id": "p1", "name": "Q1"})

        assert row["name"] == "Q1"
        kwargs = http.request.call_args.kwargs
        assert kwargs["headers"] == {"Prefer": "return=representation"}
        assert kwargs["json"] == {"id": "p1", "name": "Q1"}

    @pytest.mark.asyncio
    async def test_get_empty_result_is_not_found(self, client):
        with pytest.raises(NotFound):
            await client.get("cases", "missing")

    @pytest.mark.asyncio
    async def test_update_uses_id_predicate(self, client, http):
        http.request.return_value = HttpResponse(status=200, json=[{"id": "c1", "status": "paid"}], body="")

        await client.update("cases", "c1", {"status": "paid"})

        args, kwargs = http.request.call_args
        assert args[0] == HttpMethod.PATCH
        assert kwargs["params"] == {"id": "eq.c1"}

    @pytest.mark.asyncio
    async def test_delete_missing_is_not_found(self, client):
        with pytest.raises(NotFound):
            await client.delete("cases", "missing")

    @pytest.mark.asyncio
    async def test_transport_error_is_unavailable(self, client, http):
        http.request.side_effect = HttpClientError("connection refused")

        with pytest.raises(RemoteUnavailable):
            await client.list("cases")

    @pytest.mark.asyncio
    async def test_server_error_is_unavailable(self, client, http):
        http.request.return_value = HttpResponse(status=503, body="down")

        with pytest.raises(RemoteUnavailable) as exc_info:
            await client.list("cases")

        assert exc_info.value.details["status_code"] == 503

    @pytest.mark.asyncio
    async def test_list_404_is_unavailable(self, client, http):
        http.request.return_value = HttpResponse(status=404, body="no such table")

        with pytest.raises(RemoteUnavailable):
            await client.list("nonexistent_table")

    @pytest.mark.asyncio
    async def test_rejected_payload_is_validation_error(self, client, http):
        http.request.return_value = HttpResponse(status=400, body='{"message": "bad column"}')

        with pytest.raises(ValidationError):
            await client.create("cases", {"bogus": 1})

    @pytest.mark.asyncio
    async def test_malformed_payload_is_unavailable(self, client, http):
        http.request.return_value = HttpResponse(status=200, json=["not", "rows"], body="")

        with pytest.raises(RemoteUnavailable):
            await client.list("cases")

    @pytest.mark.asyncio
    async def test_close_closes_transport(self, client, http):
        await client.close()
        http.close.assert_awaited_once()


class TestInMemoryRemoteStoreClient:
    """Tests for the in-memory stand-in."""

    @pytest.mark.asyncio
    async def test_crud(self, remote):
        await remote.create("cases", {"id": "1", "status": "new"})
        await remote.update("cases", "1", {"status": "paid"})

        assert await remote.get("cases", "1") == {"id": "1", "status": "paid"}
        await remote.delete("cases", "1")
        with pytest.raises(NotFound):
            await remote.get("cases", "1")

    @pytest.mark.asyncio
    async def test_bounded_wait(self):
        remote = InMemoryRemoteStoreClient(timeout=0.01, latency=0.2)

        with pytest.raises(RemoteUnavailable):
            await remote.list("cases")


def test_create_remote_client_selects_implementation():
    assert isinstance(create_remote_client(RemoteSettings()), InMemoryRemoteStoreClient)
    assert isinstance(
        create_remote_client(RemoteSettings(base_url="https://example.supabase.co")),
        HttpRemoteStoreClient,
    )
