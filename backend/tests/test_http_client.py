"""
Tests for HttpClient against an in-process aiohttp server.
"""

import asyncio

import pytest
from aiohttp import web
from aiohttp import test_utils

from debtdesk.core.http_client import HttpClient, HttpClientError, HttpMethod


async def rows(request: web.Request) -> web.Response:
    return web.json_response([{"id": "1", "select": request.query.get("select")}])


async def echo(request: web.Request) -> web.Response:
    payload = await request.json()
    return web.json_response(
        {"received": payload, "prefer": request.headers.get("Prefer"), "apikey": request.headers.get("apikey")},
        status=201,
    )


async def slow(request: web.Request) -> web.Response:
    await asyncio.sleep(1.0)
    return web.json_response([])


async def plain(request: web.Request) -> web.Response:
    return web.Response(text="service down", status=503)


@pytest.fixture
async def server():
    app = web.Application()
    app.router.add_get("/rows", rows)
    app.router.add_post("/echo", echo)
    app.router.add_get("/slow", slow)
    app.router.add_get("/plain", plain)
    test_server = test_utils.TestServer(app)
    await test_server.start_server()
    yield test_server
    await test_server.close()


@pytest.fixture
async def http():
    async with HttpClient(default_headers={"apikey": "key"}, default_timeout=5.0) as client:
        yield client


class TestHttpClient:
    """Tests for HttpClient."""

    @pytest.mark.asyncio
    async def test_get_parses_json(self, server, http):
        response = await http.request(HttpMethod.GET, str(server.make_url("/rows")), params={"select": "*"})

        assert response.ok
        assert response.json == [{"id": "1", "select": "*"}]
        assert response.elapsed >= 0

    @pytest.mark.asyncio
    async def test_post_merges_headers(self, server, http):
        response = await http.request(
            HttpMethod.POST,
            str(server.make_url("/echo")),
            json={"name": "Q1"},
            headers={"Prefer": "return=representation"},
        )

        assert response.status == 201
        assert response.json == {"received": {"name": "Q1"}, "prefer": "return=representation", "apikey": "key"}

    @pytest.mark.asyncio
    async def test_non_json_error_body(self, server, http):
        response = await http.request(HttpMethod.GET, str(server.make_url("/plain")))

        assert not response.ok
        assert response.json is None
        assert response.body == "service down"

    @pytest.mark.asyncio
    async def test_timeout_raises(self, server, http):
        with pytest.raises(HttpClientError) as exc_info:
            await http.request(HttpMethod.GET, str(server.make_url("/slow")), timeout=0.05)

        assert exc_info.value.timed_out

    @pytest.mark.asyncio
    async def test_connection_refused(self, http):
        with pytest.raises(HttpClientError) as exc_info:
            await http.request(HttpMethod.GET, "http://127.0.0.1:9/rows", timeout=1.0)

        assert not exc_info.value.timed_out
