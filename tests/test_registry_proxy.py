"""
Tests for the application registry proxy and its routes
"""
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from config import RegistryConfig
from jsonapi import errors as jsonapi
from services.registry_proxy import RegistryProxy

FIRST = "https://first.example/registry/"
SECOND = "https://second.example/registry/"
FALLBACK = "https://fallback.example/registry/"


def make_proxy(handler, fallback_url=FALLBACK):
    config = RegistryConfig(urls=[], fallback_url=fallback_url, timeout=1.0)
    return RegistryProxy(config, transport=httpx.MockTransport(handler))


class TestRegistryOrder:

    def test_fallback_is_last(self):
        proxy = make_proxy(lambda request: httpx.Response(200))
        assert proxy.registries_for([FIRST, SECOND]) == [FIRST, SECOND, FALLBACK]

    def test_fallback_not_duplicated(self):
        proxy = make_proxy(lambda request: httpx.Response(200))
        assert proxy.registries_for([FALLBACK, ""]) == [FALLBACK]


class TestOpen:

    @pytest.mark.asyncio
    async def test_first_success_wins(self):
        seen = []

        def handler(request):
            seen.append(request.url.host)
            if request.url.host == "first.example":
                return httpx.Response(404, json={"error": "not found"})
            return httpx.Response(200, json={"slug": "drive"})

        proxy = make_proxy(handler)
        upstream = await proxy.open("/drive", {}, [FIRST, SECOND])
        body = b"".join([chunk async for chunk in upstream.iter_bytes()])
        await upstream.aclose()
        await proxy.close()

        assert upstream.registry == SECOND
        assert upstream.media_type == "application/json"
        assert json.loads(body) == {"slug": "drive"}
        assert seen == ["first.example", "second.example"]

    @pytest.mark.asyncio
    async def test_path_and_query_are_forwarded(self):
        seen = []

        def handler(request):
            seen.append(request.url)
            return httpx.Response(200, json=[])

        proxy = make_proxy(handler)
        upstream = await proxy.open("/drive/stable/latest", {"filter": "x"}, [FIRST])
        await upstream.aclose()
        await proxy.close()

        assert seen[0].path == "/registry/drive/stable/latest"
        assert seen[0].params["filter"] == "x"

    @pytest.mark.asyncio
    async def test_all_miss_is_not_found(self):
        proxy = make_proxy(lambda request: httpx.Response(404))
        with pytest.raises(jsonapi.Error) as exc_info:
            await proxy.open("/unknown", {}, [FIRST])
        await proxy.close()
        assert exc_info.value.status == 404

    @pytest.mark.asyncio
    async def test_failure_is_bad_gateway(self):
        def handler(request):
            if request.url.host == "first.example":
                raise httpx.ConnectError("refused", request=request)
            return httpx.Response(404)

        proxy = make_proxy(handler)
        with pytest.raises(jsonapi.Error) as exc_info:
            await proxy.open("/drive", {}, [FIRST])
        await proxy.close()
        assert exc_info.value.status == 502

    @pytest.mark.asyncio
    async def test_upstream_error_status_is_bad_gateway(self):
        proxy = make_proxy(lambda request: httpx.Response(503))
        with pytest.raises(jsonapi.Error) as exc_info:
            await proxy.open("/drive", {}, [])
        await proxy.close()
        assert exc_info.value.status == 502


class TestRegistryRoutes:

    @pytest.fixture
    def registry_client(self, app_config):
        from main import create_app

        def handler(request):
            if request.url.path == "/registry/drive":
                return httpx.Response(200, json={"slug": "drive"})
            if request.url.path == "/registry/drive/1.0.0":
                return httpx.Response(200, json={"version": "1.0.0"})
            if request.url.path == "/registry/drive/stable/latest":
                return httpx.Response(200, json={"version": "1.2.0"})
            if request.url.path == "/registry/":
                return httpx.Response(200, json={"data": []})
            return httpx.Response(404)

        app_config.registry.urls = [FIRST]
        proxy = make_proxy(handler, fallback_url="")
        app = create_app(app_config, registry=proxy)
        with TestClient(app, base_url="http://example.com") as client:
            yield client

    def test_get_app(self, registry_client):
        response = registry_client.get("/registry/drive")
        assert response.status_code == 200
        assert response.json() == {"slug": "drive"}

    def test_get_version(self, registry_client):
        assert registry_client.get("/registry/drive/1.0.0").json() == {"version": "1.0.0"}

    def test_get_latest(self, registry_client):
        assert registry_client.get("/registry/drive/stable/latest").json() == {"version": "1.2.0"}

    def test_list(self, registry_client):
        assert registry_client.get("/registry/").json() == {"data": []}

    def test_unknown_app(self, registry_client):
        response = registry_client.get("/registry/nothing")
        assert response.status_code == 404
        assert response.json()["errors"][0]["status"] == "404"
