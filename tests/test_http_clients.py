"""
Tests for the HTTP, service index and management API clients
"""
import asyncio
import json
import pytest
import aiohttp
from aiohttp import web
from aiohttp.test_utils import TestServer, unused_port
from search_convergence.clients.http import JsonHttpClient
from search_convergence.clients.index import ServiceIndexClient
from search_convergence.clients.management import ManagementApiClient, parse_cloud_service_properties
from search_convergence.core.config import ManagementApiConfig
from search_convergence.core.models import AutocompleteResponse, ServiceIndex, V2SearchResponse
from search_convergence.search.retry import is_transient_error


def run_with_server(app: web.Application, scenario):
    """Start ``app`` on a local port and run ``scenario(server)`` against it"""
    async def main():
        server = TestServer(app)
        await server.start_server()
        try:
            return await scenario(server)
        finally:
            await server.close()

    return asyncio.run(main())


def search_app() -> web.Application:
    async def search(request):
        return web.json_response({
            "data": [{
                "packageRegistration": {"id": "Foo", "downloadCount": 3, "owners": ["me"]},
                "version": "1.0.0",
                "listed": True,
                "published": "2024-01-01T00:00:00+00:00",
            }],
            "index": "v2-search",
            "totalHits": 1,
        })

    async def autocomplete(request):
        return web.json_response({
            "data": ["Foo", "Foo.Bar"],
            "index": "v3",
            "totalHits": 2,
            "lastReopen": "2024-01-01T00:00:00Z",
        })

    async def broken(request):
        return web.Response(status=500, text="boom")

    app = web.Application()
    app.router.add_get('/search/query', search)
    app.router.add_get('/autocomplete', autocomplete)
    app.router.add_get('/broken', broken)
    return app


class TestJsonHttpClient:
    """Test JSON fetching"""

    def setup_method(self):
        self.client = JsonHttpClient(timeout=5)

    def test_get_json(self):
        async def scenario(server):
            return await self.client.get_json(str(server.make_url('/search/query')), V2SearchResponse)

        response = run_with_server(search_app(), scenario)

        assert response.total_hits == 1
        assert response.data[0].matches("Foo", "1.0.0")
        assert response.data[0].listed is True
        assert response.data[0].package_registration.owners == ["me"]

    def test_camel_case_fields(self):
        async def scenario(server):
            return await self.client.get_json(str(server.make_url('/autocomplete')), AutocompleteResponse)

        response = run_with_server(search_app(), scenario)

        assert response.data == ["Foo", "Foo.Bar"]
        assert response.last_reopen is not None

    def test_not_found_allowed(self):
        async def scenario(server):
            return await self.client.get_json(
                str(server.make_url('/missing')), V2SearchResponse, allow_not_found=True
            )

        assert run_with_server(search_app(), scenario) is None

    def test_not_found_raises(self):
        async def scenario(server):
            return await self.client.get_json(str(server.make_url('/missing')), V2SearchResponse)

        with pytest.raises(aiohttp.ClientResponseError) as exc_info:
            run_with_server(search_app(), scenario)

        assert exc_info.value.status == 404
        assert not is_transient_error(exc_info.value)

    def test_server_error_raises(self):
        async def scenario(server):
            return await self.client.get_json(str(server.make_url('/broken')), V2SearchResponse)

        with pytest.raises(aiohttp.ClientResponseError) as exc_info:
            run_with_server(search_app(), scenario)

        assert exc_info.value.status == 500

    def test_connection_refused_is_transient(self):
        url = f"http://127.0.0.1:{unused_port()}/search/query"

        with pytest.raises(aiohttp.ClientConnectionError) as exc_info:
            asyncio.run(self.client.get_json(url, V2SearchResponse))

        assert is_transient_error(exc_info.value)


class TestServiceIndexClient:
    """Test search service discovery from the service index"""

    def test_search_base_urls(self):
        async def index(request):
            return web.json_response({
                "version": "3.0.0",
                "resources": [
                    {"@id": "https://search-a.example.org/query", "@type": "SearchQueryService"},
                    {"@id": "https://search-b.example.org/query", "@type": "SearchQueryService/3.0.0-rc"},
                    {"@id": "https://search-a.example.org/query", "@type": "SearchQueryService/3.0.0-beta"},
                    {"@id": "https://search-a.example.org/autocomplete", "@type": "SearchAutocompleteService"},
                    {"@id": "https://api.example.org/registration/", "@type": "RegistrationsBaseUrl"},
                ]
            })

        app = web.Application()
        app.router.add_get('/v3/index.json', index)

        async def scenario(server):
            client = ServiceIndexClient(JsonHttpClient(), str(server.make_url('/v3/index.json')))
            return await client.get_search_base_urls()

        assert run_with_server(app, scenario) == [
            "https://search-a.example.org/",
            "https://search-b.example.org/",
        ]

    def test_service_index_model(self):
        index = ServiceIndex.model_validate({"resources": [{"@id": "https://x/query", "@type": "SearchQueryService"}]})

        assert index.resources[0].id == "https://x/query"
        assert index.resources[0].type == "SearchQueryService"


class TestManagementApiClient:
    """Test cloud service lookups"""

    def test_get_cloud_service_properties(self):
        seen = {}

        async def slot(request):
            seen['path'] = request.path
            seen['api_version'] = request.query.get('api-version')
            seen['authorization'] = request.headers.get('Authorization')
            return web.Response(
                text=json.dumps({
                    "properties": {
                        "uri": "http://search-0.cloudapp.net/",
                        "roleInstances": [{"instanceName": "a"}, {"instanceName": "b"}]
                    }
                }),
                content_type='application/json'
            )

        app = web.Application()
        app.router.add_get(
            '/subscriptions/{subscription}/resourceGroups/{group}/providers/'
            'Microsoft.ClassicCompute/domainNames/{name}/slots/{slot}',
            slot
        )

        async def scenario(server):
            config = ManagementApiConfig(base_url=str(server.make_url('/')), bearer_token="secret")
            client = ManagementApiClient(config)
            return await client.get_cloud_service_properties("sub", "rg", "search-0", "production")

        raw = run_with_server(app, scenario)
        properties = parse_cloud_service_properties(raw)

        assert seen['path'] == (
            "/subscriptions/sub/resourceGroups/rg/providers/"
            "Microsoft.ClassicCompute/domainNames/search-0/slots/production"
        )
        assert seen['api_version'] == "2016-04-01"
        assert seen['authorization'] == "Bearer secret"
        assert properties.instance_count == 2
