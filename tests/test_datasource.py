"""Tests for the HTTP paged data source and the definition loader."""

import json

import httpx
import pytest

from gridweaver.errors import TransportError, ValidationError
from gridweaver.hydration import HttpPagedDataSource, fetch_table_definition, load_table_definition
from gridweaver.translation import NativePageRequest, translate

BASE_URL = "http://api.test"


def make_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=BASE_URL)


class TestHttpPagedDataSource:
    @pytest.mark.asyncio
    async def test_fetch_page(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json={"data": [{"id": 1}, {"id": 2}], "count": 42})

        async with make_client(handler) as client:
            source = HttpPagedDataSource("/v1/users", {"tenant": "acme"}, client=client)
            result = await source.fetch(
                NativePageRequest.model_validate(
                    {
                        "startRow": 10,
                        "endRow": 30,
                        "sortModel": [{"colId": "name", "sort": "asc"}],
                        "filterModel": {"name": {"type": "contains", "filter": "ann"}},
                    }
                )
            )

        assert result.success is True
        assert result.rows == [{"id": 1}, {"id": 2}]
        assert result.row_count == 42
        assert seen["path"] == "/v1/users"
        assert seen["params"]["offset"] == "10"
        assert seen["params"]["limit"] == "20"
        assert json.loads(seen["params"]["orderBy"]) == [["name", "asc"]]
        assert json.loads(seen["params"]["filter"]) == {
            "name": {"$iLike": "%ann%"},
            "tenant": "acme",
        }

    @pytest.mark.asyncio
    async def test_http_error_is_a_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="boom")

        async with make_client(handler) as client:
            source = HttpPagedDataSource("/v1/users", client=client)
            result = await source.get_rows(translate({"startRow": 0, "endRow": 10}))

        assert result.success is False
        assert result.rows == []
        assert "500" in result.error

    @pytest.mark.asyncio
    async def test_network_error_is_a_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with make_client(handler) as client:
            source = HttpPagedDataSource("/v1/users", client=client)
            result = await source.get_rows(translate({"startRow": 0, "endRow": 10}))

        assert result.success is False
        assert "connection refused" in result.error

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, text="not json"),
            httpx.Response(200, json={"rows": []}),
            httpx.Response(200, json={"data": [], "count": "many"}),
        ],
    )
    async def test_malformed_body_is_a_failure(self, response):
        async with make_client(lambda request: response) as client:
            source = HttpPagedDataSource("/v1/users", client=client)
            result = await source.get_rows(translate({"startRow": 0, "endRow": 10}))

        assert result.success is False
        assert result.error

    @pytest.mark.asyncio
    async def test_base_url_applies_to_injected_client(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = f"{request.url.scheme}://{request.url.host}{request.url.path}"
            return httpx.Response(200, json={"data": [], "count": 0})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            source = HttpPagedDataSource("/v1/users", base_url="http://rows.test/api/", client=client)
            result = await source.get_rows(translate({"startRow": 0, "endRow": 10}))

        assert result.success is True
        assert seen["url"] == "http://rows.test/api/v1/users"

    def test_absolute_url_ignores_base_url(self):
        source = HttpPagedDataSource("https://other.test/rows", base_url="http://rows.test")
        assert source.request_url() == "https://other.test/rows"

    @pytest.mark.asyncio
    async def test_empty_page_is_a_success(self):
        async with make_client(lambda request: httpx.Response(200, json={"data": [], "count": 0})) as client:
            source = HttpPagedDataSource("/v1/users", client=client)
            result = await source.get_rows(translate({"startRow": 0, "endRow": 10}))

        assert result.success is True
        assert result.rows == []
        assert result.row_count == 0


class TestLoader:
    @pytest.mark.asyncio
    async def test_load_and_hydrate(self, sample_document, renderer_registry):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/v1/table-definitions/td-users":
                return httpx.Response(200, json=sample_document)
            return httpx.Response(200, json={"data": [{"id": 1, "name": "ann"}], "count": 1})

        async with make_client(handler) as client:
            live = await load_table_definition(
                "/v1/table-definitions/td-users", renderer_registry, client=client
            )
            page = await live.data_source.fetch(NativePageRequest(start_row=0, end_row=10))

        assert live.column("name").format_value("ann") == "Ann"
        assert page.success is True
        assert page.rows == [{"id": 1, "name": "ann"}]

    @pytest.mark.asyncio
    async def test_not_found(self):
        async with make_client(lambda request: httpx.Response(404, json={"detail": "nope"})) as client:
            with pytest.raises(TransportError) as exc_info:
                await fetch_table_definition("/v1/table-definitions/missing", client=client)

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_invalid_document(self):
        async with make_client(lambda request: httpx.Response(200, json={"columnDefs": []})) as client:
            with pytest.raises(ValidationError) as exc_info:
                await fetch_table_definition("/v1/table-definitions/bad", client=client)

        assert "http" in exc_info.value.paths
