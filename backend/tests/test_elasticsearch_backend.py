"""
Quillpost Backend — Elasticsearch Backend Unit Tests
======================================================

What:  Verifies request shaping and error translation of ElasticsearchBackend.
How:   The AsyncElasticsearch client is replaced with an AsyncMock; no
       cluster is contacted.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from elastic_transport import ApiResponseMeta, ConnectionError as TransportConnectionError, HttpHeaders, NodeConfig
from elasticsearch import BadRequestError, NotFoundError as ElasticsearchNotFoundError

from quillpost.exceptions import SearchIndexError, ValidationError
from quillpost.search.elasticsearch_backend import ElasticsearchBackend


def _meta(status: int) -> ApiResponseMeta:
    return ApiResponseMeta(
        status=status,
        http_version="1.1",
        headers=HttpHeaders(),
        duration=0.0,
        node=NodeConfig("http", "localhost", 9200),
    )


def _not_found() -> ElasticsearchNotFoundError:
    return ElasticsearchNotFoundError("not_found", _meta(404), {"error": {"type": "index_not_found_exception"}})


@pytest.fixture
def client():
    mock = MagicMock()
    mock.index = AsyncMock()
    mock.delete = AsyncMock()
    mock.search = AsyncMock()
    mock.count = AsyncMock()
    mock.ping = AsyncMock(return_value=True)
    mock.close = AsyncMock()
    mock.indices.exists = AsyncMock(return_value=False)
    mock.indices.create = AsyncMock()
    return mock


@pytest.fixture
def backend(client):
    backend = ElasticsearchBackend(url="http://es:9200", refresh=True)
    backend._client = client
    return backend


class TestWrites:

    @pytest.mark.asyncio
    async def test_index_document_waits_for_refresh(self, backend, client):
        await backend.index_document("quillpost-blog", "1", {"id": 1})

        client.index.assert_awaited_once_with(
            index="quillpost-blog", id="1", document={"id": 1}, refresh="wait_for"
        )

    @pytest.mark.asyncio
    async def test_refresh_can_be_disabled(self, client):
        backend = ElasticsearchBackend(url="http://es:9200", refresh=False)
        backend._client = client

        await backend.index_document("quillpost-blog", "1", {"id": 1})

        assert client.index.await_args.kwargs["refresh"] is False

    @pytest.mark.asyncio
    async def test_transport_failure_becomes_search_index_error(self, backend, client):
        client.index.side_effect = TransportConnectionError("connection refused")

        with pytest.raises(SearchIndexError) as exc_info:
            await backend.index_document("quillpost-blog", "1", {"id": 1})

        assert exc_info.value.context["doc_id"] == "1"

    @pytest.mark.asyncio
    async def test_deleting_missing_document_is_silent(self, backend, client):
        client.delete.side_effect = _not_found()

        await backend.delete_document("quillpost-blog", "42")

    @pytest.mark.asyncio
    async def test_ensure_index_creates_with_mappings(self, backend, client):
        await backend.ensure_index("quillpost-blog", {"properties": {}})

        client.indices.create.assert_awaited_once_with(
            index="quillpost-blog", mappings={"properties": {}}
        )

    @pytest.mark.asyncio
    async def test_ensure_index_tolerates_concurrent_creation(self, backend, client):
        client.indices.create.side_effect = BadRequestError(
            "resource_already_exists_exception",
            _meta(400),
            {"error": {"type": "resource_already_exists_exception"}},
        )

        await backend.ensure_index("quillpost-blog", {"properties": {}})

    @pytest.mark.asyncio
    async def test_existing_index_is_left_alone(self, backend, client):
        client.indices.exists.return_value = True

        await backend.ensure_index("quillpost-blog", {"properties": {}})

        client.indices.create.assert_not_awaited()


class TestReads:

    @pytest.mark.asyncio
    async def test_search_passes_query_string_through(self, backend, client):
        client.search.return_value = {
            "hits": {
                "total": {"value": 12, "relation": "eq"},
                "hits": [{"_source": {"id": 3, "name": "x"}}],
            }
        }

        result = await backend.search(
            "quillpost-blog", "name:x AND handle:y", offset=20, limit=10,
            sort=[{"name.keyword": {"order": "asc"}}],
        )

        assert result.total == 12
        assert result.documents == [{"id": 3, "name": "x"}]
        kwargs = client.search.await_args.kwargs
        assert kwargs["query"] == {"query_string": {"query": "name:x AND handle:y"}}
        assert kwargs["from_"] == 20
        assert kwargs["size"] == 10
        assert kwargs["sort"] == [{"name.keyword": {"order": "asc"}}]

    @pytest.mark.asyncio
    async def test_search_on_missing_index_is_empty(self, backend, client):
        client.search.side_effect = _not_found()

        result = await backend.search("quillpost-blog", "*", offset=0, limit=20)

        assert result.total == 0
        assert result.documents == []

    @pytest.mark.asyncio
    async def test_malformed_query_is_a_validation_error(self, backend, client):
        client.search.side_effect = BadRequestError(
            "search_phase_execution_exception", _meta(400), {"error": {"type": "query_shard_exception"}}
        )

        with pytest.raises(ValidationError) as exc_info:
            await backend.search("quillpost-blog", "name:(", offset=0, limit=20)

        assert exc_info.value.field == "query"

    @pytest.mark.asyncio
    async def test_unreachable_cluster_on_search_is_search_index_error(self, backend, client):
        client.search.side_effect = TransportConnectionError("connection refused")

        with pytest.raises(SearchIndexError):
            await backend.search("quillpost-blog", "*", offset=0, limit=20)

    @pytest.mark.asyncio
    async def test_count(self, backend, client):
        client.count.return_value = {"count": 4}
        assert await backend.count("quillpost-blog") == 4

    @pytest.mark.asyncio
    async def test_ping_failure_reports_unavailable(self, backend, client):
        client.ping.side_effect = TransportConnectionError("down")
        assert await backend.ping() is False

    @pytest.mark.asyncio
    async def test_close_releases_client(self, backend, client):
        await backend.close()

        client.close.assert_awaited_once()
        assert backend._client is None
