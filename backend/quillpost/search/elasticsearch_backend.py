"""
Quillpost Backend — Elasticsearch Search Backend
==================================================

What:  Concrete SearchBackend using the official async Elasticsearch client.
How:   Lazily creates one AsyncElasticsearch client, maps every client
       failure to SearchIndexError, and treats missing indexes/documents as
       empty rather than as errors.
Who:   Singleton `search_backend`, injected through
       quillpost.dependencies.get_search_backend.

Query passthrough:
    search() wraps the caller's string in a `query_string` query. Lucene
    syntax such as `name:foo AND handle:bar` or `id:42` reaches the engine
    exactly as the client sent it. Syntax errors come back from the engine
    as a 400 ApiError and surface as SearchIndexError.
"""

import logging
from typing import Any, Dict, List, Optional

from elasticsearch import (
    ApiError,
    AsyncElasticsearch,
    BadRequestError,
    NotFoundError as ElasticsearchNotFoundError,
    TransportError,
)

from quillpost.config import settings
from quillpost.exceptions import SearchIndexError, ValidationError
from quillpost.search.backend import SearchBackend, SearchResult

logger = logging.getLogger(__name__)


class ElasticsearchBackend(SearchBackend):
    """
    Elasticsearch implementation of the search index.

    The client is created on first use, not at import, so importing the
    application never opens a connection.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        request_timeout: Optional[float] = None,
        refresh: Optional[bool] = None,
    ):
        self.url = url or settings.elasticsearch_url
        self.request_timeout = request_timeout or settings.elasticsearch_request_timeout
        self.refresh = settings.search_refresh if refresh is None else refresh
        self._client: Optional[AsyncElasticsearch] = None

    @property
    def client(self) -> AsyncElasticsearch:
        if self._client is None:
            self._client = AsyncElasticsearch(self.url, request_timeout=self.request_timeout)
            logger.info("Elasticsearch client created for %s", self.url)
        return self._client

    @property
    def _refresh_param(self) -> Any:
        # wait_for: the write returns once the document is searchable
        return "wait_for" if self.refresh else False

    async def ensure_index(self, index: str, mappings: Dict[str, Any]) -> None:
        try:
            if await self.client.indices.exists(index=index):
                return
            await self.client.indices.create(index=index, mappings=mappings)
            logger.info("Created search index %s", index)
        except BadRequestError as e:
            # Another worker created it between exists() and create()
            if e.error == "resource_already_exists_exception":
                return
            raise SearchIndexError(
                message=f"Could not create search index '{index}'",
                context={"index": index, "error_type": type(e).__name__},
            ) from e
        except (ApiError, TransportError) as e:
            raise SearchIndexError(
                message=f"Could not create search index '{index}'",
                context={"index": index, "error_type": type(e).__name__},
            ) from e

    async def index_document(self, index: str, doc_id: str, document: Dict[str, Any]) -> None:
        try:
            await self.client.index(
                index=index,
                id=doc_id,
                document=document,
                refresh=self._refresh_param,
            )
        except (ApiError, TransportError) as e:
            logger.warning("Index write failed for %s/%s: %s", index, doc_id, str(e))
            raise SearchIndexError(
                message="Could not write the record to the search index",
                context={"index": index, "doc_id": doc_id, "error_type": type(e).__name__},
            ) from e

    async def delete_document(self, index: str, doc_id: str) -> None:
        try:
            await self.client.delete(index=index, id=doc_id, refresh=self._refresh_param)
        except ElasticsearchNotFoundError:
            logger.debug("Document %s/%s already absent from search index", index, doc_id)
        except (ApiError, TransportError) as e:
            logger.warning("Index delete failed for %s/%s: %s", index, doc_id, str(e))
            raise SearchIndexError(
                message="Could not remove the record from the search index",
                context={"index": index, "doc_id": doc_id, "error_type": type(e).__name__},
            ) from e

    async def search(
        self,
        index: str,
        query: str,
        offset: int,
        limit: int,
        sort: Optional[List[Dict[str, Any]]] = None,
    ) -> SearchResult:
        try:
            response = await self.client.search(
                index=index,
                query={"query_string": {"query": query}},
                from_=offset,
                size=limit,
                sort=sort or None,
                track_total_hits=True,
            )
        except ElasticsearchNotFoundError:
            # Index not created yet: nothing has been mirrored
            return SearchResult(total=0, documents=[])
        except BadRequestError as e:
            # The engine rejected the client's query string or paging window
            logger.info("Search on %s rejected query %r: %s", index, query, str(e))
            raise ValidationError(
                message=f"The search query could not be parsed: {query}",
                field="query",
            ) from e
        except (ApiError, TransportError) as e:
            logger.warning("Search on %s failed for query %r: %s", index, query, str(e))
            raise SearchIndexError(
                message="The search query could not be executed",
                context={"index": index, "query": query, "error_type": type(e).__name__},
            ) from e

        hits = response["hits"]
        return SearchResult(
            total=hits["total"]["value"],
            documents=[hit["_source"] for hit in hits["hits"]],
        )

    async def count(self, index: str) -> int:
        try:
            response = await self.client.count(index=index)
        except ElasticsearchNotFoundError:
            return 0
        except (ApiError, TransportError) as e:
            raise SearchIndexError(
                message="Could not count search index documents",
                context={"index": index, "error_type": type(e).__name__},
            ) from e
        return int(response["count"])

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())
        except Exception as e:
            logger.warning("Elasticsearch ping failed: %s", str(e))
            return False

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None


# ── Singleton Instance ────────────────────────────────────────────────────
search_backend = ElasticsearchBackend()
