"""
Quillpost Backend — Abstract Search Backend Interface
=======================================================

What:  Abstract base class defining the contract for the search index store.
How:   Concrete implementations inherit from SearchBackend and implement
       every coroutine below. The services never import a concrete backend;
       they receive one through dependency injection.
Who:   Used by the search repositories; implemented by ElasticsearchBackend
       in production and by an in-memory backend in the test suite.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class SearchResult:
    """One page of search hits plus the total number of matches."""

    total: int
    documents: List[Dict[str, Any]] = field(default_factory=list)


class SearchBackend(ABC):
    """
    Abstract interface for the full-text search index.

    Contract:
        - Documents are keyed by the string form of the primary-store id
        - index_document() is an upsert
        - delete_document() on a missing document is not an error
        - search() forwards the query string to the engine unmodified
        - A query the engine rejects as malformed raises ValidationError
        - All other engine-specific failures are wrapped in SearchIndexError
    """

    @abstractmethod
    async def ensure_index(self, index: str, mappings: Dict[str, Any]) -> None:
        """Create the index with the given mappings if it does not exist yet."""
        ...

    @abstractmethod
    async def index_document(self, index: str, doc_id: str, document: Dict[str, Any]) -> None:
        """
        Insert or replace the document stored under doc_id.

        Raises:
            SearchIndexError: The engine rejected the write or is unreachable.
        """
        ...

    @abstractmethod
    async def delete_document(self, index: str, doc_id: str) -> None:
        """Remove the document stored under doc_id, if any."""
        ...

    @abstractmethod
    async def search(
        self,
        index: str,
        query: str,
        offset: int,
        limit: int,
        sort: Optional[List[Dict[str, Any]]] = None,
    ) -> SearchResult:
        """
        Run a query-language search and return one page of source documents.

        Args:
            index:  Index name
            query:  Engine query string, passed through verbatim
            offset: Number of hits to skip
            limit:  Maximum number of hits to return
            sort:   Engine sort clauses, e.g. [{"name.keyword": {"order": "asc"}}]
        """
        ...

    @abstractmethod
    async def count(self, index: str) -> int:
        """Number of documents in the index (0 if the index does not exist)."""
        ...

    @abstractmethod
    async def ping(self) -> bool:
        """Lightweight connectivity check for the health endpoint."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release client connections (application shutdown)."""
        ...
