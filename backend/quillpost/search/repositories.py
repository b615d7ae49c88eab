"""
Quillpost Backend — Search Repositories
=========================================

What:  One repository per searchable entity, on top of a SearchBackend.
How:   Each subclass declares its index mappings and which sortable fields
       are analyzed text (sorted through their `.keyword` sub-field).
Who:   Owned by the entity services; passed to the IndexSynchronizer as
       the target of queued index operations.
"""

from typing import Any, Dict, FrozenSet, List

from quillpost.config import settings
from quillpost.pagination import PageRequest
from quillpost.search.backend import SearchBackend, SearchResult

# Analyzed text plus an exact sub-field for sorting
_TEXT_WITH_KEYWORD = {
    "type": "text",
    "fields": {"keyword": {"type": "keyword", "ignore_above": 256}},
}


class SearchRepository:
    """
    Index access for one entity type.

    Subclasses set entity_name, mappings, sortable_fields and text_fields.
    """

    entity_name: str = ""
    mappings: Dict[str, Any] = {}
    sortable_fields: FrozenSet[str] = frozenset({"id"})
    text_fields: FrozenSet[str] = frozenset()

    def __init__(self, backend: SearchBackend):
        self.backend = backend
        self.index = settings.index_name(self.entity_name)

    async def ensure_index(self) -> None:
        await self.backend.ensure_index(self.index, self.mappings)

    async def save(self, document: Dict[str, Any]) -> None:
        """Upsert the document under its `id`."""
        await self.backend.index_document(self.index, str(document["id"]), document)

    async def delete_by_id(self, entity_id: int) -> None:
        await self.backend.delete_document(self.index, str(entity_id))

    async def search(self, query: str, page: PageRequest) -> SearchResult:
        return await self.backend.search(
            self.index,
            query,
            offset=page.offset,
            limit=page.size,
            sort=self.sort_clauses(page),
        )

    async def count(self) -> int:
        return await self.backend.count(self.index)

    def sort_clauses(self, page: PageRequest) -> List[Dict[str, Any]]:
        """Translate (field, direction) pairs to engine sort clauses."""
        clauses = []
        for field, direction in page.sort:
            target = f"{field}.keyword" if field in self.text_fields else field
            clauses.append({target: {"order": direction}})
        return clauses


class BlogSearchRepository(SearchRepository):
    entity_name = "blog"
    sortable_fields = frozenset({"id", "name", "handle"})
    text_fields = frozenset({"name", "handle"})
    mappings = {
        "properties": {
            "id": {"type": "long"},
            "name": _TEXT_WITH_KEYWORD,
            "handle": _TEXT_WITH_KEYWORD,
            "user": {
                "properties": {
                    "id": {"type": "long"},
                    "login": {"type": "keyword"},
                }
            },
        }
    }


class PostSearchRepository(SearchRepository):
    entity_name = "post"
    sortable_fields = frozenset({"id", "title", "date"})
    text_fields = frozenset({"title"})
    mappings = {
        "properties": {
            "id": {"type": "long"},
            "title": _TEXT_WITH_KEYWORD,
            "content": {"type": "text"},
            "date": {"type": "date"},
            "blog": {
                "properties": {
                    "id": {"type": "long"},
                    "name": _TEXT_WITH_KEYWORD,
                }
            },
            "tags": {
                "properties": {
                    "id": {"type": "long"},
                    "name": _TEXT_WITH_KEYWORD,
                }
            },
        }
    }
