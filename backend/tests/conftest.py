"""
Quillpost Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets its own SQLite database file (schema created from
       Base.metadata) and an in-memory search backend, wired into the app
       through FastAPI dependency overrides. No PostgreSQL or Elasticsearch
       is needed.

Fixture Hierarchy (all function-scoped):
    ├── db_engine / db_session_factory / db_session: per-test SQLite store
    ├── search_backend: InMemorySearchBackend
    ├── index_sync: inline IndexSynchronizer with zero backoff
    ├── user / tags: seeded relation targets
    ├── mock_db_session: AsyncMock session for pure unit tests
    └── test_client: HTTPX AsyncClient over ASGITransport
"""

import os
import tempfile

# Must be set before quillpost.config is imported anywhere
os.environ["DATABASE_URL"] = (
    f"sqlite+aiosqlite:///{tempfile.mkdtemp(prefix='quillpost_test_')}/health.db"
)
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["SEARCH_SYNC_MODE"] = "inline"
os.environ["RETRY_MIN_WAIT"] = "0"
os.environ["RETRY_MAX_WAIT"] = "0"

import re
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from quillpost.database import Base, enable_sqlite_foreign_keys, get_db_session
from quillpost.dependencies import get_index_synchronizer, get_search_backend
from quillpost.exceptions import SearchIndexError, ValidationError
from quillpost.models.post import Post  # noqa: F401  (registers every table)
from quillpost.models.tag import Tag
from quillpost.models.user import User
from quillpost.search.backend import SearchBackend, SearchResult
from quillpost.services.index_sync import IndexSynchronizer


# ══════════════════════════════════════════════════════════════════════════
# In-Memory Search Backend
# ══════════════════════════════════════════════════════════════════════════

_TERM = re.compile(r'^(?:(?P<field>[\w.]+):)?(?P<value>"[^"]*"|\S+)$')


def _lookup(document: Dict[str, Any], path: str) -> List[Any]:
    """Values at a dotted path; lists (tags) fan out."""
    values: List[Any] = [document]
    for part in path.split("."):
        next_values: List[Any] = []
        for value in values:
            if isinstance(value, list):
                value = [v.get(part) for v in value if isinstance(v, dict)]
                next_values.extend(value)
            elif isinstance(value, dict):
                next_values.append(value.get(part))
        values = next_values
    return [v for v in values if v is not None]


def _flatten(document: Any) -> List[Any]:
    if isinstance(document, dict):
        return [v for value in document.values() for v in _flatten(value)]
    if isinstance(document, list):
        return [v for value in document for v in _flatten(value)]
    return [document]


def _matches_value(candidate: Any, expected: str) -> bool:
    if isinstance(candidate, (int, float)) and not isinstance(candidate, bool):
        return str(candidate) == expected
    text = str(candidate).lower()
    needle = expected.lower()
    return text == needle or needle in text.split()


class InMemorySearchBackend(SearchBackend):
    """
    Dict-backed stand-in for Elasticsearch.

    Understands the subset of query_string syntax the tests use:
    `*`, `field:value`, `field:"two words"`, dotted fields (user.login:x),
    bare terms, and terms joined with AND.
    """

    def __init__(self):
        self.indexes: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.mappings: Dict[str, Dict[str, Any]] = {}
        self.fail_writes = 0
        self.fail_searches = False
        self.write_calls = 0
        self.available = True

    def documents(self, index_suffix: str) -> Dict[str, Dict[str, Any]]:
        """All documents of the index whose name ends with index_suffix."""
        for name, docs in self.indexes.items():
            if name.endswith(index_suffix):
                return docs
        return {}

    def _maybe_fail_write(self, index: str) -> None:
        self.write_calls += 1
        if self.fail_writes:
            self.fail_writes -= 1
            raise SearchIndexError(message="index unavailable", context={"index": index})

    async def ensure_index(self, index: str, mappings: Dict[str, Any]) -> None:
        self.indexes.setdefault(index, {})
        self.mappings[index] = mappings

    async def index_document(self, index: str, doc_id: str, document: Dict[str, Any]) -> None:
        self._maybe_fail_write(index)
        self.indexes.setdefault(index, {})[doc_id] = dict(document)

    async def delete_document(self, index: str, doc_id: str) -> None:
        self._maybe_fail_write(index)
        self.indexes.get(index, {}).pop(doc_id, None)

    async def search(
        self,
        index: str,
        query: str,
        offset: int,
        limit: int,
        sort: Optional[List[Dict[str, Any]]] = None,
    ) -> SearchResult:
        if self.fail_searches:
            raise SearchIndexError(message="search unavailable", context={"index": index})
        if query.count("(") != query.count(")"):
            raise ValidationError(message="unbalanced parentheses", field="query")
        docs = list(self.indexes.get(index, {}).values())
        hits = [doc for doc in docs if self._matches(doc, query)]
        for clause in reversed(sort or []):
            (field, options), = clause.items()
            path = field[: -len(".keyword")] if field.endswith(".keyword") else field
            hits.sort(
                key=lambda d: (_lookup(d, path) or [""])[0],
                reverse=options.get("order") == "desc",
            )
        return SearchResult(total=len(hits), documents=hits[offset: offset + limit])

    async def count(self, index: str) -> int:
        return len(self.indexes.get(index, {}))

    async def ping(self) -> bool:
        return self.available

    async def close(self) -> None:
        pass

    @staticmethod
    def _matches(document: Dict[str, Any], query: str) -> bool:
        for clause in query.split(" AND "):
            clause = clause.strip()
            if clause in ("*", "*:*"):
                continue
            match = _TERM.match(clause)
            if not match:
                return False
            value = match.group("value").strip('"')
            field = match.group("field")
            candidates = _lookup(document, field) if field else _flatten(document)
            if value == "*":
                if not candidates:
                    return False
                continue
            if not any(_matches_value(c, value) for c in candidates):
                return False
        return True


# ══════════════════════════════════════════════════════════════════════════
# Primary Store Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """Fresh SQLite database file with the full schema."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'quillpost.db'}")
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def db_session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(db_session_factory):
    async with db_session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def user(db_session_factory) -> User:
    async with db_session_factory() as session:
        entity = User(login="jdoe")
        session.add(entity)
        await session.commit()
        return entity


@pytest_asyncio.fixture
async def tags(db_session_factory) -> List[Tag]:
    async with db_session_factory() as session:
        entities = [Tag(name="python"), Tag(name="search")]
        session.add_all(entities)
        await session.commit()
        return entities


@pytest.fixture
def mock_db_session():
    """
    AsyncMock session for unit tests that never reach SQL.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = blog
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Search Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def search_backend() -> InMemorySearchBackend:
    return InMemorySearchBackend()


@pytest.fixture
def index_sync() -> IndexSynchronizer:
    """Inline synchronizer: three attempts, no backoff."""
    return IndexSynchronizer(mode="inline", max_attempts=3, min_wait=0, max_wait=0)


# ══════════════════════════════════════════════════════════════════════════
# API Client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(db_session_factory, search_backend, index_sync):
    """
    HTTPX AsyncClient against the app, with both stores replaced.

    Usage:
        async def test_get_blog(test_client):
            response = await test_client.get("/api/blogs/1")
    """
    from quillpost.main import app

    async def _test_db_session():
        async with db_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = _test_db_session
    app.dependency_overrides[get_search_backend] = lambda: search_backend
    app.dependency_overrides[get_index_synchronizer] = lambda: index_sync

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
