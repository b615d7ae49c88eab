"""
Quillpost Backend — Entity Service Tests
==========================================

What:  Service-level behavior below the HTTP layer: commit ordering,
       count semantics and database error translation.
"""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from quillpost.exceptions import DatabaseError, NotFoundError, SearchIndexError
from quillpost.pagination import PageRequest
from quillpost.schemas.blog import BlogDTO, BlogPatch
from quillpost.search.repositories import BlogSearchRepository
from quillpost.services.blog_service import BlogService


@pytest.fixture
def service(search_backend, index_sync) -> BlogService:
    return BlogService(BlogSearchRepository(search_backend), index_sync)


class TestBlogService:

    @pytest.mark.asyncio
    async def test_primary_count_and_index_count_are_separate(self, service, db_session, search_backend):
        await service.save(db_session, BlogDTO(name="first blog", handle="one"))
        search_backend.fail_writes = 3
        with pytest.raises(SearchIndexError):
            await service.save(db_session, BlogDTO(name="second blog", handle="two"))

        assert await service.count_all(db_session) == 2
        assert await service.search_count() == 1

    @pytest.mark.asyncio
    async def test_index_write_happens_after_commit(self, service, db_session, index_sync):
        order = []
        original_commit = db_session.commit

        async def recording_commit():
            order.append("commit")
            await original_commit()

        async def recording_upsert(repository, document):
            order.append("index")

        db_session.commit = recording_commit
        index_sync.upsert = recording_upsert

        await service.save(db_session, BlogDTO(name="ordered", handle="ord"))

        assert order == ["commit", "index"]

    @pytest.mark.asyncio
    async def test_partial_update_of_missing_row(self, service, db_session):
        with pytest.raises(NotFoundError):
            await service.partial_update(db_session, 999, BlogPatch(id=999, name="whatever"))

    @pytest.mark.asyncio
    async def test_find_all_pages(self, service, db_session):
        for name in ("ccc", "aaa", "bbb"):
            await service.save(db_session, BlogDTO(name=name, handle=name))

        page = await service.find_all(db_session, PageRequest(page=1, size=2, sort=(("name", "asc"),)))

        assert [b.name for b in page] == ["ccc"]

    @pytest.mark.asyncio
    async def test_database_failure_is_wrapped(self, service, mock_db_session, search_backend):
        mock_db_session.execute = AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("gone")))

        with pytest.raises(DatabaseError) as exc_info:
            await service.count_all(mock_db_session)

        assert exc_info.value.context["error_type"] == "OperationalError"
        assert search_backend.write_calls == 0

    @pytest.mark.asyncio
    async def test_delete_mirrors_to_index(self, service, db_session, search_backend):
        saved = await service.save(db_session, BlogDTO(name="to delete", handle="del"))

        await service.delete(db_session, saved.id)

        assert await service.count_all(db_session) == 0
        assert await service.search_count() == 0
