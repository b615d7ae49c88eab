"""
Quillpost Backend — Blog Service
==================================

What:  Blog vertical of EntityService (primary store: blogs, index: blog).
Who:   Injected into the /api/blogs routes via get_blog_service.
"""

from quillpost.repositories.blog import BlogRepository
from quillpost.schemas.blog import BlogDTO
from quillpost.search.repositories import BlogSearchRepository
from quillpost.services.entity_service import EntityService
from quillpost.services.index_sync import IndexSynchronizer
from quillpost.services.mappers import blog_mapper


class BlogService(EntityService[BlogDTO]):
    entity_label = "Blog"
    repository_class = BlogRepository

    def __init__(self, search_repository: BlogSearchRepository, index_sync: IndexSynchronizer):
        super().__init__(blog_mapper, search_repository, index_sync)
