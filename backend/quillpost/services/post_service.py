"""
Quillpost Backend — Post Service
==================================

What:  Post vertical of EntityService (primary store: posts + rel_post__tag,
       index: post).
Who:   Injected into the /api/posts routes via get_post_service.

Tags are replaced whole on update and patch; the index document carries the
full tag list so posts can be searched by tag name (tags.name:java).
"""

from quillpost.repositories.post import PostRepository
from quillpost.schemas.post import PostDTO
from quillpost.search.repositories import PostSearchRepository
from quillpost.services.entity_service import EntityService
from quillpost.services.index_sync import IndexSynchronizer
from quillpost.services.mappers import post_mapper


class PostService(EntityService[PostDTO]):
    entity_label = "Post"
    repository_class = PostRepository

    def __init__(self, search_repository: PostSearchRepository, index_sync: IndexSynchronizer):
        super().__init__(post_mapper, search_repository, index_sync)
