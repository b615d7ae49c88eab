"""
Quillpost Backend — FastAPI Dependency Providers
==================================================

What:  Providers for the search backend, the index synchronizer and the
       entity services.
How:   Production uses the module singletons; tests replace
       get_search_backend / get_index_synchronizer through
       app.dependency_overrides and everything built on them follows.
"""

from fastapi import Depends

from quillpost.search.backend import SearchBackend
from quillpost.search.elasticsearch_backend import search_backend
from quillpost.search.repositories import BlogSearchRepository, PostSearchRepository
from quillpost.services.blog_service import BlogService
from quillpost.services.index_sync import IndexSynchronizer, index_synchronizer
from quillpost.services.post_service import PostService


def get_search_backend() -> SearchBackend:
    return search_backend


def get_index_synchronizer() -> IndexSynchronizer:
    return index_synchronizer


def get_blog_service(
    backend: SearchBackend = Depends(get_search_backend),
    index_sync: IndexSynchronizer = Depends(get_index_synchronizer),
) -> BlogService:
    return BlogService(BlogSearchRepository(backend), index_sync)


def get_post_service(
    backend: SearchBackend = Depends(get_search_backend),
    index_sync: IndexSynchronizer = Depends(get_index_synchronizer),
) -> PostService:
    return PostService(PostSearchRepository(backend), index_sync)
