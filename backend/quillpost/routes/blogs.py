"""
Quillpost Backend — Blog Route Handlers
=========================================

What:  REST resource for blogs under /api/blogs.
How:   Applies the id rules and builds headers; everything else is
       delegated to BlogService.

Endpoints:
    POST   /api/blogs              create (201 + Location)
    PUT    /api/blogs/{id}         full replace
    PATCH  /api/blogs/{id}         merge-patch (application/merge-patch+json)
    GET    /api/blogs              page of blogs (?eagerload=true loads user)
    GET    /api/blogs/_search      page of index hits (?query=)
    GET    /api/blogs/{id}         one blog, user loaded
    DELETE /api/blogs/{id}         204, also when the id does not exist
"""

import logging
from typing import List

from fastapi import APIRouter, Body, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from quillpost.config import settings
from quillpost.database import get_db_session
from quillpost.dependencies import get_blog_service
from quillpost.pagination import PageRequest, pagination_headers
from quillpost.repositories.blog import BlogRepository
from quillpost.routes.common import (
    alert_headers,
    ensure_update_target,
    page_params,
    reject_new_with_id,
)
from quillpost.schemas.blog import BlogDTO, BlogPatch
from quillpost.schemas.common import ErrorResponse
from quillpost.search.repositories import BlogSearchRepository
from quillpost.services.blog_service import BlogService

logger = logging.getLogger(__name__)

ENTITY_NAME = "blog"

router = APIRouter(prefix="/api", tags=["Blogs"])

blog_page = page_params(BlogRepository.sortable_fields)
blog_search_page = page_params(
    BlogSearchRepository.sortable_fields, max_window=settings.search_max_result_window
)

_errors = {
    400: {"description": "Invalid body or id", "model": ErrorResponse},
    503: {"description": "Search index unavailable", "model": ErrorResponse},
}


@router.post(
    "/blogs",
    response_model=BlogDTO,
    status_code=status.HTTP_201_CREATED,
    responses=_errors,
    summary="Create a blog",
)
async def create_blog(
    response: Response,
    blog: BlogDTO,
    db: AsyncSession = Depends(get_db_session),
    service: BlogService = Depends(get_blog_service),
) -> BlogDTO:
    """The body must not carry an id (400 idexists)."""
    reject_new_with_id(ENTITY_NAME, blog.id)
    result = await service.save(db, blog)
    response.headers["Location"] = f"/api/blogs/{result.id}"
    response.headers.update(alert_headers(ENTITY_NAME, "created", result.id))
    return result


@router.put(
    "/blogs/{blog_id}",
    response_model=BlogDTO,
    responses=_errors,
    summary="Replace a blog",
)
async def update_blog(
    blog_id: int,
    response: Response,
    blog: BlogDTO,
    db: AsyncSession = Depends(get_db_session),
    service: BlogService = Depends(get_blog_service),
) -> BlogDTO:
    await ensure_update_target(service, db, ENTITY_NAME, blog_id, blog.id)
    result = await service.update(db, blog)
    response.headers.update(alert_headers(ENTITY_NAME, "updated", result.id))
    return result


@router.patch(
    "/blogs/{blog_id}",
    response_model=BlogDTO,
    responses={**_errors, 404: {"description": "Blog not found", "model": ErrorResponse}},
    summary="Partially update a blog (JSON merge-patch)",
)
async def partial_update_blog(
    blog_id: int,
    response: Response,
    patch: BlogPatch = Body(..., media_type="application/merge-patch+json"),
    db: AsyncSession = Depends(get_db_session),
    service: BlogService = Depends(get_blog_service),
) -> BlogDTO:
    """Fields absent from the body are left unchanged."""
    await ensure_update_target(service, db, ENTITY_NAME, blog_id, patch.id)
    result = await service.partial_update(db, blog_id, patch)
    response.headers.update(alert_headers(ENTITY_NAME, "updated", result.id))
    return result


@router.get(
    "/blogs",
    response_model=List[BlogDTO],
    summary="List blogs",
)
async def get_all_blogs(
    request: Request,
    response: Response,
    eagerload: bool = Query(default=False, description="Load the owning user"),
    page: PageRequest = Depends(blog_page),
    db: AsyncSession = Depends(get_db_session),
    service: BlogService = Depends(get_blog_service),
) -> List[BlogDTO]:
    if eagerload:
        blogs = await service.find_all_with_eager_relationships(db, page)
    else:
        blogs = await service.find_all(db, page)
    total = await service.count_all(db)
    response.headers.update(pagination_headers(str(request.url), page, total))
    return blogs


# Declared before /blogs/{blog_id} so "_search" is not parsed as an id
@router.get(
    "/blogs/_search",
    response_model=List[BlogDTO],
    responses={503: _errors[503]},
    summary="Search blogs",
)
async def search_blogs(
    request: Request,
    response: Response,
    query: str = Query(..., min_length=1, description="Query string, e.g. name:foo"),
    page: PageRequest = Depends(blog_search_page),
    service: BlogService = Depends(get_blog_service),
) -> List[BlogDTO]:
    blogs, total = await service.search(query, page)
    response.headers.update(pagination_headers(str(request.url), page, total))
    return blogs


@router.get(
    "/blogs/{blog_id}",
    response_model=BlogDTO,
    responses={404: {"description": "Blog not found", "model": ErrorResponse}},
    summary="Get a blog",
)
async def get_blog(
    blog_id: int,
    db: AsyncSession = Depends(get_db_session),
    service: BlogService = Depends(get_blog_service),
) -> BlogDTO:
    return await service.find_one(db, blog_id)


@router.delete(
    "/blogs/{blog_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={503: _errors[503]},
    summary="Delete a blog",
)
async def delete_blog(
    blog_id: int,
    db: AsyncSession = Depends(get_db_session),
    service: BlogService = Depends(get_blog_service),
) -> Response:
    await service.delete(db, blog_id)
    return Response(
        status_code=status.HTTP_204_NO_CONTENT,
        headers=alert_headers(ENTITY_NAME, "deleted", blog_id),
    )
