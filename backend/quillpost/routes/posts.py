"""
Quillpost Backend — Post Route Handlers
=========================================

What:  REST resource for posts under /api/posts.
How:   Applies the id rules and builds headers; everything else is
       delegated to PostService.

Endpoints:
    POST   /api/posts              create (201 + Location)
    PUT    /api/posts/{id}         full replace
    PATCH  /api/posts/{id}         merge-patch (application/merge-patch+json)
    GET    /api/posts              page of posts (?eagerload=true loads blog, tags)
    GET    /api/posts/_search      page of index hits (?query=)
    GET    /api/posts/{id}         one post, blog and tags loaded
    DELETE /api/posts/{id}         204, also when the id does not exist
"""

import logging
from typing import List

from fastapi import APIRouter, Body, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from quillpost.config import settings
from quillpost.database import get_db_session
from quillpost.dependencies import get_post_service
from quillpost.pagination import PageRequest, pagination_headers
from quillpost.repositories.post import PostRepository
from quillpost.routes.common import (
    alert_headers,
    ensure_update_target,
    page_params,
    reject_new_with_id,
)
from quillpost.schemas.post import PostDTO, PostPatch
from quillpost.schemas.common import ErrorResponse
from quillpost.search.repositories import PostSearchRepository
from quillpost.services.post_service import PostService

logger = logging.getLogger(__name__)

ENTITY_NAME = "post"

router = APIRouter(prefix="/api", tags=["Posts"])

post_page = page_params(PostRepository.sortable_fields)
post_search_page = page_params(
    PostSearchRepository.sortable_fields, max_window=settings.search_max_result_window
)

_errors = {
    400: {"description": "Invalid body or id", "model": ErrorResponse},
    503: {"description": "Search index unavailable", "model": ErrorResponse},
}


@router.post(
    "/posts",
    response_model=PostDTO,
    status_code=status.HTTP_201_CREATED,
    responses=_errors,
    summary="Create a post",
)
async def create_post(
    response: Response,
    post: PostDTO,
    db: AsyncSession = Depends(get_db_session),
    service: PostService = Depends(get_post_service),
) -> PostDTO:
    """The body must not carry an id (400 idexists)."""
    reject_new_with_id(ENTITY_NAME, post.id)
    result = await service.save(db, post)
    response.headers["Location"] = f"/api/posts/{result.id}"
    response.headers.update(alert_headers(ENTITY_NAME, "created", result.id))
    return result


@router.put(
    "/posts/{post_id}",
    response_model=PostDTO,
    responses=_errors,
    summary="Replace a post",
)
async def update_post(
    post_id: int,
    response: Response,
    post: PostDTO,
    db: AsyncSession = Depends(get_db_session),
    service: PostService = Depends(get_post_service),
) -> PostDTO:
    await ensure_update_target(service, db, ENTITY_NAME, post_id, post.id)
    result = await service.update(db, post)
    response.headers.update(alert_headers(ENTITY_NAME, "updated", result.id))
    return result


@router.patch(
    "/posts/{post_id}",
    response_model=PostDTO,
    responses={**_errors, 404: {"description": "Post not found", "model": ErrorResponse}},
    summary="Partially update a post (JSON merge-patch)",
)
async def partial_update_post(
    post_id: int,
    response: Response,
    patch: PostPatch = Body(..., media_type="application/merge-patch+json"),
    db: AsyncSession = Depends(get_db_session),
    service: PostService = Depends(get_post_service),
) -> PostDTO:
    """Fields absent from the body are left unchanged."""
    await ensure_update_target(service, db, ENTITY_NAME, post_id, patch.id)
    result = await service.partial_update(db, post_id, patch)
    response.headers.update(alert_headers(ENTITY_NAME, "updated", result.id))
    return result


@router.get(
    "/posts",
    response_model=List[PostDTO],
    summary="List posts",
)
async def get_all_posts(
    request: Request,
    response: Response,
    eagerload: bool = Query(default=False, description="Load blog and tags"),
    page: PageRequest = Depends(post_page),
    db: AsyncSession = Depends(get_db_session),
    service: PostService = Depends(get_post_service),
) -> List[PostDTO]:
    if eagerload:
        posts = await service.find_all_with_eager_relationships(db, page)
    else:
        posts = await service.find_all(db, page)
    total = await service.count_all(db)
    response.headers.update(pagination_headers(str(request.url), page, total))
    return posts


# Declared before /posts/{post_id} so "_search" is not parsed as an id
@router.get(
    "/posts/_search",
    response_model=List[PostDTO],
    responses={503: _errors[503]},
    summary="Search posts",
)
async def search_posts(
    request: Request,
    response: Response,
    query: str = Query(..., min_length=1, description="Query string, e.g. title:foo"),
    page: PageRequest = Depends(post_search_page),
    service: PostService = Depends(get_post_service),
) -> List[PostDTO]:
    posts, total = await service.search(query, page)
    response.headers.update(pagination_headers(str(request.url), page, total))
    return posts


@router.get(
    "/posts/{post_id}",
    response_model=PostDTO,
    responses={404: {"description": "Post not found", "model": ErrorResponse}},
    summary="Get a post",
)
async def get_post(
    post_id: int,
    db: AsyncSession = Depends(get_db_session),
    service: PostService = Depends(get_post_service),
) -> PostDTO:
    return await service.find_one(db, post_id)


@router.delete(
    "/posts/{post_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={503: _errors[503]},
    summary="Delete a post",
)
async def delete_post(
    post_id: int,
    db: AsyncSession = Depends(get_db_session),
    service: PostService = Depends(get_post_service),
) -> Response:
    await service.delete(db, post_id)
    return Response(
        status_code=status.HTTP_204_NO_CONTENT,
        headers=alert_headers(ENTITY_NAME, "deleted", post_id),
    )
