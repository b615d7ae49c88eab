"""
Quillpost Backend — Shared REST Helpers
=========================================

What:  Pagination query parsing, alert headers and the id rules shared by
       the /api/blogs and /api/posts routers.

Alert headers:
    Success:  X-Quillpost-Alert: quillpost.blog.created
              X-Quillpost-Params: 42
    Failure:  X-Quillpost-Error: error.idexists   (set by the error handler)
              X-Quillpost-Params: blog
"""

from typing import Callable, Iterable, List, Optional

from fastapi import Query
from sqlalchemy.ext.asyncio import AsyncSession

from quillpost.config import settings
from quillpost.exceptions import BadRequestAlertError, ValidationError
from quillpost.pagination import PageRequest, parse_sort
from quillpost.services.entity_service import EntityService

APPLICATION_NAME = "quillpost"

# Largest offset a signed 64-bit SQL integer can carry
MAX_SQL_OFFSET = 2**63 - 1


def alert_headers(entity_name: str, action: str, param: object) -> dict:
    """Success notification headers, e.g. ("blog", "updated", 42)."""
    return {
        "X-Quillpost-Alert": f"{APPLICATION_NAME}.{entity_name}.{action}",
        "X-Quillpost-Params": str(param),
    }


def page_params(
    allowed_sort: Iterable[str], max_window: int = MAX_SQL_OFFSET
) -> Callable[..., PageRequest]:
    """
    Build a dependency parsing ?page=&size=&sort= for one entity.

    Pages whose end (page + 1) * size lies beyond max_window are rejected
    with a 400 on the `page` field.
    """
    allowed = tuple(allowed_sort)

    def _page_request(
        page: int = Query(default=0, ge=0, description="0-based page index"),
        size: Optional[int] = Query(default=None, ge=1, description="Page size"),
        sort: List[str] = Query(
            default=[],
            description=f"field[,asc|desc], repeatable. Sortable: {', '.join(allowed)}",
        ),
    ) -> PageRequest:
        page_size = min(size or settings.default_page_size, settings.max_page_size)
        if (page + 1) * page_size > max_window:
            raise ValidationError(
                message=f"Page {page} of size {page_size} is beyond the last reachable record ({max_window})",
                field="page",
            )
        return PageRequest(page=page, size=page_size, sort=parse_sort(sort, allowed))

    return _page_request


def reject_new_with_id(entity_name: str, body_id: Optional[int]) -> None:
    if body_id is not None:
        raise BadRequestAlertError(
            f"A new {entity_name} cannot already have an ID", entity_name, "idexists"
        )


async def ensure_update_target(
    service: EntityService,
    db: AsyncSession,
    entity_name: str,
    path_id: int,
    body_id: Optional[int],
) -> None:
    """
    Id rules for PUT and PATCH, checked in this order:
        body id missing      -> 400 idnull
        body id != path id   -> 400 idinvalid
        no such record       -> 400 idnotfound
    """
    if body_id is None:
        raise BadRequestAlertError("Invalid id", entity_name, "idnull")
    if body_id != path_id:
        raise BadRequestAlertError("Invalid ID", entity_name, "idinvalid")
    if not await service.exists(db, path_id):
        raise BadRequestAlertError("Entity not found", entity_name, "idnotfound")
