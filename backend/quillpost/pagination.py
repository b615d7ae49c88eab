"""
Quillpost Backend — Pagination Helpers
========================================

What:  Offset pagination request object, sort parsing, and response headers.
Who:   Built by the list/search routes; consumed by both the SQL
       repositories and the search repositories.

Query conventions:
    ?page=0&size=20&sort=name,asc&sort=id,desc
    - page is 0-based
    - sort may repeat; each value is "field[,field...][,asc|desc]"
    - only allow-listed fields per entity can be sorted on

Response headers:
    X-Total-Count: total number of matching records
    Link:          RFC 5988 links for next / prev / last / first pages
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from starlette.datastructures import URL

from quillpost.exceptions import ValidationError

SortOrder = Tuple[str, str]

_DIRECTIONS = {"asc", "desc"}


@dataclass(frozen=True)
class PageRequest:
    """A 0-based page of `size` records in `sort` order."""

    page: int = 0
    size: int = 20
    sort: Tuple[SortOrder, ...] = ()

    @property
    def offset(self) -> int:
        return self.page * self.size


def parse_sort(values: Optional[Sequence[str]], allowed: Iterable[str]) -> Tuple[SortOrder, ...]:
    """
    Parse repeated `sort` query values into (field, direction) pairs.

    Examples:
        ["id,desc"]          -> (("id", "desc"),)
        ["name", "id,desc"]  -> (("name", "asc"), ("id", "desc"))
        ["name,handle,desc"] -> (("name", "desc"), ("handle", "desc"))

    Raises:
        ValidationError: a field outside the entity's allow-list
    """
    allowed_fields = set(allowed)
    orders: List[SortOrder] = []
    for raw in values or ():
        parts = [p.strip() for p in raw.split(",") if p.strip()]
        if not parts:
            continue
        direction = "asc"
        if parts[-1].lower() in _DIRECTIONS:
            direction = parts.pop().lower()
        for field in parts:
            if field not in allowed_fields:
                raise ValidationError(
                    message=f"Cannot sort on '{field}'. Sortable fields: {sorted(allowed_fields)}",
                    field="sort",
                )
            orders.append((field, direction))
    return tuple(orders)


def total_pages(size: int, total: int) -> int:
    """Number of pages needed for `total` records."""
    if size <= 0:
        return 0
    return (total + size - 1) // size


def build_link_header(url: str, page: PageRequest, total: int) -> str:
    """
    RFC 5988 Link header for a page of results.

    Every link keeps the request's other query parameters (sort, query,
    eagerload) and rewrites only page and size.
    """
    base = URL(url)
    pages = total_pages(page.size, total)
    links = []

    def _link(number: int, rel: str) -> str:
        target = base.include_query_params(page=number, size=page.size)
        return f'<{target}>; rel="{rel}"'

    if page.page + 1 < pages:
        links.append(_link(page.page + 1, "next"))
    if page.page > 0:
        links.append(_link(page.page - 1, "prev"))
    links.append(_link(max(pages - 1, 0), "last"))
    links.append(_link(0, "first"))
    return ",".join(links)


def pagination_headers(url: str, page: PageRequest, total: int) -> dict:
    """X-Total-Count and Link headers for a list or search response."""
    return {
        "X-Total-Count": str(total),
        "Link": build_link_header(url, page, total),
    }
