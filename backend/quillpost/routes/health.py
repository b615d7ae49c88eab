"""
Quillpost Backend — Health Check Route
========================================

What:  GET /health for container probes and load balancers.
How:   Runs SELECT 1 on the primary store, pings the search backend and
       reports the index synchronizer's queue and dead-letter sizes.

Status levels:
    healthy:   both stores reachable, nothing dead-lettered       (200)
    degraded:  search unreachable or dead-lettered index operations (200)
    unhealthy: primary store unreachable                          (503)
"""

import logging
import time

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import text

from quillpost import __version__
from quillpost.database import engine
from quillpost.dependencies import get_index_synchronizer, get_search_backend
from quillpost.schemas.common import HealthResponse
from quillpost.search.backend import SearchBackend
from quillpost.services.index_sync import IndexSynchronizer

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(
    response: Response,
    search: SearchBackend = Depends(get_search_backend),
    index_sync: IndexSynchronizer = Depends(get_index_synchronizer),
) -> HealthResponse:
    db_status = "connected"
    search_status = "available"
    overall = "healthy"

    # ── Primary store ─────────────────────────────────────────────────────
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    # ── Search index ──────────────────────────────────────────────────────
    if not await search.ping():
        search_status = "unavailable"
        overall = "degraded" if overall != "unhealthy" else overall

    failed = len(index_sync.failed)
    if failed and overall == "healthy":
        overall = "degraded"

    if overall == "unhealthy":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        search=search_status,
        sync_mode=index_sync.mode,
        sync_pending=index_sync.pending,
        sync_failed=failed,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
