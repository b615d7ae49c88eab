"""
Quillpost Backend — Shared Pydantic Schemas
=============================================

What:  Relation reference shapes, constrained string types, and the error /
       health response models shared by every vertical.

Relation references:
    On input only `id` is read; the label is ignored. On output the label is
    filled only when the relation was eagerly loaded, otherwise it is null.
"""

from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, Field


def _not_blank(value: str) -> str:
    """Rejects strings made only of whitespace."""
    if not value.strip():
        raise ValueError("must not be blank")
    return value


# Required text fields: present, non-blank, length-bounded
NonBlankStr = Annotated[str, AfterValidator(_not_blank)]


# ══════════════════════════════════════════════════════════════════════════
# Relation References
# ══════════════════════════════════════════════════════════════════════════


class UserRef(BaseModel):
    """Owning user of a blog."""
    id: int = Field(description="User identifier")
    login: Optional[str] = Field(default=None, description="Login (eager reads only)")

    model_config = {"from_attributes": True}


class BlogRef(BaseModel):
    """Blog a post belongs to."""
    id: int = Field(description="Blog identifier")
    name: Optional[str] = Field(default=None, description="Blog name (eager reads only)")

    model_config = {"from_attributes": True}


class TagRef(BaseModel):
    """Tag attached to a post."""
    id: int = Field(description="Tag identifier")
    name: Optional[str] = Field(default=None, description="Tag name (eager reads only)")

    model_config = {"from_attributes": True}


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Response Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Problem-detail error body returned for every 4xx/5xx response.

    Example:
        {
            "error": "validation_error",
            "message": "A new blog cannot already have an ID",
            "status": 400,
            "details": {"entity_name": "blog", "error_key": "idexists"},
            "request_id": "550e8400"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    status: int = Field(description="HTTP status code")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and dependency status."""
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Primary store connectivity: connected, disconnected")
    search: str = Field(description="Search index connectivity: available, unavailable")
    sync_mode: str = Field(description="Index synchronization mode: inline, outbox")
    sync_pending: int = Field(description="Index operations queued but not yet applied")
    sync_failed: int = Field(description="Index operations dead-lettered after retries")
    uptime_seconds: float = Field(description="Seconds since service started")
