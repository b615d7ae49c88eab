"""
Quillpost Backend — Custom Exception Hierarchy
================================================

What:  Application-specific exceptions for the different error scenarios.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return problem-detail JSON responses with the matching status code.
Who:   Raised by routes, services and repositories; caught by global handlers.

Exception Hierarchy:
    QuillpostError (base)
    ├── ValidationError          → 400 Bad Request
    │   └── BadRequestAlertError → 400 Bad Request (+ X-Quillpost-Error header)
    ├── NotFoundError            → 404 Not Found
    ├── SearchIndexError         → 503 Service Unavailable
    └── DatabaseError            → 500 Internal Server Error

Update and patch targets that do not exist are reported as
BadRequestAlertError ("idnotfound"), not NotFoundError: the id checks run
before the existence check and all answer 400.
"""

from typing import Any, Dict, Optional


class QuillpostError(Exception):
    """
    Base exception for all Quillpost application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(QuillpostError):
    """
    Raised when client input fails a business rule.

    When:    Unknown sort field, unknown relation id, blank required field.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "Blog with ID '42' referenced by 'blog' does not exist",
            "status": 400,
            "details": {"field": "blog"}
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class BadRequestAlertError(ValidationError):
    """
    Raised by the REST boundary when an id rule is violated.

    Error keys:
        idexists   - create request carries an id
        idnull     - update/patch body has no id
        idinvalid  - body id differs from path id
        idnotfound - update/patch target does not exist

    HTTP: 400, with header X-Quillpost-Error: error.<error_key>
    """

    def __init__(self, message: str, entity_name: str, error_key: str):
        super().__init__(
            message=message,
            context={"entity_name": entity_name, "error_key": error_key},
        )
        self.entity_name = entity_name
        self.error_key = error_key


class NotFoundError(QuillpostError):
    """
    Raised when a requested resource does not exist.

    When:    GET /api/blogs/{id} with an unknown id, or a merge-patch whose
             target disappeared between the existence check and the load.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class SearchIndexError(QuillpostError):
    """
    Raised when a search index operation fails after all retries.

    What:    The primary store write already committed; the index did not
             accept the mirrored document (or a search query failed).
    HTTP:    503 Service Unavailable

    The primary store is not rolled back. The divergence is reconciled out of
    band (reindex), so clients may see the record in GET but not yet in
    _search.
    """

    def __init__(
        self,
        message: str = "Search index is temporarily unavailable",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(QuillpostError):
    """
    Raised when primary store operations fail unexpectedly.

    HTTP:    500 Internal Server Error

    The message returned to the client is always generic. The original
    error type is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
