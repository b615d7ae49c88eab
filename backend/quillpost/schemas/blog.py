"""
Quillpost Backend — Blog Transfer Objects
===========================================

What:  Pydantic models defining the Blog API contract.
How:   BlogDTO is the body for POST/PUT and every Blog response.
       BlogPatch is the merge-patch body for PATCH; only the fields the
       client actually sent are applied (model_fields_set).
"""

from typing import Annotated, Optional

from pydantic import BaseModel, Field

from quillpost.schemas.common import NonBlankStr, UserRef

BlogName = Annotated[NonBlankStr, Field(min_length=3, max_length=255)]
BlogHandle = Annotated[NonBlankStr, Field(min_length=2, max_length=255)]


class BlogDTO(BaseModel):
    """
    Full representation of a blog.

    id is absent on create and required on update; the REST boundary
    enforces both rules (the schema itself accepts either).
    """
    id: Optional[int] = Field(default=None, description="Server-assigned identifier")
    name: BlogName = Field(description="Display name (3-255 chars, non-blank)")
    handle: BlogHandle = Field(description="Short handle (2-255 chars, non-blank)")
    user: Optional[UserRef] = Field(default=None, description="Owning user")

    model_config = {"from_attributes": True}


class BlogPatch(BaseModel):
    """
    JSON merge-patch body for PATCH /api/blogs/{id}.

    Absent field: untouched. null on name/handle: ignored (required fields).
    null on user: clears the owning user.
    """
    id: Optional[int] = None
    name: Optional[BlogName] = None
    handle: Optional[BlogHandle] = None
    user: Optional[UserRef] = None
