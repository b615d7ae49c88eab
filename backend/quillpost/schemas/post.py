"""
Quillpost Backend — Post Transfer Objects
===========================================

What:  Pydantic models defining the Post API contract.
How:   PostDTO is the body for POST/PUT and every Post response.
       PostPatch is the merge-patch body for PATCH.
"""

from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import BaseModel, Field

from quillpost.schemas.common import BlogRef, NonBlankStr, TagRef

PostTitle = Annotated[NonBlankStr, Field(min_length=1, max_length=255)]
PostContent = Annotated[NonBlankStr, Field(min_length=1)]


class PostDTO(BaseModel):
    """
    Full representation of a post.

    tags is replaced whole on update. On non-eager list reads it is returned
    empty: the association is only loaded by the eager variants.
    """
    id: Optional[int] = Field(default=None, description="Server-assigned identifier")
    title: PostTitle = Field(description="Post title (non-blank)")
    content: PostContent = Field(description="Post body (non-blank)")
    date: datetime = Field(description="Publication timestamp (ISO 8601)")
    blog: Optional[BlogRef] = Field(default=None, description="Blog this post belongs to")
    tags: List[TagRef] = Field(default_factory=list, description="Attached tags")

    model_config = {"from_attributes": True}


class PostPatch(BaseModel):
    """
    JSON merge-patch body for PATCH /api/posts/{id}.

    Absent field: untouched. null on title/content/date: ignored.
    null on blog: detaches the post. null on tags: removes all tags.
    A present tags list replaces the current set (no element-wise merge).
    """
    id: Optional[int] = None
    title: Optional[PostTitle] = None
    content: Optional[PostContent] = None
    date: Optional[datetime] = None
    blog: Optional[BlogRef] = None
    tags: Optional[List[TagRef]] = None
