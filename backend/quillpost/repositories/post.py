"""Post repository: eager reads load the blog and the tag set."""

from typing import Any, Dict, List, Sequence

from sqlalchemy.orm import selectinload

from quillpost.models.blog import Blog
from quillpost.models.post import Post
from quillpost.models.tag import Tag
from quillpost.repositories.base import SqlRepository


class PostRepository(SqlRepository[Post]):
    model = Post
    sortable_fields = ("id", "title", "date")

    def eager_options(self) -> Sequence[Any]:
        return (selectinload(Post.blog), selectinload(Post.tags))

    async def resolve_references(self, values: Dict[str, Any]) -> Dict[str, Any]:
        if "blog" in values and values["blog"] is not None:
            values["blog"] = await self._reference(Blog, values["blog"], "blog")
        if "tags" in values:
            # null clears the set; a list replaces it whole
            refs = values["tags"] or []
            tags: List[Tag] = []
            seen = set()
            for ref in refs:
                tag = await self._reference(Tag, ref, "tags")
                if tag.id not in seen:
                    seen.add(tag.id)
                    tags.append(tag)
            values["tags"] = tags
        return values
