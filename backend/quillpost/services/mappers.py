"""
Quillpost Backend — Entity / DTO / Document Mappers
=====================================================

What:  Conversions between ORM entities, API transfer objects and search
       index documents.
How:   Pure functions over already-loaded data; no I/O. Relation
       references are resolved to entities by the repositories before
       apply() runs.

Reference rendering:
    eager=True  -> {"id": 3, "login": "jdoe"}   (relation loaded)
    eager=False -> {"id": 3, "login": null}     (only the FK column is read)
    Post tags are only rendered by the eager variant; plain reads return [].
"""

from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, Optional

from quillpost.models.blog import Blog
from quillpost.models.post import Post
from quillpost.schemas.blog import BlogDTO
from quillpost.schemas.common import BlogRef, TagRef, UserRef
from quillpost.schemas.post import PostDTO


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; every stored timestamp is UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class EntityMapper:
    """
    Shared apply() logic.

    fields:          attributes a request body can set
    required_fields: attributes that a null in the body never overwrites
    """

    fields: FrozenSet[str] = frozenset()
    required_fields: FrozenSet[str] = frozenset()

    def apply(self, entity: Any, values: Dict[str, Any]) -> Any:
        """
        Copy the supplied values onto the entity.

        Keys missing from `values` are left untouched, which makes the same
        method serve full updates (every key present) and merge-patches.
        """
        for field in self.fields:
            if field not in values:
                continue
            value = values[field]
            if value is None and field in self.required_fields:
                continue
            setattr(entity, field, value)
        return entity


class BlogMapper(EntityMapper):
    fields = frozenset({"name", "handle", "user"})
    required_fields = frozenset({"name", "handle"})

    def to_entity(self, values: Dict[str, Any]) -> Blog:
        return self.apply(Blog(), values)

    def to_dto(self, blog: Blog, eager: bool = True) -> BlogDTO:
        user = None
        if eager and blog.user is not None:
            user = UserRef(id=blog.user.id, login=blog.user.login)
        elif not eager and blog.user_id is not None:
            user = UserRef(id=blog.user_id)
        return BlogDTO(id=blog.id, name=blog.name, handle=blog.handle, user=user)

    def to_document(self, blog: Blog) -> Dict[str, Any]:
        """Index document; requires the user relation to be loaded."""
        return {
            "id": blog.id,
            "name": blog.name,
            "handle": blog.handle,
            "user": {"id": blog.user.id, "login": blog.user.login} if blog.user else None,
        }

    def from_document(self, document: Dict[str, Any]) -> BlogDTO:
        return BlogDTO.model_validate(document)


class PostMapper(EntityMapper):
    fields = frozenset({"title", "content", "date", "blog", "tags"})
    required_fields = frozenset({"title", "content", "date"})

    def to_entity(self, values: Dict[str, Any]) -> Post:
        post = Post()
        # A new post starts with an empty tag set, never an unloaded one
        post.tags = []
        return self.apply(post, values)

    def apply(self, entity: Post, values: Dict[str, Any]) -> Post:
        if values.get("date") is not None:
            values = {**values, "date": _as_utc(values["date"]).astimezone(timezone.utc)}
        return super().apply(entity, values)

    def to_dto(self, post: Post, eager: bool = True) -> PostDTO:
        if eager:
            blog = BlogRef(id=post.blog.id, name=post.blog.name) if post.blog else None
            tags = [TagRef(id=tag.id, name=tag.name) for tag in sorted(post.tags, key=lambda t: t.id)]
        else:
            blog = BlogRef(id=post.blog_id) if post.blog_id is not None else None
            tags = []
        return PostDTO(
            id=post.id,
            title=post.title,
            content=post.content,
            date=_as_utc(post.date),
            blog=blog,
            tags=tags,
        )

    def to_document(self, post: Post) -> Dict[str, Any]:
        """Index document; requires blog and tags to be loaded."""
        return {
            "id": post.id,
            "title": post.title,
            "content": post.content,
            "date": _as_utc(post.date).isoformat(),
            "blog": {"id": post.blog.id, "name": post.blog.name} if post.blog else None,
            "tags": [{"id": tag.id, "name": tag.name} for tag in sorted(post.tags, key=lambda t: t.id)],
        }

    def from_document(self, document: Dict[str, Any]) -> PostDTO:
        return PostDTO.model_validate(document)


blog_mapper = BlogMapper()
post_mapper = PostMapper()
