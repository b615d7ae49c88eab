"""Blog repository: eager reads load the owning user."""

from typing import Any, Dict, Sequence

from sqlalchemy.orm import selectinload

from quillpost.models.blog import Blog
from quillpost.models.user import User
from quillpost.repositories.base import SqlRepository


class BlogRepository(SqlRepository[Blog]):
    model = Blog
    sortable_fields = ("id", "name", "handle")

    def eager_options(self) -> Sequence[Any]:
        return (selectinload(Blog.user),)

    async def resolve_references(self, values: Dict[str, Any]) -> Dict[str, Any]:
        if "user" in values and values["user"] is not None:
            values["user"] = await self._reference(User, values["user"], "user")
        return values
