"""
Quillpost Backend — Tag SQLAlchemy Model
==========================================

What:  ORM model for the `tags` table and the `rel_post__tag` association.
Who:   Referenced by Post.tags (many-to-many).
"""

from sqlalchemy import Column, ForeignKey, String, Table
from sqlalchemy.orm import Mapped, mapped_column

from quillpost.database import Base
from quillpost.models.user import IdType

# Association table: one row per (post, tag) pair
post_tag = Table(
    "rel_post__tag",
    Base.metadata,
    Column("post_id", IdType, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", IdType, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class Tag(Base):
    """Label attached to posts."""

    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<Tag(id={self.id}, name='{self.name}')>"
