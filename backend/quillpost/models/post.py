"""
Quillpost Backend — Post SQLAlchemy Model
===========================================

What:  ORM model representing the `posts` table.
Who:   Used by PostRepository for CRUD and by Alembic for schema management.

Relations:
    - blog: optional many-to-one (blog_id)
    - tags: many-to-many through rel_post__tag, replaced whole on update
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quillpost.database import Base
from quillpost.models.blog import Blog
from quillpost.models.tag import Tag, post_tag
from quillpost.models.user import IdType


class Post(Base):
    """A dated article, optionally attached to a blog and tagged."""

    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    content: Mapped[str] = mapped_column(Text, nullable=False)

    date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="Publication timestamp (UTC)",
    )

    blog_id: Mapped[Optional[int]] = mapped_column(
        IdType,
        ForeignKey("blogs.id", ondelete="SET NULL"),
        nullable=True,
    )

    blog: Mapped[Optional[Blog]] = relationship(Blog, lazy="raise")

    tags: Mapped[List[Tag]] = relationship(Tag, secondary=post_tag, lazy="raise")

    __table_args__ = (
        Index("idx_posts_blog_id", "blog_id"),
        Index("idx_posts_date", date.desc()),
    )

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, title='{self.title}', date='{self.date}')>"
