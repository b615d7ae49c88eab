"""
Quillpost Backend — Blog SQLAlchemy Model
===========================================

What:  ORM model representing the `blogs` table.
Who:   Used by BlogRepository for CRUD and by Alembic for schema management.

Table Design:
    - Bigint primary key, assigned by the database on insert
    - name / handle: required, validated non-blank at the API boundary
    - user_id: optional owning user; the relation is loaded lazily by
      default and eagerly by the *_with_eager_relationships queries
"""

from typing import Optional

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quillpost.database import Base
from quillpost.models.user import IdType, User


class Blog(Base):
    """
    A blog owned by (at most) one user.

    Lifecycle:
        1. Created via POST /api/blogs (id assigned by the database)
        2. Replaced via PUT or merged via PATCH
        3. Deleted via DELETE (posts keep existing with blog_id set to NULL)
    """

    __tablename__ = "blogs"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Display name of the blog",
    )

    handle: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Short handle used in URLs",
    )

    user_id: Mapped[Optional[int]] = mapped_column(
        IdType,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    # lazy="raise": every read path must choose eager or id-only access explicitly
    user: Mapped[Optional[User]] = relationship(User, lazy="raise")

    __table_args__ = (
        Index("idx_blogs_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<Blog(id={self.id}, name='{self.name}', handle='{self.handle}')>"
