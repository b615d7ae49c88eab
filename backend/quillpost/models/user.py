"""
Quillpost Backend — User SQLAlchemy Model
===========================================

What:  ORM model for the `users` table.
Who:   Referenced by Blog.user (owning user). No REST vertical is exposed;
       rows are provisioned out of band (migrations, admin tooling, tests).
"""

from sqlalchemy import BigInteger, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from quillpost.database import Base

# BIGINT on PostgreSQL; SQLite only autoincrements "INTEGER PRIMARY KEY"
IdType = BigInteger().with_variant(Integer(), "sqlite")


class User(Base):
    """Account that can own blogs."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)

    login: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
        comment="Unique login name",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, login='{self.login}')>"
