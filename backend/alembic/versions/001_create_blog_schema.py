"""Create users, tags, blogs, posts and rel_post__tag

Revision ID: 001
Revises: None
Create Date: 2026-10-17 00:00:00.000000+00:00

Rollback: downgrade() drops every table (all data lost). Search indexes are
not touched; recreate them with a reindex after a downgrade/upgrade cycle.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("login", sa.String(50), nullable=False, comment="Unique login name"),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("login", name="uq_users_login"),
    )

    op.create_table(
        "tags",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_tags"),
    )

    op.create_table(
        "blogs",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False, comment="Display name of the blog"),
        sa.Column("handle", sa.String(255), nullable=False, comment="Short handle used in URLs"),
        sa.Column("user_id", sa.BigInteger(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_blogs"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL", name="fk_blogs_user_id"),
    )
    op.create_index("idx_blogs_user_id", "blogs", ["user_id"])

    op.create_table(
        "posts",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False, comment="Publication timestamp (UTC)"),
        sa.Column("blog_id", sa.BigInteger(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_posts"),
        sa.ForeignKeyConstraint(["blog_id"], ["blogs.id"], ondelete="SET NULL", name="fk_posts_blog_id"),
    )
    op.create_index("idx_posts_blog_id", "posts", ["blog_id"])
    op.create_index("idx_posts_date", "posts", [sa.text("date DESC")])

    op.create_table(
        "rel_post__tag",
        sa.Column("post_id", sa.BigInteger(), nullable=False),
        sa.Column("tag_id", sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint("post_id", "tag_id", name="pk_rel_post__tag"),
        sa.ForeignKeyConstraint(["post_id"], ["posts.id"], ondelete="CASCADE", name="fk_rel_post__tag_post_id"),
        sa.ForeignKeyConstraint(["tag_id"], ["tags.id"], ondelete="CASCADE", name="fk_rel_post__tag_tag_id"),
    )


def downgrade() -> None:
    op.drop_table("rel_post__tag")
    op.drop_index("idx_posts_date", table_name="posts")
    op.drop_index("idx_posts_blog_id", table_name="posts")
    op.drop_table("posts")
    op.drop_index("idx_blogs_user_id", table_name="blogs")
    op.drop_table("blogs")
    op.drop_table("tags")
    op.drop_table("users")
