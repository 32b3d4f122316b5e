from __future__ import annotations

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from .db import Base


POST_STATUSES = ("draft", "published", "private")
PUBLIC_POST_STATUS = "published"

# INTEGER keys are 32-bit on PostgreSQL
MAX_INTEGER_ID = 2**31 - 1


def is_storable_id(value: int) -> bool:
    """True when value can be a row id, i.e. fits the INTEGER key columns."""
    return 0 < value <= MAX_INTEGER_ID


# ============================================================================
# CORE ENTITIES
# ============================================================================


class User(Base):
    """User account with credentials and public profile fields."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(100), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=False)  # bcrypt hash

    # Profile
    full_name = Column(String(100), nullable=True)
    bio = Column(Text, nullable=True)
    profile_image = Column(String(500), nullable=True)

    # Timestamps
    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    posts = relationship(
        "Post", back_populates="author", passive_deletes=True, foreign_keys="Post.user_id"
    )
    comments = relationship(
        "Comment", back_populates="author", passive_deletes=True, foreign_keys="Comment.user_id"
    )


class Post(Base):
    """Blog post. Only 'published' posts are visible to anyone but the owner."""

    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Content
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="draft", server_default="draft")
    tags = Column(JSON(none_as_null=True), nullable=True)  # ordered list of strings, NULL when absent
    image_url = Column(String(500), nullable=True)

    # Denormalized counters, only ever changed with col = col +/- 1
    views = Column(Integer, nullable=False, default=0, server_default="0")
    likes_count = Column(Integer, nullable=False, default=0, server_default="0")
    comments_count = Column(Integer, nullable=False, default=0, server_default="0")

    # Timestamps. updated_at only moves on edits, never on counter changes
    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    # Relationships
    author = relationship("User", back_populates="posts", foreign_keys=[user_id])
    comments = relationship(
        "Comment", back_populates="post", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('draft', 'published', 'private')", name="ck_posts_status"
        ),
        Index("ix_posts_user_created", user_id, created_at.desc()),
        Index("ix_posts_status_created", status, created_at.desc()),
    )


class Comment(Base):
    """Comment on a post."""

    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    post_id = Column(
        Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    content = Column(Text, nullable=False)

    # Timestamps
    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    post = relationship("Post", back_populates="comments")
    author = relationship("User", back_populates="comments", foreign_keys=[user_id])

    __table_args__ = (Index("ix_comments_post_created", post_id, created_at),)
