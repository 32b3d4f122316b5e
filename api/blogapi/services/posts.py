"""Post repository: CRUD over the posts table."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from .. import models, schemas
from ..auth import Identity
from ..errors import NoOp, NotFoundOrForbidden, StorageFailure
from ..pagination import apply_page, clamp_limit
from ..utils.visibility import visible_to

logger = logging.getLogger(__name__)


# The only columns a caller can change on an existing post. Keys are payload
# field names; values are the mapped columns they are written to.
UPDATABLE_POST_FIELDS = {
    "title": models.Post.title,
    "content": models.Post.content,
    "status": models.Post.status,
    "tags": models.Post.tags,
    "image_url": models.Post.image_url,
}


@dataclass
class PostPage:
    posts: list[schemas.Post]
    page: int
    limit: int
    total: int


class PostRepository:
    """Posts as seen by one caller.

    Ownership checks for update and delete are part of the mutating
    statement itself, never a separate read.
    """

    def __init__(self, db: Session, max_page_limit: int | None = None) -> None:
        self.db = db
        self.max_page_limit = max_page_limit

    def _query(self):
        return self.db.query(models.Post).options(joinedload(models.Post.author))

    def _load(self, post_id: int) -> schemas.Post:
        post = self._query().filter(models.Post.id == post_id).first()
        if post is None:
            raise NotFoundOrForbidden("Post not found")
        return schemas.Post.model_validate(post)

    def create(self, identity: Identity, payload: dict[str, Any]) -> schemas.Post:
        """Insert a post owned by the caller. Counters start at zero."""
        post = models.Post(
            user_id=identity.user_id,
            title=payload["title"],
            content=payload["content"],
            status=payload.get("status", "draft"),
            tags=payload.get("tags"),
            image_url=payload.get("image_url"),
            views=0,
            likes_count=0,
            comments_count=0,
        )
        self.db.add(post)
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageFailure("Failed to create post") from e

        logger.info(f"User {identity.user_id} created post {post.id}")
        return self._load(post.id)

    def list(
        self,
        identity: Identity | None,
        page: int = 1,
        limit: int | None = None,
        user_id: int | None = None,
    ) -> PostPage:
        """
        Posts visible to the caller, newest first.

        Args:
            identity: The caller, or None for anonymous
            page: 1-based page number
            limit: Requested page size, clamped to the configured maximum
            user_id: Only posts owned by this user

        Returns:
            PostPage with the effective limit and the full matching count
        """
        limit = clamp_limit(limit, self.max_page_limit)

        filters = [visible_to(identity)]
        if user_id is not None:
            filters.append(models.Post.user_id == user_id)

        total = self.db.query(func.count(models.Post.id)).filter(*filters).scalar() or 0

        query = self._query().filter(*filters).order_by(
            models.Post.created_at.desc(), models.Post.id.desc()
        )
        posts = apply_page(query, page, limit).all()

        return PostPage(
            posts=[schemas.Post.model_validate(p) for p in posts],
            page=page,
            limit=limit,
            total=total,
        )

    def get(self, post_id: int, identity: Identity | None) -> schemas.Post:
        """
        Fetch one visible post and count the view.

        The view counter is best effort: if the increment fails the post is
        still returned, with the count as it was read.
        """
        if not models.is_storable_id(post_id):
            raise NotFoundOrForbidden("Post not found")

        post = self._query().filter(models.Post.id == post_id, visible_to(identity)).first()
        if post is None:
            raise NotFoundOrForbidden("Post not found")

        result = schemas.Post.model_validate(post)

        try:
            self.db.execute(
                update(models.Post)
                .where(models.Post.id == post_id)
                .values(views=models.Post.views + 1)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
            self.db.refresh(post)
            result = schemas.Post.model_validate(post)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"Failed to record view for post {post_id}: {e}")

        return result

    def update(self, post_id: int, identity: Identity, payload: dict[str, Any]) -> schemas.Post:
        """
        Apply the allow-listed fields present in payload to a post the caller owns.

        Raises:
            NotFoundOrForbidden: The post does not exist or is someone else's
            NoOp: The payload carries no updatable field
        """
        if not models.is_storable_id(post_id):
            raise NotFoundOrForbidden()

        values = {
            column: payload[name]
            for name, column in UPDATABLE_POST_FIELDS.items()
            if name in payload
        }

        if not values:
            owned = (
                self.db.query(models.Post.id)
                .filter(models.Post.id == post_id, models.Post.user_id == identity.user_id)
                .first()
            )
            if owned is None:
                raise NotFoundOrForbidden()
            raise NoOp()

        values[models.Post.updated_at] = datetime.now(timezone.utc)

        try:
            result = self.db.execute(
                update(models.Post)
                .where(models.Post.id == post_id, models.Post.user_id == identity.user_id)
                .values(values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                self.db.rollback()
                raise NotFoundOrForbidden()
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageFailure("Failed to update post") from e

        logger.info(f"User {identity.user_id} updated post {post_id}: {sorted(c.key for c in values)}")
        return self._load(post_id)

    def delete(self, post_id: int, identity: Identity) -> None:
        """Delete a post the caller owns. Its comments go with it (ON DELETE CASCADE)."""
        if not models.is_storable_id(post_id):
            raise NotFoundOrForbidden()

        try:
            result = self.db.execute(
                delete(models.Post)
                .where(models.Post.id == post_id, models.Post.user_id == identity.user_id)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                self.db.rollback()
                raise NotFoundOrForbidden()
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageFailure("Failed to delete post") from e

        logger.info(f"User {identity.user_id} deleted post {post_id}")
