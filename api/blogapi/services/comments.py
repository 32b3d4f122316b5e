"""Comments on posts, and the denormalized comments_count they maintain."""

from __future__ import annotations

import logging

from sqlalchemy import delete, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from .. import models, schemas
from ..auth import Identity
from ..errors import NotFoundOrForbidden, StorageFailure
from ..utils.visibility import visible_to

logger = logging.getLogger(__name__)


class CommentRepository:
    """
    Comment writes and the matching comments_count change share a transaction,
    so the counter always equals the number of comment rows for the post.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def _require_visible_post(self, post_id: int, identity: Identity | None) -> None:
        if not models.is_storable_id(post_id):
            raise NotFoundOrForbidden("Post not found")
        post = (
            self.db.query(models.Post.id)
            .filter(models.Post.id == post_id, visible_to(identity))
            .first()
        )
        if post is None:
            raise NotFoundOrForbidden("Post not found")

    def _bump_comments_count(self, post_id: int, delta: int) -> None:
        self.db.execute(
            update(models.Post)
            .where(models.Post.id == post_id)
            .values(comments_count=models.Post.comments_count + delta)
            .execution_options(synchronize_session=False)
        )

    def list(self, post_id: int, identity: Identity | None) -> list[schemas.Comment]:
        """Comments on a post the caller can see, oldest first."""
        self._require_visible_post(post_id, identity)

        comments = (
            self.db.query(models.Comment)
            .options(joinedload(models.Comment.author))
            .filter(models.Comment.post_id == post_id)
            .order_by(models.Comment.created_at.asc(), models.Comment.id.asc())
            .all()
        )
        return [schemas.Comment.model_validate(c) for c in comments]

    def add(self, post_id: int, identity: Identity, content: str) -> schemas.Comment:
        """
        Comment on a post the caller can see and count it on the post.

        Raises:
            NotFoundOrForbidden: The post does not exist or is not visible to the caller
        """
        self._require_visible_post(post_id, identity)

        comment = models.Comment(post_id=post_id, user_id=identity.user_id, content=content)
        try:
            self.db.add(comment)
            self.db.flush()
            comment_id = comment.id
            self._bump_comments_count(post_id, 1)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageFailure("Failed to add comment") from e

        logger.info(f"User {identity.user_id} commented on post {post_id} (comment {comment_id})")

        comment = (
            self.db.query(models.Comment)
            .options(joinedload(models.Comment.author))
            .filter(models.Comment.id == comment_id)
            .first()
        )
        return schemas.Comment.model_validate(comment)

    def remove(self, post_id: int, comment_id: int, identity: Identity) -> None:
        """
        Delete the caller's own comment from the given post.

        The comment must belong to post_id as well as to the caller; a
        comment id paired with the wrong post is reported as not found.
        """
        if not (models.is_storable_id(post_id) and models.is_storable_id(comment_id)):
            raise NotFoundOrForbidden("Comment not found or access denied")

        try:
            result = self.db.execute(
                delete(models.Comment)
                .where(
                    models.Comment.id == comment_id,
                    models.Comment.post_id == post_id,
                    models.Comment.user_id == identity.user_id,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                self.db.rollback()
                raise NotFoundOrForbidden("Comment not found or access denied")
            self._bump_comments_count(post_id, -1)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageFailure("Failed to delete comment") from e

        logger.info(f"User {identity.user_id} deleted comment {comment_id} on post {post_id}")
