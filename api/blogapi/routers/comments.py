"""Comment management endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, status

from .. import schemas
from ..auth import Identity, get_current_identity, get_optional_identity
from ..deps import get_comment_repository
from ..services.comments import CommentRepository
from ..validation import require_valid, validate_comment

router = APIRouter(prefix="/posts", tags=["Comments"])


@router.get("/{id}/comments", response_model=schemas.CommentListEnvelope)
def list_comments(
    id: int,  # Post ID
    identity: Identity | None = Depends(get_optional_identity),
    comments: CommentRepository = Depends(get_comment_repository),
) -> schemas.CommentListEnvelope:
    """List comments on a post, oldest first."""
    return schemas.CommentListEnvelope(comments=comments.list(id, identity))


@router.post(
    "/{id}/comments",
    response_model=schemas.CommentEnvelope,
    status_code=status.HTTP_201_CREATED,
)
def create_comment(
    id: int,  # Post ID
    payload: dict[str, Any] = Body(default={}),
    identity: Identity = Depends(get_current_identity),
    comments: CommentRepository = Depends(get_comment_repository),
) -> schemas.CommentEnvelope:
    """
    Comment on a post.

    The post must be visible to the caller. Its comments_count goes up by one.
    """
    data = require_valid(validate_comment(payload))
    comment = comments.add(id, identity, data["content"])
    return schemas.CommentEnvelope(message="Comment added successfully", comment=comment)


@router.delete("/{id}/comments/{commentId}", response_model=schemas.Envelope)
def delete_comment(
    id: int,  # Post ID
    commentId: int,
    identity: Identity = Depends(get_current_identity),
    comments: CommentRepository = Depends(get_comment_repository),
) -> schemas.Envelope:
    """
    Delete the caller's own comment.

    Its post's comments_count goes down by one.
    """
    comments.remove(id, commentId, identity)
    return schemas.Envelope(message="Comment deleted successfully")
