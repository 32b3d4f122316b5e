"""Post management endpoints."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Query, status

from .. import models, schemas
from ..auth import Identity, get_current_identity, get_optional_identity
from ..deps import get_post_repository
from ..pagination import build_pagination
from ..services.posts import PostRepository
from ..validation import require_valid, validate_post_create, validate_post_update

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/posts", tags=["Posts"])


@router.post(
    "",
    response_model=schemas.PostEnvelope,
    status_code=status.HTTP_201_CREATED,
)
def create_post(
    payload: dict[str, Any] = Body(default={}),
    identity: Identity = Depends(get_current_identity),
    posts: PostRepository = Depends(get_post_repository),
) -> schemas.PostEnvelope:
    """
    Create a new post owned by the caller.

    Status defaults to draft. Any user id in the body is ignored.
    """
    data = require_valid(validate_post_create(payload))
    post = posts.create(identity, data)
    return schemas.PostEnvelope(message="Post created successfully", post=post)


@router.get("", response_model=schemas.PostListEnvelope)
def list_posts(
    page: int = Query(1, ge=1, le=models.MAX_INTEGER_ID),
    limit: int | None = Query(None, ge=1),
    user_id: int | None = Query(None, ge=1, le=models.MAX_INTEGER_ID),
    identity: Identity | None = Depends(get_optional_identity),
    posts: PostRepository = Depends(get_post_repository),
) -> schemas.PostListEnvelope:
    """
    List posts, newest first.

    Anonymous callers see published posts; authenticated callers also see
    their own drafts and private posts. Limits above the maximum are
    clamped.
    """
    result = posts.list(identity, page=page, limit=limit, user_id=user_id)
    return schemas.PostListEnvelope(
        posts=result.posts,
        pagination=build_pagination(result.page, result.limit, result.total),
    )


@router.get("/{id}", response_model=schemas.PostEnvelope)
def get_post(
    id: int,
    identity: Identity | None = Depends(get_optional_identity),
    posts: PostRepository = Depends(get_post_repository),
) -> schemas.PostEnvelope:
    """Get a single post. Every successful read counts as a view."""
    post = posts.get(id, identity)
    return schemas.PostEnvelope(post=post)


@router.put("/{id}", response_model=schemas.PostEnvelope)
def update_post(
    id: int,
    payload: dict[str, Any] = Body(default={}),
    identity: Identity = Depends(get_current_identity),
    posts: PostRepository = Depends(get_post_repository),
) -> schemas.PostEnvelope:
    """
    Update post fields.

    Only the owner may update; anyone else gets the same 404 as for a
    missing post.
    """
    changes = require_valid(validate_post_update(payload))
    post = posts.update(id, identity, changes)
    return schemas.PostEnvelope(message="Post updated successfully", post=post)


@router.delete("/{id}", response_model=schemas.Envelope)
def delete_post(
    id: int,
    identity: Identity = Depends(get_current_identity),
    posts: PostRepository = Depends(get_post_repository),
) -> schemas.Envelope:
    """Delete a post and its comments."""
    posts.delete(id, identity)
    return schemas.Envelope(message="Post deleted successfully")
