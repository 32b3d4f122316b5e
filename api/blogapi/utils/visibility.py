"""Visibility rules for posts."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import or_

from .. import models

if TYPE_CHECKING:
    from ..auth import Identity


def visible_to(identity: Identity | None):
    """
    SQL predicate selecting the posts a caller may read.

    Published posts are readable by anyone. Drafts and private posts are
    readable only by their owner.

    Args:
        identity: The current caller (None for anonymous callers)
    """
    public = models.Post.status == models.PUBLIC_POST_STATUS
    if identity is None:
        return public
    return or_(public, models.Post.user_id == identity.user_id)
