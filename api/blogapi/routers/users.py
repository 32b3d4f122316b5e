"""User profile endpoints."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Body, Depends
from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import Identity, get_current_identity
from ..deps import get_db
from ..errors import NoOp, NotFoundOrForbidden, StorageFailure
from ..validation import require_valid, validate_profile_update

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])

# Profile fields a user may change on their own account
UPDATABLE_PROFILE_FIELDS = {
    "full_name": models.User.full_name,
    "bio": models.User.bio,
    "profile_image": models.User.profile_image,
}


@router.put("/profile", response_model=schemas.MeEnvelope)
def update_profile(
    payload: dict[str, Any] = Body(default={}),
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
) -> schemas.MeEnvelope:
    """Update the caller's own profile fields."""
    changes = require_valid(validate_profile_update(payload))

    values = {
        column: changes[name]
        for name, column in UPDATABLE_PROFILE_FIELDS.items()
        if name in changes
    }
    if not values:
        raise NoOp("No fields to update")

    values[models.User.updated_at] = datetime.now(timezone.utc)

    try:
        result = db.execute(
            update(models.User)
            .where(models.User.id == identity.user_id)
            .values(values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            db.rollback()
            raise NotFoundOrForbidden("User not found")
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageFailure("Failed to update profile") from e

    user = db.query(models.User).filter(models.User.id == identity.user_id).first()
    return schemas.MeEnvelope(
        message="Profile updated successfully",
        user=schemas.UserPrivate.model_validate(user),
    )


@router.get("/{username}", response_model=schemas.UserEnvelope)
def get_user_profile(
    username: str,
    db: Session = Depends(get_db),
) -> schemas.UserEnvelope:
    """
    Public profile for a username.

    posts_count only counts published posts.
    """
    user = db.query(models.User).filter(models.User.username == username).first()
    if not user:
        raise NotFoundOrForbidden("User not found")

    posts_count = (
        db.query(func.count(models.Post.id))
        .filter(
            models.Post.user_id == user.id,
            models.Post.status == models.PUBLIC_POST_STATUS,
        )
        .scalar()
    ) or 0

    profile = schemas.UserPublic.model_validate(user).model_copy(update={"posts_count": posts_count})
    return schemas.UserEnvelope(user=profile)
