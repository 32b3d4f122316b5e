"""Authentication endpoints."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import Identity, create_access_token, get_current_identity
from ..deps import get_db
from ..errors import NotFoundOrForbidden, Unauthenticated
from ..services.credentials import authenticate, create_user
from ..validation import require_valid, validate_model

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=schemas.AuthEnvelope,
    status_code=status.HTTP_201_CREATED,
)
def register(
    payload: dict[str, Any] = Body(default={}),
    db: Session = Depends(get_db),
) -> schemas.AuthEnvelope:
    """
    Register a new user with username, email and password.

    Returns a token straight away so the client can start posting.
    """
    data: schemas.RegisterRequest = require_valid(validate_model(schemas.RegisterRequest, payload))

    user = create_user(db, username=data.username, email=data.email, password=data.password)
    token = create_access_token(user.id, user.username)

    return schemas.AuthEnvelope(
        message="User created successfully",
        token=token,
        user=schemas.UserPrivate.model_validate(user),
    )


@router.post("/login", response_model=schemas.AuthEnvelope)
def login(
    payload: dict[str, Any] = Body(default={}),
    db: Session = Depends(get_db),
) -> schemas.AuthEnvelope:
    """
    Login with username or email and password.
    """
    data: schemas.LoginRequest = require_valid(validate_model(schemas.LoginRequest, payload))

    user = authenticate(db, data.login, data.password)
    if not user:
        raise Unauthenticated("Invalid credentials")

    token = create_access_token(user.id, user.username)

    return schemas.AuthEnvelope(
        message="Login successful",
        token=token,
        user=schemas.UserPrivate.model_validate(user),
    )


@router.get("/me", response_model=schemas.MeEnvelope)
def get_me(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
) -> schemas.MeEnvelope:
    """Get the account behind the current token."""
    user = db.query(models.User).filter(models.User.id == identity.user_id).first()
    if not user:
        raise NotFoundOrForbidden("User not found")

    return schemas.MeEnvelope(user=schemas.UserPrivate.model_validate(user))
