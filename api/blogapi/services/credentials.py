"""Credential service: password hashing and username/password accounts."""

from __future__ import annotations

import logging

from passlib.context import CryptContext
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..errors import ValidationFailed
from ..models import User

logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def _duplicate_user() -> ValidationFailed:
    return ValidationFailed(
        [{"field": "username", "message": "Username or email already exists"}],
        message="Username or email already exists",
    )


def create_user(db: Session, username: str, email: str, password: str) -> User:
    """
    Create a user account with a hashed password.

    Args:
        db: Database session
        username: Unique username
        email: Unique, already normalized email address
        password: Plain text password (will be hashed)

    Returns:
        Created User

    Raises:
        ValidationFailed: If the username or email is already taken
    """
    existing = (
        db.query(User.id)
        .filter(or_(func.lower(User.username) == username.lower(), User.email == email))
        .first()
    )
    if existing:
        raise _duplicate_user()

    user = User(username=username, email=email, password=hash_password(password))
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race against a concurrent registration with the same name
        db.rollback()
        raise _duplicate_user()
    db.refresh(user)
    logger.info(f"Registered user {user.id} ({user.username})")
    return user


def authenticate(db: Session, login: str, password: str) -> User | None:
    """
    Find the user by username or email and check the password.

    Returns:
        User if the credentials match, None otherwise
    """
    user = (
        db.query(User)
        .filter(or_(User.username == login, User.email == login.lower()))
        .first()
    )
    if not user:
        return None

    if not verify_password(password, user.password):
        return None

    return user
