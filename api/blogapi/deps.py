from __future__ import annotations

from typing import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from .db import get_session
from .services.comments import CommentRepository
from .services.posts import PostRepository


def get_db() -> Generator[Session, None, None]:
    yield from get_session()


def get_post_repository(db: Session = Depends(get_db)) -> PostRepository:
    return PostRepository(db)


def get_comment_repository(db: Session = Depends(get_db)) -> CommentRepository:
    return CommentRepository(db)
