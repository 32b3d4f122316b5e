from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    HttpUrl,
    StringConstraints,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)

from .models import POST_STATUSES


_http_url = TypeAdapter(HttpUrl)


def _check_url(value: str | None) -> str | None:
    """Reject anything that is not an absolute http(s) URL, keep the original text."""
    if value is None:
        return value
    try:
        _http_url.validate_python(value)
    except ValidationError:
        raise ValueError("must be a valid URL")
    return value


PostTitle = Annotated[str, StringConstraints(strict=True, strip_whitespace=True, min_length=1, max_length=200)]
PostContent = Annotated[str, StringConstraints(strict=True, strip_whitespace=True, min_length=1)]
PostStatus = Literal[POST_STATUSES]
Tag = Annotated[str, StringConstraints(strict=True, strip_whitespace=True, min_length=1, max_length=50)]
ImageUrl = Annotated[str, StringConstraints(strict=True, strip_whitespace=True, max_length=500)]
CommentContent = Annotated[str, StringConstraints(strict=True, strip_whitespace=True, min_length=1, max_length=2000)]


# ============================================================================
# BASE SCHEMAS
# ============================================================================


class Envelope(BaseModel):
    """Every response body carries success and an optional message."""

    success: bool = True
    message: str | None = None


class HealthResponse(Envelope):
    """Health check response."""

    status: Literal["ok"] = "ok"
    uptime_s: float | None = None


# ============================================================================
# USER SCHEMAS
# ============================================================================


class Author(BaseModel):
    """Public identity fields shown next to posts and comments."""

    id: int
    username: str
    full_name: str | None = None
    profile_image: str | None = None

    model_config = ConfigDict(from_attributes=True)


class UserPublic(Author):
    """Public user profile."""

    bio: str | None = None
    created_at: datetime
    posts_count: int = 0


class UserPrivate(Author):
    """The authenticated user's own account."""

    email: str
    bio: str | None = None
    created_at: datetime


class UserEnvelope(Envelope):
    user: UserPublic


class MeEnvelope(Envelope):
    user: UserPrivate


class AuthEnvelope(Envelope):
    token: str
    user: UserPrivate


class RegisterRequest(BaseModel):
    """Register request."""

    username: Annotated[str, StringConstraints(strict=True, strip_whitespace=True, min_length=3, max_length=50, pattern=r"^[a-zA-Z0-9_]+$")]
    email: EmailStr
    password: Annotated[str, StringConstraints(strict=True, min_length=6, max_length=128)]

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        value = value.strip().lower()
        if len(value) > 100:
            raise ValueError("must be at most 100 characters")
        return value


class LoginRequest(BaseModel):
    """Login with username or email."""

    login: Annotated[str, StringConstraints(strict=True, strip_whitespace=True, min_length=1)]
    password: Annotated[str, StringConstraints(strict=True, min_length=1)]


class ProfileUpdate(BaseModel):
    """Partial profile update; absent fields are left untouched."""

    full_name: Annotated[str, StringConstraints(strict=True, strip_whitespace=True, max_length=100)] | None = None
    bio: Annotated[str, StringConstraints(strict=True, strip_whitespace=True, max_length=500)] | None = None
    profile_image: ImageUrl | None = None

    check_profile_image = field_validator("profile_image")(_check_url)


# ============================================================================
# POST SCHEMAS
# ============================================================================


class Post(BaseModel):
    """Post joined with its author's public identity."""

    id: int
    user_id: int
    title: str
    content: str
    status: PostStatus
    tags: list[str] | None = None
    image_url: str | None = None
    views: int
    likes_count: int
    comments_count: int
    created_at: datetime
    updated_at: datetime
    author: Author

    model_config = ConfigDict(from_attributes=True)


class PostCreate(BaseModel):
    """Create post request."""

    title: PostTitle
    content: PostContent
    status: PostStatus = "draft"
    tags: list[Tag] | None = Field(None, max_length=20)
    image_url: ImageUrl | None = None

    check_image_url = field_validator("image_url")(_check_url)


class PostUpdate(BaseModel):
    """Update post request.

    title, content and status may be omitted but not set to null; tags and
    image_url accept null to clear them.
    """

    title: PostTitle = None
    content: PostContent = None
    status: PostStatus = None
    tags: list[Tag] | None = Field(None, max_length=20)
    image_url: ImageUrl | None = None

    check_image_url = field_validator("image_url")(_check_url)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class PostEnvelope(Envelope):
    post: Post


class PostListEnvelope(Envelope):
    posts: list[Post]
    pagination: Pagination


# ============================================================================
# COMMENT SCHEMAS
# ============================================================================


class Comment(BaseModel):
    """Comment on a post."""

    id: int
    post_id: int
    user_id: int
    content: str
    created_at: datetime
    updated_at: datetime
    author: Author

    model_config = ConfigDict(from_attributes=True)


class CommentCreate(BaseModel):
    """Create comment request. The text may arrive as `content` or `comment`."""

    content: CommentContent

    @model_validator(mode="before")
    @classmethod
    def accept_comment_key(cls, data: Any) -> Any:
        if isinstance(data, dict) and "content" not in data and "comment" in data:
            data = {**data, "content": data["comment"]}
        return data


class CommentEnvelope(Envelope):
    comment: Comment


class CommentListEnvelope(Envelope):
    comments: list[Comment]
