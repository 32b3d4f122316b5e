"""Request payload validation.

Each validator is a pure function: raw payload in, either the normalized
payload and no errors, or None and the ordered field violations out.
Nothing here touches the database.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from . import schemas
from .errors import ValidationFailed

Violation = dict[str, str]
M = TypeVar("M", bound=BaseModel)

_MESSAGE_PREFIXES = ("Value error, ", "Assertion failed, ")


def _violations(exc: ValidationError) -> list[Violation]:
    errors = []
    for error in exc.errors():
        loc = error.get("loc", ())
        field = ".".join(str(part) for part in loc) if loc else "body"
        message = error.get("msg", "Invalid value")
        for prefix in _MESSAGE_PREFIXES:
            if message.startswith(prefix):
                message = message[len(prefix):]
        errors.append({"field": field, "message": message})
    return errors


def validate_model(model: type[M], raw: Any) -> tuple[M | None, list[Violation]]:
    """Validate a raw payload against a request schema."""
    if not isinstance(raw, dict):
        return None, [{"field": "body", "message": "Request body must be a JSON object"}]

    try:
        return model.model_validate(raw), []
    except ValidationError as e:
        return None, _violations(e)


def validate_post_create(raw: Any) -> tuple[dict[str, Any] | None, list[Violation]]:
    """Title and content are required; status defaults to draft; absent tags stay None."""
    payload, errors = validate_model(schemas.PostCreate, raw)
    if payload is None:
        return None, errors
    return payload.model_dump(), []


def validate_post_update(raw: Any) -> tuple[dict[str, Any] | None, list[Violation]]:
    """Only the fields actually sent are returned; an empty dict means nothing to update."""
    payload, errors = validate_model(schemas.PostUpdate, raw)
    if payload is None:
        return None, errors
    return payload.model_dump(exclude_unset=True), []


def validate_comment(raw: Any) -> tuple[dict[str, Any] | None, list[Violation]]:
    payload, errors = validate_model(schemas.CommentCreate, raw)
    if payload is None:
        return None, errors
    return payload.model_dump(), []


def validate_profile_update(raw: Any) -> tuple[dict[str, Any] | None, list[Violation]]:
    payload, errors = validate_model(schemas.ProfileUpdate, raw)
    if payload is None:
        return None, errors
    return payload.model_dump(exclude_unset=True), []


def require_valid(result: tuple[Any, list[Violation]]) -> Any:
    """Unwrap a validator result, raising ValidationFailed on violations."""
    payload, errors = result
    if errors:
        raise ValidationFailed(errors)
    return payload
