"""Answer validators for the install prompts.

Each validator takes the raw answer and either returns the value to store or
raises ValidationFailure with the message shown to the operator.
"""
from __future__ import annotations

from typing import Annotated, Any

from pydantic import AnyUrl, EmailStr, TypeAdapter, UrlConstraints
from pydantic import ValidationError as PydanticValidationError

from core.exceptions import ValidationFailure

_URL_ADAPTER = TypeAdapter(Annotated[AnyUrl, UrlConstraints(host_required=True)])
_EMAIL_ADAPTER = TypeAdapter(EmailStr)


def _text(answer: Any) -> str:
    return "" if answer is None else str(answer).strip()


def validate_url(answer: Any) -> str:
    """Accept a well-formed absolute URL and drop one trailing slash."""
    value = _text(answer)
    try:
        _URL_ADAPTER.validate_python(value)
    except PydanticValidationError:
        raise ValidationFailure("The url format is invalid.") from None
    return value[:-1] if value.endswith("/") else value


def validate_integer(answer: Any, attribute: str = "port") -> int:
    """Accept a whole number, optionally signed."""
    if isinstance(answer, bool):
        raise ValidationFailure(f"The {attribute} must be an integer.")
    if isinstance(answer, int):
        return answer
    value = _text(answer)
    digits = value[1:] if value[:1] in "+-" else value
    if not digits.isdigit():
        raise ValidationFailure(f"The {attribute} must be an integer.")
    return int(value)


def validate_email(answer: Any, attribute: str = "from address") -> str:
    """Accept a syntactically valid email address."""
    value = _text(answer)
    try:
        _EMAIL_ADAPTER.validate_python(value)
    except PydanticValidationError:
        raise ValidationFailure(f"The {attribute} must be a valid email address.") from None
    return value


__all__ = [
    "validate_url",
    "validate_integer",
    "validate_email",
]
