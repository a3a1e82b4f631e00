from typing import Any, Dict, Iterable, Mapping
from fastapi import Request
from exceptions import MissingFieldError, InvalidFieldError

TEXT_FIELDS = ("text", "delete_password")


def validate_fields(body: Mapping[str, Any], fields: Iterable[str]) -> Mapping[str, Any]:
    """Raise MissingFieldError unless every field is present and not None.

    The body is returned as-is.
    """
    for field in fields:
        if field not in body or body[field] is None:
            raise MissingFieldError()
    return body


def validate_text(body: Mapping[str, Any], fields: Iterable[str]) -> Mapping[str, Any]:
    """Raise InvalidFieldError if a present text field is not a plain string.

    Catches JSON numbers/objects and multipart file uploads.
    """
    for field in fields:
        if field in body and not isinstance(body[field], str):
            raise InvalidFieldError(field)
    return body


def parse_id(body: Mapping[str, Any], field: str) -> int:
    value = body.get(field)
    if isinstance(value, bool):
        raise InvalidFieldError(field)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidFieldError(field)


async def read_body(request: Request) -> Dict[str, Any]:
    """Parse a JSON or form-encoded request body into a dict"""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            raise InvalidFieldError("body")
        return body if isinstance(body, dict) else {}

    form = await request.form()
    return dict(form)


def required_fields(*fields: str):
    """Dependency that reads the request body and checks the given fields"""
    async def dependency(request: Request) -> Dict[str, Any]:
        body = validate_fields(await read_body(request), fields)
        return dict(validate_text(body, [field for field in fields if field in TEXT_FIELDS]))

    return dependency
