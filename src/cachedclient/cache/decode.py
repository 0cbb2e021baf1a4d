"""Payload decoding for cached endpoints.

Each registration supplies a *shape*: any type pydantic can validate
against (a :class:`~pydantic.BaseModel` subclass, ``list[int]``,
``dict[str, Any]``, or plain ``Any``). The shape is compiled once into a
:class:`~pydantic.TypeAdapter` and every refresh decodes the raw body into
a brand-new value, so objects already handed to callers are never
mutated by the cache.
"""

from __future__ import annotations

from typing import Any

from pydantic import TypeAdapter, ValidationError

from cachedclient.exceptions import DecodeError


def make_decoder(shape: Any = Any) -> TypeAdapter:
    """Compile *shape* into a reusable :class:`~pydantic.TypeAdapter`."""
    return TypeAdapter(shape)


def decode(decoder: TypeAdapter, content: bytes, path: str) -> Any:
    """Decode a JSON response body.

    Args:
        decoder: Adapter from :func:`make_decoder`.
        content: Raw response body.
        path: Endpoint path, used in the error message.

    Returns:
        The validated value.

    Raises:
        DecodeError: If *content* is empty, is not valid JSON, or does
            not match the shape.
    """
    if not content:
        raise DecodeError(path, "empty response body")
    try:
        return decoder.validate_json(content)
    except ValidationError as exc:
        raise DecodeError(path, f"failed to unmarshal response: {exc}") from exc
