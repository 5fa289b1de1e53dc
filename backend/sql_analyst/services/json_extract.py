"""
Parse-or-fallback helper shared by all prompt-driven agents.

Model output is expected to hold exactly one JSON object or
array, possibly wrapped in a Markdown code fence.  Anything
that does not parse (or does not fit the expected shape)
yields the caller's fallback verbatim; there is no partial,
best-effort recovery.
"""

import json
import re
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

T = TypeVar("T")

# A fence wrapping the whole completion; fences inside it are content.
_WRAPPING_FENCE_RE = re.compile(
    r"^\s*```(?:json)?[ \t]*\n?([\s\S]*?)\n?[ \t]*```\s*$",
    re.IGNORECASE,
)


def strip_code_fences(raw: str) -> str:
    """
    Remove a Markdown code fence wrapping *raw*.

    Only the outermost ``` / ```json pair is removed, so fences
    inside JSON string values reach the caller intact.

    Parameters:
        raw (str): Raw completion text.

    Returns:
        str: Text inside the fence (or *raw*), trimmed.
    """
    match = _WRAPPING_FENCE_RE.match(raw)
    if match:
        return match.group(1).strip()
    return raw.strip()



def extract_json(
    raw: Any,
    fallback: T,
    shape: Optional[Type[BaseModel]] = None,
) -> T:
    """
    Parse *raw* as JSON, or return *fallback*.

    Parameters:
        raw (str): Raw completion text.
        fallback: Value returned unchanged on any failure.
        shape (type[BaseModel], optional): When given, the parsed
            value is validated into this model and the model
            instance is returned.

    Returns:
        The parsed value (or model instance), or *fallback*.
    """
    if not isinstance(raw, str):
        return fallback
    text = strip_code_fences(raw)
    if not text:
        return fallback
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return fallback

    if shape is None:
        return data
    try:
        return shape.model_validate(data)
    except ValidationError:
        return fallback
