"""
Request encoding for the two payload kinds.

Plain strings go out as ``text/plain``. Mappings are serialized to JSON but
labelled ``application/x-www-form-urlencoded``: the ingestion endpoint has
always been fed JSON under that content type and clients depend on it.
"""

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .errors import EncodingError, ValidationError

CONTENT_TYPE_TEXT = "text/plain"
CONTENT_TYPE_RECORD = "application/x-www-form-urlencoded"


@dataclass(frozen=True)
class LogRequest:
    """Outbound HTTP request descriptor. Reused unchanged across retries."""

    url: str
    body: bytes
    content_type: str
    method: str = "POST"
    headers: dict[str, str] = field(init=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "headers", {"Content-Type": self.content_type})


def validate(message: Any, token: str | None) -> None:
    """
    Check send preconditions.

    Raises:
        ValidationError: if the message is None or the token is empty
    """
    if message is None:
        raise ValidationError("Invalid parameter to log.")
    if not token:
        raise ValidationError("Loggly client token required.")


def encode_text(message: str, url: str) -> LogRequest:
    """Encode a plain-text message."""
    return LogRequest(url=url, body=message.encode("utf-8"), content_type=CONTENT_TYPE_TEXT)


def encode_record(record: Mapping[str, Any], url: str) -> LogRequest:
    """
    Encode a structured record as compact JSON.

    Raises:
        EncodingError: if the record holds cycles or non-JSON values
    """
    try:
        body = json.dumps(record, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError, RecursionError) as e:
        raise EncodingError(f"Record is not JSON serializable: {e}") from e

    return LogRequest(url=url, body=body.encode("utf-8"), content_type=CONTENT_TYPE_RECORD)


def encode_message(message: str | Mapping[str, Any], url: str) -> LogRequest:
    """Dispatch on payload kind: ``str`` is text, ``Mapping`` is a record."""
    if isinstance(message, str):
        return encode_text(message, url)
    if isinstance(message, Mapping):
        return encode_record(message, url)
    raise ValidationError(
        f"Unsupported message type {type(message).__name__}; expected str or mapping"
    )
