"""JSON wire codec for message bodies."""

from __future__ import annotations

import copy
import json
from collections.abc import Mapping
from typing import Any

from .exceptions import MessagingSerializationError
from .result import FaultKind, Result


def _json_serializer(obj: Any) -> Any:
    """Serialize datetime and other non-JSON types."""
    if hasattr(obj, "isoformat"):
        return obj.isoformat()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def dumps(items: Mapping[str, Any]) -> str:
    """Encode projected items as JSON text."""
    try:
        return json.dumps(items, default=_json_serializer)
    except (TypeError, ValueError) as e:
        raise MessagingSerializationError(str(e)) from e


def loads(
    raw: str | bytes | bytearray | Mapping[str, Any] | None,
) -> Result[dict[str, Any]]:
    """Decode an inbound payload into a JSON object.

    Already-structured mappings are deep-copied, so later changes to the
    parsed or projected fields never reach the caller's object.
    """
    if isinstance(raw, Mapping):
        return Result.success(copy.deepcopy(dict(raw)))
    if raw is None:
        return _malformed("payload was empty")
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = bytes(raw).decode("utf-8")
        except UnicodeDecodeError as e:
            return _malformed(f"payload is not valid UTF-8: {e}")
    if not raw.strip():
        return _malformed("payload was empty")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        return _malformed(f"payload is not valid JSON: {e}")
    if not isinstance(data, dict):
        return _malformed(f"payload must be a JSON object, got {type(data).__name__}")
    return Result.success(data)


def _malformed(message: str) -> Result[dict[str, Any]]:
    return Result.failure(FaultKind.MALFORMED_PAYLOAD, message)


__all__ = ["dumps", "loads"]
