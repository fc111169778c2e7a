"""Frame serialization utilities."""

from __future__ import annotations

import dataclasses
import json
from enum import Enum
from typing import Any, Mapping


MAX_FRAME_BYTES = 10 * 1024 * 1024


def _set_order(value: Any) -> tuple[str, Any]:
    if isinstance(value, (bool, int, float, str)):
        return (type(value).__name__, value)
    return (type(value).__name__, repr(value))


def to_jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Mapping):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (frozenset, set)):
        return sorted((to_jsonable(v) for v in value), key=_set_order)
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def score_only(frame: Any) -> dict[str, Any]:
    """Reduced payload for scoreboard clients."""
    return {
        "game": getattr(frame, "game", ""),
        "tick_index": getattr(frame, "tick_index", 0),
        "round_index": getattr(frame, "round_index", 0),
        "status": to_jsonable(getattr(frame, "status", None)),
        "score": getattr(frame, "score", 0),
    }


def serialize_frame(frame: Any) -> bytes:
    """Serialize a frame into deterministic JSON bytes."""
    payload = to_jsonable(frame)
    data = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    if len(data) > MAX_FRAME_BYTES:
        raise ValueError(
            f"Serialized frame exceeds max size ({len(data)} bytes > {MAX_FRAME_BYTES})."
        )
    return data
