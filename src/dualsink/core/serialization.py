"""JSON encoding for log records.

Each adapter builds its own encoder with make_json_encoder; nothing here is
shared module state.
"""

import json
from typing import Any


def _default_json_serializer(obj: Any) -> Any:
    if hasattr(obj, "model_dump"):
        return obj.model_dump()
    if isinstance(obj, (bytes, bytearray)):
        return bytes(obj).decode("utf-8", errors="backslashreplace")
    if isinstance(obj, (set, frozenset, tuple)):
        return list(obj)
    if hasattr(obj, "__dict__"):
        return obj.__dict__
    return str(obj)


class RecordEncoder(json.JSONEncoder):
    """Canonical JSON encoder that never gives up on a value.

    Args:
        pretty: Indent output over several lines (interactive terminals only).
    """

    def __init__(self, *, pretty: bool = False) -> None:
        super().__init__(
            sort_keys=True,
            ensure_ascii=False,
            indent=2 if pretty else None,
            separators=None if pretty else (",", ":"),
        )
        self.pretty = pretty

    def default(self, o: Any) -> Any:
        try:
            return _default_json_serializer(o)
        except Exception:
            return repr(o)

    def encode(self, o: Any) -> str:
        try:
            return super().encode(o)
        except (TypeError, ValueError):
            # Circular references or odd keys: fall back to a sanitised copy.
            return super().encode(_sanitise(o))


def _sanitise(value: Any, _depth: int = 0) -> Any:
    if _depth > 32:
        return repr(value)
    if isinstance(value, dict):
        return {str(k): _sanitise(v, _depth + 1) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_sanitise(v, _depth + 1) for v in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    try:
        return str(value)
    except Exception:
        return repr(value)


def make_json_encoder(*, pretty: bool = False) -> RecordEncoder:
    """Build a JSON encoder for one adapter or formatter instance."""
    return RecordEncoder(pretty=pretty)
