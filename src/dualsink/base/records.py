"""Log record data model.

This module defines the immutable record and stack frame types that flow
through the adapter, plus the closed set of severities it understands.
"""

import time
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Mapping, Tuple, Union

SEVERITIES: Tuple[str, ...] = (
    "trace",
    "debug",
    "info",
    "warning",
    "error",
    "fatal",
    "critical",
)

_CORE_FIELDS = ("timestamp", "severity", "message", "stack")


@dataclass(frozen=True)
class StackFrame:
    """One call-site in a stack trace.

    Attributes:
        source_component: Module or package the frame belongs to.
        method: Function or method name.
    """

    source_component: str
    method: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StackFrame":
        """Build a frame from a mapping.

        Accepts ``package`` as an alias of ``source_component``.
        """
        component = data.get("source_component", data.get("package", ""))
        return cls(source_component=str(component), method=str(data.get("method", "")))

    def to_dict(self) -> Dict[str, str]:
        return {"source_component": self.source_component, "method": self.method}


FrameLike = Union[StackFrame, Mapping[str, Any]]


def _coerce_frames(frames: Iterable[FrameLike]) -> Tuple[StackFrame, ...]:
    coerced = []
    for frame in frames:
        if isinstance(frame, StackFrame):
            coerced.append(frame)
        elif isinstance(frame, Mapping):
            coerced.append(StackFrame.from_dict(frame))
        else:
            raise TypeError(f"stack frame must be a mapping, got {type(frame).__name__}")
    return tuple(coerced)


@dataclass(frozen=True)
class LogRecord:
    """A single structured log entry.

    Records are immutable once built; transforms such as stack collapsing
    return a new record.

    Attributes:
        timestamp: Unix timestamp (fractional seconds).
        severity: Severity name, normally one of SEVERITIES.
        message: Text payload.
        stack: Call context, outermost frame first.
        metadata: Extra fields (host, pid, ...) passed through untouched.

    Example:
        >>> record = LogRecord.from_dict({
        ...     "severity": "warning",
        ...     "message": "disk low",
        ...     "epoch": 1623247131,
        ...     "stack": [{"package": "main", "method": "check"}],
        ...     "host": "web-1",
        ... })
        >>> record.metadata
        {'host': 'web-1'}
    """

    timestamp: float
    severity: str
    message: str
    stack: Tuple[StackFrame, ...] = ()
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Accept mappings and lists for ``stack``; always store frames.
        object.__setattr__(self, "stack", _coerce_frames(self.stack or ()))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LogRecord":
        """Build a record from a mapping, keeping unknown keys as metadata.

        ``epoch`` is accepted as an alias of ``timestamp``. A missing
        timestamp defaults to the current time.

        Args:
            data: Raw record fields.

        Returns:
            The new record.
        """
        payload = dict(data)
        timestamp = payload.pop("timestamp", None)
        epoch = payload.pop("epoch", None)
        if timestamp is None:
            timestamp = epoch if epoch is not None else time.time()
        return cls(
            timestamp=float(timestamp),
            severity=str(payload.pop("severity", "info")),
            message=str(payload.pop("message", "")),
            stack=payload.pop("stack", None) or (),
            metadata=payload,
        )

    def with_stack(self, stack: Iterable[FrameLike]) -> "LogRecord":
        """Return a copy of this record with a different stack."""
        return replace(self, stack=_coerce_frames(stack))

    def to_dict(self) -> Dict[str, Any]:
        """Flatten the record into a plain dict.

        Metadata keys come first; core fields override metadata keys of the
        same name.
        """
        payload: Dict[str, Any] = {
            k: v for k, v in self.metadata.items() if k not in _CORE_FIELDS
        }
        payload["timestamp"] = self.timestamp
        payload["severity"] = self.severity
        payload["message"] = self.message
        payload["stack"] = [frame.to_dict() for frame in self.stack]
        return payload
