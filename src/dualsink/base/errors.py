"""Exception types raised or reported by the adapter."""

from typing import Optional


class DualSinkError(Exception):
    """Base class for adapter errors."""


class ConfigurationError(DualSinkError):
    """Raised when adapter options are invalid or a sink cannot be opened.

    Attributes:
        option: Name of the offending option, if known.
    """

    def __init__(self, message: str, option: Optional[str] = None) -> None:
        self.option = option
        super().__init__(message)


class UnknownSeverityError(DualSinkError, ValueError):
    """Raised when a record's severity has no formatting rule.

    Attributes:
        severity: The unrecognised severity value.
    """

    def __init__(self, severity: str) -> None:
        self.severity = severity
        super().__init__(f"no severity definition found for {severity!r}")


class LockAcquisitionError(DualSinkError):
    """Reported when the advisory lock on an output stream cannot be taken.

    Attributes:
        target: Description of the stream that could not be locked.
        reason: Underlying cause.
    """

    def __init__(self, target: str, reason: str) -> None:
        self.target = target
        self.reason = reason
        super().__init__(f"unable to lock {target}: {reason}")


class SinkWriteError(DualSinkError):
    """Reported when writing a line to an output stream fails.

    Attributes:
        target: Description of the stream.
        cause: The underlying exception.
    """

    def __init__(self, target: str, cause: Exception) -> None:
        self.target = target
        self.cause = cause
        super().__init__(f"write to {target} failed: {cause}")
