"""Line formatters for log records.

This module turns a LogRecord into a single newline-terminated line, either
as plain text, ANSI-coloured text for terminals, or JSON.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional, Protocol

from rich.color import ColorSystem
from rich.style import Style

from dualsink.base.errors import UnknownSeverityError
from dualsink.base.records import LogRecord
from dualsink.core.serialization import make_json_encoder


class RenderMode(str, Enum):
    TEXT = "text"
    JSON = "json"


SEVERITY_STYLES: Dict[str, Style] = {
    "trace": Style.parse("color(244)"),
    "debug": Style.parse("color(250)"),
    "info": Style.parse("green"),
    "warning": Style.parse("bright_yellow"),
    "error": Style.parse("bold red"),
    "fatal": Style.parse("bold red"),
    "critical": Style.parse("bold red"),
}
TIMESTAMP_STYLE = Style.parse("bright_blue")
CONTEXT_STYLE = Style.parse("color(242)")

CONTINUATION_INDENT = "  "


class LineFormatter(Protocol):
    """Protocol for turning a record into one output line."""

    def format(self, record: LogRecord) -> str:
        """Render a record.

        Args:
            record: The record to render.

        Returns:
            The rendered line, terminated by a single newline.
        """
        ...


def format_timestamp(timestamp: float) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and no offset suffix."""
    moment = datetime.fromtimestamp(timestamp, tz=timezone.utc).replace(tzinfo=None)
    return moment.isoformat(timespec="milliseconds")


def stack_context(record: LogRecord) -> str:
    """``component->method`` of the innermost frame, or ``main`` at top level."""
    if not record.stack:
        return "main"
    frame = record.stack[-1]
    return f"{frame.source_component}->{frame.method}"


def severity_style(severity: str) -> Style:
    """Look up the colour for a severity.

    Raises:
        UnknownSeverityError: If the severity has no entry.
    """
    try:
        return SEVERITY_STYLES[severity]
    except KeyError:
        raise UnknownSeverityError(severity) from None


def _indent_continuation(message: str) -> str:
    # A bare "\r" would let a message overwrite its own line on a terminal.
    message = message.replace("\r\n", "\n").replace("\r", "\n")
    return message.rstrip("\n").replace("\n", "\n" + CONTINUATION_INDENT)


def _colored(text: str, style: Style) -> str:
    # Each line gets its own start/reset codes so colour never spans a newline.
    return "\n".join(
        style.render(line, color_system=ColorSystem.EIGHT_BIT) for line in text.split("\n")
    )


def _terminate(line: str) -> str:
    return line.rstrip("\n") + "\n"


class TextFormatter:
    """Plain single-line text: ``<timestamp> <S> [<context>] <message>``."""

    def format(self, record: LogRecord) -> str:
        details = [
            format_timestamp(record.timestamp),
            record.severity[:1].upper(),
            f"[{stack_context(record)}]",
            _indent_continuation(record.message),
        ]
        return _terminate(" ".join(details))


class ColorFormatter:
    """Text layout with ANSI colours per field.

    The timestamp and context use fixed colours; the level letter and message
    are coloured by severity.
    """

    def format(self, record: LogRecord) -> str:
        style = severity_style(record.severity)
        details = [
            _colored(format_timestamp(record.timestamp), TIMESTAMP_STYLE),
            _colored(record.severity[:1].upper(), style),
            _colored(f"[{stack_context(record)}]", CONTEXT_STYLE),
            _colored(_indent_continuation(record.message), style),
        ]
        return _terminate(" ".join(details))


class JSONFormatter:
    """Serialise the whole record, metadata included, as one JSON document.

    Args:
        encoder: JSON encoder to use. A compact canonical encoder is created
            when not provided.
    """

    def __init__(self, encoder: Optional[json.JSONEncoder] = None) -> None:
        self.encoder = encoder or make_json_encoder()

    def format(self, record: LogRecord) -> str:
        return _terminate(self.encoder.encode(record.to_dict()))


def formatter_for(
    mode: RenderMode,
    color_enabled: bool = False,
    encoder: Optional[json.JSONEncoder] = None,
) -> LineFormatter:
    """Pick the formatter for a render mode."""
    if mode == RenderMode.JSON:
        return JSONFormatter(encoder)
    if color_enabled:
        return ColorFormatter()
    return TextFormatter()


def render(
    record: LogRecord,
    mode: RenderMode,
    color_enabled: bool = False,
    encoder: Optional[json.JSONEncoder] = None,
) -> str:
    """Render one record as a newline-terminated line.

    Args:
        record: Record to render.
        mode: RenderMode.TEXT or RenderMode.JSON.
        color_enabled: Add ANSI colours (text mode only).
        encoder: JSON encoder for JSON mode.

    Returns:
        The rendered line.

    Raises:
        UnknownSeverityError: In colour mode, if the severity is not known.
    """
    return formatter_for(mode, color_enabled, encoder).format(record)
