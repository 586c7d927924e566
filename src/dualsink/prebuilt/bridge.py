"""Bridge from the stdlib ``logging`` module into a LogAdapter."""

import logging
import socket
from collections.abc import Mapping
from typing import Any, Dict, Optional

from dualsink.base.records import LogRecord, StackFrame
from dualsink.core.adapter import LogAdapter
from dualsink.core.config import ConsoleMode
from dualsink.prebuilt.message import MessageFormatter

# Attributes every logging.LogRecord carries; anything else came from ``extra``.
_STANDARD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime", "taskName"}

_INTERNAL_PREFIX = "dualsink"


def severity_for_level(levelno: int) -> str:
    """Map a stdlib logging level to a severity name."""
    if levelno >= logging.CRITICAL:
        return "critical"
    if levelno >= logging.ERROR:
        return "error"
    if levelno >= logging.WARNING:
        return "warning"
    if levelno >= logging.INFO:
        return "info"
    if levelno >= logging.DEBUG:
        return "debug"
    return "trace"


class AdapterHandler(logging.Handler):
    """logging.Handler that forwards records to a LogAdapter.

    Records from the adapter's own ``dualsink.*`` loggers are dropped, since
    those loggers are the adapter's error channel.

    Args:
        adapter: Destination adapter.
        message_formatter: Strategy for rendering ``msg % args``. By default
            structured parameters are pretty-printed when the adapter writes
            colour to a terminal, and compact otherwise.
        level: Minimum level to forward.
    """

    def __init__(
        self,
        adapter: LogAdapter,
        message_formatter: Optional[MessageFormatter] = None,
        level: int = logging.NOTSET,
    ) -> None:
        super().__init__(level)
        self.adapter = adapter
        self.message_formatter = message_formatter or MessageFormatter(
            pretty=_console_is_terminal(adapter)
        )
        self._host = socket.gethostname()

    def emit(self, record: logging.LogRecord) -> None:
        if record.name == _INTERNAL_PREFIX or record.name.startswith(_INTERNAL_PREFIX + "."):
            return
        try:
            self.adapter.emit(self.to_log_record(record))
        except Exception:
            self.handleError(record)

    def render_message(self, record: logging.LogRecord) -> str:
        args = record.args
        if not args or isinstance(args, Mapping):
            message = record.getMessage()
        else:
            message = self.message_formatter.format(str(record.msg), *args)
        if record.exc_info:
            if not record.exc_text:
                record.exc_text = logging.Formatter().formatException(record.exc_info)
        if record.exc_text:
            message = f"{message}\n{record.exc_text}"
        return message

    def to_log_record(self, record: logging.LogRecord) -> LogRecord:
        metadata: Dict[str, Any] = {
            "logger": record.name,
            "host": self._host,
            "pid": record.process,
            "thread": record.threadName,
        }
        for key, value in vars(record).items():
            if key not in _STANDARD_ATTRS:
                metadata.setdefault(key, value)
        return LogRecord(
            timestamp=record.created,
            severity=severity_for_level(record.levelno),
            message=self.render_message(record),
            stack=(StackFrame(record.module, record.funcName or ""),),
            metadata=metadata,
        )


def _console_is_terminal(adapter: Any) -> bool:
    config = getattr(adapter, "config", None)
    return config is not None and config.console == ConsoleMode.COLOR


def attach(
    adapter: LogAdapter,
    logger: Optional[logging.Logger] = None,
    level: int = logging.NOTSET,
) -> AdapterHandler:
    """Attach an AdapterHandler to ``logger`` (the root logger by default)."""
    handler = AdapterHandler(adapter, level=level)
    (logger or logging.getLogger()).addHandler(handler)
    return handler
