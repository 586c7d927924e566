"""Locked, flushed writes of rendered lines."""

import io
import logging
from typing import Callable, Optional, TextIO

from dualsink.base.errors import SinkWriteError
from dualsink.base.sinks.locking import FileLock

logger = logging.getLogger(__name__)

ErrorReporter = Callable[[Exception], None]


def report_to_logger(exc: Exception) -> None:
    """Default side channel: the ``dualsink`` stdlib logger, never the sinks."""
    logger.warning("%s: %s", type(exc).__name__, exc)


class SinkWriter:
    """Write whole lines to a stream under an exclusive advisory lock.

    One write is one line; the stream is flushed before the call returns.
    Lock failures are reported and the write is attempted anyway.

    Args:
        stream: Text stream to write to.
        name: Label used in error reports.
        lock_timeout: Maximum seconds to wait for the OS lock.
        on_error: Callback for lock and write failures.
    """

    def __init__(
        self,
        stream: TextIO,
        *,
        name: Optional[str] = None,
        lock_timeout: float = 5.0,
        on_error: Optional[ErrorReporter] = None,
    ) -> None:
        self.stream = stream
        self.name = name or getattr(stream, "name", None) or repr(stream)
        self.on_error = on_error or report_to_logger
        self._lock = FileLock(self._fileno, timeout=lock_timeout, name=str(self.name))

    def _fileno(self) -> Optional[int]:
        try:
            return self.stream.fileno()
        except (AttributeError, OSError, io.UnsupportedOperation, ValueError):
            return None

    def write(self, line: str) -> bool:
        """Write one rendered line.

        Args:
            line: Newline-terminated text.

        Returns:
            True if the line was written and flushed, False otherwise.
        """
        if not line.endswith("\n"):
            line += "\n"
        with self._lock.hold(self.on_error):
            try:
                self.stream.write(line)
                self.stream.flush()
            except (OSError, ValueError) as exc:
                self.on_error(SinkWriteError(str(self.name), exc))
                return False
        return True
