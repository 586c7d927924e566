import sys
from typing import Optional, TextIO

from dualsink.base.sinks.writer import ErrorReporter, SinkWriter


def apply_utf8(stream: TextIO) -> None:
    """Switch a text stream to UTF-8 and line buffering.

    Skipped when the current encoding already looks UTF-flavoured (utf-8,
    utf8, utf-16-le, ...). Streams without ``reconfigure`` are left alone.
    A lenient error handler on the stream is kept; a missing or ``strict`` one
    becomes ``backslashreplace`` so unencodable text is escaped instead of
    raising.
    """
    reconfigure = getattr(stream, "reconfigure", None)
    if reconfigure is None:
        return
    encoding = getattr(stream, "encoding", None) or ""
    if "utf" in encoding.lower():
        reconfigure(line_buffering=True)
    else:
        # reconfigure() resets errors to "strict" when only encoding is given.
        errors = getattr(stream, "errors", None)
        if errors in (None, "strict"):
            errors = "backslashreplace"
        reconfigure(encoding="utf-8", errors=errors, line_buffering=True)


class ConsoleSink:
    """Console sink; writes rendered lines to stderr.

    The stream is bound lazily at the first write so that a replaced
    ``sys.stderr`` is honoured, and is switched to UTF-8 once.

    Args:
        stream: Stream to write to. Defaults to ``sys.stderr`` at first write.
        lock_timeout: Maximum seconds to wait for the advisory lock.
        on_error: Callback for lock and write failures.
    """

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        *,
        lock_timeout: float = 5.0,
        on_error: Optional[ErrorReporter] = None,
    ) -> None:
        self._stream = stream
        self._lock_timeout = lock_timeout
        self._on_error = on_error
        self._writer: Optional[SinkWriter] = None
        self.has_utf8 = False

    @property
    def writer(self) -> SinkWriter:
        if self._writer is None:
            stream = self._stream if self._stream is not None else sys.stderr
            self._writer = SinkWriter(
                stream,
                name=getattr(stream, "name", None) or "<stderr>",
                lock_timeout=self._lock_timeout,
                on_error=self._on_error,
            )
        return self._writer

    def write(self, line: str) -> bool:
        writer = self.writer
        if not self.has_utf8:
            self.has_utf8 = True
            apply_utf8(writer.stream)
        return writer.write(line)
