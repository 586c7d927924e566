import os
import sys
from pathlib import Path
from typing import Optional, TextIO, Union

from dualsink.base.errors import ConfigurationError
from dualsink.base.sinks.writer import ErrorReporter, SinkWriter

LOG_SUFFIX = ".json.log"


def default_log_path(program: Optional[str] = None) -> Path:
    """Default JSON log file: ``<program name>.json.log`` in the working directory.

    Args:
        program: Program path or name. Defaults to ``sys.argv[0]``.
    """
    program = program if program is not None else (sys.argv[0] if sys.argv else "")
    name = Path(program).stem or "python"
    return Path(os.getcwd()) / f"{name}{LOG_SUFFIX}"


class JSONLSink:
    """JSON-lines file sink that appends one rendered record per line.

    The file is opened in append mode at construction and kept for the sink
    lifetime. Other processes may append to the same path; every write holds
    an exclusive advisory lock on the file.

    Args:
        path: Output file path. Parent directories are created.
        lock_timeout: Maximum seconds to wait for the advisory lock.
        on_error: Callback for lock and write failures.

    Raises:
        ConfigurationError: If the file cannot be created or opened.
    """

    def __init__(
        self,
        path: Union[str, Path],
        *,
        lock_timeout: float = 5.0,
        on_error: Optional[ErrorReporter] = None,
    ) -> None:
        self.path = Path(path)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            # Open-once; line buffered so nothing waits in a buffer. Lone
            # surrogates are escaped rather than failing the whole line.
            self._fp: TextIO = open(
                self.path, "a", encoding="utf-8", errors="backslashreplace", buffering=1
            )
        except OSError as exc:
            raise ConfigurationError(
                f"unable to open log file {self.path}: {exc}", option="file"
            ) from exc
        self._writer = SinkWriter(
            self._fp, name=str(self.path), lock_timeout=lock_timeout, on_error=on_error
        )
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def write(self, line: str) -> bool:
        if self._closed:
            return False
        return self._writer.write(line)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._fp.close()

    def __enter__(self) -> "JSONLSink":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
