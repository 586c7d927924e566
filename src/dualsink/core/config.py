"""Adapter configuration and its resolution into sink settings.

User-facing options are a pydantic model. They are resolved exactly once,
when the adapter is built, into a frozen SinkConfig. Runtime environment
probes (terminal, container) are consulted only during that resolution.
"""

import os
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Literal, Mapping, Optional, TextIO, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from dualsink.base.errors import ConfigurationError
from dualsink.base.sinks.jsonl import default_log_path
from dualsink.base.stack import ASYNC_FRAME_SOURCE

ENV_PREFIX = "DUALSINK_"
_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off", ""}


class ConsoleMode(str, Enum):
    DISABLED = "disabled"
    TEXT = "text"
    COLOR = "color"
    JSON = "json"


class AdapterOptions(BaseModel):
    """Construction-time options for a LogAdapter.

    Attributes:
        file: JSON log file. A path, True for ``<program>.json.log``, or
            None/False for no file.
        console: Console output. True picks a format from the environment,
            "json" or "text" force one, None/False disables it (unless no
            file is configured either, in which case the console is used).
        collapse_source: Stack frame source whose consecutive frames are
            collapsed to one.
        lock_timeout: Maximum seconds to wait for an output lock.

    Example:
        >>> AdapterOptions(file="/var/log/app.json.log", console="text")
        >>> AdapterOptions(console=True)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    file: Optional[Union[bool, str, Path]] = None
    console: Optional[Union[bool, Literal["json", "text"]]] = None
    collapse_source: str = ASYNC_FRAME_SOURCE
    lock_timeout: float = Field(default=5.0, gt=0)

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        prefix: str = ENV_PREFIX,
    ) -> "AdapterOptions":
        """Read options from ``<prefix>FILE``, ``<prefix>CONSOLE`` and friends.

        Raises:
            ConfigurationError: If a value is invalid.
        """
        environ = os.environ if environ is None else environ
        values = {}
        raw_file = environ.get(f"{prefix}FILE")
        if raw_file is not None:
            lowered = raw_file.strip().lower()
            if lowered in _TRUTHY:
                values["file"] = True
            elif lowered in _FALSY:
                values["file"] = False
            else:
                values["file"] = raw_file
        raw_console = environ.get(f"{prefix}CONSOLE")
        if raw_console is not None:
            values["console"] = raw_console.strip().lower() or False
        raw_source = environ.get(f"{prefix}COLLAPSE_SOURCE")
        if raw_source:
            values["collapse_source"] = raw_source
        raw_timeout = environ.get(f"{prefix}LOCK_TIMEOUT")
        if raw_timeout:
            values["lock_timeout"] = raw_timeout
        return build_options(values)


def build_options(values: Mapping[str, object]) -> AdapterOptions:
    """Validate raw option values.

    Raises:
        ConfigurationError: If validation fails.
    """
    try:
        return AdapterOptions(**values)
    except ValidationError as exc:
        errors = exc.errors()
        option = str(errors[0]["loc"][0]) if errors and errors[0].get("loc") else None
        raise ConfigurationError(f"invalid adapter options: {exc}", option=option) from exc


@dataclass(frozen=True)
class SinkConfig:
    """Resolved sink settings; fixed for the adapter lifetime.

    Attributes:
        console: Console render mode, or DISABLED.
        file_path: JSON log file, or None when the file sink is off.
    """

    console: ConsoleMode
    file_path: Optional[Path] = None

    def __post_init__(self) -> None:
        if self.console == ConsoleMode.DISABLED and self.file_path is None:
            raise ConfigurationError("at least one of console or file must be enabled")

    @property
    def console_enabled(self) -> bool:
        return self.console != ConsoleMode.DISABLED

    @property
    def file_enabled(self) -> bool:
        return self.file_path is not None


def detect_tty(stream: Optional[TextIO] = None) -> bool:
    """Whether the console stream is an interactive terminal."""
    stream = stream if stream is not None else sys.stderr
    isatty = getattr(stream, "isatty", None)
    try:
        return bool(isatty()) if isatty else False
    except (OSError, ValueError):
        return False


def detect_container() -> bool:
    """Whether the process appears to run inside a container."""
    if os.access("/.dockerenv", os.R_OK):
        return True
    if os.environ.get("container"):
        return True
    return os.path.exists("/run/.containerenv")


def resolve_sink_config(
    options: AdapterOptions,
    *,
    stderr_is_tty: Optional[bool] = None,
    in_container: Optional[bool] = None,
    stream: Optional[TextIO] = None,
) -> SinkConfig:
    """Resolve options into a SinkConfig.

    * No file and no console: console on, format picked automatically.
    * console=True: JSON inside a container, colour on a terminal, text otherwise.
    * console="json"/"text": used as given; explicit text is never coloured.

    Args:
        options: Validated options.
        stderr_is_tty: Terminal probe result. Probed from ``stream`` if None.
        in_container: Container probe result. Probed if None.
        stream: Console stream used for the terminal probe.

    Returns:
        The resolved configuration.
    """
    file_path: Optional[Path] = None
    if options.file is True:
        file_path = default_log_path()
    elif options.file:
        file_path = Path(options.file)

    console = options.console
    if file_path is None and not console:
        console = True

    if not console:
        mode = ConsoleMode.DISABLED
    elif console == "json":
        mode = ConsoleMode.JSON
    elif console == "text":
        mode = ConsoleMode.TEXT
    else:
        # Docker and friends prefer JSON on stderr.
        containerized = in_container if in_container is not None else detect_container()
        if containerized:
            mode = ConsoleMode.JSON
        else:
            tty = stderr_is_tty if stderr_is_tty is not None else detect_tty(stream)
            mode = ConsoleMode.COLOR if tty else ConsoleMode.TEXT

    return SinkConfig(console=mode, file_path=file_path)

