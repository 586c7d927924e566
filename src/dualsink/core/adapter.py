"""Dual-sink log adapter.

LogAdapter resolves its configuration once, at construction, and then
renders every incoming record to a JSON-lines file and/or the console.
"""

import logging
from typing import Any, Mapping, Optional, TextIO, Union

from dualsink.base.records import LogRecord
from dualsink.base.sinks.console import ConsoleSink
from dualsink.base.sinks.jsonl import JSONLSink
from dualsink.base.sinks.writer import ErrorReporter
from dualsink.base.stack import collapse_record
from dualsink.core.config import (
    AdapterOptions,
    ConsoleMode,
    SinkConfig,
    build_options,
    resolve_sink_config,
)
from dualsink.core.formatters import JSONFormatter, LineFormatter, RenderMode, formatter_for
from dualsink.core.serialization import make_json_encoder

logger = logging.getLogger(__name__)


def _report_sink_failure(exc: Exception) -> None:
    logger.error("%s: %s", type(exc).__name__, exc)


class LogAdapter:
    """Render structured log records to a JSON file and/or stderr.

    Use ``LogAdapter.configure`` to build one. Sinks fail independently: an
    error on the file sink never stops the console write and vice versa.
    Errors are sent to ``on_error`` (by default the ``dualsink`` stdlib
    logger), never to the adapter's own sinks.

    Args:
        config: Resolved sink configuration.
        options: The options the configuration was resolved from.
        stream: Console stream override. Defaults to ``sys.stderr``.
        on_error: Side channel for sink failures.

    Example:
        >>> adapter = LogAdapter.configure(file="app.json.log", console="text")
        >>> adapter.emit({"severity": "info", "message": "started"})
    """

    def __init__(
        self,
        config: SinkConfig,
        options: Optional[AdapterOptions] = None,
        *,
        stream: Optional[TextIO] = None,
        on_error: Optional[ErrorReporter] = None,
    ) -> None:
        self._config = config
        self.options = options or AdapterOptions()
        self.on_error = on_error or _report_sink_failure
        # One encoder per adapter; shared by both sinks.
        self.encoder = make_json_encoder()

        self.file_sink: Optional[JSONLSink] = None
        self.file_formatter: Optional[LineFormatter] = None
        if config.file_path is not None:
            self.file_sink = JSONLSink(
                config.file_path,
                lock_timeout=self.options.lock_timeout,
                on_error=self.on_error,
            )
            self.file_formatter = JSONFormatter(self.encoder)

        self.console_sink: Optional[ConsoleSink] = None
        self.console_formatter: Optional[LineFormatter] = None
        if config.console_enabled:
            self.console_sink = ConsoleSink(
                stream,
                lock_timeout=self.options.lock_timeout,
                on_error=self.on_error,
            )
            self.console_formatter = _console_formatter(config.console, self.encoder)

    @classmethod
    def configure(
        cls,
        options: Optional[Union[AdapterOptions, Mapping[str, Any]]] = None,
        *,
        stderr_is_tty: Optional[bool] = None,
        in_container: Optional[bool] = None,
        stream: Optional[TextIO] = None,
        on_error: Optional[ErrorReporter] = None,
        **kwargs: Any,
    ) -> "LogAdapter":
        """Build an adapter from options.

        Options can be given as an AdapterOptions, a mapping, or keyword
        arguments (``file``, ``console``, ``collapse_source``,
        ``lock_timeout``).

        Args:
            options: Adapter options.
            stderr_is_tty: Override for the terminal probe.
            in_container: Override for the container probe.
            stream: Console stream override.
            on_error: Side channel for sink failures.

        Returns:
            A configured adapter.

        Raises:
            ConfigurationError: If options are invalid or the file cannot be opened.
        """
        if options is None:
            options = build_options(kwargs)
        elif not isinstance(options, AdapterOptions):
            options = build_options({**options, **kwargs})
        elif kwargs:
            options = build_options({**options.model_dump(), **kwargs})
        config = resolve_sink_config(
            options,
            stderr_is_tty=stderr_is_tty,
            in_container=in_container,
            stream=stream,
        )
        logger.debug("dualsink configured: console=%s file=%s", config.console.value, config.file_path)
        return cls(config, options, stream=stream, on_error=on_error)

    @property
    def config(self) -> SinkConfig:
        return self._config

    def emit(self, record: Union[LogRecord, Mapping[str, Any]]) -> None:
        """Write one record to every configured sink.

        Args:
            record: A LogRecord or a mapping accepted by LogRecord.from_dict.
                A record that cannot be normalised is reported through
                ``on_error`` and dropped.
        """
        try:
            if not isinstance(record, LogRecord):
                record = LogRecord.from_dict(record)
            record = collapse_record(record, self.options.collapse_source)
        except Exception as exc:
            self.on_error(exc)
            return

        if self.file_sink is not None and self.file_formatter is not None:
            self._deliver(self.file_sink, self.file_formatter, record)
        if self.console_sink is not None and self.console_formatter is not None:
            self._deliver(self.console_sink, self.console_formatter, record)

    def _deliver(self, sink: Any, formatter: LineFormatter, record: LogRecord) -> bool:
        try:
            line = formatter.format(record)
        except Exception as exc:
            self.on_error(exc)
            return False
        try:
            return sink.write(line)
        except Exception as exc:
            self.on_error(exc)
            return False

    def close(self) -> None:
        if self.file_sink is not None:
            self.file_sink.close()

    def __enter__(self) -> "LogAdapter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def _console_formatter(mode: ConsoleMode, encoder: Any) -> LineFormatter:
    if mode == ConsoleMode.JSON:
        return formatter_for(RenderMode.JSON, encoder=encoder)
    return formatter_for(RenderMode.TEXT, color_enabled=mode == ConsoleMode.COLOR)
