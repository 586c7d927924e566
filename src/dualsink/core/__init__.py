from dualsink.base.errors import (
    ConfigurationError,
    DualSinkError,
    LockAcquisitionError,
    SinkWriteError,
    UnknownSeverityError,
)
from dualsink.base.records import SEVERITIES, LogRecord, StackFrame
from dualsink.base.stack import ASYNC_FRAME_SOURCE, collapse_stack
from dualsink.core.adapter import LogAdapter
from dualsink.core.config import (
    AdapterOptions,
    ConsoleMode,
    SinkConfig,
    detect_container,
    detect_tty,
    resolve_sink_config,
)
from dualsink.core.formatters import (
    ColorFormatter,
    JSONFormatter,
    LineFormatter,
    RenderMode,
    TextFormatter,
    formatter_for,
    render,
)
from dualsink.core.serialization import make_json_encoder

__all__ = [
    # Adapter
    "LogAdapter",
    # Config
    "AdapterOptions",
    "ConsoleMode",
    "SinkConfig",
    "resolve_sink_config",
    "detect_container",
    "detect_tty",
    # Records
    "LogRecord",
    "StackFrame",
    "SEVERITIES",
    "collapse_stack",
    "ASYNC_FRAME_SOURCE",
    # Formatters
    "LineFormatter",
    "TextFormatter",
    "ColorFormatter",
    "JSONFormatter",
    "RenderMode",
    "formatter_for",
    "render",
    "make_json_encoder",
    # Errors
    "DualSinkError",
    "ConfigurationError",
    "UnknownSeverityError",
    "LockAcquisitionError",
    "SinkWriteError",
]
