from dualsink.base.sinks.console import ConsoleSink, apply_utf8
from dualsink.base.sinks.jsonl import JSONLSink, default_log_path
from dualsink.base.sinks.locking import FileLock
from dualsink.base.sinks.writer import SinkWriter, report_to_logger

__all__ = [
    "ConsoleSink",
    "FileLock",
    "JSONLSink",
    "SinkWriter",
    "apply_utf8",
    "default_log_path",
    "report_to_logger",
]
