"""Opt-in redirection of warnings and uncaught exceptions into a LogAdapter.

Nothing here runs on import. The host application calls install_hooks (or
the individual installers) and keeps the returned handle to undo it.
"""

import sys
import threading
import time
import traceback
import warnings
from dataclasses import dataclass, field
from types import TracebackType
from typing import Callable, List, Optional, Tuple, Type

from dualsink.base.records import LogRecord, StackFrame
from dualsink.core.adapter import LogAdapter


@dataclass
class HookHandle:
    """Installed hooks; ``uninstall`` restores the previous handlers.

    Attributes:
        restorers: Callables that undo each installed hook, newest last.
    """

    restorers: List[Callable[[], None]] = field(default_factory=list)

    def uninstall(self) -> None:
        while self.restorers:
            self.restorers.pop()()

    def __enter__(self) -> "HookHandle":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.uninstall()


def stack_from_traceback(tb: Optional[TracebackType]) -> Tuple[StackFrame, ...]:
    """Frames of a traceback, outermost first."""
    return tuple(
        StackFrame(frame.f_globals.get("__name__", "?"), frame.f_code.co_name)
        for frame, _ in traceback.walk_tb(tb)
    )


def exception_record(
    exc_type: Type[BaseException],
    exc: Optional[BaseException],
    tb: Optional[TracebackType],
    **metadata,
) -> LogRecord:
    """Build an ``error`` record for an uncaught exception."""
    summary = traceback.format_exception_only(exc_type, exc)[-1].strip()
    metadata["traceback"] = "".join(traceback.format_exception(exc_type, exc, tb))
    return LogRecord(
        timestamp=time.time(),
        severity="error",
        message=summary,
        stack=stack_from_traceback(tb),
        metadata=metadata,
    )


def install_warning_hook(adapter: LogAdapter) -> HookHandle:
    """Send ``warnings.warn`` output to the adapter as ``warning`` records.

    A warning raised while one is being logged goes to the previous handler
    instead, so the hook cannot recurse.
    """
    previous = warnings.showwarning
    state = threading.local()

    def showwarning(message, category, filename, lineno, file=None, line=None):
        if getattr(state, "active", False):
            previous(message, category, filename, lineno, file, line)
            return
        state.active = True
        try:
            adapter.emit(
                LogRecord(
                    timestamp=time.time(),
                    severity="warning",
                    message=f"{category.__name__}: {message}",
                    metadata={"filename": filename, "lineno": lineno},
                )
            )
        finally:
            state.active = False

    warnings.showwarning = showwarning

    def restore() -> None:
        warnings.showwarning = previous

    return HookHandle([restore])


def install_excepthook(adapter: LogAdapter) -> HookHandle:
    """Log uncaught exceptions (main thread and ``threading`` threads) as errors.

    The previous hooks still run afterwards. KeyboardInterrupt and SystemExit
    are not logged.
    """
    previous_sys = sys.excepthook
    previous_thread = threading.excepthook

    def excepthook(exc_type, exc, tb):
        if not issubclass(exc_type, (KeyboardInterrupt, SystemExit)):
            adapter.emit(exception_record(exc_type, exc, tb))
        previous_sys(exc_type, exc, tb)

    def thread_excepthook(args):
        if not issubclass(args.exc_type, (KeyboardInterrupt, SystemExit)):
            thread_name = args.thread.name if args.thread is not None else None
            adapter.emit(
                exception_record(
                    args.exc_type, args.exc_value, args.exc_traceback, thread=thread_name
                )
            )
        previous_thread(args)

    sys.excepthook = excepthook
    threading.excepthook = thread_excepthook

    def restore() -> None:
        sys.excepthook = previous_sys
        threading.excepthook = previous_thread

    return HookHandle([restore])


def install_hooks(adapter: LogAdapter) -> HookHandle:
    """Install both the warning hook and the exception hooks."""
    handle = install_warning_hook(adapter)
    handle.restorers.extend(install_excepthook(adapter).restorers)
    return handle
