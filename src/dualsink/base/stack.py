"""Stack trace normalisation.

Async code produces long runs of event-loop frames that carry no useful
context. collapse_stack keeps only the first frame of each such run.
"""

from typing import Iterable, List, Tuple

from dualsink.base.records import LogRecord, StackFrame

ASYNC_FRAME_SOURCE = "asyncio"


def collapse_stack(
    stack: Iterable[StackFrame],
    marker: str = ASYNC_FRAME_SOURCE,
) -> Tuple[StackFrame, ...]:
    """Drop consecutive frames from ``marker`` after the first one.

    Args:
        stack: Frames, outermost first.
        marker: source_component value whose repeated frames are collapsed.

    Returns:
        The collapsed stack, in the original order.

    Example:
        >>> frames = [StackFrame("asyncio", "a"), StackFrame("asyncio", "b"), StackFrame("app", "run")]
        >>> [f.method for f in collapse_stack(frames)]
        ['a', 'run']
    """
    collapsed: List[StackFrame] = []
    previous_is_marker = False
    for frame in stack:
        if frame.source_component == marker:
            if previous_is_marker:
                continue
            collapsed.append(frame)
            previous_is_marker = True
        else:
            collapsed.append(frame)
            previous_is_marker = False
    return tuple(collapsed)


def collapse_record(record: LogRecord, marker: str = ASYNC_FRAME_SOURCE) -> LogRecord:
    """Return ``record`` with its stack collapsed."""
    if not record.stack:
        return record
    return record.with_stack(collapse_stack(record.stack, marker))
