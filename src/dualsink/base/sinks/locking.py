"""Advisory file locking for shared output streams.

POSIX record locks are held per process, so an ``fcntl`` lock alone does not
keep two threads of the same process apart. FileLock pairs it with a
``threading.Lock``.
"""

import errno
import fcntl
import threading
import time
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from dualsink.base.errors import LockAcquisitionError

_RETRY_ERRNOS = (errno.EAGAIN, errno.EACCES)
_POLL_INTERVAL = 0.005


class FileLock:
    """Exclusive lock over a file descriptor, bounded by a timeout.

    Args:
        fileno: Callable returning the descriptor to lock, or None when the
            stream has no descriptor (only the in-process lock is used then).
        timeout: Maximum seconds to wait for the OS lock.
        name: Label used in error reports.
    """

    def __init__(
        self,
        fileno: Callable[[], Optional[int]],
        *,
        timeout: float = 5.0,
        name: str = "stream",
    ) -> None:
        self._fileno = fileno
        self.timeout = timeout
        self.name = name
        self._thread_lock = threading.Lock()

    @contextmanager
    def hold(self, on_error: Callable[[LockAcquisitionError], None]) -> Iterator[bool]:
        """Hold the lock for the duration of the block.

        Lock failures are passed to ``on_error`` and the block still runs.

        Yields:
            True if the OS-level lock is held, False otherwise.
        """
        with self._thread_lock:
            fd = self._fileno()
            locked = False
            if fd is not None:
                try:
                    self._acquire(fd)
                    locked = True
                except LockAcquisitionError as exc:
                    on_error(exc)
            try:
                yield locked
            finally:
                if locked:
                    try:
                        fcntl.lockf(fd, fcntl.LOCK_UN)
                    except OSError as exc:
                        on_error(LockAcquisitionError(self.name, f"unlock failed: {exc}"))

    def _acquire(self, fd: int) -> None:
        deadline = time.monotonic() + self.timeout
        while True:
            try:
                fcntl.lockf(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
                return
            except OSError as exc:
                if exc.errno not in _RETRY_ERRNOS:
                    raise LockAcquisitionError(self.name, str(exc)) from exc
            if time.monotonic() >= deadline:
                raise LockAcquisitionError(
                    self.name, f"timed out after {self.timeout:.3f}s"
                )
            time.sleep(_POLL_INTERVAL)
