"""Exclusive lock file preventing overlapping reconciliation runs."""

from __future__ import annotations

import fcntl
import os
from logging import getLogger
from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from pathlib import Path
    from types import TracebackType

log = getLogger(__name__)


class RunLockError(RuntimeError):
    """Raised when another run holds the lock."""


class RunLock:
    """Hold an advisory ``flock`` on ``path`` for the duration of a ``with`` block.

    The file stays in place between runs and carries the pid of the current
    holder. The kernel drops the lock when the holding process exits, so a
    killed run never blocks the next one.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._handle: TextIO | None = None

    def acquire(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        handle = self.path.open("a+", encoding="ascii")
        try:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError as exc:
            handle.seek(0)
            holder = handle.read().strip()
            handle.close()
            raise RunLockError(
                f"Another run holds {self.path} (pid {holder or 'unknown'})"
            ) from exc
        handle.seek(0)
        handle.truncate()
        handle.write(str(os.getpid()))
        handle.flush()
        self._handle = handle
        log.debug("Acquired run lock %s", self.path)

    def release(self) -> None:
        handle = self._handle
        if handle is None:
            return
        handle.truncate(0)
        fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
        handle.close()
        self._handle = None
        log.debug("Released run lock %s", self.path)

    @property
    def held(self) -> bool:
        return self._handle is not None

    def __enter__(self) -> RunLock:
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.release()
