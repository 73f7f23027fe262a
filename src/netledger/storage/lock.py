"""Guard for the on-disk ledger, across threads and processes."""

import threading
from pathlib import Path
from typing import Callable, Optional

from filelock import FileLock


class LedgerLock:
    """Single mutual-exclusion lock guarding every ledger file.

    All stores created from one storage handle share one instance. The lock
    is re-entrant so a service can hold it across a whole mutation while the
    stores it calls acquire it again for each file read or rewrite.

    When a lock file is given, the outermost acquisition also takes an
    inter-process file lock, so separate ``netledger`` processes working on
    the same data directory never interleave their writes. Callbacks
    registered with ``on_acquire`` run after each outermost acquisition;
    stores that cache file contents use them to pick up changes made by
    other processes.
    """

    def __init__(self, lock_path: Optional[Path] = None) -> None:
        self._lock = threading.RLock()
        self._file_lock = FileLock(str(lock_path)) if lock_path is not None else None
        self._depth = 0
        self._callbacks: list[Callable[[], None]] = []

    def on_acquire(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` whenever the lock is newly acquired."""
        self._callbacks.append(callback)

    def __enter__(self) -> "LedgerLock":
        self._lock.acquire()
        self._depth += 1
        if self._depth == 1:
            try:
                if self._file_lock is not None:
                    self._file_lock.acquire()
                for callback in self._callbacks:
                    callback()
            except BaseException:
                self._release()
                raise
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._release()

    def _release(self) -> None:
        self._depth -= 1
        try:
            if self._depth == 0 and self._file_lock is not None and self._file_lock.is_locked:
                self._file_lock.release()
        finally:
            self._lock.release()
