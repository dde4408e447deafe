"""A non-blocking spin mutex that gives up after a bounded number of tries."""

import inspect
import threading
from typing import NamedTuple

_LOCK_ATTEMPTS = 10_000


class LockError(RuntimeError):
    """Raised when a mutex cannot be taken."""


class _Location(NamedTuple):
    file: str
    line: int

    def __str__(self):
        return f"{self.file}:{self.line}"


def _caller_location():
    frame = inspect.currentframe()
    caller = frame.f_back.f_back if frame is not None and frame.f_back is not None else None
    if caller is None:
        return _Location("<unknown>", 0)
    return _Location(caller.f_code.co_filename, caller.f_lineno)


class MutexGuard:
    """Exclusive access to a mutex's data until released."""

    def __init__(self, mutex, location):
        self._mutex = mutex
        self.location = location
        self._released = False

    @property
    def data(self):
        if self._released:
            raise LockError("guard already released")
        return self._mutex._data

    @data.setter
    def data(self, value):
        if self._released:
            raise LockError("guard already released")
        self._mutex._data = value

    def release(self):
        """Give the lock back; calling it again has no effect."""
        if not self._released:
            self._released = True
            self._mutex._lock.release()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()

    def __repr__(self):
        return f"MutexGuard {{ location: {self.location} }}"


class Mutex:
    """Holds data that may only be reached through a MutexGuard."""

    def __init__(self, data=None):
        self._data = data
        self._lock = threading.Lock()
        self._taker_line = 0
        self.created_at = _caller_location()

    def __repr__(self):
        return f"Mutex @ {self.created_at}"

    def _try_lock(self, location):
        if not self._lock.acquire(blocking=False):
            raise LockError("Lock failed")
        self._taker_line = location.line
        return MutexGuard(self, location)

    def try_lock(self):
        """Take the lock once or raise LockError."""
        return self._try_lock(_caller_location())

    def lock(self):
        """Take the lock, retrying a bounded number of times before raising."""
        location = _caller_location()
        for _ in range(_LOCK_ATTEMPTS):
            try:
                return self._try_lock(location)
            except LockError:
                continue
        raise LockError(
            f"Failed to lock Mutex at {self.created_at}, caller: {location}, "
            f"taker_line_num: {self._taker_line}"
        )

    def under_locked(self, func):
        """Call ``func`` with a guard held for its duration and return its result."""
        with self.lock() as guard:
            return func(guard)