"""A cooperative executor that polls coroutines round-robin."""

import inspect
import logging
from collections import deque
from datetime import timedelta

from .hpet import global_timestamp
from .mutex import Mutex

_log = logging.getLogger(__name__)
_PENDING = object()


def _caller_location():
    frame = inspect.currentframe()
    caller = frame.f_back.f_back if frame is not None and frame.f_back is not None else None
    if caller is None:
        return "<unknown>:0"
    return f"{caller.f_code.co_filename}:{caller.f_lineno}"


class _Task:
    def __init__(self, coro, location):
        if not hasattr(coro, "send"):
            raise TypeError("a coroutine is required")
        self._coro = coro
        self.location = location

    def poll(self):
        """Advance the coroutine one step; return its outcome or _PENDING."""
        try:
            self._coro.send(None)
        except StopIteration as stop:
            return stop.value
        except Exception as exc:  # a failed task is an outcome, not a crash
            return exc
        return _PENDING

    def __repr__(self):
        return f"Task({self.location})"


def block_on(coro):
    """Poll ``coro`` until it finishes and return its result."""
    while True:
        try:
            coro.send(None)
        except StopIteration as stop:
            return stop.value


class _Yield:
    def __await__(self):
        yield


class _Timeout:
    def __init__(self, duration):
        self.time_out = global_timestamp() + duration

    def __await__(self):
        while not self.time_out < global_timestamp():
            yield


async def yield_execution():
    """Give other tasks one turn."""
    await _Yield()


async def sleep(duration):
    """Wait until the global timestamp passes ``duration`` from now.

    ``duration`` is a timedelta or a number of seconds.
    """
    if not isinstance(duration, timedelta):
        duration = timedelta(seconds=duration)
    await _Timeout(duration)


class Executor:
    """Runs spawned coroutines round-robin until all of them finish."""

    def __init__(self):
        self._queue = deque()

    def _enqueue(self, task):
        self._queue.append(task)

    def spawn(self, coro):
        self._enqueue(_Task(coro, _caller_location()))

    def run(self):
        """Run until the queue is empty.

        Returns the outcome of each task in completion order: its return
        value, or the exception it raised.
        """
        _log.info("Executor starts running...")
        completed = []
        while self._queue:
            task = self._queue.popleft()
            outcome = task.poll()
            if outcome is _PENDING:
                self._queue.append(task)
            else:
                _log.info("Task completed: %r: %r", task, outcome)
                completed.append(outcome)
        return completed


_GLOBAL_EXECUTOR = Mutex(None)


def spawn_global(coro):
    """Queue ``coro`` on the global executor."""
    task = _Task(coro, _caller_location())
    with _GLOBAL_EXECUTOR.lock() as guard:
        if guard.data is None:
            guard.data = Executor()
        guard.data._enqueue(task)


def start_global_executor():
    """Run the global executor until its queue drains; return the outcomes."""
    _log.info("Starting global executor loop")
    with _GLOBAL_EXECUTOR.lock() as guard:
        if guard.data is None:
            guard.data = Executor()
        executor = guard.data
    return executor.run()