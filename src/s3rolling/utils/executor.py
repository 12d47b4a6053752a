"""Single-worker FIFO executor with a closable, drainable queue."""

from __future__ import annotations

import threading
from collections import deque
from concurrent.futures import Future
from typing import Any, Callable, Deque, Optional, Tuple

from s3rolling.errors import QueueClosedError
from s3rolling.monitoring.metrics import QUEUE_DEPTH

_WorkItem = Tuple["Future[Any]", Callable[..., Any], Tuple[Any, ...], dict]


class SerialExecutor:
    """
    Runs submitted callables one at a time, in submission order, on a single
    daemon thread.

    Lifecycle is one-way: open -> closed -> drained or abandoned. A closed
    executor rejects new work with :class:`QueueClosedError` but keeps running
    what is already queued. Abandoning cancels everything not yet started; a
    task that is already running is left to finish on its daemon thread, which
    never blocks interpreter exit.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._tasks: Deque[_WorkItem] = deque()
        self._cond = threading.Condition()
        self._pending = 0
        self._closed = False
        self._abandoned = False
        self._thread: Optional[threading.Thread] = None

    @property
    def pending(self) -> int:
        """Tasks submitted and not yet finished (queued plus running)."""
        with self._cond:
            return self._pending

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> "Future[Any]":
        future: "Future[Any]" = Future()
        with self._cond:
            if self._closed:
                raise QueueClosedError(f"{self.name} executor no longer accepts work")
            self._tasks.append((future, fn, args, kwargs))
            self._pending += 1
            QUEUE_DEPTH.labels(queue=self.name).set(self._pending)
            if self._thread is None:
                self._thread = threading.Thread(
                    target=self._worker,
                    name=f"s3rolling-{self.name}",
                    daemon=True,
                )
                self._thread.start()
            self._cond.notify_all()
        return future

    def close(self) -> None:
        """Stop accepting submissions; queued work still runs."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def drain(self, timeout: Optional[float] = None) -> bool:
        """Block until every submitted task finished, or ``timeout`` elapses."""
        with self._cond:
            return self._cond.wait_for(lambda: self._pending == 0, timeout)

    def abandon(self) -> int:
        """Close and cancel all queued tasks. Returns the number cancelled."""
        with self._cond:
            self._closed = True
            self._abandoned = True
            dropped = 0
            while self._tasks:
                future, _fn, _args, _kwargs = self._tasks.popleft()
                future.cancel()
                dropped += 1
            self._pending -= dropped
            QUEUE_DEPTH.labels(queue=self.name).set(self._pending)
            self._cond.notify_all()
        return dropped

    def shutdown(self, timeout: Optional[float] = None) -> bool:
        """Close, wait up to ``timeout`` for the drain, abandon the rest."""
        self.close()
        drained = self.drain(timeout)
        if not drained:
            self.abandon()
        return drained

    def _worker(self) -> None:
        while True:
            with self._cond:
                self._cond.wait_for(
                    lambda: bool(self._tasks) or self._closed or self._abandoned
                )
                if self._abandoned or not self._tasks:
                    return
                future, fn, args, kwargs = self._tasks.popleft()

            if future.set_running_or_notify_cancel():
                try:
                    result = fn(*args, **kwargs)
                except BaseException as exc:
                    future.set_exception(exc)
                else:
                    future.set_result(result)

            with self._cond:
                self._pending -= 1
                QUEUE_DEPTH.labels(queue=self.name).set(self._pending)
                self._cond.notify_all()


__all__ = ["SerialExecutor"]
