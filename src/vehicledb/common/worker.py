"""Single background thread running store operations off the caller's thread.

All writes are serialised on this one thread, so two saves never run against the
store at the same time. Callers get a ``concurrent.futures.Future`` and may
attach completion callbacks with ``Future.add_done_callback``.
"""

from __future__ import annotations

import atexit
import logging
import queue
import threading
from concurrent.futures import Future
from functools import partial
from typing import TYPE_CHECKING, Final

from vehicledb.config import get_reconciliation_config

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

log = logging.getLogger(__name__)

DEFAULT_MAX_PENDING: Final[int] = 64
_POLL_INTERVAL: Final[float] = 0.05

type _Task = tuple[Future[object], Callable[[], object]]


class WorkerShutdownError(RuntimeError):
    """Raised when work is submitted to a worker that is shutting down."""


class WorkerBusyError(RuntimeError):
    """Raised when a task on the worker thread submits to a full queue."""


class BackgroundWorker:
    """Daemon thread draining a bounded task queue in submission order."""

    def __init__(
        self,
        name: str = "vehicledb-worker",
        *,
        max_pending: int = DEFAULT_MAX_PENDING,
    ) -> None:
        self.name = name
        self._tasks: queue.Queue[_Task] = queue.Queue(maxsize=max_pending)
        self._lock = threading.Lock()
        self._closed = False
        self._draining = threading.Event()
        self._abort = threading.Event()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    def __enter__(self) -> BackgroundWorker:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.shutdown()

    @property
    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def submit[T](self, fn: Callable[..., T], /, *args: object, **kwargs: object) -> Future[T]:
        """Queue ``fn(*args, **kwargs)``; waits while the queue is full.

        From a task on this worker a full queue raises ``WorkerBusyError`` instead.
        """

        future: Future[T] = Future()
        task = (future, partial(fn, *args, **kwargs))
        while True:
            with self._lock:
                if self._closed:
                    raise WorkerShutdownError(f"{self.name} is shut down")
                try:
                    self._tasks.put_nowait(task)  # type: ignore[arg-type]
                except queue.Full:
                    if threading.current_thread() is self._thread:
                        raise WorkerBusyError(
                            f"{self.name} queue is full; cannot queue from its own thread"
                        ) from None
                else:
                    return future
            self._draining.wait(_POLL_INTERVAL)

    def shutdown(self, timeout: float | None = None) -> int:
        """Stop accepting work, drain for up to ``timeout`` seconds, cancel the rest.

        Returns the number of queued tasks that were dropped.
        """

        with self._lock:
            if self._closed:
                return 0
            self._closed = True

        if timeout is None:
            timeout = get_reconciliation_config().worker_shutdown_timeout

        self._draining.set()
        if threading.current_thread() is self._thread:
            return 0
        self._thread.join(timeout)
        if not self._thread.is_alive():
            log.info("%s stopped successfully.", self.name)
            return 0

        log.info("%s didn't terminate in the specified time.", self.name)
        self._abort.set()
        dropped = self._cancel_pending()
        log.info(
            "%s was abruptly shut down. %s task(s) will not be executed.", self.name, dropped
        )
        return dropped

    def _run(self) -> None:
        while not self._abort.is_set():
            try:
                future, call = self._tasks.get(timeout=_POLL_INTERVAL)
            except queue.Empty:
                if self._draining.is_set():
                    return
                continue
            if self._abort.is_set():
                future.cancel()
                return
            self._execute(future, call)

    @staticmethod
    def _execute(future: Future[object], call: Callable[[], object]) -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            result = call()
        except Exception as exc:  # noqa: BLE001
            log.debug("Background task failed: %s", exc)
            future.set_exception(exc)
        else:
            future.set_result(result)

    def _cancel_pending(self) -> int:
        dropped = 0
        while True:
            try:
                future, _call = self._tasks.get_nowait()
            except queue.Empty:
                return dropped
            if future.cancel():
                dropped += 1


_DEFAULT_WORKER: BackgroundWorker | None = None
_DEFAULT_WORKER_LOCK = threading.Lock()


def get_worker() -> BackgroundWorker:
    """Return the process-wide worker, starting it on first use."""

    global _DEFAULT_WORKER  # noqa: PLW0603
    with _DEFAULT_WORKER_LOCK:
        if _DEFAULT_WORKER is None:
            _DEFAULT_WORKER = BackgroundWorker()
            atexit.register(_shutdown_default_worker)
        return _DEFAULT_WORKER


def _shutdown_default_worker() -> None:
    global _DEFAULT_WORKER  # noqa: PLW0603
    with _DEFAULT_WORKER_LOCK:
        worker, _DEFAULT_WORKER = _DEFAULT_WORKER, None
    if worker is not None:
        worker.shutdown()
