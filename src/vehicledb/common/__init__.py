from __future__ import annotations

from .worker import BackgroundWorker, WorkerBusyError, WorkerShutdownError, get_worker

__all__ = [
    "BackgroundWorker",
    "WorkerBusyError",
    "WorkerShutdownError",
    "get_worker",
]
