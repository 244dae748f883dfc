"""Single-consumer background worker for post-reply turn processing."""
from __future__ import annotations

import logging
import queue
import threading
from typing import Callable, NamedTuple, Optional

from config.settings import settings
from observability import log_event

logger = logging.getLogger(__name__)


class Job(NamedTuple):
    session_id: str
    name: str
    fn: Callable[[], None]
    retry: bool = True


class BackgroundWorker:
    """Runs jobs in submission order on one daemon thread.

    A full queue drops the new job with a warning rather than blocking the caller.
    Each job is retried up to ``max_retries`` times unless submitted with ``retry=False``;
    a job that still fails is logged and discarded so later jobs keep running.
    """

    def __init__(
        self,
        maxsize: Optional[int] = None,
        max_retries: Optional[int] = None,
        name: str = "interview-background",
    ) -> None:
        self._queue: "queue.Queue[Optional[Job]]" = queue.Queue(
            maxsize=settings.BACKGROUND_QUEUE_SIZE if maxsize is None else maxsize
        )
        self._max_retries = settings.BACKGROUND_MAX_RETRIES if max_retries is None else max(0, max_retries)
        self._name = name
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        with self._lock:
            if self.running:
                return
            self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
            self._thread.start()

    def submit(self, session_id: str, name: str, fn: Callable[[], None], *, retry: bool = True) -> bool:
        """Queue ``fn``; returns False when the job was dropped."""

        self.start()
        try:
            self._queue.put_nowait(Job(session_id, name, fn, retry))
        except queue.Full:
            logger.warning("Background queue full; dropping %s for session %s", name, session_id)
            log_event("background.dropped", session_id, job=name, queue_size=self._queue.maxsize)
            return False
        return True

    def join(self) -> None:
        """Block until every queued job has been processed."""
        self._queue.join()

    def stop(self, timeout: float = 5.0) -> None:
        with self._lock:
            thread = self._thread
            self._thread = None
        if thread is None or not thread.is_alive():
            return
        self._queue.put(None)
        thread.join(timeout)

    def _run(self) -> None:
        while True:
            job = self._queue.get()
            try:
                if job is None:
                    return
                self._execute(job)
            finally:
                self._queue.task_done()

    def _execute(self, job: Job) -> None:
        attempts = self._max_retries + 1 if job.retry else 1
        for attempt in range(1, attempts + 1):
            try:
                job.fn()
                return
            except Exception as exc:  # noqa: BLE001
                if attempt < attempts:
                    logger.warning("Job %s failed (attempt %d/%d): %s", job.name, attempt, attempts, exc)
                    continue
                logger.exception("Job %s failed for session %s", job.name, job.session_id)
                log_event("background.failed", job.session_id, job=job.name, attempts=attempt, error=str(exc))


__all__ = ["BackgroundWorker", "Job"]
