"""Fire-and-forget notification ingestion.

Notifications arrive push-style from a :class:`NotificationSource`. They are
put on a bounded queue and drained by a single worker thread, so candidate
inserts never race each other. Each event gets its own unit of work; a failure
is logged and the worker moves on to the next event.
"""

from __future__ import annotations

import os
import queue
import threading
from collections.abc import Callable
from datetime import datetime
from typing import Protocol

from db.client import session_scope

from ..candidates import CandidateStore
from ..extraction import extract_notification
from ..logging_setup import get_logger
from ..models import CandidateView, Notification
from ..persistence import ChangeFeed, Persistence, SqlPersistence

DEFAULT_QUEUE_SIZE = 256

_logger = get_logger("money_tracker.ingest.worker")

# Marks the end of the stream for the worker thread.
_STOP = object()


class NotificationSource(Protocol):
    def subscribe(self, callback: Callable[[Notification], None]) -> Callable[[], None]: ...


def handle_notification(store: Persistence, notification: Notification) -> CandidateView | None:
    """Extract and store one notification synchronously.

    Returns the stored candidate, or ``None`` when the notification was not a
    recognizable payment.
    """

    candidate = extract_notification(notification)
    if candidate is None:
        return None
    detected_at = (notification.posted_at or datetime.now()).replace(microsecond=0)
    return CandidateStore(store).add(candidate, detected_at=detected_at)


def _resolve_queue_size(maxsize: int | None) -> int:
    if maxsize is not None:
        return max(1, maxsize)
    env_val = os.getenv("MT_INGEST_QUEUE_SIZE")
    try:
        parsed = int(env_val) if env_val else None
    except ValueError:
        parsed = None
    return max(1, parsed) if parsed else DEFAULT_QUEUE_SIZE


class IngestionWorker:
    """A bounded queue feeding one ingestion thread.

    Usage
    -----
    with IngestionWorker(database_url=url) as worker:
        worker.submit(notification)
    """

    def __init__(
        self,
        *,
        database_url: str | None = None,
        maxsize: int | None = None,
        feed: ChangeFeed | None = None,
        on_stored: Callable[[CandidateView], None] | None = None,
    ) -> None:
        self._database_url = database_url
        self._feed = feed
        self._on_stored = on_stored
        self._queue: queue.Queue[object] = queue.Queue(maxsize=_resolve_queue_size(maxsize))
        self._thread: threading.Thread | None = None
        self.stored = 0
        self.discarded = 0
        self.dropped = 0
        self.failed = 0

    # ---- lifecycle --------------------------------------------------------

    def start(self) -> IngestionWorker:
        if self._thread is None:
            self._thread = threading.Thread(
                target=self._run, name="mt-ingest", daemon=True
            )
            self._thread.start()
        return self

    def stop(self, timeout: float | None = None) -> None:
        """Process what is already queued, then stop the thread."""

        if self._thread is None:
            return
        self._queue.put(_STOP)
        self._thread.join(timeout)
        self._thread = None

    def __enter__(self) -> IngestionWorker:
        return self.start()

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def attach(self, source: NotificationSource) -> Callable[[], None]:
        return source.subscribe(self.submit)

    # ---- producer side ----------------------------------------------------

    def submit(self, notification: Notification) -> bool:
        """Queue ``notification``; returns ``False`` when it had to be dropped."""

        try:
            self._queue.put_nowait(notification)
        except queue.Full:
            self.dropped += 1
            _logger.warning(
                "ingestion queue full; dropping notification from %s",
                notification.source_app_id,
            )
            return False
        return True

    def join(self) -> None:
        """Block until every queued notification has been processed."""

        self._queue.join()

    # ---- consumer side ----------------------------------------------------

    def _run(self) -> None:
        while True:
            event = self._queue.get()
            try:
                if event is _STOP:
                    return
                assert isinstance(event, Notification)
                self._process(event)
            finally:
                self._queue.task_done()

    def _process(self, notification: Notification) -> None:
        try:
            with session_scope(database_url=self._database_url) as session:
                stored = handle_notification(SqlPersistence(session, feed=self._feed), notification)
        except Exception:
            self.failed += 1
            _logger.exception(
                "failed to ingest notification from %s", notification.source_app_id
            )
            return
        if stored is None:
            self.discarded += 1
            return
        self.stored += 1
        if self._on_stored is not None:
            try:
                self._on_stored(stored)
            except Exception:
                _logger.exception("on_stored callback failed for candidate id=%d", stored.id)


__all__ = [
    "DEFAULT_QUEUE_SIZE",
    "IngestionWorker",
    "NotificationSource",
    "handle_notification",
]
