# Overview: Debounced, best-effort background push of the document to its remote mirror.

"""
Mirror Scheduler

Every commit re-arms a single timer. When the timer fires, one push of the
latest snapshot runs, so a burst of edits becomes one push. A failed push is
recorded as status "error" with its message and is not retried; the next
commit arms the timer again.

The scheduler knows nothing about documents: it runs the job it was given
and tracks how that went.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable

from ..time_utils import now_ms
from .mirror_service import MirrorError


logger = logging.getLogger(__name__)


STATUS_IDLE = "idle"
STATUS_SYNCING = "syncing"
STATUS_SUCCESS = "success"
STATUS_ERROR = "error"


class MirrorScheduler:
    def __init__(self, job: Callable[[], object], debounce_seconds: float = 5.0):
        self.job = job
        self.debounce_seconds = debounce_seconds
        self._timer: threading.Timer | None = None
        self._timer_lock = threading.Lock()
        self._run_lock = threading.Lock()

        self.state = STATUS_IDLE
        self.last_error: str | None = None
        self.last_attempt_at: int | None = None
        self.last_success_at: int | None = None

    @property
    def pending(self) -> bool:
        with self._timer_lock:
            return self._timer is not None

    def notify(self) -> None:
        """Re-arm the debounce timer after a commit."""
        with self._timer_lock:
            if self._timer is not None:
                self._timer.cancel()
            timer = threading.Timer(self.debounce_seconds, self._fire)
            timer.args = (timer,)
            timer.daemon = True
            self._timer = timer
            timer.start()

    def cancel(self) -> None:
        with self._timer_lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def flush(self) -> bool:
        """Run a pending push immediately. Returns False when nothing was pending."""
        with self._timer_lock:
            if self._timer is None:
                return False
            self._timer.cancel()
            self._timer = None
        self._run(raise_errors=False)
        return True

    def _fire(self, timer: threading.Timer) -> None:
        with self._timer_lock:
            # A timer that was re-armed or cancelled after it started waking up is stale
            if self._timer is not timer:
                return
            self._timer = None
        self._run(raise_errors=False)

    def run_now(self):
        """Push immediately (manual sync). Errors are recorded and re-raised."""
        self.cancel()
        return self._run(raise_errors=True)

    def _run(self, *, raise_errors: bool):
        with self._run_lock:
            self.state = STATUS_SYNCING
            self.last_attempt_at = now_ms()
            try:
                result = self.job()
            except MirrorError as e:
                self.state = STATUS_ERROR
                self.last_error = str(e)
                logger.warning("Mirror push failed: %s", e)
                if raise_errors:
                    raise
                return None
            except Exception as e:
                self.state = STATUS_ERROR
                self.last_error = str(e)
                logger.exception("Mirror push crashed")
                if raise_errors:
                    raise
                return None

            self.state = STATUS_SUCCESS
            self.last_error = None
            self.last_success_at = now_ms()
            return result

    def status(self) -> dict:
        return {
            "state": self.state,
            "lastError": self.last_error,
            "lastAttemptAt": self.last_attempt_at,
            "lastSuccessAt": self.last_success_at,
            "pending": self.pending,
        }
