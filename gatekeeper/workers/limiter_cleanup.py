# =======================================================================================
# gatekeeper/workers/limiter_cleanup.py - Background Rate-Limiter Reset
# =======================================================================================
import logging
import threading
from datetime import timedelta
from typing import Optional

from ..api.rate_limit import RateLimiter

logger = logging.getLogger(__name__)


class LimiterCleanupWorker:
    """Background worker that empties the rate limiter on a fixed interval."""

    def __init__(self, limiter: RateLimiter, interval: timedelta):
        self.limiter = limiter
        self.interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # ------------------------------------------------------------------
    # Start / Stop
    # ------------------------------------------------------------------
    def start(self):
        """Start the worker in a daemon thread."""
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run_loop, name="limiter-cleanup", daemon=True)
        self._thread.start()
        logger.info("Rate limiter cleanup worker started (every %s)", self.interval)

    def stop(self, timeout: float = 5.0):
        """Stop the worker and wait for the thread to exit."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------
    def run_once(self) -> int:
        dropped = self.limiter.clear()
        logger.debug("Rate limiter reset; dropped %d client bucket(s)", dropped)
        return dropped

    def _run_loop(self):
        seconds = self.interval.total_seconds()
        while not self._stop.wait(seconds):
            try:
                self.run_once()
            except Exception as e:
                logger.error("Rate limiter cleanup failed: %s", e)
