"""
Background timer that keeps the local library in sync.

Syncs once at start, then every interval until stopped. A failed run is
logged and the next tick tries again.
"""

import threading
from typing import Optional

from triage.sync import SyncEngine
from util.logging_util import setup_logger

logger = setup_logger(__name__)


class SyncScheduler:
    def __init__(self, engine: SyncEngine, interval_seconds: float):
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")
        self._engine = engine
        self._interval = interval_seconds
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="library-sync", daemon=True)
        self._thread.start()
        logger.info(f"Sync scheduler started, interval {self._interval}s")

    def stop(self, timeout: Optional[float] = None):
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Sync scheduler stopped")

    def _tick(self):
        try:
            result = self._engine.sync_library()
        except Exception:
            logger.exception("Scheduled sync crashed")
            return
        if result.error:
            logger.warning(f"Scheduled sync: {result.updated} updated, error: {result.error}")
        else:
            logger.info(f"Scheduled sync: {result.updated} updated")

    def _run(self):
        while True:
            self._tick()
            if self._stop.wait(self._interval):
                break
