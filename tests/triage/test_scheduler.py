"""Tests for the background sync timer."""

import threading
from unittest.mock import MagicMock

import pytest

from triage.models import SyncResult
from triage.scheduler import SyncScheduler


class CountingEngine:
    """Counts sync runs and signals after the first one."""

    def __init__(self, result=None, error=None):
        self.runs = 0
        self.ran = threading.Event()
        self.result = result or SyncResult(updated=0, incremental=False)
        self.error = error

    def sync_library(self):
        self.runs += 1
        self.ran.set()
        if self.error:
            raise self.error
        return self.result


def test_first_sync_runs_at_start():
    engine = CountingEngine()
    scheduler = SyncScheduler(engine, interval_seconds=60)

    scheduler.start()
    try:
        assert engine.ran.wait(5)
        assert scheduler.running
    finally:
        scheduler.stop(5)

    assert engine.runs == 1
    assert not scheduler.running


def test_runs_every_interval():
    engine = MagicMock()
    done = threading.Event()

    def sync_library():
        if engine.sync_library.call_count >= 3:
            done.set()
        return SyncResult(updated=1, incremental=True)

    engine.sync_library.side_effect = sync_library
    scheduler = SyncScheduler(engine, interval_seconds=0.01)

    scheduler.start()
    try:
        assert done.wait(5)
    finally:
        scheduler.stop(5)

    assert engine.sync_library.call_count >= 3


def test_crashing_sync_keeps_scheduler_alive():
    """Test that an exception from one run does not stop later runs."""
    engine = CountingEngine(error=RuntimeError("boom"))
    scheduler = SyncScheduler(engine, interval_seconds=0.01)

    scheduler.start()
    try:
        assert engine.ran.wait(5)
        engine.ran.clear()
        assert engine.ran.wait(5)
    finally:
        scheduler.stop(5)

    assert engine.runs >= 2


def test_start_twice_is_one_thread():
    engine = CountingEngine()
    scheduler = SyncScheduler(engine, interval_seconds=60)

    scheduler.start()
    first_thread = scheduler._thread
    scheduler.start()
    try:
        assert scheduler._thread is first_thread
    finally:
        scheduler.stop(5)


def test_stop_without_start():
    SyncScheduler(CountingEngine(), interval_seconds=60).stop()


@pytest.mark.parametrize("interval", [0, -5])
def test_interval_must_be_positive(interval):
    with pytest.raises(ValueError):
        SyncScheduler(CountingEngine(), interval_seconds=interval)
