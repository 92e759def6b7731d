# Overview: Pytest coverage for the debounced mirror scheduler.

import threading

import pytest

from erp_master.services.mirror_service import MirrorBadCredentials
from erp_master.services.sync_service import (
    STATUS_ERROR,
    STATUS_IDLE,
    STATUS_SUCCESS,
    MirrorScheduler,
)


class CountingJob:
    def __init__(self, error=None):
        self.calls = 0
        self.error = error

    def __call__(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return "remote-1"


@pytest.fixture
def job():
    return CountingJob()


@pytest.fixture
def scheduler(job):
    scheduler = MirrorScheduler(job, debounce_seconds=60)
    yield scheduler
    scheduler.cancel()


class TestDebounce:
    def test_burst_of_commits_collapses_into_one_push(self, scheduler, job):
        for _ in range(5):
            scheduler.notify()

        assert scheduler.pending is True
        assert scheduler.flush() is True
        assert job.calls == 1
        assert scheduler.pending is False

    def test_flush_without_pending_push(self, scheduler, job):
        assert scheduler.flush() is False
        assert job.calls == 0
        assert scheduler.status()["state"] == STATUS_IDLE

    def test_cancel_drops_pending_push(self, scheduler, job):
        scheduler.notify()
        scheduler.cancel()

        assert scheduler.flush() is False
        assert job.calls == 0

    def test_superseded_timer_does_not_push(self, scheduler, job):
        scheduler.notify()
        stale = scheduler._timer
        scheduler.notify()

        # The first timer woke up just as the second commit re-armed
        scheduler._fire(stale)

        assert job.calls == 0
        assert scheduler.pending is True
        assert scheduler.flush() is True
        assert job.calls == 1

    def test_cancelled_timer_does_not_push(self, scheduler, job):
        scheduler.notify()
        stale = scheduler._timer
        scheduler.cancel()

        scheduler._fire(stale)

        assert job.calls == 0
        assert scheduler.status()["state"] == STATUS_IDLE

    def test_timer_fires_after_quiet_period(self):
        done = threading.Event()

        def job():
            done.set()

        scheduler = MirrorScheduler(job, debounce_seconds=0.01)
        scheduler.notify()

        assert done.wait(timeout=5)
        assert scheduler.pending is False


class TestOutcomes:
    def test_success_is_recorded(self, scheduler):
        scheduler.notify()
        scheduler.flush()

        status = scheduler.status()
        assert status["state"] == STATUS_SUCCESS
        assert status["lastError"] is None
        assert status["lastSuccessAt"] is not None

    def test_background_failure_is_recorded_not_raised(self):
        job = CountingJob(MirrorBadCredentials("Bad credentials"))
        scheduler = MirrorScheduler(job, debounce_seconds=60)
        scheduler.notify()

        scheduler.flush()

        assert scheduler.state == STATUS_ERROR
        assert scheduler.last_error == "Bad credentials"
        assert scheduler.last_success_at is None

    def test_failure_is_not_retried(self):
        job = CountingJob(MirrorBadCredentials("Bad credentials"))
        scheduler = MirrorScheduler(job, debounce_seconds=60)
        scheduler.notify()
        scheduler.flush()

        assert scheduler.pending is False
        assert scheduler.flush() is False
        assert job.calls == 1

    def test_run_now_raises_and_records(self):
        scheduler = MirrorScheduler(CountingJob(MirrorBadCredentials("Bad credentials")), debounce_seconds=60)

        with pytest.raises(MirrorBadCredentials):
            scheduler.run_now()
        assert scheduler.state == STATUS_ERROR

    def test_run_now_returns_job_result_and_clears_pending(self, scheduler, job):
        scheduler.notify()

        assert scheduler.run_now() == "remote-1"
        assert scheduler.pending is False
        assert job.calls == 1
