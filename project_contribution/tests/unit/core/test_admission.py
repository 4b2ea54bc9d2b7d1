"""Tests for the fixed-window admission controller."""

import asyncio
import threading

import pytest

from project_contribution.core.admission import AdmissionController


class TestAdmit:

    def test_allows_up_to_max_requests(self, fake_clock):
        controller = AdmissionController(max_requests=5, window_seconds=3600, clock=fake_clock)

        decisions = [controller.admit("1.2.3.4") for _ in range(5)]

        assert all(d.allowed for d in decisions)
        assert all(d.retry_after_seconds == 0 for d in decisions)

    def test_sixth_request_is_denied_with_retry_after(self, fake_clock):
        controller = AdmissionController(max_requests=5, window_seconds=3600, clock=fake_clock)
        for _ in range(5):
            controller.admit("1.2.3.4")

        fake_clock.advance(600)
        decision = controller.admit("1.2.3.4")

        assert decision.allowed is False
        assert decision.retry_after_seconds == 3000

    def test_retry_after_is_at_least_one_second(self, fake_clock):
        controller = AdmissionController(max_requests=1, window_seconds=10, clock=fake_clock)
        controller.admit("client")

        fake_clock.advance(9.9)
        decision = controller.admit("client")

        assert decision.allowed is False
        assert decision.retry_after_seconds == 1

    def test_denied_requests_do_not_extend_window(self, fake_clock):
        controller = AdmissionController(max_requests=1, window_seconds=100, clock=fake_clock)
        controller.admit("client")
        fake_clock.advance(50)
        controller.admit("client")
        controller.admit("client")

        fake_clock.advance(50)
        assert controller.admit("client").allowed is True

    def test_window_resets_after_expiry(self, fake_clock):
        controller = AdmissionController(max_requests=5, window_seconds=3600, clock=fake_clock)
        for _ in range(6):
            controller.admit("1.2.3.4")

        fake_clock.advance(3600)
        decision = controller.admit("1.2.3.4")

        assert decision.allowed is True
        assert controller._buckets["1.2.3.4"].count == 1

    def test_clients_are_independent(self, fake_clock):
        controller = AdmissionController(max_requests=2, window_seconds=3600, clock=fake_clock)
        controller.admit("a")
        controller.admit("a")

        assert controller.admit("a").allowed is False
        assert controller.admit("b").allowed is True

    def test_concurrent_requests_never_exceed_limit(self):
        controller = AdmissionController(max_requests=5, window_seconds=3600)
        results = []
        results_lock = threading.Lock()
        start = threading.Barrier(20)

        def worker():
            start.wait()
            decision = controller.admit("10.0.0.1")
            with results_lock:
                results.append(decision.allowed)

        threads = [threading.Thread(target=worker) for _ in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 5
        assert results.count(False) == 15


class TestSweep:

    def test_sweep_removes_only_expired_buckets(self, fake_clock):
        controller = AdmissionController(max_requests=5, window_seconds=100, clock=fake_clock)
        controller.admit("old")
        fake_clock.advance(60)
        controller.admit("new")

        fake_clock.advance(40)
        removed = controller.sweep_expired()

        assert removed == 1
        assert controller.client_count == 1
        assert "new" in controller._buckets
        assert "old" not in controller._locks

    def test_admit_after_sweep_starts_fresh_window(self, fake_clock):
        controller = AdmissionController(max_requests=1, window_seconds=100, clock=fake_clock)
        controller.admit("client")
        fake_clock.advance(100)
        controller.sweep_expired()

        assert controller.admit("client").allowed is True
        assert controller.admit("client").allowed is False

    def test_sweep_skips_bucket_in_use(self, fake_clock):
        controller = AdmissionController(max_requests=5, window_seconds=10, clock=fake_clock)
        controller.admit("busy")
        fake_clock.advance(20)

        lock = controller._locks["busy"]
        with lock:
            assert controller.sweep_expired() == 0

        assert controller.sweep_expired() == 1

    @pytest.mark.asyncio
    async def test_sweep_periodically_runs_until_cancelled(self, fake_clock):
        controller = AdmissionController(max_requests=5, window_seconds=10, clock=fake_clock)
        controller.admit("client")
        fake_clock.advance(20)

        task = asyncio.create_task(controller.sweep_periodically(0.01))
        await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert controller.client_count == 0
