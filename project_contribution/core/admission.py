"""Fixed-window admission control for contribution requests."""

import asyncio
import logging
import math
import threading
import time
from typing import Callable, Dict

from project_contribution.models.records import AdmissionDecision, ClientBucket

logger = logging.getLogger(__name__)


class AdmissionController:
    """
    Per-client fixed-window request quota.

    Each client key (normally the caller's network address) owns one
    ``ClientBucket``. The read-modify-write of a bucket happens under a lock
    private to that key, so two concurrent requests from one client can never
    both take the last slot, while different clients never wait on each other.
    State is process-local and lost on restart.
    """

    def __init__(
        self,
        max_requests: int = 5,
        window_seconds: float = 60 * 60,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the admission controller.

        Args:
            max_requests: Requests allowed per client within one window
            window_seconds: Length of the fixed window in seconds
            clock: Source of the current time in seconds
        """
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._buckets: Dict[str, ClientBucket] = {}
        self._locks: Dict[str, threading.Lock] = {}
        # Guards _locks only; never held while waiting on a client lock.
        self._registry_lock = threading.Lock()

    @property
    def client_count(self) -> int:
        return len(self._buckets)

    def _lock_for(self, client_key: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(client_key)
            if lock is None:
                lock = threading.Lock()
                self._locks[client_key] = lock
            return lock

    def admit(self, client_key: str) -> AdmissionDecision:
        """
        Check and consume one request slot for ``client_key``.

        Args:
            client_key: Identifier of the rate-limited client

        Returns:
            AdmissionDecision: whether the request is allowed and, if not, how
            many seconds remain until the window resets
        """
        while True:
            lock = self._lock_for(client_key)
            with lock:
                # The sweeper may have retired this lock between lookup and acquire.
                if self._locks.get(client_key) is not lock:
                    continue
                return self._admit_locked(client_key)

    def _admit_locked(self, client_key: str) -> AdmissionDecision:
        now = self._clock()
        bucket = self._buckets.get(client_key)

        if bucket is None or now >= bucket.window_reset_at:
            self._buckets[client_key] = ClientBucket(
                count=1, window_reset_at=now + self.window_seconds
            )
            return AdmissionDecision(allowed=True)

        if bucket.count >= self.max_requests:
            retry_after = max(1, math.ceil(bucket.window_reset_at - now))
            logger.warning(
                f"Rate limit exceeded for client {client_key}: "
                f"{bucket.count}/{self.max_requests} requests, retry in {retry_after}s"
            )
            return AdmissionDecision(allowed=False, retry_after_seconds=retry_after)

        bucket.count += 1
        logger.debug(f"Client {client_key} admitted ({bucket.count}/{self.max_requests})")
        return AdmissionDecision(allowed=True)

    def sweep_expired(self) -> int:
        """
        Remove buckets whose window has elapsed.

        Buckets that are being updated right now are skipped and picked up by
        a later sweep.

        Returns:
            int: number of buckets removed
        """
        removed = 0
        with self._registry_lock:
            for client_key, lock in list(self._locks.items()):
                if not lock.acquire(blocking=False):
                    continue
                try:
                    bucket = self._buckets.get(client_key)
                    if bucket is None or self._clock() >= bucket.window_reset_at:
                        self._buckets.pop(client_key, None)
                        del self._locks[client_key]
                        removed += 1
                finally:
                    lock.release()

        if removed:
            logger.info(f"Swept {removed} expired rate-limit buckets, {self.client_count} remaining")
        return removed

    async def sweep_periodically(self, interval_seconds: float) -> None:
        """Run ``sweep_expired`` every ``interval_seconds`` until cancelled."""
        logger.info(f"Rate-limit sweeper started. Interval: {interval_seconds}s")
        try:
            while True:
                await asyncio.sleep(interval_seconds)
                self.sweep_expired()
        except asyncio.CancelledError:
            logger.info("Rate-limit sweeper cancelled. Shutting down.")
            raise
