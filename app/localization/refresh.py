"""Refresh coordination for a localization bucket.

State transitions:
- IDLE -> IN_FLIGHT: an admitted refresh (not in flight, keys configured,
  cache empty or staleness interval elapsed)
- IN_FLIGHT -> IDLE: the call finished, or the watchdog deadline fired

A suppressed admission never changes state. The network call runs on a
worker thread while a watchdog, on its own thread, polls it at a fixed
interval, so hanging calls filling the worker pool never delay a deadline.
When the deadline fires the coordinator returns to IDLE and signals a connection
failure, but the call itself is left running: a late result is still merged
into the cache when it arrives.
"""

import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Any, Callable, Optional

from core.logging import get_module_logger
from localization.cache import CacheStore
from localization.config import BucketSettings
from localization.errors import TransportFailure
from localization.events import Signal
from localization.models import RefreshOutcome, RefreshState, TranslationRequest
from localization.persistence import BucketPersistence
from localization.transport import TransportClient

logger = get_module_logger()


@dataclass
class _RefreshAttempt:
    """Bookkeeping of one admitted refresh."""

    started_at: float
    completed: bool = False
    timed_out: bool = False


class RefreshCoordinator:
    """Decides when to refresh a bucket and runs the refresh.

    Args:
        settings: Resolved bucket settings (keys, locales, intervals, credentials)
        cache: CacheStore to merge results into
        transport: TransportClient used to reach the locale server
        persistence: BucketPersistence for the config record and cache blob
        executor: Optional executor for network calls and auxiliary work.
            When omitted the coordinator creates and owns one. Watchdogs
            always run on a single thread owned by the coordinator.
        clock: Wall-clock source returning unix seconds
    """

    def __init__(
        self,
        settings: BucketSettings,
        cache: CacheStore,
        transport: TransportClient,
        persistence: BucketPersistence,
        executor: Optional[ThreadPoolExecutor] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = settings
        self.bucket_id = settings.bucket_id
        self.cache = cache
        self.transport = transport
        self.persistence = persistence
        self._clock = clock

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=settings.max_workers,
            thread_name_prefix=f"refresh-{settings.bucket_id}",
        )
        self._watchdog = ThreadPoolExecutor(
            max_workers=1,
            thread_name_prefix=f"watchdog-{settings.bucket_id}",
        )

        self._lock = threading.Lock()
        self._state = RefreshState.IDLE
        self._attempt: Optional[_RefreshAttempt] = None
        self._last_fetch = 0
        self._stopping = threading.Event()

        self.refreshed = Signal(f"{self.bucket_id}.refreshed")
        self.connection_failed = Signal(f"{self.bucket_id}.connection_failed")

        self._logger = logger.bind(bucket_id=self.bucket_id)

    @property
    def state(self) -> RefreshState:
        with self._lock:
            return self._state

    @property
    def last_fetch_unix_seconds(self) -> int:
        return self._last_fetch

    def restore_last_fetch(self, unix_seconds: int) -> None:
        """Seed the last fetch timestamp from the persisted config."""
        self._last_fetch = max(int(unix_seconds), 0)

    def is_refresh_due(self) -> bool:
        """True if the cache is empty or the staleness interval has elapsed."""
        if self.cache.is_empty():
            return True
        elapsed = self._clock() - self._last_fetch
        return elapsed > self.settings.min_seconds_between_requests

    def should_refresh(self) -> bool:
        """True if request_refresh() would currently be admitted."""
        return (
            bool(self.settings.keys)
            and not self._stopping.is_set()
            and self.state is RefreshState.IDLE
            and self.is_refresh_due()
        )

    def request_refresh(self, force: bool = False) -> Optional["Future[RefreshOutcome]"]:
        """Start a refresh unless one is running or the cache is still fresh.

        Admission and the transition to IN_FLIGHT happen under one lock, so
        concurrent callers start at most one request.

        Args:
            force: Skip the staleness check (never the in-flight check).

        Returns:
            Future resolving to the RefreshOutcome, or None if suppressed.
        """
        with self._lock:
            if self._stopping.is_set():
                return None
            if not self.settings.keys:
                self._logger.debug("refresh_skipped_no_keys")
                return None
            if self._state is RefreshState.IN_FLIGHT:
                self._logger.debug("refresh_skipped_already_in_flight")
                return None
            if not force and not self.is_refresh_due():
                self._logger.debug(
                    "refresh_skipped_still_fresh",
                    seconds_since_last_fetch=int(self._clock() - self._last_fetch),
                    min_seconds_between_requests=self.settings.min_seconds_between_requests,
                )
                return None

            now = self._clock()
            previous_fetch = self._last_fetch
            self._last_fetch = int(now)
            attempt = _RefreshAttempt(started_at=now)
            self._attempt = attempt
            self._state = RefreshState.IN_FLIGHT

        self._logger.info("refresh_started", forced=force)
        try:
            self.persistence.store_last_fetch(self._last_fetch)
        except Exception:
            self._logger.exception("refresh_last_fetch_persist_crashed")

        request = self._build_request(previous_fetch)
        try:
            call = self._executor.submit(self._run_request, attempt, request)
            return self._watchdog.submit(self._watch, attempt, call)
        except RuntimeError as e:
            self._logger.error("refresh_submit_failed", error=str(e))
            self._finish(attempt)
            return None

    def submit(self, fn: Callable[..., Any], *args: Any) -> Future:
        """Run auxiliary background work on the coordinator's executor."""
        return self._executor.submit(fn, *args)

    def shutdown(self, wait: bool = False) -> None:
        """Stop watchdogs and release the owned executor.

        Calls already sent to the server are not interrupted.
        """
        self._stopping.set()
        self._watchdog.shutdown(wait=wait, cancel_futures=True)
        if self._owns_executor:
            self._executor.shutdown(wait=wait, cancel_futures=True)
        self._logger.debug("refresh_coordinator_shut_down", wait=wait)

    def _build_request(self, previous_fetch: int) -> TranslationRequest:
        return TranslationRequest(
            user_id=self.settings.user_id,
            read_access_password=self.settings.read_access_password or None,
            last_fetch_utc=previous_fetch or None,
            keys=list(self.settings.keys),
            locales=list(self.settings.locales),
        )

    def _finish(self, attempt: _RefreshAttempt) -> None:
        with self._lock:
            if self._attempt is attempt:
                self._attempt = None
                self._state = RefreshState.IDLE

    def _run_request(
        self, attempt: _RefreshAttempt, request: TranslationRequest
    ) -> RefreshOutcome:
        """Call the locale server and merge the result into the cache."""
        try:
            outcome = self._fetch_and_merge(request)
        except Exception:
            self._logger.exception("refresh_request_crashed")
            outcome = RefreshOutcome.FAILED

        with self._lock:
            attempt.completed = True
            late = attempt.timed_out
        if late:
            self._logger.info("late_refresh_result_merged", outcome=outcome.value)
            if outcome is RefreshOutcome.APPLIED:
                self.refreshed.emit()
        return outcome

    def _fetch_and_merge(self, request: TranslationRequest) -> RefreshOutcome:
        try:
            response = self.transport.fetch_translations(
                request, self.settings.request_timeout_seconds
            )
        except TransportFailure as e:
            self._logger.warning(
                "refresh_transport_failed", error=str(e), status_code=e.status_code
            )
            return RefreshOutcome.FAILED

        applied = 0
        for item in response.items or []:
            if self.cache.merge(item.key, item.translations or {}):
                applied += 1

        if applied:
            try:
                self.persistence.save_cache(self.cache)
            except Exception:
                # Merged values stay served from memory
                self._logger.exception("refresh_cache_persist_crashed")

        outcome = RefreshOutcome.APPLIED if applied else RefreshOutcome.NO_CHANGES
        self._logger.info(
            "refresh_response_applied",
            outcome=outcome.value,
            item_count=len(response.items or []),
            applied_count=applied,
        )
        return outcome

    def _watch(self, attempt: _RefreshAttempt, call: Future) -> RefreshOutcome:
        """Wait for the call, giving up once the response deadline passes.

        The attempt is always finished before any signal is emitted, so
        subscribers observe an IDLE coordinator.
        """
        try:
            outcome = self._await_call(attempt, call)
        finally:
            self._finish(attempt)

        if outcome is RefreshOutcome.TIMED_OUT:
            self.connection_failed.emit()
        elif outcome is not RefreshOutcome.CANCELLED:
            self.refreshed.emit()
        return outcome

    def _await_call(self, attempt: _RefreshAttempt, call: Future) -> RefreshOutcome:
        poll_seconds = self.settings.watchdog_poll_interval_ms / 1000
        deadline_ms = self.settings.max_refresh_response_time_ms

        while True:
            done, _ = wait([call], timeout=poll_seconds)
            if done:
                break

            if self._stopping.is_set():
                return RefreshOutcome.CANCELLED

            elapsed_ms = (self._clock() - attempt.started_at) * 1000
            if elapsed_ms <= deadline_ms:
                continue

            with self._lock:
                timed_out = not attempt.completed
                attempt.timed_out = timed_out
            if not timed_out:
                # Result recorded right at the deadline; collect it
                break

            # A call still queued behind hanging calls is never sent
            call.cancel()
            self._logger.warning(
                "refresh_deadline_exceeded",
                elapsed_ms=int(elapsed_ms),
                max_refresh_response_time_ms=deadline_ms,
            )
            return RefreshOutcome.TIMED_OUT

        if call.cancelled():
            return RefreshOutcome.CANCELLED
        try:
            return call.result()
        except Exception:
            self._logger.exception("refresh_call_crashed")
            return RefreshOutcome.FAILED
