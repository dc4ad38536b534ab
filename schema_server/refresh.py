"""
Refresh coordination.

At most one refresh runs at a time. A successful manual refresh arms a cooldown
measured from the instant it was triggered; the cooldown expires purely by
elapsed time, which is checked against a stored deadline on every trigger. A
failed fetch never arms the cooldown, so the next trigger may start at once.

The in-flight flag and the deadline live behind one short lock. The fetch and
the snapshot swap run outside it, so reads keep hitting the previous snapshot
for the whole refresh.
"""

import asyncio
import logging
import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from .errors import UpstreamFetchFailed
from .fetcher import SnapshotFetcher
from .store import SnapshotStore

DEFAULT_COOLDOWN_SEC = 30 * 60


class RefreshState(str, Enum):
    IDLE = "idle"
    REFRESHING = "refreshing"
    COOLDOWN = "cooldown"


class RefreshResult(str, Enum):
    OK = "ok"
    ALREADY_IN_PROGRESS = "already_in_progress"
    RECENTLY_REFRESHED = "recently_refreshed"
    FETCH_FAILED = "fetch_failed"


@dataclass(frozen=True)
class RefreshOutcome:
    result: RefreshResult
    retry_after_ms: int = 0
    detail: str | None = None
    version: str | None = None

    @property
    def started(self) -> bool:
        """True for the one caller whose trigger actually ran a fetch."""
        return self.result in (RefreshResult.OK, RefreshResult.FETCH_FAILED)

    @property
    def rejected(self) -> bool:
        return not self.started

    @property
    def retry_after_sec(self) -> int:
        return max(1, math.ceil(self.retry_after_ms / 1000))


class RefreshCoordinator:
    def __init__(
        self,
        store: SnapshotStore,
        fetcher: SnapshotFetcher,
        cooldown_sec: float = DEFAULT_COOLDOWN_SEC,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.fetcher = fetcher
        self.cooldown_sec = cooldown_sec
        self._clock = clock
        self._log = logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._in_flight = False
        self._triggered_at: float | None = None
        self._cooldown_until: float | None = None
        self.success_count = 0
        self.failure_count = 0
        self.rejected_count = 0
        self.last_error: str | None = None
        self.last_success_ms: int | None = None

    # state

    def _remaining_ms(self, now: float) -> int:
        if self._in_flight and self._triggered_at is not None:
            deadline = self._triggered_at + self.cooldown_sec
        elif self._cooldown_until is not None:
            deadline = self._cooldown_until
        else:
            return 0
        # an in-flight refresh always reports a positive wait
        return max(1, int((deadline - now) * 1000))

    def _state_locked(self, now: float) -> RefreshState:
        if self._in_flight:
            return RefreshState.REFRESHING
        if self._cooldown_until is not None and now < self._cooldown_until:
            return RefreshState.COOLDOWN
        return RefreshState.IDLE

    def state(self) -> RefreshState:
        with self._lock:
            return self._state_locked(self._clock())

    def status(self) -> dict[str, object]:
        with self._lock:
            now = self._clock()
            state = self._state_locked(now)
            retry_after_ms = self._remaining_ms(now) if state is not RefreshState.IDLE else 0
        return {
            "state": state.value,
            "retry_after_ms": retry_after_ms,
            "cooldown_sec": self.cooldown_sec,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "rejected_count": self.rejected_count,
            "last_success_ms": self.last_success_ms,
            "last_error": self.last_error,
        }

    # transitions

    def _try_begin(self, honor_cooldown: bool) -> tuple[RefreshOutcome | None, float]:
        """Atomic Idle -> Refreshing. Returns a rejection, or None for the winning caller."""
        with self._lock:
            now = self._clock()
            state = self._state_locked(now)
            if state is RefreshState.REFRESHING:
                self.rejected_count += 1
                return RefreshOutcome(RefreshResult.ALREADY_IN_PROGRESS, self._remaining_ms(now)), now
            if state is RefreshState.COOLDOWN and honor_cooldown:
                self.rejected_count += 1
                return RefreshOutcome(RefreshResult.RECENTLY_REFRESHED, self._remaining_ms(now)), now
            self._in_flight = True
            self._triggered_at = now
            return None, now

    async def _run(self, source: str, arm_cooldown: bool) -> RefreshOutcome:
        rejection, triggered_at = self._try_begin(honor_cooldown=arm_cooldown)
        if rejection is not None:
            self._log.info(
                "refresh rejected",
                extra={"event": "refresh.rejected", "extra_fields": {
                    "source": source,
                    "reason": rejection.result.value,
                    "retry_after_ms": rejection.retry_after_ms,
                }},
            )
            return rejection

        self._log.info("refresh started", extra={"event": "refresh.start", "extra_fields": {"source": source}})
        t0 = time.time()
        installed = False
        error: str | None = None
        try:
            snap = await self.fetcher.fetch()
            self.store.install(snap)
            installed = True
        except UpstreamFetchFailed as e:
            error = e.message
            self._log.error(
                "refresh failed",
                extra={"event": "refresh.failed", "extra_fields": {"source": source, "error": e.message}},
            )
            return RefreshOutcome(RefreshResult.FETCH_FAILED, detail=e.message)
        finally:
            # also reached on cancellation, which leaves the coordinator idle
            with self._lock:
                self._in_flight = False
                if installed:
                    self.success_count += 1
                    self.last_error = None
                    self.last_success_ms = int(time.time() * 1000)
                    if arm_cooldown:
                        self._cooldown_until = triggered_at + self.cooldown_sec
                elif error is not None:
                    self.failure_count += 1
                    self.last_error = error

        self._log.info(
            "refresh done",
            extra={"event": "refresh.done", "extra_fields": {
                "source": source,
                "version": snap.version,
                "generation": self.store.generation,
                "refresh_ms": int((time.time() - t0) * 1000),
            }},
        )
        return RefreshOutcome(RefreshResult.OK, version=snap.version)

    async def trigger_refresh(self) -> RefreshOutcome:
        """Manual refresh: rejected while in flight or cooling down, arms the cooldown on success."""
        return await self._run("manual", arm_cooldown=True)

    async def refresh_scheduled(self) -> RefreshOutcome:
        """Timer-driven refresh: only skipped when another refresh is in flight."""
        return await self._run("schedule", arm_cooldown=False)

    async def bootstrap(self, retry_ms: int = 5000) -> RefreshOutcome:
        """Load the first snapshot, retrying until one is installed."""
        attempt = 0
        while True:
            attempt += 1
            outcome = await self._run("bootstrap", arm_cooldown=False)
            if outcome.result is RefreshResult.OK or self.store.ready:
                return outcome
            self._log.warning(
                "bootstrap retry",
                extra={"event": "bootstrap.retry", "extra_fields": {
                    "attempt": attempt,
                    "reason": outcome.result.value,
                    "retry_ms": retry_ms,
                }},
            )
            await asyncio.sleep(retry_ms / 1000.0)


class AutoRefresher:
    """Background task that refreshes the snapshot on a fixed interval."""

    def __init__(self, coordinator: RefreshCoordinator, interval_sec: int):
        self.coordinator = coordinator
        self.interval_sec = interval_sec
        self._log = logging.getLogger(__name__)
        self._task: asyncio.Task | None = None
        self._stopping = asyncio.Event()

    async def start(self):
        if self.interval_sec <= 0:
            return
        self._stopping.clear()
        self._task = asyncio.create_task(self._run())

    async def stop(self):
        self._stopping.set()
        if self._task:
            await self._task
            self._task = None

    async def _run(self):
        while not self._stopping.is_set():
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval_sec)
                return
            except asyncio.TimeoutError:
                pass
            try:
                await self.coordinator.refresh_scheduled()
            except Exception as e:
                self._log.error(
                    "scheduled refresh error",
                    extra={"event": "refresh.failed", "extra_fields": {"source": "schedule", "error": repr(e)}},
                )
