import asyncio
import threading

from schema_server.refresh import AutoRefresher, RefreshCoordinator, RefreshResult, RefreshState
from schema_server.store import SnapshotStore

from conftest import FlakyFetcher, GatedFetcher, MalformedFetcher, StaticFetcher

COOLDOWN = 30 * 60


def make(fetcher, clock, cooldown=COOLDOWN):
    store = SnapshotStore()
    return store, RefreshCoordinator(store, fetcher, cooldown_sec=cooldown, clock=clock)


def test_first_trigger_installs_and_arms_cooldown(clock):
    store, coord = make(StaticFetcher(), clock)
    outcome = asyncio.run(coord.trigger_refresh())
    assert outcome.result is RefreshResult.OK
    assert outcome.started
    assert store.current().version == "v1"
    assert coord.state() is RefreshState.COOLDOWN


def test_trigger_during_cooldown_is_rejected_with_remaining_time(clock):
    store, coord = make(StaticFetcher(), clock)
    asyncio.run(coord.trigger_refresh())

    immediate = asyncio.run(coord.trigger_refresh())
    assert immediate.result is RefreshResult.RECENTLY_REFRESHED
    assert 0 < immediate.retry_after_ms <= COOLDOWN * 1000

    clock.advance(60)
    later = asyncio.run(coord.trigger_refresh())
    assert later.result is RefreshResult.RECENTLY_REFRESHED
    assert later.retry_after_ms == (COOLDOWN - 60) * 1000
    assert later.retry_after_sec == COOLDOWN - 60
    assert store.current().version == "v1"


def test_cooldown_expires_by_elapsed_time_only(clock):
    store, coord = make(StaticFetcher(), clock)
    asyncio.run(coord.trigger_refresh())
    clock.advance(COOLDOWN - 1)
    assert coord.state() is RefreshState.COOLDOWN
    clock.advance(1)
    assert coord.state() is RefreshState.IDLE
    assert asyncio.run(coord.trigger_refresh()).result is RefreshResult.OK
    assert store.current().version == "v2"


def test_cooldown_is_measured_from_the_trigger_instant(clock):
    class SlowFetcher(StaticFetcher):
        async def fetch(self):
            clock.advance(100)
            return await super().fetch()

    _, coord = make(SlowFetcher(), clock)
    asyncio.run(coord.trigger_refresh())
    outcome = asyncio.run(coord.trigger_refresh())
    assert outcome.retry_after_ms == (COOLDOWN - 100) * 1000


def test_failed_fetch_does_not_arm_cooldown(clock):
    store, coord = make(FlakyFetcher(failures=1), clock)
    failed = asyncio.run(coord.trigger_refresh())
    assert failed.result is RefreshResult.FETCH_FAILED
    assert failed.started
    assert failed.detail == "upstream unavailable"
    assert coord.state() is RefreshState.IDLE
    assert not store.ready
    assert coord.status()["last_error"] == "upstream unavailable"

    retry = asyncio.run(coord.trigger_refresh())
    assert retry.result is RefreshResult.OK
    assert store.ready
    assert coord.status()["failure_count"] == 1
    assert coord.status()["last_error"] is None


def test_failed_fetch_keeps_previous_snapshot(clock):
    fetcher = FlakyFetcher(failures=0)
    store, coord = make(fetcher, clock, cooldown=0)
    asyncio.run(coord.trigger_refresh())
    before = store.current()
    fetcher.failures = 1
    assert asyncio.run(coord.trigger_refresh()).result is RefreshResult.FETCH_FAILED
    assert store.current() is before


def test_wrong_shape_document_is_a_fetch_failure(clock):
    store, coord = make(MalformedFetcher(bad=1), clock)
    failed = asyncio.run(coord.trigger_refresh())
    assert failed.result is RefreshResult.FETCH_FAILED
    assert failed.detail.startswith("Schema document is malformed")
    assert coord.state() is RefreshState.IDLE
    assert not store.ready
    assert coord.status()["failure_count"] == 1

    assert asyncio.run(coord.trigger_refresh()).result is RefreshResult.OK
    assert store.ready


def test_concurrent_triggers_exactly_one_starts(clock):
    async def scenario():
        fetcher = GatedFetcher()
        store, coord = make(fetcher, clock)
        tasks = [asyncio.create_task(coord.trigger_refresh()) for _ in range(10)]
        await fetcher.entered.wait()
        assert coord.state() is RefreshState.REFRESHING
        fetcher.release.set()
        return await asyncio.gather(*tasks), fetcher

    outcomes, fetcher = asyncio.run(scenario())
    started = [o for o in outcomes if o.started]
    assert len(started) == 1
    assert all(o.result is RefreshResult.ALREADY_IN_PROGRESS for o in outcomes if o.rejected)
    assert all(0 < o.retry_after_ms <= COOLDOWN * 1000 for o in outcomes if o.rejected)
    assert fetcher.calls == 1


def test_concurrent_triggers_from_threads_exactly_one_starts():
    fetcher = StaticFetcher(delay_sec=0.2)
    store = SnapshotStore()
    coord = RefreshCoordinator(store, fetcher, cooldown_sec=COOLDOWN)
    barrier = threading.Barrier(8)
    outcomes = []
    lock = threading.Lock()

    def worker():
        barrier.wait()
        outcome = asyncio.run(coord.trigger_refresh())
        with lock:
            outcomes.append(outcome)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sum(o.started for o in outcomes) == 1
    assert fetcher.calls == 1
    assert coord.status()["rejected_count"] == 7


def test_reads_are_served_from_old_snapshot_during_refresh(clock):
    async def scenario():
        fetcher = GatedFetcher()
        store, coord = make(fetcher, clock, cooldown=0)
        fetcher.release.set()
        await coord.trigger_refresh()
        old = store.current()

        fetcher.release.clear()
        fetcher.entered.clear()
        task = asyncio.create_task(coord.trigger_refresh())
        await fetcher.entered.wait()
        during = store.current()
        fetcher.release.set()
        await task
        return old, during, store.current()

    old, during, after = asyncio.run(scenario())
    assert during is old
    assert after is not old
    assert (old.version, after.version) == ("v1", "v2")


def test_cancelled_refresh_leaves_coordinator_idle(clock):
    async def scenario():
        fetcher = GatedFetcher()
        store, coord = make(fetcher, clock)
        task = asyncio.create_task(coord.trigger_refresh())
        await fetcher.entered.wait()
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        state = coord.state()
        fetcher.release.set()
        outcome = await coord.trigger_refresh()
        return state, outcome

    state, outcome = asyncio.run(scenario())
    assert state is RefreshState.IDLE
    assert outcome.result is RefreshResult.OK


def test_bootstrap_retries_until_installed_without_arming_cooldown(clock):
    fetcher = FlakyFetcher(failures=2)
    store, coord = make(fetcher, clock)
    outcome = asyncio.run(coord.bootstrap(retry_ms=1))
    assert outcome.result is RefreshResult.OK
    assert fetcher.calls == 3
    assert store.ready
    assert coord.state() is RefreshState.IDLE
    assert asyncio.run(coord.trigger_refresh()).result is RefreshResult.OK


def test_bootstrap_retries_past_wrong_shape_documents(clock):
    fetcher = MalformedFetcher(bad=2)
    store, coord = make(fetcher, clock)
    outcome = asyncio.run(coord.bootstrap(retry_ms=1))
    assert outcome.result is RefreshResult.OK
    assert fetcher.calls == 3
    assert store.ready
    assert coord.status()["failure_count"] == 2


def test_scheduled_refresh_ignores_cooldown_but_not_in_flight(clock):
    store, coord = make(StaticFetcher(), clock)
    asyncio.run(coord.trigger_refresh())
    assert asyncio.run(coord.refresh_scheduled()).result is RefreshResult.OK
    assert store.current().version == "v2"
    # the manual cooldown is untouched by the scheduled run
    assert coord.state() is RefreshState.COOLDOWN


def test_status_reports_state_and_counters(clock):
    _, coord = make(StaticFetcher(), clock)
    assert coord.status()["state"] == "idle"
    assert coord.status()["retry_after_ms"] == 0
    asyncio.run(coord.trigger_refresh())
    asyncio.run(coord.trigger_refresh())
    status = coord.status()
    assert status["state"] == "cooldown"
    assert status["retry_after_ms"] == COOLDOWN * 1000
    assert status["success_count"] == 1
    assert status["rejected_count"] == 1
    assert status["last_success_ms"] is not None


def test_auto_refresher_disabled_and_stoppable(clock):
    async def scenario():
        _, coord = make(StaticFetcher(), clock)
        disabled = AutoRefresher(coord, 0)
        await disabled.start()
        assert disabled._task is None
        await disabled.stop()

        hourly = AutoRefresher(coord, 3600)
        await hourly.start()
        await asyncio.wait_for(hourly.stop(), timeout=1)
        return coord

    coord = asyncio.run(scenario())
    assert coord.status()["success_count"] == 0
