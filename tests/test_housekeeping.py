import threading
import time
from unittest.mock import Mock

import pytest

from setlistbot.dedup_cache import DedupCache
from setlistbot.housekeeping import Housekeeper, HousekeepingScheduler, HousekeepingState

from .fakes import FakeStore


@pytest.fixture
def crowded_store(store) -> FakeStore:
    """Five playlists, seeded oldest first."""
    store.seed("old empty", [], followers=0, collection_id="old-empty")
    store.seed("old followed", ["t1"], followers=5, collection_id="old-followed")
    store.seed("old dead", ["t1"], followers=0, collection_id="old-dead")
    store.seed("new empty", [], followers=0, collection_id="new-empty")
    store.seed("new", ["t1"], followers=3, collection_id="new")
    return store


def test_under_quota_only_rebuilds_the_cache(crowded_store):
    cache = DedupCache(crowded_store)
    housekeeper = Housekeeper(crowded_store, cache, target_quota=10)

    report = housekeeper.run_housekeeping_cycle()

    assert report.scanned == 5
    assert report.evicted == []
    assert report.cached == 5
    assert cache.count() == 5
    assert crowded_store.deleted == []
    assert housekeeper.state == HousekeepingState.IDLE


def test_evicts_oldest_dead_playlists(crowded_store):
    cache = DedupCache(crowded_store)
    housekeeper = Housekeeper(crowded_store, cache, target_quota=3)

    report = housekeeper.run_housekeeping_cycle()

    assert sorted(report.evicted) == ["old-dead", "old-empty"]
    assert sorted(crowded_store.deleted) == ["old-dead", "old-empty"]
    assert cache.count() == 3
    assert cache.ids_for("old dead") == ()
    assert cache.ids_for("new empty") == ("new-empty",)
    # Empty playlists are dead without asking for followers
    assert "old-empty" not in crowded_store.follower_lookups
    assert "old-followed" in crowded_store.follower_lookups


def test_failed_eviction_is_skipped(crowded_store):
    crowded_store.fail_delete.add("old-dead")
    cache = DedupCache(crowded_store)
    housekeeper = Housekeeper(crowded_store, cache, target_quota=3)

    report = housekeeper.run_housekeeping_cycle()

    assert report.evicted == ["old-empty"]
    assert report.failed == ["old-dead"]
    assert cache.ids_for("old dead") == ("old-dead",)
    assert report.cached == 4


def test_listing_failure_keeps_the_cache(store):
    cache = DedupCache(store)
    cache.register("kept", "k1")
    store.fail_list = True

    report = Housekeeper(store, cache).run_housekeeping_cycle()

    assert report.aborted
    assert cache.ids_for("kept") == ("k1",)


def test_select_evictions_stops_at_overflow(crowded_store):
    housekeeper = Housekeeper(crowded_store, DedupCache(crowded_store))

    victims = housekeeper.select_evictions(crowded_store.list_owned(), 1)

    assert [v.id for v in victims] == ["old-empty"]


def test_state_transitions():
    seen = []

    class ObservedStore(FakeStore):
        def list_owned(self):
            seen.append(housekeeper.state)
            return super().list_owned()

        def delete(self, collection_id):
            seen.append(housekeeper.state)
            super().delete(collection_id)

    store = ObservedStore()
    store.seed("dead", [], followers=0)
    store.seed("alive", ["t1"], followers=1)
    cache = DedupCache(store)
    housekeeper = Housekeeper(store, cache, target_quota=1)

    housekeeper.run_housekeeping_cycle()

    assert seen == [HousekeepingState.SCANNING, HousekeepingState.EVICTING]
    assert housekeeper.state == HousekeepingState.IDLE


def test_eviction_concurrency_is_bounded():
    lock = threading.Lock()
    active = {"now": 0, "max": 0}

    class SlowStore(FakeStore):
        def delete(self, collection_id):
            with lock:
                active["now"] += 1
                active["max"] = max(active["max"], active["now"])
            time.sleep(0.02)
            with lock:
                active["now"] -= 1
            super().delete(collection_id)

    store = SlowStore()
    for i in range(8):
        store.seed(f"dead {i}", [], followers=0)

    report = Housekeeper(store, DedupCache(store), target_quota=0, eviction_workers=2).run_housekeeping_cycle()

    assert len(report.evicted) == 8
    assert active["max"] <= 2


class TestScheduler:
    def test_run_once_logs_unexpected_errors(self):
        housekeeper = Mock()
        housekeeper.run_housekeeping_cycle.side_effect = RuntimeError("boom")
        scheduler = HousekeepingScheduler(housekeeper, interval_seconds=60)

        assert scheduler.run_once() is None

    def test_runs_on_startup_and_stops(self, crowded_store):
        housekeeper = Housekeeper(crowded_store, DedupCache(crowded_store))
        scheduler = HousekeepingScheduler(housekeeper, interval_seconds=3600)

        thread = scheduler.start_in_background()
        deadline = time.monotonic() + 5
        while scheduler.last_report is None and time.monotonic() < deadline:
            time.sleep(0.01)
        scheduler.stop(timeout=5)

        assert scheduler.last_report is not None
        assert scheduler.last_report.scanned == 5
        assert not thread.is_alive()

    def test_stopped_scheduler_does_not_run(self):
        housekeeper = Mock()
        scheduler = HousekeepingScheduler(housekeeper, interval_seconds=3600)

        scheduler.stop()
        scheduler.start()

        housekeeper.run_housekeeping_cycle.assert_not_called()

    def test_repeats_on_interval(self):
        housekeeper = Mock()
        scheduler = HousekeepingScheduler(housekeeper, interval_seconds=0.01, run_on_startup=False)

        scheduler.start_in_background()
        deadline = time.monotonic() + 5
        while housekeeper.run_housekeeping_cycle.call_count < 3 and time.monotonic() < deadline:
            time.sleep(0.01)
        scheduler.stop(timeout=5)

        assert housekeeper.run_housekeeping_cycle.call_count >= 3
