"""
Unit tests for MasteryStore.

Tests:
- Create / review contract (AlreadyExists, NotFound)
- Clamping and invariants
- Out-of-order reviews (latest timestamp wins, count never lost)
- Per-key serialization under concurrent reviews
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta, timezone

import pytest

from learnstate.core.errors import AlreadyExists, NotFound
from learnstate.core.mastery import MasteryLevel, MasteryRecord
from learnstate.store.mastery_store import InMemoryMasteryBackend, MasteryStore


class TestContract:
    def test_get_returns_none_when_never_taught(self, store):
        assert store.get("alice", "closures") is None

    def test_record_learned_creates_record(self, store, now):
        record = store.record_learned("alice", "closures", 0.6, now)

        assert record.mastery_level == 0.6
        assert record.learned_at == now
        assert record.last_reviewed_at == now
        assert record.review_count == 0
        assert store.get("alice", "closures") == record

    def test_record_learned_twice_raises(self, store, now):
        store.record_learned("alice", "closures", 0.6, now)
        with pytest.raises(AlreadyExists):
            store.record_learned("alice", "closures", 0.9, now)

    def test_record_review_without_record_raises(self, store, now):
        with pytest.raises(NotFound):
            store.record_review("alice", "closures", 0.5, now)

    def test_record_review_updates(self, store, now):
        store.record_learned("alice", "closures", 0.5, now)
        later = now + timedelta(days=2)

        record = store.record_review("alice", "closures", 0.8, later)

        assert record.mastery_level == 0.8
        assert record.last_reviewed_at == later
        assert record.learned_at == now
        assert record.review_count == 1

    def test_mastery_is_clamped(self, store, now):
        assert store.record_learned("alice", "a", 1.7, now).mastery_level == 1.0
        assert store.record_review("alice", "a", -0.3, now).mastery_level == 0.0

    def test_users_are_independent(self, store, now):
        store.record_learned("alice", "closures", 0.5, now)
        assert store.get("bob", "closures") is None
        store.record_learned("bob", "closures", 0.2, now)
        assert store.get("alice", "closures").mastery_level == 0.5

    def test_records_for_sorted_by_concept(self, store, now):
        store.record_learned("alice", "scope", 0.5, now)
        store.record_learned("alice", "functions", 0.5, now)
        store.record_learned("bob", "loops", 0.5, now)

        assert [r.concept_id for r in store.records_for("alice")] == ["functions", "scope"]


class TestOutOfOrderReviews:
    def test_older_review_counts_but_keeps_newer_state(self, store, now):
        store.record_learned("alice", "closures", 0.5, now)
        store.record_review("alice", "closures", 0.8, now + timedelta(hours=2))

        record = store.record_review("alice", "closures", 0.6, now + timedelta(hours=1))

        assert record.review_count == 2
        assert record.mastery_level == 0.8
        assert record.last_reviewed_at == now + timedelta(hours=2)

    def test_review_before_learning_never_breaks_invariant(self, store, now):
        store.record_learned("alice", "closures", 0.5, now)
        record = store.record_review("alice", "closures", 0.9, now - timedelta(days=1))
        assert record.last_reviewed_at >= record.learned_at


class TestMasteryRecord:
    def test_invariant_rejects_review_before_learning(self, now):
        with pytest.raises(ValueError):
            MasteryRecord("alice", "a", 0.5, learned_at=now, last_reviewed_at=now - timedelta(seconds=1))

    def test_rejects_out_of_range_mastery(self, now):
        with pytest.raises(ValueError):
            MasteryRecord("alice", "a", 1.5, learned_at=now, last_reviewed_at=now)

    def test_level_band(self, now):
        record = MasteryRecord.first_learned("alice", "a", 0.75, now)
        assert record.level is MasteryLevel.PROFICIENT

    def test_first_learned_normalizes_to_utc(self, now):
        ist = timezone(timedelta(hours=5, minutes=30))
        record = MasteryRecord.first_learned("alice", "a", 0.5, now.astimezone(ist))
        assert record.learned_at == now
        assert record.learned_at.tzinfo is timezone.utc


class TestConcurrency:
    def test_concurrent_reviews_same_key_all_counted(self, store, now):
        store.record_learned("alice", "closures", 0.5, now)
        n = 200

        def review(i):
            store.record_review("alice", "closures", 0.5, now + timedelta(seconds=i))

        with ThreadPoolExecutor(max_workers=16) as pool:
            list(pool.map(review, range(1, n + 1)))

        record = store.get("alice", "closures")
        assert record.review_count == n
        assert store._locks == {}
        assert record.last_reviewed_at == now + timedelta(seconds=n)

    def test_two_concurrent_reviews_latest_timestamp_wins(self, store, now):
        store.record_learned("U", "C", 0.4, now)
        barrier = threading.Barrier(2)

        def review(level, offset):
            barrier.wait()
            store.record_review("U", "C", level, now + timedelta(minutes=offset))

        threads = [
            threading.Thread(target=review, args=(0.6, 1)),
            threading.Thread(target=review, args=(0.8, 2)),
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        record = store.get("U", "C")
        assert record.review_count == 2
        assert record.mastery_level == 0.8

    def test_slow_backend_is_still_serialized(self, now):
        class SlowBackend(InMemoryMasteryBackend):
            def update(self, record):
                threading.Event().wait(0.001)
                super().update(record)

        store = MasteryStore(SlowBackend())
        store.record_learned("alice", "a", 0.5, now)

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda _: store.record_review("alice", "a", 0.5, now), range(40)))

        assert store.get("alice", "a").review_count == 40
