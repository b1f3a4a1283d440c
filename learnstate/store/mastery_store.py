"""
Mastery Store - the single writer of MasteryRecords.

All mutations for one (user, concept) pair are serialized by a per-key lock
held across the backend read-modify-write, so concurrent reviews of the same
concept never lose an update. Unrelated keys proceed independently.

Persistence is delegated to a MasteryBackend:
- InMemoryMasteryBackend: process-local dictionary
- SqlMasteryBackend (learnstate.db.mastery_backend): SQLAlchemy table
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Protocol

from loguru import logger

from learnstate.core.errors import AlreadyExists, NotFound
from learnstate.core.mastery import MasteryRecord


class MasteryBackend(Protocol):
    """Durable storage used by MasteryStore. Not required to be thread-safe per key."""

    def load(self, user_id: str, concept_id: str) -> MasteryRecord | None: ...

    def insert(self, record: MasteryRecord) -> None: ...

    def update(self, record: MasteryRecord) -> None: ...

    def list_for_user(self, user_id: str) -> list[MasteryRecord]: ...


class InMemoryMasteryBackend:
    """Dictionary-backed storage for tests and single-process use."""

    def __init__(self) -> None:
        self._records: dict[tuple[str, str], MasteryRecord] = {}
        self._guard = threading.Lock()

    def load(self, user_id: str, concept_id: str) -> MasteryRecord | None:
        with self._guard:
            return self._records.get((user_id, concept_id))

    def insert(self, record: MasteryRecord) -> None:
        key = (record.user_id, record.concept_id)
        with self._guard:
            if key in self._records:
                raise AlreadyExists(record.user_id, record.concept_id)
            self._records[key] = record

    def update(self, record: MasteryRecord) -> None:
        key = (record.user_id, record.concept_id)
        with self._guard:
            if key not in self._records:
                raise NotFound(record.user_id, record.concept_id)
            self._records[key] = record

    def list_for_user(self, user_id: str) -> list[MasteryRecord]:
        with self._guard:
            return [r for (uid, _), r in self._records.items() if uid == user_id]


class MasteryStore:
    """
    Owns MasteryRecord lifecycles.

    Contract:
    - get: record or None when never taught
    - record_learned: create; AlreadyExists if present
    - record_review: update; NotFound if absent
    """

    def __init__(self, backend: MasteryBackend | None = None):
        self._backend = backend if backend is not None else InMemoryMasteryBackend()
        # key -> [lock, number of callers holding or waiting on it]
        self._locks: dict[tuple[str, str], list] = {}
        self._registry_lock = threading.Lock()

    @contextmanager
    def _key_lock(self, user_id: str, concept_id: str) -> Iterator[None]:
        key = (user_id, concept_id)
        with self._registry_lock:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = [threading.Lock(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._registry_lock:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    def get(self, user_id: str, concept_id: str) -> MasteryRecord | None:
        """Return the record, or None if the concept was never taught."""
        return self._backend.load(user_id, concept_id)

    def records_for(self, user_id: str) -> list[MasteryRecord]:
        """All records of a user, ordered by concept id."""
        return sorted(self._backend.list_for_user(user_id), key=lambda r: r.concept_id)

    def record_learned(
        self,
        user_id: str,
        concept_id: str,
        initial_mastery: float,
        at: datetime,
    ) -> MasteryRecord:
        """
        Create the record for a concept learned for the first time.

        Raises:
            AlreadyExists: A record is present; use record_review instead
        """
        with self._key_lock(user_id, concept_id):
            if self._backend.load(user_id, concept_id) is not None:
                raise AlreadyExists(user_id, concept_id)
            record = MasteryRecord.first_learned(user_id, concept_id, initial_mastery, at)
            self._backend.insert(record)

        logger.debug(
            "Learned {}/{} at mastery {:.2f}", user_id, concept_id, record.mastery_level
        )
        return record

    def record_review(
        self,
        user_id: str,
        concept_id: str,
        new_mastery_level: float,
        at: datetime,
    ) -> MasteryRecord:
        """
        Apply one review and return the updated record.

        Mastery is clamped into [0, 1] and review_count always increments.

        Raises:
            NotFound: No record exists for (user, concept)
        """
        with self._key_lock(user_id, concept_id):
            current = self._backend.load(user_id, concept_id)
            if current is None:
                raise NotFound(user_id, concept_id)
            updated = current.reviewed(new_mastery_level, at)
            self._backend.update(updated)

        logger.debug(
            "Reviewed {}/{}: mastery {:.2f} -> {:.2f} (reviews={})",
            user_id,
            concept_id,
            current.mastery_level,
            updated.mastery_level,
            updated.review_count,
        )
        return updated
