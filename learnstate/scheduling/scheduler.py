"""
Revision Scheduler.

Decides which prerequisite concepts must be revised before or while a new
concept is taught, and commits mastery after a quest completes.

Rules:
- Only direct prerequisites are examined, never the full chain
- Prerequisites never taught are skipped (nothing to revise)
- Candidates are ordered by retention ascending, ties by concept id
- The list is capped at ``max_revisions``, dropping the lowest-priority tail

Errors from the concept graph and the mastery store propagate unchanged.
There are no retries here.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from loguru import logger

from learnstate.core.mastery import MasteryRecord, RevisionCandidate
from learnstate.retention.retention_model import RetentionModel
from learnstate.store.mastery_store import MasteryStore

PREREQUISITE_REASON = "prerequisite-of:{concept}"
SCHEDULED_REASON = "scheduled"


class PrerequisiteSource(Protocol):
    """What the scheduler needs from a concept graph."""

    def prerequisites_of(self, concept_id: str) -> tuple[str, ...]: ...

    def require(self, concept_id: str) -> None: ...


def _priority(candidate: RevisionCandidate) -> tuple[float, str]:
    return (candidate.retention, candidate.concept_id)


class Scheduler:
    """Prerequisite revision lookup and quest completion commits."""

    def __init__(
        self,
        graph: PrerequisiteSource,
        store: MasteryStore,
        retention: RetentionModel | None = None,
        max_revisions: int = 3,
    ):
        if max_revisions < 1:
            raise ValueError("max_revisions must be at least 1")
        self.graph = graph
        self.store = store
        self.retention = retention or RetentionModel()
        self.max_revisions = max_revisions

    def revisions_needed_for(
        self,
        user_id: str,
        concept_id: str,
        now: datetime,
    ) -> list[RevisionCandidate]:
        """
        Prerequisites of ``concept_id`` that are due for revision now.

        Args:
            user_id: Learner identifier
            concept_id: Concept about to be taught
            now: Evaluation instant

        Returns:
            Ordered, capped list of RevisionCandidate

        Raises:
            UnknownConcept: concept_id is not in the graph
        """
        reason = PREREQUISITE_REASON.format(concept=concept_id)
        candidates = []

        for prereq in self.graph.prerequisites_of(concept_id):
            record = self.store.get(user_id, prereq)
            if record is None:
                continue
            candidate = self._candidate(record, now, reason)
            if candidate is not None:
                candidates.append(candidate)

        selected = self._select(candidates)
        if selected:
            logger.debug(
                "{} prerequisite revision(s) for {}/{}: {}",
                len(selected),
                user_id,
                concept_id,
                [c.concept_id for c in selected],
            )
        return selected

    def scheduled_reviews(self, user_id: str, now: datetime) -> list[RevisionCandidate]:
        """All of a user's taught concepts that are due now, same ordering and cap."""
        candidates = []
        for record in self.store.records_for(user_id):
            candidate = self._candidate(record, now, SCHEDULED_REASON)
            if candidate is not None:
                candidates.append(candidate)
        return self._select(candidates)

    def complete_quest(
        self,
        user_id: str,
        concept_id: str,
        mastery_level: float,
        now: datetime,
    ) -> MasteryRecord:
        """
        Commit a completed quest.

        Creates the record on first learning, otherwise records a review. Each
        call is one completion: calling twice for the same event counts twice.

        Raises:
            UnknownConcept: concept_id is not in the graph
        """
        self.graph.require(concept_id)

        if self.store.get(user_id, concept_id) is None:
            record = self.store.record_learned(user_id, concept_id, mastery_level, now)
            logger.info("Quest completed (first time): {}/{}", user_id, concept_id)
        else:
            record = self.store.record_review(user_id, concept_id, mastery_level, now)
            logger.info(
                "Quest completed (review #{}): {}/{}", record.review_count, user_id, concept_id
            )
        return record

    def _candidate(
        self, record: MasteryRecord, now: datetime, reason: str
    ) -> RevisionCandidate | None:
        assessment = self.retention.assess(record, now)
        if not assessment.is_due:
            return None
        return RevisionCandidate(
            concept_id=record.concept_id,
            retention=assessment.retention,
            urgency=assessment.urgency,
            reason=reason,
            next_due_at=assessment.next_due_at,
        )

    def _select(self, candidates: list[RevisionCandidate]) -> list[RevisionCandidate]:
        return sorted(candidates, key=_priority)[: self.max_revisions]
