"""
Core Mastery Module.

Shared domain types for the learning-state engine.

Design:
- MasteryLevel: Enum for categorizing mastery scores (display only)
- MasteryRecord: Immutable per-(user, concept) mastery state
- Urgency / RevisionCandidate: Output of the scheduler
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum


def clamp_mastery(value: float) -> float:
    """Clamp a mastery score into [0, 1]."""
    return max(0.0, min(1.0, float(value)))


def ensure_utc(value: datetime) -> datetime:
    """Treat naive timestamps as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class MasteryLevel(str, Enum):
    """
    Mastery level categorization.

    Aligned with learning science research on skill acquisition stages.
    """

    NOT_STARTED = "not_started"  # 0%
    NOVICE = "novice"  # 1-39%
    DEVELOPING = "developing"  # 40-69%
    PROFICIENT = "proficient"  # 70-89%
    MASTERED = "mastered"  # 90-100%

    @classmethod
    def from_score(cls, score: float) -> MasteryLevel:
        """
        Convert a 0-1 mastery score to a level.

        Args:
            score: Mastery score between 0 and 1

        Returns:
            Corresponding MasteryLevel
        """
        if score <= 0:
            return cls.NOT_STARTED
        elif score < 0.4:
            return cls.NOVICE
        elif score < 0.7:
            return cls.DEVELOPING
        elif score < 0.9:
            return cls.PROFICIENT
        else:
            return cls.MASTERED

    @property
    def display_name(self) -> str:
        """Human-readable name."""
        return self.value.replace("_", " ").title()

    @property
    def color(self) -> str:
        """Rich color for CLI display."""
        return {
            MasteryLevel.NOT_STARTED: "dim",
            MasteryLevel.NOVICE: "red",
            MasteryLevel.DEVELOPING: "yellow",
            MasteryLevel.PROFICIENT: "cyan",
            MasteryLevel.MASTERED: "green",
        }[self]


@dataclass(frozen=True)
class MasteryRecord:
    """
    Mastery state of one concept for one user.

    A record exists only once the concept has been taught. ``learned_at`` never
    changes after creation and ``last_reviewed_at`` is never earlier than it.
    """

    user_id: str
    concept_id: str
    mastery_level: float
    learned_at: datetime
    last_reviewed_at: datetime
    review_count: int = 0

    def __post_init__(self) -> None:
        if not 0.0 <= self.mastery_level <= 1.0:
            raise ValueError(f"mastery_level out of range: {self.mastery_level}")
        if self.review_count < 0:
            raise ValueError("review_count must be non-negative")
        if ensure_utc(self.last_reviewed_at) < ensure_utc(self.learned_at):
            raise ValueError("last_reviewed_at precedes learned_at")

    @property
    def level(self) -> MasteryLevel:
        return MasteryLevel.from_score(self.mastery_level)

    @classmethod
    def first_learned(
        cls, user_id: str, concept_id: str, mastery_level: float, at: datetime
    ) -> MasteryRecord:
        """Create the record for a concept taught for the first time."""
        at = ensure_utc(at)
        return cls(
            user_id=user_id,
            concept_id=concept_id,
            mastery_level=clamp_mastery(mastery_level),
            learned_at=at,
            last_reviewed_at=at,
            review_count=0,
        )

    def reviewed(self, mastery_level: float, at: datetime) -> MasteryRecord:
        """
        Return the record after one more review.

        The review always counts. A review stamped earlier than the current
        ``last_reviewed_at`` arrived out of order, so the newer state is kept.
        """
        at = ensure_utc(at)
        if at < ensure_utc(self.last_reviewed_at):
            return replace(self, review_count=self.review_count + 1)
        return replace(
            self,
            mastery_level=clamp_mastery(mastery_level),
            last_reviewed_at=at,
            review_count=self.review_count + 1,
        )


class Urgency(str, Enum):
    """How pressing a revision is."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class RevisionCandidate:
    """A concept flagged for revision in the current turn."""

    concept_id: str
    retention: float
    urgency: Urgency
    reason: str  # "prerequisite-of:<concept>" or "scheduled"
    next_due_at: datetime | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization by callers."""
        return {
            "concept_id": self.concept_id,
            "retention": round(self.retention, 4),
            "urgency": self.urgency.value,
            "reason": self.reason,
            "next_due_at": self.next_due_at.isoformat() if self.next_due_at else None,
        }
