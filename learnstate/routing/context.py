"""
Turn routing state types.

- RouterPhase / RouterState: the per-user finite state machine position
- UserSession: router-owned session (state + bounded topic window)
- TurnContext: immutable snapshot handed to collaborators for one turn
- TurnResult: what handle_turn returns to the transport layer
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from learnstate.core.mastery import RevisionCandidate
from learnstate.integrations.collaborators import GeneratedContent


class RouterPhase(str, Enum):
    IDLE = "idle"
    TEACHING = "teaching"
    AWAITING_COMPLETION = "awaiting_completion"


@dataclass(frozen=True)
class RouterState:
    """Phase plus the concept it refers to (None only when idle)."""

    phase: RouterPhase = RouterPhase.IDLE
    concept_id: str | None = None

    def __post_init__(self) -> None:
        if (self.phase is RouterPhase.IDLE) != (self.concept_id is None):
            raise ValueError(f"Invalid router state: {self.phase.value} / {self.concept_id}")

    @classmethod
    def idle(cls) -> RouterState:
        return cls()

    @classmethod
    def teaching(cls, concept_id: str) -> RouterState:
        return cls(RouterPhase.TEACHING, concept_id)

    @classmethod
    def awaiting_completion(cls, concept_id: str) -> RouterState:
        return cls(RouterPhase.AWAITING_COMPLETION, concept_id)

    def __str__(self) -> str:
        if self.concept_id is None:
            return self.phase.value
        return f"{self.phase.value}({self.concept_id})"


class TurnOutcome(str, Enum):
    CONTINUING = "continuing"
    COMPLETED = "completed"
    TOPIC_SHIFT = "topic-shift"


@dataclass
class UserSession:
    """Router-owned state for one user; mutated only under the user's lock."""

    state: RouterState = field(default_factory=RouterState.idle)
    topics: deque[str] = field(default_factory=lambda: deque(maxlen=10))

    @property
    def active_concept(self) -> str | None:
        return self.state.concept_id


@dataclass(frozen=True)
class TurnContext:
    """Everything known about one user message before routing."""

    user_id: str
    message: str
    active_concept: str | None
    recent_topics: tuple[str, ...]
    now: datetime

    @property
    def previous_topic(self) -> str | None:
        return self.recent_topics[-1] if self.recent_topics else None

    def turns_on(self, concept_id: str) -> int:
        """How many turns in the window were about ``concept_id``."""
        return sum(1 for topic in self.recent_topics if topic == concept_id)


@dataclass
class TurnResult:
    """Outcome of handle_turn."""

    concept_id: str | None
    revisions: list[RevisionCandidate]
    completed: bool
    outcome: TurnOutcome
    state: RouterState
    completed_concept: str | None = None
    content: GeneratedContent | None = None
    notes: list[dict[str, Any]] = field(default_factory=list)
    profile: dict[str, Any] = field(default_factory=dict)
    degraded: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for transport serialization."""
        return {
            "concept_id": self.concept_id,
            "revisions": [r.to_dict() for r in self.revisions],
            "completed": self.completed,
            "completed_concept": self.completed_concept,
            "outcome": self.outcome.value,
            "state": str(self.state),
            "content": {"text": self.content.text, "meta": self.content.meta} if self.content else None,
            "notes": self.notes,
            "profile": self.profile,
            "degraded": self.degraded,
        }
