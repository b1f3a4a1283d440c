"""
Quest completion detection and completion mastery policy.

Detection order for a message while a concept is active:
1. Explicit completion phrase (case-insensitive substring)
2. Topic shift, only once enough prior turns were spent on the active concept,
   so short exchanges never trigger it
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from learnstate.core.mastery import MasteryRecord, clamp_mastery
from learnstate.routing.context import TurnContext


class CompletionSignal(str, Enum):
    EXPLICIT = "explicit"
    TOPIC_SHIFT = "topic-shift"


class CompletionDetector:
    """Decides whether a message completes the active concept."""

    def __init__(self, phrases: Iterable[str], topic_shift_min_turns: int = 5):
        self.phrases = tuple(p.casefold() for p in phrases if p.strip())
        self.topic_shift_min_turns = topic_shift_min_turns

    def detect(self, context: TurnContext, inferred_topic: str | None) -> CompletionSignal | None:
        """
        Args:
            context: Snapshot taken before this turn changes any state
            inferred_topic: Concept resolved from this message, if any

        Returns:
            The signal that fired, or None when the learner is continuing
        """
        if context.active_concept is None:
            return None
        if self.has_completion_phrase(context.message):
            return CompletionSignal.EXPLICIT
        if self.topic_shifted(context, inferred_topic):
            return CompletionSignal.TOPIC_SHIFT
        return None

    def has_completion_phrase(self, message: str) -> bool:
        text = message.casefold()
        return any(phrase in text for phrase in self.phrases)

    def topic_shifted(self, context: TurnContext, inferred_topic: str | None) -> bool:
        if inferred_topic is None or context.active_concept is None:
            return False
        if context.turns_on(context.active_concept) < self.topic_shift_min_turns:
            return False
        return inferred_topic != context.previous_topic


@dataclass(frozen=True)
class CompletionMasteryPolicy:
    """
    Mastery credited when a quest completes.

    First completion starts at a fixed level per signal; later completions
    close a fraction of the remaining gap to 1.0.
    """

    explicit_initial: float = 0.6
    topic_shift_initial: float = 0.45
    explicit_gain: float = 0.3
    topic_shift_gain: float = 0.15

    @classmethod
    def from_settings(cls, settings) -> CompletionMasteryPolicy:
        return cls(
            explicit_initial=settings.explicit_completion_mastery,
            topic_shift_initial=settings.topic_shift_completion_mastery,
            explicit_gain=settings.explicit_review_gain,
            topic_shift_gain=settings.topic_shift_review_gain,
        )

    def mastery_for(self, record: MasteryRecord | None, signal: CompletionSignal) -> float:
        explicit = signal is CompletionSignal.EXPLICIT
        if record is None:
            return clamp_mastery(self.explicit_initial if explicit else self.topic_shift_initial)
        gain = self.explicit_gain if explicit else self.topic_shift_gain
        return clamp_mastery(record.mastery_level + gain * (1.0 - record.mastery_level))
