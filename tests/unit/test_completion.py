"""
Unit tests for CompletionDetector and CompletionMasteryPolicy.
"""

import pytest

from learnstate.config import DEFAULT_COMPLETION_PHRASES
from learnstate.core.mastery import MasteryRecord
from learnstate.routing.completion import (
    CompletionDetector,
    CompletionMasteryPolicy,
    CompletionSignal,
)
from learnstate.routing.context import TurnContext


@pytest.fixture
def detector():
    return CompletionDetector(DEFAULT_COMPLETION_PHRASES, topic_shift_min_turns=5)


def context(now, message, active="closures", topics=()):
    return TurnContext(
        user_id="alice",
        message=message,
        active_concept=active,
        recent_topics=tuple(topics),
        now=now,
    )


class TestExplicitPhrases:
    @pytest.mark.parametrize("message", ["Got it, thanks!", "OK I UNDERSTAND now", "that makes sense"])
    def test_phrase_detected_case_insensitively(self, detector, now, message):
        assert detector.detect(context(now, message), None) is CompletionSignal.EXPLICIT

    def test_no_phrase_no_signal(self, detector, now):
        assert detector.detect(context(now, "show me another example"), "closures") is None

    def test_ignored_when_idle(self, detector, now):
        assert detector.detect(context(now, "got it", active=None), None) is None

    def test_phrase_checked_before_topic_shift(self, detector, now):
        ctx = context(now, "got it, what about loops", topics=["closures"] * 6)
        assert detector.detect(ctx, "loops") is CompletionSignal.EXPLICIT


class TestTopicShift:
    def test_fires_after_enough_turns(self, detector, now):
        ctx = context(now, "what about recursion", topics=["closures"] * 6)
        assert detector.detect(ctx, "recursion") is CompletionSignal.TOPIC_SHIFT

    def test_fires_at_exact_minimum(self, detector, now):
        ctx = context(now, "what about recursion", topics=["closures"] * 5)
        assert detector.detect(ctx, "recursion") is CompletionSignal.TOPIC_SHIFT

    def test_cold_on_short_exchanges(self, detector, now):
        ctx = context(now, "what about recursion", topics=["closures"] * 4)
        assert detector.detect(ctx, "recursion") is None

    def test_same_topic_is_not_a_shift(self, detector, now):
        ctx = context(now, "more closures please", topics=["closures"] * 8)
        assert detector.detect(ctx, "closures") is None

    def test_unresolved_message_is_not_a_shift(self, detector, now):
        ctx = context(now, "hmm", topics=["closures"] * 8)
        assert detector.detect(ctx, None) is None

    def test_compares_with_previous_turn_only(self, detector, now):
        topics = ["closures"] * 5 + ["scope"]
        ctx = context(now, "and scope again", topics=topics)
        assert detector.detect(ctx, "scope") is None


class TestMasteryPolicy:
    def test_first_completion_levels(self):
        policy = CompletionMasteryPolicy(explicit_initial=0.6, topic_shift_initial=0.45)
        assert policy.mastery_for(None, CompletionSignal.EXPLICIT) == 0.6
        assert policy.mastery_for(None, CompletionSignal.TOPIC_SHIFT) == 0.45

    def test_review_closes_part_of_gap(self, now):
        policy = CompletionMasteryPolicy(explicit_gain=0.5, topic_shift_gain=0.25)
        record = MasteryRecord.first_learned("alice", "closures", 0.6, now)

        assert policy.mastery_for(record, CompletionSignal.EXPLICIT) == pytest.approx(0.8)
        assert policy.mastery_for(record, CompletionSignal.TOPIC_SHIFT) == pytest.approx(0.7)

    def test_never_exceeds_one(self, now):
        policy = CompletionMasteryPolicy(explicit_gain=1.0)
        record = MasteryRecord.first_learned("alice", "closures", 1.0, now)
        assert policy.mastery_for(record, CompletionSignal.EXPLICIT) == 1.0
