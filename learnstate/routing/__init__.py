"""
Turn routing.

Components:
- TurnRouter: per-user state machine and collaborator dispatch
- CompletionDetector: explicit phrase and topic-shift completion signals
- CompletionMasteryPolicy: mastery credited on completion
"""

from learnstate.routing.completion import (
    CompletionDetector,
    CompletionMasteryPolicy,
    CompletionSignal,
)
from learnstate.routing.context import (
    RouterPhase,
    RouterState,
    TurnContext,
    TurnOutcome,
    TurnResult,
    UserSession,
)
from learnstate.routing.turn_router import TurnRouter

__all__ = [
    "CompletionDetector",
    "CompletionMasteryPolicy",
    "CompletionSignal",
    "RouterPhase",
    "RouterState",
    "TurnContext",
    "TurnOutcome",
    "TurnResult",
    "TurnRouter",
    "UserSession",
]
