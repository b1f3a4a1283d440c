"""
Core Module - Shared domain models and errors.

Components:
- mastery: MasteryRecord, MasteryLevel, RevisionCandidate, Urgency
- errors: Engine error taxonomy

Design Principle:
Graph, store, retention, scheduling and routing modules import shared
concepts from learnstate.core rather than redefining them.
"""

from learnstate.core.errors import (
    AlreadyExists,
    CollaboratorTimeout,
    ContentGenerationFailed,
    CyclicPrerequisiteError,
    GraphConfigurationError,
    LearnStateError,
    NotFound,
    UnknownConcept,
    UnresolvedConcept,
)
from learnstate.core.mastery import (
    MasteryLevel,
    MasteryRecord,
    RevisionCandidate,
    Urgency,
    clamp_mastery,
    ensure_utc,
)

__all__ = [
    # Mastery
    "MasteryLevel",
    "MasteryRecord",
    "RevisionCandidate",
    "Urgency",
    "clamp_mastery",
    "ensure_utc",
    # Errors
    "LearnStateError",
    "UnknownConcept",
    "UnresolvedConcept",
    "AlreadyExists",
    "NotFound",
    "CollaboratorTimeout",
    "ContentGenerationFailed",
    "GraphConfigurationError",
    "CyclicPrerequisiteError",
]
