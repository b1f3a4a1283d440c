"""
Learning-State Engine.

Routes tutoring chat turns, tracks per-concept mastery and schedules
prerequisite revisions with a forgetting-curve model.

Components:
- ConceptGraph: prerequisite relationships (acyclic, validated on load)
- MasteryStore: per-(user, concept) mastery records, serialized writes
- RetentionModel: retention estimates and due dates
- Scheduler: prerequisite revisions and quest completion commits
- TurnRouter: per-user state machine and collaborator dispatch
"""

from learnstate.core import (
    AlreadyExists,
    CollaboratorTimeout,
    ContentGenerationFailed,
    CyclicPrerequisiteError,
    GraphConfigurationError,
    LearnStateError,
    MasteryLevel,
    MasteryRecord,
    NotFound,
    RevisionCandidate,
    UnknownConcept,
    UnresolvedConcept,
    Urgency,
)
from learnstate.graph import ConceptGraph, ConceptGraphHolder
from learnstate.retention import RetentionModel
from learnstate.routing import TurnOutcome, TurnResult, TurnRouter
from learnstate.scheduling import Scheduler
from learnstate.store import InMemoryMasteryBackend, MasteryStore

__version__ = "0.1.0"

__all__ = [
    "AlreadyExists",
    "CollaboratorTimeout",
    "ConceptGraph",
    "ConceptGraphHolder",
    "ContentGenerationFailed",
    "CyclicPrerequisiteError",
    "GraphConfigurationError",
    "InMemoryMasteryBackend",
    "LearnStateError",
    "MasteryLevel",
    "MasteryRecord",
    "MasteryStore",
    "NotFound",
    "RetentionModel",
    "RevisionCandidate",
    "Scheduler",
    "TurnOutcome",
    "TurnResult",
    "TurnRouter",
    "UnknownConcept",
    "UnresolvedConcept",
    "Urgency",
]
