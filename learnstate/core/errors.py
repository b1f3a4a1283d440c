"""
Error taxonomy for the learning-state engine.

The scheduler and retention model never catch these; the turn router is the
single place that decides whether an error degrades or aborts a turn.
"""

from __future__ import annotations


class LearnStateError(Exception):
    """Base class for all engine errors."""


class UnknownConcept(LearnStateError):
    """A concept id is not registered in the concept graph."""

    def __init__(self, concept_id: str):
        self.concept_id = concept_id
        super().__init__(f"Unknown concept: {concept_id!r}")


class UnresolvedConcept(LearnStateError):
    """Free text could not be mapped to any concept."""

    def __init__(self, text: str):
        self.text = text
        super().__init__(f"Could not resolve a concept from message: {text[:80]!r}")


class AlreadyExists(LearnStateError):
    """A mastery record already exists for (user, concept)."""

    def __init__(self, user_id: str, concept_id: str):
        self.user_id = user_id
        self.concept_id = concept_id
        super().__init__(f"Mastery record already exists for {user_id}/{concept_id}")


class NotFound(LearnStateError):
    """No mastery record exists for (user, concept)."""

    def __init__(self, user_id: str, concept_id: str):
        self.user_id = user_id
        self.concept_id = concept_id
        super().__init__(f"No mastery record for {user_id}/{concept_id}")


class CollaboratorTimeout(LearnStateError):
    """An external dispatch exceeded its time budget."""

    def __init__(self, collaborator: str, timeout_seconds: float):
        self.collaborator = collaborator
        self.timeout_seconds = timeout_seconds
        super().__init__(f"{collaborator} exceeded {timeout_seconds:.1f}s")


class ContentGenerationFailed(LearnStateError):
    """The essential tutoring-content dispatch failed."""


class GraphConfigurationError(LearnStateError):
    """The concept graph definition is invalid."""


class CyclicPrerequisiteError(GraphConfigurationError):
    """A concept is, directly or transitively, its own prerequisite."""

    def __init__(self, chain: list[str]):
        self.chain = chain
        super().__init__("Circular prerequisite chain: " + " -> ".join(chain))
