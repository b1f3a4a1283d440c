"""Per-user, per-concept mastery storage."""

from learnstate.store.mastery_store import (
    InMemoryMasteryBackend,
    MasteryBackend,
    MasteryStore,
)

__all__ = ["InMemoryMasteryBackend", "MasteryBackend", "MasteryStore"]
