"""Collaborator interfaces and built-in adapters."""

from learnstate.integrations.collaborators import (
    ConceptResolver,
    ContentGenerator,
    ContentRequest,
    GeneratedContent,
    HeadingNoteExtractor,
    KeywordConceptResolver,
    NoteExtractor,
    Profiler,
)
from learnstate.integrations.http_content import HttpContentGenerator

__all__ = [
    "ConceptResolver",
    "ContentGenerator",
    "ContentRequest",
    "GeneratedContent",
    "HeadingNoteExtractor",
    "HttpContentGenerator",
    "KeywordConceptResolver",
    "NoteExtractor",
    "Profiler",
]
