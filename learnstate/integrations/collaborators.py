"""
External collaborator interfaces used by the turn router.

The engine only decides *what* to ask for and *what to do* with the answer:
- ConceptResolver: free text -> concept id (or None)
- ContentGenerator: concept + revision candidates -> explanatory text
- NoteExtractor: generated text -> structured note blocks (passed through)
- Profiler: turn context -> learner profile signals (passed through)

All collaborator calls are awaitable so the router can run them concurrently
and bound each one with its own timeout.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

from learnstate.core.mastery import RevisionCandidate

if TYPE_CHECKING:
    from learnstate.graph.concept_graph import ConceptGraph
    from learnstate.routing.context import TurnContext


@dataclass(frozen=True)
class ContentRequest:
    """Parameters handed to the content generator."""

    user_id: str
    concept_id: str
    message: str
    revisions: tuple[RevisionCandidate, ...] = ()
    completed_concept: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert request to API payload format."""
        return {
            "user_id": self.user_id,
            "concept_id": self.concept_id,
            "message": self.message,
            "revisions": [r.to_dict() for r in self.revisions],
            "completed_concept": self.completed_concept,
        }


@dataclass
class GeneratedContent:
    """Opaque text and metadata returned by the content generator."""

    text: str
    meta: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GeneratedContent:
        """Parse content from an API response."""
        return cls(text=data.get("text", ""), meta=data.get("meta", {}))


class ConceptResolver(Protocol):
    async def resolve(self, text: str) -> str | None: ...


class ContentGenerator(Protocol):
    async def generate(self, request: ContentRequest) -> GeneratedContent: ...


class NoteExtractor(Protocol):
    async def extract(self, text: str) -> list[dict[str, Any]]: ...


class Profiler(Protocol):
    async def profile(self, context: TurnContext) -> dict[str, Any]: ...


# =============================================================================
# Built-in adapters
# =============================================================================


class KeywordConceptResolver:
    """
    Resolve messages by matching concept ids, titles and aliases.

    Matching is case-insensitive on word boundaries; underscores and hyphens in
    ids also match spaces. The longest matching term wins, ties go to the
    concept id that sorts first.
    """

    def __init__(self, graph: ConceptGraph):
        self._patterns: list[tuple[int, str, re.Pattern[str]]] = []
        for concept_id in graph.concepts():
            terms = {concept_id, graph.title_of(concept_id), *graph.aliases_of(concept_id)}
            for term in terms:
                normalized = re.sub(r"[_\-\s]+", " ", term.strip().lower())
                if not normalized:
                    continue
                body = r"[\s_\-]+".join(re.escape(part) for part in normalized.split(" "))
                pattern = re.compile(rf"(?<!\w){body}(?!\w)", re.IGNORECASE)
                self._patterns.append((len(normalized), concept_id, pattern))
        self._patterns.sort(key=lambda item: (-item[0], item[1]))

    async def resolve(self, text: str) -> str | None:
        return self.resolve_sync(text)

    def resolve_sync(self, text: str) -> str | None:
        for _, concept_id, pattern in self._patterns:
            if pattern.search(text):
                return concept_id
        return None


class HeadingNoteExtractor:
    """
    Split markdown-ish text into note blocks.

    Each heading starts a block; bullet lines under it become its items.
    Text before the first heading goes into an untitled block.
    """

    HEADING = re.compile(r"^\s{0,3}#{1,6}\s+(?P<title>.+?)\s*#*\s*$")
    BULLET = re.compile(r"^\s*(?:[-*+]|\d+[.)])\s+(?P<item>.+)$")

    async def extract(self, text: str) -> list[dict[str, Any]]:
        blocks: list[dict[str, Any]] = []
        current: dict[str, Any] | None = None

        for line in text.splitlines():
            heading = self.HEADING.match(line)
            if heading:
                current = {"title": heading.group("title"), "items": []}
                blocks.append(current)
                continue
            bullet = self.BULLET.match(line)
            if bullet:
                if current is None:
                    current = {"title": None, "items": []}
                    blocks.append(current)
                current["items"].append(bullet.group("item").strip())

        return [b for b in blocks if b["items"] or b["title"]]
