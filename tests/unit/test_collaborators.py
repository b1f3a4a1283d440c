"""
Unit tests for the built-in collaborator adapters.
"""

import pytest

from learnstate.core.mastery import RevisionCandidate, Urgency
from learnstate.integrations.collaborators import (
    ContentRequest,
    GeneratedContent,
    HeadingNoteExtractor,
    KeywordConceptResolver,
)


@pytest.fixture
def resolver(graph):
    return KeywordConceptResolver(graph)


class TestKeywordConceptResolver:
    def test_matches_concept_id(self, resolver):
        assert resolver.resolve_sync("Teach me recursion please") == "recursion"

    def test_matches_alias(self, resolver):
        assert resolver.resolve_sync("how does a decorator wrap things?") == "decorators"
        assert resolver.resolve_sync("explain the while loop") == "loops"

    def test_matches_title_case_insensitively(self, resolver):
        assert resolver.resolve_sync("VARIABLE SCOPE is confusing") == "scope"

    def test_whole_words_only(self, resolver):
        assert resolver.resolve_sync("the functionsmith was here") is None

    def test_longest_match_wins(self, resolver):
        # "variable scope" is longer than "variables"
        assert resolver.resolve_sync("variable scope vs variables") == "scope"

    def test_no_match(self, resolver):
        assert resolver.resolve_sync("hello there") is None

    @pytest.mark.asyncio
    async def test_async_resolve(self, resolver):
        assert await resolver.resolve("closures?") == "closures"


class TestHeadingNoteExtractor:
    @pytest.mark.asyncio
    async def test_headings_and_bullets(self):
        text = "\n".join(
            [
                "# Closures",
                "A closure captures variables.",
                "- inner function",
                "- keeps enclosing scope alive",
                "## Pitfalls",
                "1. late binding in loops",
            ]
        )

        notes = await HeadingNoteExtractor().extract(text)

        assert notes == [
            {"title": "Closures", "items": ["inner function", "keeps enclosing scope alive"]},
            {"title": "Pitfalls", "items": ["late binding in loops"]},
        ]

    @pytest.mark.asyncio
    async def test_bullets_before_first_heading(self):
        notes = await HeadingNoteExtractor().extract("* loose point\n# Next")
        assert notes[0] == {"title": None, "items": ["loose point"]}
        assert notes[1] == {"title": "Next", "items": []}

    @pytest.mark.asyncio
    async def test_plain_text_yields_nothing(self):
        assert await HeadingNoteExtractor().extract("just prose") == []


class TestPayloads:
    def test_content_request_to_dict(self, now):
        candidate = RevisionCandidate(
            concept_id="functions",
            retention=0.42,
            urgency=Urgency.HIGH,
            reason="prerequisite-of:closures",
        )
        request = ContentRequest(
            user_id="alice",
            concept_id="closures",
            message="teach me closures",
            revisions=(candidate,),
        )

        payload = request.to_dict()

        assert payload["concept_id"] == "closures"
        assert payload["revisions"][0]["concept_id"] == "functions"
        assert payload["completed_concept"] is None

    def test_generated_content_from_dict_defaults(self):
        content = GeneratedContent.from_dict({"text": "hi"})
        assert content.text == "hi"
        assert content.meta == {}
