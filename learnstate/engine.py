"""
Wiring helpers.

Builds the graph -> store -> retention -> scheduler -> router stack from
Settings so callers only supply the external collaborators.
"""

from __future__ import annotations

from pathlib import Path

from learnstate.config import Settings, get_settings
from learnstate.core.errors import GraphConfigurationError
from learnstate.db.mastery_backend import SqlMasteryBackend
from learnstate.graph.concept_graph import ConceptGraph, ConceptGraphHolder
from learnstate.integrations.collaborators import (
    ConceptResolver,
    ContentGenerator,
    HeadingNoteExtractor,
    KeywordConceptResolver,
    NoteExtractor,
    Profiler,
)
from learnstate.integrations.http_content import HttpContentGenerator
from learnstate.retention.retention_model import RetentionModel
from learnstate.routing.turn_router import TurnRouter
from learnstate.scheduling.scheduler import Scheduler
from learnstate.store.mastery_store import MasteryBackend, MasteryStore


def load_graph(settings: Settings, path: Path | str | None = None) -> ConceptGraphHolder:
    """Load the configured concept graph, failing fast when none is set."""
    source = path or settings.concept_graph_path
    if not source:
        raise GraphConfigurationError("No concept graph configured (LEARNSTATE_CONCEPT_GRAPH_PATH)")
    return ConceptGraphHolder(ConceptGraph.from_file(source))


def build_scheduler(
    settings: Settings | None = None,
    graph: ConceptGraphHolder | ConceptGraph | None = None,
    backend: MasteryBackend | None = None,
) -> Scheduler:
    settings = settings or get_settings()
    graph = graph or load_graph(settings)
    if backend is None:
        backend = SqlMasteryBackend.from_url(settings.database_url)
    return Scheduler(
        graph,
        MasteryStore(backend),
        RetentionModel.from_settings(settings),
        max_revisions=settings.max_revisions,
    )


def build_router(
    content: ContentGenerator | None = None,
    settings: Settings | None = None,
    scheduler: Scheduler | None = None,
    resolver: ConceptResolver | None = None,
    notes: NoteExtractor | None = None,
    profiler: Profiler | None = None,
) -> TurnRouter:
    """
    Build a TurnRouter.

    Without an explicit resolver, concepts are resolved by keyword against the
    scheduler's graph; without a note extractor, headings and bullets of the
    generated text become note blocks. Without a content generator, the HTTP
    content service from settings is used.

    Raises:
        ValueError: No content generator given and none configured
    """
    settings = settings or get_settings()
    if content is None:
        if not settings.has_content_api_configured():
            raise ValueError("No content generator given and LEARNSTATE_CONTENT_API_URL is not set")
        content = HttpContentGenerator.from_settings(settings)
    scheduler = scheduler or build_scheduler(settings)
    if resolver is None:
        graph = scheduler.graph.graph if isinstance(scheduler.graph, ConceptGraphHolder) else scheduler.graph
        resolver = KeywordConceptResolver(graph)
    return TurnRouter.from_settings(
        settings,
        scheduler,
        resolver,
        content,
        notes=notes or HeadingNoteExtractor(),
        profiler=profiler,
    )
