"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from learnstate.graph.concept_graph import ConceptGraph
from learnstate.retention.retention_model import RetentionModel
from learnstate.scheduling.scheduler import Scheduler
from learnstate.store.mastery_store import InMemoryMasteryBackend, MasteryStore


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (SQLite backend)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        path = str(item.fspath)
        if "unit" in path:
            item.add_marker(pytest.mark.unit)
        elif "integration" in path:
            item.add_marker(pytest.mark.integration)
        elif "smoke" in path:
            item.add_marker(pytest.mark.smoke)


GRAPH_DEFINITION = {
    "concepts": {
        "variables": [],
        "functions": {"prerequisites": ["variables"], "title": "Functions"},
        "scope": {"prerequisites": ["variables", "functions"], "title": "Variable scope"},
        "closures": {"prerequisites": ["functions", "scope"], "aliases": ["closure"]},
        "decorators": {"prerequisites": ["closures", "functions"], "aliases": ["decorator"]},
        "loops": {"prerequisites": ["variables"], "aliases": ["for loop", "while loop"]},
        "recursion": {"prerequisites": ["functions"]},
    }
}


@pytest.fixture
def graph_definition():
    """Raw graph mapping (copy per test)."""
    return {"concepts": dict(GRAPH_DEFINITION["concepts"])}


@pytest.fixture
def graph():
    return ConceptGraph.from_mapping(GRAPH_DEFINITION)


@pytest.fixture
def now():
    """Fixed evaluation instant."""
    return datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def days_ago(now):
    def _days_ago(days: float) -> datetime:
        return now - timedelta(days=days)

    return _days_ago


@pytest.fixture
def store():
    return MasteryStore(InMemoryMasteryBackend())


@pytest.fixture
def retention():
    return RetentionModel(retention_threshold=0.7, medium_urgency_retention=0.85)


@pytest.fixture
def scheduler(graph, store, retention):
    return Scheduler(graph, store, retention, max_revisions=3)
