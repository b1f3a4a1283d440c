"""Concept prerequisite graph."""

from learnstate.graph.concept_graph import (
    ConceptGraph,
    ConceptGraphFile,
    ConceptGraphHolder,
    ConceptNode,
    ConceptSpec,
)

__all__ = [
    "ConceptGraph",
    "ConceptGraphFile",
    "ConceptGraphHolder",
    "ConceptNode",
    "ConceptSpec",
]
