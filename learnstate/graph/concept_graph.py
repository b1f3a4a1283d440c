"""
Concept Graph - prerequisite relationships between learnable concepts.

The graph is validated once when it is built:
- every prerequisite must name a registered concept
- no concept may be, directly or transitively, its own prerequisite

After construction the graph is read-only. ConceptGraphHolder supports
hot-reload by building and validating a replacement before swapping it in.

File format (JSON)::

    {
      "concepts": {
        "functions": [],
        "scope": {"prerequisites": ["functions"], "title": "Variable scope"},
        "closures": {"prerequisites": ["functions", "scope"], "aliases": ["closure"]}
      }
    }

The top-level "concepts" wrapper is optional.
"""

from __future__ import annotations

import json
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Union

from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from learnstate.core.errors import (
    CyclicPrerequisiteError,
    GraphConfigurationError,
    UnknownConcept,
)


class ConceptSpec(BaseModel):
    """Schema of one concept entry in a graph file."""

    prerequisites: list[str] = Field(default_factory=list)
    title: str | None = None
    aliases: list[str] = Field(default_factory=list)


class ConceptGraphFile(BaseModel):
    """Schema of a graph file."""

    concepts: dict[str, Union[ConceptSpec, list[str]]]

    def specs(self) -> dict[str, ConceptSpec]:
        return {
            concept_id: value if isinstance(value, ConceptSpec) else ConceptSpec(prerequisites=value)
            for concept_id, value in self.concepts.items()
        }


@dataclass(frozen=True)
class ConceptNode:
    """A registered concept."""

    concept_id: str
    prerequisites: tuple[str, ...] = ()
    title: str | None = None
    aliases: tuple[str, ...] = field(default_factory=tuple)


class ConceptGraph:
    """
    Immutable mapping of concept -> ordered prerequisites.

    Raises GraphConfigurationError (or CyclicPrerequisiteError) on construction
    when the definition is invalid.
    """

    def __init__(self, nodes: Mapping[str, ConceptNode]):
        self._nodes: dict[str, ConceptNode] = dict(nodes)
        self._check_references()
        self._check_acyclic()

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ConceptGraph:
        """
        Build a graph from a parsed mapping.

        Args:
            data: Either {"concepts": {...}} or the inner concept mapping

        Returns:
            Validated ConceptGraph
        """
        payload = data if "concepts" in data else {"concepts": data}
        try:
            parsed = ConceptGraphFile.model_validate(payload)
        except ValidationError as exc:
            raise GraphConfigurationError(f"Invalid concept graph definition: {exc}") from exc

        nodes = {}
        for concept_id, spec in parsed.specs().items():
            if not concept_id.strip():
                raise GraphConfigurationError("Concept ids must be non-empty")
            nodes[concept_id] = ConceptNode(
                concept_id=concept_id,
                prerequisites=tuple(dict.fromkeys(spec.prerequisites)),
                title=spec.title,
                aliases=tuple(spec.aliases),
            )
        return cls(nodes)

    @classmethod
    def from_file(cls, path: Path | str) -> ConceptGraph:
        """Load and validate a graph from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise GraphConfigurationError(f"Concept graph file not found: {path}")
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise GraphConfigurationError(f"Concept graph file is not readable: {path} ({exc})") from exc
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise GraphConfigurationError(f"Concept graph file is not valid JSON: {path}") from exc
        if not isinstance(data, dict):
            raise GraphConfigurationError("Concept graph file must contain a JSON object")

        graph = cls.from_mapping(data)
        logger.info("Loaded concept graph from {} ({} concepts)", path, len(graph))
        return graph

    def _check_references(self) -> None:
        for node in self._nodes.values():
            for prereq in node.prerequisites:
                if prereq == node.concept_id:
                    raise CyclicPrerequisiteError([node.concept_id, node.concept_id])
                if prereq not in self._nodes:
                    raise GraphConfigurationError(
                        f"Concept {node.concept_id!r} lists unregistered prerequisite {prereq!r}"
                    )

    def _check_acyclic(self) -> None:
        """Iterative three-colour DFS; raises with the offending chain."""
        white, grey, black = 0, 1, 2
        colour = dict.fromkeys(self._nodes, white)

        for root in sorted(self._nodes):
            if colour[root] != white:
                continue
            path: list[str] = [root]
            stack = [iter(self._nodes[root].prerequisites)]
            colour[root] = grey

            while stack:
                advanced = False
                for prereq in stack[-1]:
                    if colour[prereq] == grey:
                        start = path.index(prereq)
                        raise CyclicPrerequisiteError(path[start:] + [prereq])
                    if colour[prereq] == white:
                        colour[prereq] = grey
                        path.append(prereq)
                        stack.append(iter(self._nodes[prereq].prerequisites))
                        advanced = True
                        break
                if not advanced:
                    colour[path.pop()] = black
                    stack.pop()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def prerequisites_of(self, concept_id: str) -> tuple[str, ...]:
        """Direct prerequisites in declared order; empty for leaf concepts."""
        return self._node(concept_id).prerequisites

    def contains(self, concept_id: str) -> bool:
        return concept_id in self._nodes

    def require(self, concept_id: str) -> None:
        """Raise UnknownConcept unless the concept is registered."""
        self._node(concept_id)

    def concepts(self) -> list[str]:
        return sorted(self._nodes)

    def title_of(self, concept_id: str) -> str:
        node = self._node(concept_id)
        return node.title or concept_id

    def aliases_of(self, concept_id: str) -> tuple[str, ...]:
        return self._node(concept_id).aliases

    def dependents_of(self, concept_id: str) -> list[str]:
        """Concepts that list this one as a direct prerequisite."""
        self.require(concept_id)
        return sorted(n.concept_id for n in self._nodes.values() if concept_id in n.prerequisites)

    def _node(self, concept_id: str) -> ConceptNode:
        try:
            return self._nodes[concept_id]
        except KeyError:
            raise UnknownConcept(concept_id) from None

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, concept_id: object) -> bool:
        return concept_id in self._nodes


class ConceptGraphHolder:
    """
    Holds the live concept graph and swaps it atomically on reload.

    Readers call ``graph`` (or the delegating query methods) and always see
    either the old or the new graph, never a partially built one.
    """

    def __init__(self, graph: ConceptGraph):
        self._graph = graph
        self._reload_lock = threading.Lock()

    @property
    def graph(self) -> ConceptGraph:
        return self._graph

    def reload(self, source: Path | str | Mapping[str, Any]) -> ConceptGraph:
        """
        Build a replacement graph and swap it in only if it validates.

        Raises:
            GraphConfigurationError: The old graph stays active
        """
        with self._reload_lock:
            if isinstance(source, Mapping):
                new_graph = ConceptGraph.from_mapping(source)
            else:
                new_graph = ConceptGraph.from_file(source)
            self._graph = new_graph
            logger.info("Concept graph reloaded ({} concepts)", len(new_graph))
            return new_graph

    def prerequisites_of(self, concept_id: str) -> tuple[str, ...]:
        return self._graph.prerequisites_of(concept_id)

    def require(self, concept_id: str) -> None:
        self._graph.require(concept_id)

    def contains(self, concept_id: str) -> bool:
        return self._graph.contains(concept_id)
