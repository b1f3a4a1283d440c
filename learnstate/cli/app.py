"""
learnstate CLI - inspect concept graphs and learner mastery from the terminal.

Usage:
    learnstate validate-graph graph.json     # Check references and cycles
    learnstate prereqs closures              # Direct prerequisites of a concept
    learnstate due alice                     # Everything due for review now
    learnstate due alice --concept closures  # Prerequisites to revise first
    learnstate complete alice closures -m 0.6
    learnstate status alice
    learnstate config                        # Effective retention and routing settings
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from learnstate.config import get_settings
from learnstate.core.errors import LearnStateError
from learnstate.core.mastery import MasteryLevel, RevisionCandidate
from learnstate.engine import build_scheduler, load_graph
from learnstate.graph.concept_graph import ConceptGraph
from learnstate.logging_setup import setup_logging
from learnstate.scheduling.scheduler import Scheduler

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="learnstate",
    help="Learning-state engine: concept graph, mastery and revision schedule",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()

GraphOption = Annotated[
    Path | None, typer.Option("--graph", "-g", help="Concept graph JSON (overrides settings)")
]

URGENCY_COLORS = {"high": "red", "medium": "yellow", "low": "cyan"}


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    settings = get_settings()
    setup_logging("DEBUG" if verbose else settings.log_level, settings.log_file)


def _scheduler(graph_path: Path | None) -> Scheduler:
    settings = get_settings()
    return build_scheduler(settings, graph=load_graph(settings, graph_path))


def _fail(exc: Exception) -> None:
    console.print(f"[red]Error:[/red] {escape(str(exc))}")
    raise typer.Exit(1)


def _revision_table(title: str, candidates: list[RevisionCandidate]) -> Table:
    table = Table(title=title)
    table.add_column("Concept", style="bold")
    table.add_column("Retention", justify="right")
    table.add_column("Urgency")
    table.add_column("Reason")
    table.add_column("Next due")
    for c in candidates:
        color = URGENCY_COLORS.get(c.urgency.value, "white")
        table.add_row(
            c.concept_id,
            f"{c.retention:.0%}",
            f"[{color}]{c.urgency.value}[/{color}]",
            c.reason,
            c.next_due_at.strftime("%Y-%m-%d %H:%M") if c.next_due_at else "-",
        )
    return table


# =============================================================================
# Commands
# =============================================================================


@app.command("validate-graph")
def validate_graph(
    path: Annotated[Path, typer.Argument(help="Concept graph JSON file")],
) -> None:
    """Validate a concept graph (unknown prerequisites, cycles)."""
    try:
        graph = ConceptGraph.from_file(path)
    except LearnStateError as exc:
        _fail(exc)
        return

    leaves = [c for c in graph.concepts() if not graph.prerequisites_of(c)]
    console.print(
        f"[green]✓[/green] {len(graph)} concepts, {len(leaves)} without prerequisites, no cycles"
    )


@app.command("prereqs")
def prereqs(
    concept: Annotated[str, typer.Argument(help="Concept id")],
    graph: GraphOption = None,
) -> None:
    """Show the direct prerequisites of a concept and what it unlocks."""
    try:
        holder = load_graph(get_settings(), graph)
        items = holder.prerequisites_of(concept)
        unlocks = holder.graph.dependents_of(concept)
    except LearnStateError as exc:
        _fail(exc)
        return

    if not items:
        console.print(f"{concept} has no prerequisites")
    for prereq in items:
        console.print(f"  • {prereq}")
    if unlocks:
        console.print(f"Unlocks: {', '.join(unlocks)}")


@app.command("due")
def due(
    user: Annotated[str, typer.Argument(help="User id")],
    concept: Annotated[
        str | None, typer.Option("--concept", "-c", help="Concept about to be taught")
    ] = None,
    graph: GraphOption = None,
) -> None:
    """List concepts due for revision now."""
    now = datetime.now(timezone.utc)
    try:
        scheduler = _scheduler(graph)
        if concept:
            candidates = scheduler.revisions_needed_for(user, concept, now)
            title = f"Revise before {concept}"
        else:
            candidates = scheduler.scheduled_reviews(user, now)
            title = f"Due reviews for {user}"
    except LearnStateError as exc:
        _fail(exc)
        return

    if not candidates:
        console.print("[green]Nothing due.[/green]")
        return
    console.print(_revision_table(title, candidates))


@app.command("complete")
def complete(
    user: Annotated[str, typer.Argument(help="User id")],
    concept: Annotated[str, typer.Argument(help="Completed concept id")],
    mastery: Annotated[
        float, typer.Option("--mastery", "-m", min=0.0, max=1.0, help="Mastery level 0-1")
    ] = 0.6,
    graph: GraphOption = None,
) -> None:
    """Record a completed quest for a user."""
    try:
        record = _scheduler(graph).complete_quest(
            user, concept, mastery, datetime.now(timezone.utc)
        )
    except LearnStateError as exc:
        _fail(exc)
        return

    console.print(
        f"[green]✓[/green] {user}/{concept}: mastery {record.mastery_level:.2f}, "
        f"reviews {record.review_count}"
    )


@app.command("status")
def status(
    user: Annotated[str, typer.Argument(help="User id")],
    graph: GraphOption = None,
) -> None:
    """Show a user's mastery records with current retention."""
    now = datetime.now(timezone.utc)
    try:
        scheduler = _scheduler(graph)
        records = scheduler.store.records_for(user)
    except LearnStateError as exc:
        _fail(exc)
        return

    if not records:
        console.print(f"No mastery records for {user}")
        return

    table = Table(title=f"Mastery for {user}")
    table.add_column("Concept", style="bold")
    table.add_column("Mastery", justify="right")
    table.add_column("Level")
    table.add_column("Retention", justify="right")
    table.add_column("Reviews", justify="right")
    table.add_column("Next due")
    for record in records:
        assessment = scheduler.retention.assess(record, now)
        level = MasteryLevel.from_score(record.mastery_level)
        table.add_row(
            record.concept_id,
            f"{record.mastery_level:.2f}",
            f"[{level.color}]{level.display_name}[/{level.color}]",
            f"{assessment.retention:.0%}",
            str(record.review_count),
            assessment.next_due_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


@app.command("config")
def show_config() -> None:
    """Show the effective retention and routing configuration."""
    settings = get_settings()

    table = Table(title="learnstate configuration")
    table.add_column("Section", style="bold")
    table.add_column("Setting")
    table.add_column("Value")
    for section, values in (
        ("retention", settings.get_retention_config()),
        ("router", settings.get_router_config()),
    ):
        for name, value in values.items():
            table.add_row(section, name, escape(str(value)))
    table.add_row(
        "content",
        "api_url",
        settings.content_api_url if settings.has_content_api_configured() else "[dim]not configured[/dim]",
    )
    console.print(table)


def run() -> None:
    """Entry point for the learnstate console script."""
    app()


if __name__ == "__main__":
    run()
