"""CLI entry point for the team coordination engine."""

from __future__ import annotations

import json
import logging
import math
from dataclasses import asdict
from pathlib import Path
from typing import TYPE_CHECKING

import click
from rich.console import Console
from rich.table import Table

from teamengine import __version__

if TYPE_CHECKING:
    from teamengine.engine.collaboration import CollaborationEngine

console = Console()


@click.group()
@click.version_option(version=__version__, prog_name="team")
@click.option(
    "--team",
    "team_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON roster file (defaults to the built-in sample team)",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Engine config JSON (defaults to ~/.teamengine/config.json)",
)
@click.option("-v", "--verbose", is_flag=True, help="Log engine decisions")
@click.pass_context
def main(ctx: click.Context, team_path: Path | None, config_path: Path | None, verbose: bool) -> None:
    """Team coordination engine: reviewers, assignees, mediators and mentors."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = {"team_path": team_path, "config_path": config_path}


def _get_engine(ctx: click.Context) -> CollaborationEngine:
    from teamengine.config import load_config
    from teamengine.engine.collaboration import CollaborationEngine
    from teamengine.team.loader import SAMPLE_TEAM, load_team

    team_path = ctx.obj["team_path"]
    members = load_team(team_path) if team_path else list(SAMPLE_TEAM)
    return CollaborationEngine(members, load_config(ctx.obj["config_path"]))


@main.command()
@click.option("--force", is_flag=True, help="Overwrite an existing config file")
@click.pass_context
def init(ctx: click.Context, force: bool) -> None:
    """Write the default engine config to ~/.teamengine/config.json."""
    from teamengine.config import DEFAULT_CONFIG_PATH, EngineConfig

    path: Path = ctx.obj["config_path"] or DEFAULT_CONFIG_PATH
    if path.exists() and not force:
        console.print(f"[yellow]Config already exists at {path}[/yellow] (use --force)")
        return

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(EngineConfig()), indent=2))
    console.print(f"[green]Team engine initialized at {path.parent}[/green]")
    console.print(f"  Config: {path}")


@main.command()
@click.pass_context
def members(ctx: click.Context) -> None:
    """List team members with role, workload and availability."""
    engine = _get_engine(ctx)

    table = Table(title="Team Members")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Role", style="green")
    table.add_column("Skills", max_width=40)
    table.add_column("Workload")
    table.add_column("Status", style="yellow")

    for member in engine.team_members():
        table.add_row(
            member.id,
            member.name,
            member.role.value,
            ", ".join(sorted(member.skills)),
            f"{member.workload}%",
            member.availability.status.value,
        )

    console.print(table)
    stats = engine.team.get_stats()
    console.print(
        f"\nTotal: {stats['total_members']} members | "
        f"Average workload: {stats['average_workload']:.1f}%"
    )


@main.command()
@click.argument("change_id")
@click.option("--author", required=True, help="Member id of the change author")
@click.option("--file", "files", multiple=True, required=True, help="Touched path (repeatable)")
@click.option(
    "--priority",
    type=click.Choice(["low", "medium", "high", "urgent"]),
    default="medium",
    show_default=True,
)
@click.pass_context
def review(ctx: click.Context, change_id: str, author: str, files: tuple[str, ...], priority: str) -> None:
    """Suggest code reviewers for a change."""
    from teamengine.models import ReviewPriority

    engine = _get_engine(ctx)
    assignment = engine.suggest_reviewers(change_id, author, files, ReviewPriority(priority))
    if assignment is None:
        console.print("[dim]Automatic code review is disabled.[/dim]")
        return

    console.print(f"[bold cyan]Review:[/bold cyan] {change_id} by {author}")
    console.print(f"[bold]Expertise:[/bold] {', '.join(assignment.required_expertise) or '-'}")
    console.print(f"[bold]Estimated:[/bold] {assignment.estimated_minutes} min")

    if not assignment.reviewers:
        console.print("[yellow]No reviewer crossed the confidence threshold.[/yellow]")
        return

    table = Table(title="Suggested Reviewers")
    table.add_column("Member", style="cyan")
    table.add_column("Confidence", style="bold")
    table.add_column("Expertise")
    table.add_column("Availability", style="yellow")
    table.add_column("Reasoning", max_width=50)

    for reviewer in assignment.reviewers:
        table.add_row(
            reviewer.member_id,
            f"{reviewer.confidence:.3f}",
            f"{reviewer.expertise_match:.0%}",
            reviewer.availability.value,
            "; ".join(reviewer.reasoning),
        )

    console.print(table)


@main.command()
@click.argument("task")
@click.option("--skill", "skills", multiple=True, help="Required skill (repeatable)")
@click.option("--effort", type=float, required=True, help="Estimated effort in hours")
@click.option(
    "--priority",
    type=click.Choice(["low", "medium", "high", "critical"]),
    default="medium",
    show_default=True,
)
@click.pass_context
def assign(ctx: click.Context, task: str, skills: tuple[str, ...], effort: float, priority: str) -> None:
    """Rank assignees for a task."""
    from teamengine.models import TaskPriority

    if not math.isfinite(effort) or effort < 0:
        raise click.BadParameter("must be a finite number >= 0", param_hint="--effort")

    engine = _get_engine(ctx)
    coordination = engine.coordinate_task(task, skills, effort, TaskPriority(priority))
    if coordination is None:
        console.print("[dim]Team coordination is disabled.[/dim]")
        return

    console.print(f"[bold cyan]Task:[/bold cyan] {task} ({effort:g}h, {priority})")
    if not coordination.suggestions:
        console.print("[yellow]No assignee crossed the confidence threshold.[/yellow]")
        return

    table = Table(title="Suggested Assignees")
    table.add_column("Member", style="cyan")
    table.add_column("Confidence", style="bold")
    table.add_column("Skill match")
    table.add_column("Workload after")
    table.add_column("Est. completion", style="green")

    for suggestion in coordination.suggestions:
        table.add_row(
            suggestion.member_id,
            f"{suggestion.confidence:.3f}",
            f"{suggestion.skill_match:.0%}",
            f"{suggestion.projected_workload}%",
            suggestion.estimated_completion.strftime("%Y-%m-%d %H:%M"),
        )

    console.print(table)


@main.command()
@click.pass_context
def gaps(ctx: click.Context) -> None:
    """Identify knowledge gaps and propose transfers."""
    engine = _get_engine(ctx)
    analysis = engine.identify_knowledge_gaps()

    if not analysis.transfers and not analysis.unaddressable:
        console.print("[dim]No knowledge gaps found.[/dim]")
        return

    if analysis.transfers:
        table = Table(title="Knowledge Transfers")
        table.add_column("Topic", style="cyan")
        table.add_column("Expert", style="green")
        table.add_column("Learner")
        table.add_column("Type", style="yellow")
        table.add_column("Urgency")
        table.add_column("Hours")

        for transfer in analysis.transfers:
            table.add_row(
                transfer.topic,
                transfer.source,
                transfer.target,
                transfer.type.value,
                f"{transfer.priority:.2f}",
                f"{transfer.estimated_hours:g}",
            )
        console.print(table)

    for gap in analysis.unaddressable:
        console.print(
            f"[red]Unaddressable:[/red] {gap.member_id} lacks {gap.skill} "
            f"(urgency {gap.urgency:.2f}) and no teammate can teach it"
        )


@main.command()
@click.option("--file", "files", multiple=True, help="Conflicting file (repeatable)")
@click.option("--branch", "branches", multiple=True, help="Conflicting branch (repeatable)")
@click.option("--pr", "pull_requests", multiple=True, help="Related pull request (repeatable)")
@click.option("--discussion", "discussions", multiple=True, help="Discussion reference")
@click.option("--involved", multiple=True, help="Involved member id (repeatable)")
@click.option("--context", default="", help="Free-text context")
@click.pass_context
def conflict(
    ctx: click.Context,
    files: tuple[str, ...],
    branches: tuple[str, ...],
    pull_requests: tuple[str, ...],
    discussions: tuple[str, ...],
    involved: tuple[str, ...],
    context: str,
) -> None:
    """Classify a conflict and propose a resolution."""
    from teamengine.models import ConflictData

    engine = _get_engine(ctx)
    data = ConflictData(files, branches, pull_requests, discussions, context)
    result = engine.detect_conflict(data, involved)

    if result is None:
        console.print("[dim]Low severity: no conflict recorded.[/dim]")
        return

    severity_color = {"critical": "red", "high": "yellow", "medium": "cyan"}.get(
        result.severity.value, "dim"
    )
    console.print(f"[bold]{result.title}[/bold] ({result.id})")
    console.print(f"Type: {result.type.value}")
    console.print(f"Severity: [{severity_color}]{result.severity.value}[/{severity_color}]")
    console.print(f"Approach: {result.suggestion.approach}")
    for number, step in enumerate(result.suggestion.steps, 1):
        console.print(f"  {number}. {step}")
    console.print(f"Estimated: {result.suggestion.estimated_minutes} min")

    if result.suggestion.mediator:
        console.print(f"Mediator: [green]{result.suggestion.mediator}[/green]")
    elif result.suggestion.requires_mediator:
        console.print("[red]No mediator available: escalate.[/red]")


@main.command()
@click.pass_context
def metrics(ctx: click.Context) -> None:
    """Take one metrics sample and show the workload aggregates."""
    engine = _get_engine(ctx)
    snapshot = engine.sample_metrics()
    if snapshot is None:
        console.print("[dim]Workload analysis is disabled.[/dim]")
        return

    table = Table(title="Workload")
    table.add_column("Member", style="cyan")
    table.add_column("Workload")
    table.add_column("Burnout risk", style="yellow")

    for member_id, workload in snapshot.workload.distribution.items():
        table.add_row(
            member_id,
            f"{workload}%",
            f"{snapshot.workload.burnout_risk[member_id]:.1f}",
        )

    console.print(table)
    console.print(
        f"\nAverage: {snapshot.workload.average_workload:.1f}% | "
        f"Utilization: {snapshot.workload.utilization_efficiency:.1f}%"
    )
