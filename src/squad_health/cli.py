"""Command-line interface for squad health dashboards."""

import asyncio
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from .config import Settings
from .errors import HealthCheckError
from .models.records import HealthStatus
from .models.summaries import OrganizationNode, ScoreDistribution
from .models.utils import format_distribution_for_display, health_percentage
from .orchestration.dashboard import HealthDashboard
from .periods import get_assessment_period, period_bounds
from .store.api import APISessionStore
from .store.base import SessionStore
from .store.memory import load_snapshot

app = typer.Typer(
    name="squad-health",
    help="Squad Health Check - team health aggregation and roll-up dashboards",
    add_completion=False,
)

console = Console()

STATUS_STYLES = {
    HealthStatus.GREEN: "green",
    HealthStatus.YELLOW: "yellow",
    HealthStatus.RED: "red",
}

SnapshotOption = typer.Option(None, "--snapshot", "-s", help="YAML or JSON snapshot file to read from")
ApiOption = typer.Option(False, "--api", help="Read from the live backend (HEALTH_API_BASE_URL)")
JsonOption = typer.Option(False, "--json", help="Print raw JSON instead of tables")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )


@app.callback()
def main_callback(
    ctx: typer.Context,
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override APP_LOG_LEVEL"),
):
    """Load settings and configure logging once per invocation."""
    settings = Settings.load()
    configure_logging(log_level or settings.app.log_level)
    ctx.obj = settings


def _open_store(settings: Settings, snapshot: Optional[Path], api: bool) -> SessionStore:
    if api:
        return APISessionStore(settings.backend)
    if snapshot is None:
        console.print("[red]Provide --snapshot PATH or --api[/red]")
        raise typer.Exit(code=2)
    return load_snapshot(snapshot)


def _run(
    settings: Settings,
    snapshot: Optional[Path],
    api: bool,
    action: Callable[[HealthDashboard], Awaitable[Any]],
) -> Any:
    """Run one dashboard call, turning domain errors into a clean exit."""

    async def runner():
        store = _open_store(settings, snapshot, api)
        try:
            return await action(HealthDashboard(store, settings))
        finally:
            await store.close()

    try:
        return asyncio.run(runner())
    except FileNotFoundError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(code=1)
    except ValidationError as e:
        console.print(f"[red]❌ Invalid snapshot data: {e}[/red]")
        raise typer.Exit(code=1)
    except HealthCheckError as e:
        console.print(f"[red]❌ {type(e).__name__}: {e}[/red]")
        raise typer.Exit(code=1)
    except ValueError as e:
        console.print(f"[red]❌ Invalid input: {e}[/red]")
        raise typer.Exit(code=1)


def _format_score(score: Optional[float], status: Optional[HealthStatus]) -> str:
    if score is None or status is None:
        return "[dim]no data[/dim]"
    return f"[{STATUS_STYLES[status]}]{score:.2f} ({health_percentage(score):.0f}%)[/{STATUS_STYLES[status]}]"


def _distribution_cells(distribution: ScoreDistribution) -> List[str]:
    formatted = format_distribution_for_display(distribution.red, distribution.yellow, distribution.green)
    return [formatted["red"], formatted["yellow"], formatted["green"]]


@app.command()
def version():
    """Show version information."""
    from squad_health import __version__

    console.print(Panel.fit(
        f"[bold blue]Squad Health[/bold blue]\n"
        f"Version: [green]{__version__}[/green]",
        title="Version Info"
    ))


@app.command()
def period(
    day: Optional[str] = typer.Argument(None, help="ISO date or timestamp (defaults to today)"),
):
    """Show the assessment period a date falls into."""
    try:
        label = get_assessment_period(day)
    except ValueError as e:
        console.print(f"[red]❌ Invalid date: {e}[/red]")
        raise typer.Exit(code=1)

    start, end = period_bounds(label)
    console.print(f"[bold]{label}[/bold]  ({start.isoformat()} → {end.isoformat()})")


@app.command("team-summary")
def team_summary(
    ctx: typer.Context,
    user_id: str = typer.Argument(..., help="User requesting the summary"),
    team_id: str = typer.Argument(..., help="Team to summarize"),
    period_filter: Optional[str] = typer.Option(None, "--period", "-p", help='e.g. "2024 - 1st Half"'),
    snapshot: Optional[Path] = SnapshotOption,
    api: bool = ApiOption,
    as_json: bool = JsonOption,
):
    """Summarize a team's latest health check batch."""
    settings: Settings = ctx.obj
    summary = _run(settings, snapshot, api, lambda d: d.team_summary(user_id, team_id, period_filter))

    if summary is None:
        console.print(f"[yellow]No completed health checks for team {team_id}[/yellow]")
        return

    if as_json:
        console.print_json(data=summary.model_dump(mode="json"))
        return

    table = Table(title=f"{summary.team_name} - {summary.date.isoformat()} ({summary.assessment_period})")
    table.add_column("Dimension")
    table.add_column("Average")
    table.add_column("Red", justify="right")
    table.add_column("Yellow", justify="right")
    table.add_column("Green", justify="right")
    table.add_column("Trend")

    for dimension in summary.dimensions:
        distribution = _distribution_cells(dimension.distribution)
        table.add_row(
            dimension.name,
            _format_score(dimension.average_score, dimension.status),
            *distribution,
            dimension.trend.value if dimension.trend else "-",
        )

    console.print(table)
    console.print(
        f"Overall: {_format_score(summary.overall_health, summary.status)}  "
        f"Submissions: {summary.submission_count}"
    )


def _add_org_node(parent: Tree, node: OrganizationNode) -> None:
    metrics = node.metrics
    branch = parent.add(
        f"[bold]{node.user.display_name}[/bold] [dim]({node.level.name})[/dim] "
        f"{_format_score(metrics.avg_health, metrics.health_status)} "
        f"teams={metrics.total_teams} members={metrics.total_members} "
        f"completion={metrics.completion_rate:.0%}"
    )
    for team in node.teams:
        summary = node.team_summaries.get(team.id)
        branch.add(
            f"[cyan]{team.name}[/cyan] "
            f"{_format_score(summary.overall_health, summary.status) if summary else _format_score(None, None)}"
        )
    for child in node.children:
        _add_org_node(branch, child)


@app.command("org-tree")
def org_tree(
    ctx: typer.Context,
    user_id: str = typer.Argument(..., help="Root of the organization subtree"),
    as_of: Optional[str] = typer.Option(None, "--as-of", help="End of the completion window (ISO date)"),
    snapshot: Optional[Path] = SnapshotOption,
    api: bool = ApiOption,
    as_json: bool = JsonOption,
):
    """Show the health roll-up for a user's organization."""
    settings: Settings = ctx.obj
    tree = _run(settings, snapshot, api, lambda d: d.organization_tree(user_id, as_of=as_of))

    if as_json:
        console.print_json(data=tree.model_dump(mode="json"))
        return

    root = Tree("[bold blue]Organization health[/bold blue]")
    _add_org_node(root, tree)
    console.print(root)

    trends = tree.metrics.trends
    console.print(
        f"Trends: [green]{trends.improving} improving[/green], {trends.stable} stable, "
        f"[red]{trends.declining} declining[/red]"
    )


@app.command("visible-teams")
def visible_teams(
    ctx: typer.Context,
    user_id: str = typer.Argument(..., help="User whose visibility to resolve"),
    snapshot: Optional[Path] = SnapshotOption,
    api: bool = ApiOption,
    as_json: bool = JsonOption,
):
    """List the teams a user is allowed to see."""
    settings: Settings = ctx.obj
    teams = _run(settings, snapshot, api, lambda d: d.visible_teams(user_id))

    if as_json:
        console.print_json(data=[team.model_dump(mode="json") for team in teams])
        return

    table = Table(title=f"Teams visible to {user_id}")
    table.add_column("Id")
    table.add_column("Name")
    table.add_column("Cadence")
    table.add_column("Lead")
    table.add_column("Members", justify="right")

    for team in teams:
        table.add_row(team.id, team.name, team.cadence.value, team.team_lead_id or "-", str(team.member_count))

    console.print(table)


@app.command()
def trends(
    ctx: typer.Context,
    user_id: str = typer.Argument(..., help="User requesting the report"),
    team_id: Optional[str] = typer.Option(None, "--team", "-t", help="Single team (default: all supervised teams)"),
    snapshot: Optional[Path] = SnapshotOption,
    api: bool = ApiOption,
    as_json: bool = JsonOption,
):
    """Show per-period dimension averages and their direction."""
    settings: Settings = ctx.obj

    if team_id:
        report = _run(settings, snapshot, api, lambda d: d.team_trends(user_id, team_id))
    else:
        report = _run(settings, snapshot, api, lambda d: d.manager_trends(user_id))

    if as_json:
        console.print_json(data=report.model_dump(mode="json"))
        return

    if not report.periods:
        console.print("[yellow]No assessment periods with data[/yellow]")
        return

    table = Table(title="Dimension trends")
    table.add_column("Dimension")
    for label in report.periods:
        table.add_column(label, justify="right")
    table.add_column("Direction")

    for dimension in report.dimensions:
        table.add_row(
            dimension.dimension_id,
            *[f"{score:.2f}" if score is not None else "-" for score in dimension.scores],
            dimension.direction.value,
        )

    console.print(table)


@app.command()
def distribution(
    ctx: typer.Context,
    user_id: str = typer.Argument(..., help="User requesting the distribution"),
    team_id: str = typer.Argument(..., help="Team to count responses for"),
    period_filter: Optional[str] = typer.Option(None, "--period", "-p", help='e.g. "2024 - 1st Half"'),
    snapshot: Optional[Path] = SnapshotOption,
    api: bool = ApiOption,
    as_json: bool = JsonOption,
):
    """Count red/yellow/green answers per dimension across all of a team's sessions."""
    settings: Settings = ctx.obj
    counts = _run(settings, snapshot, api, lambda d: d.response_distribution(user_id, team_id, period_filter))

    if as_json:
        console.print_json(data={key: value.model_dump(mode="json") for key, value in counts.items()})
        return

    table = Table(title=f"Response distribution for {team_id}")
    table.add_column("Dimension")
    table.add_column("Total", justify="right")
    table.add_column("Red", justify="right")
    table.add_column("Yellow", justify="right")
    table.add_column("Green", justify="right")

    for dimension_id, counted in counts.items():
        table.add_row(dimension_id, str(counted.total), *_distribution_cells(counted))

    console.print(table)


@app.command()
def responses(
    ctx: typer.Context,
    user_id: str = typer.Argument(..., help="User requesting the responses"),
    team_id: str = typer.Argument(..., help="Team whose sessions to list"),
    period_filter: Optional[str] = typer.Option(None, "--period", "-p", help='e.g. "2024 - 1st Half"'),
    snapshot: Optional[Path] = SnapshotOption,
    api: bool = ApiOption,
    as_json: bool = JsonOption,
):
    """List each member's answers for a team, newest first."""
    settings: Settings = ctx.obj
    rows = _run(settings, snapshot, api, lambda d: d.individual_responses(user_id, team_id, period_filter))

    if as_json:
        console.print_json(data=[row.model_dump(mode="json") for row in rows])
        return

    if not rows:
        console.print(f"[yellow]No completed health checks for team {team_id}[/yellow]")
        return

    table = Table(title=f"Individual responses for {team_id}")
    table.add_column("Date")
    table.add_column("Member")
    table.add_column("Answers")

    for row in rows:
        answers = ", ".join(
            f"{response.dimension_id}={int(response.score)} ({response.trend.value})"
            for response in row.responses
        )
        table.add_row(row.date.isoformat(), row.user_name, answers)

    console.print(table)


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
