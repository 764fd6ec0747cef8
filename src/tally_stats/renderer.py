"""Rich-based terminal report renderer with JSON/CSV support."""

from __future__ import annotations

import csv
import io
import json
from dataclasses import asdict

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import ContributionStats, OrganizationStats, TeamMember


def _format_number(n: int) -> str:
    return f"{n:,}"


def _make_bar(percentage: float, width: int = 20) -> str:
    filled = round(percentage / 100 * width)
    return "\u2588" * filled + "\u2591" * (width - filled)


def _write_to_file(content: str, output_file: str) -> None:
    """Write content to a file and print confirmation."""
    with open(output_file, "w", encoding="utf-8") as f:
        f.write(content)
    Console().print(f"Saved to {output_file}")


def _period(start: str | None, end: str | None) -> str:
    if not (start or end):
        return ""
    return f"\nPeriod: {start or '...'} ~ {end or '...'}"


def _members_table(members: list[TeamMember], top_n: int) -> Table:
    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Author")
    table.add_column("Commits \u25bc", justify="right")
    table.add_column("Share", justify="right")
    for i, m in enumerate(members[:top_n], 1):
        table.add_row(str(i), m.login, _format_number(m.commits), f"{m.percentage}%")
    return table


def _render_contribution(console: Console, stats: ContributionStats, top_n: int) -> None:
    console.print(Panel(
        Text(f"tally-stats: {stats.repository} / {stats.user}"
             f"{_period(stats.period_start, stats.period_end)}", justify="center"),
        style="bold cyan",
    ))
    console.print()

    console.print("[bold]Summary[/bold]")
    summary = Table(show_header=False, box=None, padding=(0, 2))
    summary.add_column("label", style="dim")
    summary.add_column("value", style="bold")
    summary.add_row("Commits", f"{_format_number(stats.user_commits)} / {_format_number(stats.total_commits)}")
    summary.add_row("Share", f"{stats.commit_percentage}%")
    summary.add_row("First Commit", stats.first_commit_date or "-")
    summary.add_row("Last Commit", stats.last_commit_date or "-")
    summary.add_row("Pull Requests", f"{len(stats.pull_requests)} / {stats.total_pull_requests}")
    summary.add_row("Issues", f"{len(stats.issues)} / {stats.total_issues}")
    summary.add_row("Branches", ", ".join(stats.branches) or "-")
    console.print(summary)
    console.print()

    if stats.role_distribution:
        console.print(f"[bold]Roles (last {stats.analyzed_commits} commits)[/bold]")
        role_table = Table(show_header=True, header_style="bold")
        role_table.add_column("Role")
        role_table.add_column("Bar")
        role_table.add_column("Percentage", justify="right")
        role_table.add_column("Commits", justify="right")
        roles = sorted(stats.role_distribution.values(), key=lambda r: (-r.commit_count, r.role))
        for r in roles:
            role_table.add_row(r.role, _make_bar(r.percentage), f"{r.percentage}%", str(r.commit_count))
        console.print(role_table)
        console.print()

    if stats.contributors:
        console.print(f"[bold]Top Contributors (top {top_n})[/bold]")
        console.print(_members_table(stats.contributors, top_n))
        console.print()

    if stats.commit_messages:
        console.print("[bold]Recent Commits[/bold]")
        for message in stats.commit_messages[:top_n]:
            console.print(f"  - {message}", markup=False, highlight=False)
        console.print()


def _render_organization(console: Console, stats: OrganizationStats, top_n: int) -> None:
    console.print(Panel(
        Text(f"tally-stats: {stats.organization} / {stats.user}"
             f"{_period(stats.period_start, stats.period_end)}", justify="center"),
        style="bold cyan",
    ))
    console.print()

    if stats.failed_repos:
        console.print(
            f"[bold yellow]Warning:[/bold yellow] Failed to collect stats for "
            f"{len(stats.failed_repos)} repo(s): {', '.join(stats.failed_repos)}"
        )
        console.print()

    console.print("[bold]Summary[/bold]")
    summary = Table(show_header=False, box=None, padding=(0, 2))
    summary.add_column("label", style="dim")
    summary.add_column("value", style="bold")
    summary.add_row(
        "Repositories",
        f"{_format_number(stats.repositories_contributed)} / {_format_number(stats.total_repositories)}",
    )
    summary.add_row("Commits", f"{_format_number(stats.user_commits)} / {_format_number(stats.total_commits)}")
    summary.add_row("Share", f"{stats.overall_percentage}%")
    summary.add_row("Pull Requests", f"{stats.user_pull_requests} / {stats.total_pull_requests}")
    summary.add_row("Issues", f"{stats.user_issues} / {stats.total_issues}")
    console.print(summary)
    console.print()

    if stats.repositories:
        console.print("[bold]Repository Summary[/bold]")
        repo_table = Table(show_header=True, header_style="bold")
        repo_table.add_column("Repo")
        repo_table.add_column("Share \u25bc", justify="right")
        repo_table.add_column("Commits", justify="right")
        repo_table.add_column("Total", justify="right")
        repo_table.add_column("PRs", justify="right")
        repo_table.add_column("Issues", justify="right")
        for r in stats.repositories:
            repo_table.add_row(
                r.name,
                f"{r.contribution_percentage}%",
                _format_number(r.user_commits),
                _format_number(r.total_commits),
                str(r.pull_requests),
                str(r.issues),
            )
        console.print(repo_table)
        console.print()

    if stats.team_members:
        console.print(f"[bold]Team Leaderboard (top {top_n})[/bold]")
        console.print(_members_table(stats.team_members, top_n))
        console.print()


def render_report(
    stats: ContributionStats | OrganizationStats,
    top_n: int = 10,
    output_file: str | None = None,
) -> None:
    """Render stats to the terminal using rich."""
    if output_file:
        string_io = io.StringIO()
        console = Console(file=string_io, force_terminal=False, width=120)
    else:
        console = Console()

    if isinstance(stats, OrganizationStats):
        _render_organization(console, stats, top_n)
    else:
        _render_contribution(console, stats, top_n)

    if output_file:
        _write_to_file(string_io.getvalue(), output_file)


def render_json(stats: ContributionStats | OrganizationStats, output_file: str | None = None) -> None:
    """Render stats as JSON."""
    content = json.dumps(asdict(stats), indent=2, ensure_ascii=False)
    if output_file:
        _write_to_file(content, output_file)
    else:
        print(content)


def render_csv(stats: ContributionStats | OrganizationStats, output_file: str | None = None) -> None:
    """Render repositories (organization) or contributors (repository) as CSV."""
    output = io.StringIO()
    writer = csv.writer(output)
    if isinstance(stats, OrganizationStats):
        writer.writerow(["repository", "user_commits", "total_commits", "percentage", "pull_requests", "issues"])
        for r in stats.repositories:
            writer.writerow([r.name, r.user_commits, r.total_commits, r.contribution_percentage,
                             r.pull_requests, r.issues])
    else:
        writer.writerow(["author", "commits", "percentage"])
        for m in stats.contributors:
            writer.writerow([m.login, m.commits, m.percentage])
    content = output.getvalue()
    if output_file:
        _write_to_file(content, output_file)
    else:
        print(content, end="")


def render_org_list(orgs: list[str], output_format: str = "table", output_file: str | None = None) -> None:
    """Render the organizations available to the token."""
    if output_format == "json":
        content = json.dumps({"organizations": orgs}, indent=2) + "\n"
    elif output_format == "csv":
        content = "".join(f"{org}\n" for org in ["organization", *orgs])
    else:
        string_io = io.StringIO()
        console = Console(file=string_io, force_terminal=False, width=120)
        if orgs:
            table = Table(show_header=True, header_style="bold")
            table.add_column("#", justify="right")
            table.add_column("Organization")
            for i, org in enumerate(orgs, 1):
                table.add_row(str(i), org)
            console.print(table)
        else:
            console.print("No organizations found.")
        content = string_io.getvalue()
    if output_file:
        _write_to_file(content, output_file)
    else:
        print(content, end="")
