"""Command-line entry point."""

from __future__ import annotations

import asyncio
import logging
import re
from datetime import datetime, timedelta

import click
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .config import (
    DEFAULT_CONCURRENCY,
    DEFAULT_DETAIL_LIMIT,
    DEFAULT_MAX_BRANCHES,
    DEFAULT_MESSAGE_LIMIT,
    AnalysisConfig,
)

_RELATIVE_DATE = re.compile(r"^(\d+)([dwmy])$")
_UNIT_DAYS = {"d": 1, "w": 7, "m": 30, "y": 365}


def _parse_relative_date(value: str) -> str | None:
    """Turn ``7d``, ``2w``, ``3m`` or ``1y`` into a ``YYYY-MM-DD`` date."""
    match = _RELATIVE_DATE.match(value)
    if not match:
        return None
    amount, unit = int(match.group(1)), match.group(2)
    return (datetime.now() - timedelta(days=amount * _UNIT_DAYS[unit])).strftime("%Y-%m-%d")


def _resolve_date(value: str | None) -> str | None:
    if value is None:
        return None
    return _parse_relative_date(value) or value


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))


@click.command()
@click.argument("target", required=False)
@click.option("--token", envvar="GITHUB_TOKEN", required=True, help="GitHub token (or GITHUB_TOKEN).")
@click.option("--user", "user", envvar="TALLY_USER", help="Login to analyze (required with TARGET).")
@click.option("--since", default=None, help="Start date (YYYY-MM-DD or 7d, 2w, 3m, 1y).")
@click.option("--until", default=None, help="End date (YYYY-MM-DD or relative).")
@click.option(
    "--format", "output_format",
    type=click.Choice(["table", "json", "csv"]),
    default="table",
    show_default=True,
)
@click.option("--output", "output_file", default=None, help="Write the report to a file.")
@click.option("--top", "top_n", default=10, show_default=True, help="Leaderboard rows to show.")
@click.option("--max-branches", envvar="TALLY_MAX_BRANCHES", type=click.IntRange(min=1),
              default=DEFAULT_MAX_BRANCHES, show_default=True, help="Branches walked per repository.")
@click.option("--detail-limit", envvar="TALLY_DETAIL_LIMIT", type=click.IntRange(min=0),
              default=DEFAULT_DETAIL_LIMIT, show_default=True,
              help="Recent user commits fetched file-by-file for role analysis.")
@click.option("--message-limit", envvar="TALLY_MESSAGE_LIMIT", type=click.IntRange(min=0),
              default=DEFAULT_MESSAGE_LIMIT, show_default=True, help="Commit subjects kept per repository.")
@click.option("--concurrency", envvar="TALLY_CONCURRENCY", type=click.IntRange(min=1),
              default=DEFAULT_CONCURRENCY, show_default=True, help="Parallel upstream requests.")
@click.option("--timeout", envvar="TALLY_TIMEOUT", type=click.FloatRange(min=0, min_open=True),
              default=None, help="Stop after this many seconds and report what finished.")
@click.option("--include-forks", is_flag=True, help="Include forked repositories.")
@click.option("--exclude-repo", "exclude_repos", multiple=True, help="Repository to skip (repeatable).")
@click.option("--exclude-bots", is_flag=True, help="Drop bot accounts from the leaderboard.")
@click.option("-v", "--verbose", count=True, help="-v for progress, -vv for debug output.")
@click.version_option(version=__version__, prog_name="tally-stats")
def main(
    target: str | None,
    token: str,
    user: str | None,
    since: str | None,
    until: str | None,
    output_format: str,
    output_file: str | None,
    top_n: int,
    max_branches: int,
    detail_limit: int,
    message_limit: int,
    concurrency: int,
    timeout: float | None,
    include_forks: bool,
    exclude_repos: tuple[str, ...],
    exclude_bots: bool,
    verbose: int,
) -> None:
    """Contribution stats for USER in TARGET (an organization or org/repo).

    Without TARGET, lists the organizations the token can see.
    """
    from .orchestrator import discover, run

    _configure_logging(verbose)

    if target is None:
        asyncio.run(discover(token=token, output_format=output_format, output_file=output_file))
        return
    if not user:
        raise click.UsageError("Missing option '--user' (or TALLY_USER).")

    if "/" in target:
        org, repo = target.split("/", 1)
    else:
        org, repo = target, None

    config = AnalysisConfig(
        max_branches=max_branches,
        detail_limit=detail_limit,
        message_limit=message_limit,
        concurrency=concurrency,
        timeout=timeout,
        since=_resolve_date(since),
        until=_resolve_date(until),
    )
    asyncio.run(run(
        org=org,
        token=token,
        user=user,
        repo=repo,
        config=config,
        include_forks=include_forks,
        exclude_repos=list(exclude_repos),
        exclude_bots=exclude_bots,
        output_format=output_format,
        top_n=top_n,
        output_file=output_file,
    ))


if __name__ == "__main__":
    main()
