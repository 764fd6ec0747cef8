"""Wire the client, the analysis engine, the store and the renderers together."""

from __future__ import annotations

import logging

from .aggregator import aggregate_org_stats
from .analyzer import analyze_repository, resolve_repository
from .config import AnalysisConfig
from .github.client import GitHubClient
from .models import ContributionStats, OrganizationStats
from .renderer import render_csv, render_json, render_org_list, render_report
from .store import StatsStore

logger = logging.getLogger(__name__)


async def run(
    org: str,
    token: str,
    user: str,
    repo: str | None = None,
    config: AnalysisConfig | None = None,
    include_forks: bool = False,
    exclude_repos: list[str] | None = None,
    exclude_bots: bool = False,
    output_format: str = "table",
    top_n: int = 10,
    output_file: str | None = None,
    store: StatsStore | None = None,
) -> ContributionStats | OrganizationStats:
    """Analyze ``org`` (or the single ``org/repo``) for ``user`` and render it."""
    config = config or AnalysisConfig()
    stats: ContributionStats | OrganizationStats
    async with GitHubClient(token, max_concurrency=config.concurrency) as client:
        if repo:
            repository = await resolve_repository(client, org, repo)
            stats = await analyze_repository(client, repository, user, config)
        else:
            stats = await aggregate_org_stats(
                client,
                org,
                user,
                config,
                include_forks=include_forks,
                exclude_repos=exclude_repos or [],
                exclude_bots=exclude_bots,
            )

    if store is not None:
        store.save(stats)
        logger.info("Saved stats %s", stats.id)

    if output_format == "json":
        render_json(stats, output_file=output_file)
    elif output_format == "csv":
        render_csv(stats, output_file=output_file)
    else:
        render_report(stats, top_n=top_n, output_file=output_file)
    return stats


async def discover(
    token: str,
    output_format: str = "table",
    output_file: str | None = None,
) -> list[str]:
    """List the organizations the token's account belongs to and render them."""
    async with GitHubClient(token) as client:
        orgs = await client.list_user_orgs()
    logger.info("Found %d organizations", len(orgs))
    render_org_list(orgs, output_format=output_format, output_file=output_file)
    return orgs
