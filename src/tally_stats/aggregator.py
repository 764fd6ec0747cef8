"""Roll per-repository contribution stats up to an organization."""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections import Counter
from collections.abc import Iterable, Sequence

from .analyzer import analyze_repository, rank_authors, utcnow
from .config import AnalysisConfig
from .exceptions import UnitCancelled
from .github.client import GitHubClient
from .identity import is_bot
from .models import ContributionStats, OrganizationStats, Repository, RepositoryContribution, percentage
from .pool import UnitOutcome, run_bounded

logger = logging.getLogger(__name__)


def _contribution(repository: Repository, stats: ContributionStats) -> RepositoryContribution:
    return RepositoryContribution(
        name=repository.name,
        full_name=repository.full_name,
        url=repository.url,
        total_commits=stats.total_commits,
        user_commits=stats.user_commits,
        contribution_percentage=stats.commit_percentage,
        pull_requests=len(stats.pull_requests),
        issues=len(stats.issues),
        last_updated=repository.pushed_at or repository.updated_at,
    )


def fold_org_stats(
    org: str,
    user: str,
    outcomes: Sequence[UnitOutcome[Repository, ContributionStats]],
    *,
    exclude_bots: bool = False,
    config: AnalysisConfig | None = None,
) -> OrganizationStats:
    """Single-writer fold of per-repository outcomes.

    Failed repositories contribute nothing to any sum and are listed in
    ``failed_repos``.
    """
    config = config or AnalysisConfig()
    entries: list[RepositoryContribution] = []
    members: Counter[str] = Counter()
    failed: list[str] = []
    incomplete = False
    total_commits = user_commits = 0
    total_prs = total_issues = user_prs = user_issues = 0

    for outcome in outcomes:
        repository = outcome.key
        if not outcome.ok:
            logger.error("Error processing repository %s: %s", repository.name, outcome.error)
            failed.append(repository.name)
            incomplete = incomplete or isinstance(outcome.error, UnitCancelled)
            continue
        stats = outcome.value
        entries.append(_contribution(repository, stats))
        total_commits += stats.total_commits
        user_commits += stats.user_commits
        total_prs += stats.total_pull_requests
        total_issues += stats.total_issues
        user_prs += len(stats.pull_requests)
        user_issues += len(stats.issues)
        for member in stats.contributors:
            members[member.login] += member.commits

    if exclude_bots:
        members = Counter({login: n for login, n in members.items() if not is_bot(login)})

    entries.sort(key=lambda e: (-e.contribution_percentage, e.name))
    return OrganizationStats(
        id=str(uuid.uuid4()),
        organization=org,
        user=user,
        total_repositories=len(entries),
        repositories_contributed=sum(1 for e in entries if e.user_commits > 0),
        total_commits=total_commits,
        user_commits=user_commits,
        # Weighted by commit volume, not the mean of per-repository percentages.
        overall_percentage=percentage(user_commits, total_commits),
        total_pull_requests=total_prs,
        total_issues=total_issues,
        user_pull_requests=user_prs,
        user_issues=user_issues,
        repositories=entries,
        team_members=rank_authors(members, total_commits),
        failed_repos=failed,
        incomplete=incomplete,
        period_start=config.since,
        period_end=config.until,
        analyzed_at=utcnow(),
    )


async def _resolve_repos(
    client: GitHubClient,
    org: str,
    include_forks: bool,
    exclude_repos: Iterable[str],
) -> list[Repository]:
    repos = await client.list_org_repos(org, include_forks=include_forks)
    excluded = set(exclude_repos)
    if excluded:
        repos = [r for r in repos if r.name not in excluded]
    return repos


async def aggregate_org_stats(
    client: GitHubClient,
    org: str,
    user: str,
    config: AnalysisConfig | None = None,
    *,
    include_forks: bool = False,
    exclude_repos: Iterable[str] = (),
    exclude_bots: bool = False,
    stop: asyncio.Event | None = None,
) -> OrganizationStats:
    """Analyze every repository of ``org`` for ``user`` and roll the results up.

    Repositories are analyzed concurrently, at most ``config.concurrency`` at
    a time. A repository whose analysis raises, or that has not finished when
    ``config.timeout`` expires or ``stop`` is set, is reported in
    ``failed_repos`` and contributes zero; the rollup itself never fails
    because of one repository.
    """
    config = config or AnalysisConfig()
    repos = await _resolve_repos(client, org, include_forks, exclude_repos)
    logger.info("Analyzing %d repositories of %s for %s", len(repos), org, user)

    async def _analyze(repository: Repository) -> ContributionStats:
        return await analyze_repository(client, repository, user, config)

    outcomes = await run_bounded(
        repos,
        _analyze,
        config.concurrency,
        timeout=config.timeout,
        stop=stop,
    )
    stats = fold_org_stats(org, user, outcomes, exclude_bots=exclude_bots, config=config)
    logger.info(
        "Organization %s stats: %d repos, %d/%d commits (%.1f%%)",
        org,
        stats.total_repositories,
        stats.user_commits,
        stats.total_commits,
        stats.overall_percentage,
    )
    return stats
