"""Per-repository contribution analysis."""

from __future__ import annotations

import logging
import uuid
from collections import Counter
from collections.abc import Iterable
from datetime import datetime, timezone

from .commits import dedupe_commits, most_recent_first, select_branches
from .config import AnalysisConfig
from .github.client import GitHubClient
from .identity import author_key, matches_login, matches_user
from .models import CommitRecord, ContributionStats, Repository, TeamMember, percentage
from .pool import run_bounded
from .roles import role_distribution

logger = logging.getLogger(__name__)


def utcnow() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def rank_authors(counts: Counter[str], total: int) -> list[TeamMember]:
    """Leaderboard sorted by commits desc, then login asc."""
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [TeamMember(login=login, commits=n, percentage=percentage(n, total)) for login, n in ranked]


def count_authors(commits: Iterable[CommitRecord]) -> Counter[str]:
    counts: Counter[str] = Counter()
    for commit in commits:
        key = author_key(commit)
        if key:
            counts[key] += 1
    return counts


async def resolve_repository(client: GitHubClient, owner: str, name: str) -> Repository:
    """Look up ``owner/name``, falling back to bare coordinates when metadata is unavailable."""
    found = await client.get_repository(owner, name)
    if found is None:
        logger.info("No metadata for %s/%s, walking its default branch", owner, name)
        return Repository(id=0, name=name, full_name=f"{owner}/{name}", owner=owner)
    return found


async def collect_commits(
    client: GitHubClient,
    repository: Repository,
    config: AnalysisConfig,
) -> tuple[list[CommitRecord], list[str]]:
    """Fetch commits from up to ``config.max_branches`` branches and dedupe them.

    Returns the deduplicated commits and the branches walked.
    """
    listed = await client.list_branches(repository.owner, repository.name)
    branches = select_branches(listed, repository.default_branch, config.max_branches)
    if len(listed) > len(branches):
        logger.info(
            "%s has %d branches, walking %d",
            repository.full_name,
            len(listed),
            len(branches),
        )

    async def _fetch(branch: str | None) -> list[CommitRecord]:
        return await client.list_commits(
            repository.owner,
            repository.name,
            branch=branch,
            since=config.since,
            until=config.until,
        )

    outcomes = await run_bounded(branches, _fetch, config.concurrency)
    per_branch: list[list[CommitRecord]] = []
    for outcome in outcomes:
        if outcome.ok:
            per_branch.append(outcome.value or [])
        else:
            logger.warning(
                "Commits for %s@%s unavailable: %s",
                repository.full_name,
                outcome.key or "HEAD",
                outcome.error,
            )
    commits = dedupe_commits(per_branch)
    walked = [b for b in branches if b is not None]
    return commits, walked


async def analyze_repository(
    client: GitHubClient,
    repository: Repository,
    user: str,
    config: AnalysisConfig | None = None,
) -> ContributionStats:
    """Compute the contribution of ``user`` to ``repository``.

    Commit totals cover the deduplicated history of the walked branches. The
    role breakdown only covers the user's ``config.detail_limit`` most recent
    commits, each of which costs one extra request.
    """
    config = config or AnalysisConfig()
    owner, name = repository.owner, repository.name

    commits, branches = await collect_commits(client, repository, config)
    pull_requests = await client.list_pull_requests(owner, name)
    issues = await client.list_issues(owner, name)

    user_commits = most_recent_first(c for c in commits if matches_user(c, user))
    sample = user_commits[: config.detail_limit]

    async def _detail(commit: CommitRecord):
        return await client.get_commit_detail(owner, name, commit.sha)

    detail_outcomes = await run_bounded(sample, _detail, config.concurrency)
    file_lists = []
    for outcome in detail_outcomes:
        if outcome.ok:
            file_lists.append(outcome.value or [])
        else:
            logger.warning("Detail for %s@%s unavailable: %s", repository.full_name, outcome.key.sha, outcome.error)
    roles, analyzed = role_distribution(file_lists)

    dates = [c.date[:10] for c in user_commits if c.date]
    stats = ContributionStats(
        id=str(uuid.uuid4()),
        user=user,
        repository=repository.full_name,
        total_commits=len(commits),
        user_commits=len(user_commits),
        commit_percentage=percentage(len(user_commits), len(commits)),
        first_commit_date=min(dates) if dates else None,
        last_commit_date=max(dates) if dates else None,
        role_distribution=roles,
        analyzed_commits=analyzed,
        additions=sum(f.additions for files in file_lists for f in files),
        deletions=sum(f.deletions for files in file_lists for f in files),
        pull_requests=[pr for pr in pull_requests if matches_login(pr.author_login, user)],
        issues=[i for i in issues if matches_login(i.author_login, user)],
        total_pull_requests=len(pull_requests),
        total_issues=len(issues),
        commit_messages=[c.subject for c in user_commits[: config.message_limit]],
        contributors=rank_authors(count_authors(commits), len(commits)),
        branches=branches,
        period_start=config.since,
        period_end=config.until,
        analyzed_at=utcnow(),
    )
    logger.info(
        "Analyzed %s for %s: %d/%d commits (%.1f%%), roles %s",
        repository.full_name,
        user,
        stats.user_commits,
        stats.total_commits,
        stats.commit_percentage,
        sorted(roles),
    )
    return stats
