"""Tests for the organization rollup."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest

from tally_stats.aggregator import aggregate_org_stats, fold_org_stats
from tally_stats.config import AnalysisConfig
from tally_stats.github.client import GitHubClient
from tally_stats.models import CommitRecord, ContributionStats, Issue, PullRequest, Repository, TeamMember
from tally_stats.pool import UnitOutcome


def _repo(name: str) -> Repository:
    return Repository(id=hash(name), name=name, full_name=f"org/{name}", owner="org", default_branch="main")


def _commits(prefix: str, alice: int, bob: int) -> list[CommitRecord]:
    commits = [
        CommitRecord(sha=f"{prefix}-a{i}", author_login="alice", author_name="Alice", date="2024-01-01T00:00:00Z")
        for i in range(alice)
    ]
    commits += [
        CommitRecord(sha=f"{prefix}-b{i}", author_login="bob", author_name="Bob", date="2024-01-01T00:00:00Z")
        for i in range(bob)
    ]
    return commits


def _make_client(commits_by_repo: dict[str, list[CommitRecord]]) -> AsyncMock:
    client = AsyncMock(spec=GitHubClient)
    client.list_org_repos.return_value = [_repo(name) for name in commits_by_repo]
    client.list_branches.return_value = []

    async def list_commits(owner, repo, **kwargs):
        return commits_by_repo[repo]

    client.list_commits.side_effect = list_commits
    client.get_commit_detail.return_value = []
    client.list_pull_requests.return_value = []
    client.list_issues.return_value = []
    return client


def _stats(total: int, user: int, contributors=()) -> ContributionStats:
    return ContributionStats(
        id="x",
        user="alice",
        repository="org/x",
        total_commits=total,
        user_commits=user,
        commit_percentage=round(user / total * 100, 1) if total else 0.0,
        contributors=list(contributors),
    )


@pytest.mark.asyncio
async def test_overall_percentage_is_weighted_not_averaged():
    client = _make_client({"big": _commits("big", 50, 50), "tiny": _commits("tiny", 2, 0)})

    stats = await aggregate_org_stats(client, "org", "alice")

    assert stats.total_commits == 102
    assert stats.user_commits == 52
    assert stats.overall_percentage == 51.0
    naive = (50.0 + 100.0) / 2
    assert stats.overall_percentage != naive


def test_fold_overall_percentage():
    outcomes = [
        UnitOutcome(_repo("a"), value=_stats(100, 50)),
        UnitOutcome(_repo("b"), value=_stats(2, 2)),
    ]
    stats = fold_org_stats("org", "alice", outcomes)

    # 52 / 102, not the 75.0 mean of 50% and 100%
    assert stats.overall_percentage == 51.0
    assert stats.overall_percentage != 75.0


@pytest.mark.asyncio
async def test_repositories_sorted_by_share_then_name():
    client = _make_client({
        "zeta": _commits("z", 1, 1),
        "alpha": _commits("a", 1, 1),
        "solo": _commits("s", 3, 0),
        "none": _commits("n", 0, 4),
    })

    stats = await aggregate_org_stats(client, "org", "alice")

    assert [r.name for r in stats.repositories] == ["solo", "alpha", "zeta", "none"]
    assert [r.contribution_percentage for r in stats.repositories] == [100.0, 50.0, 50.0, 0.0]
    assert stats.total_repositories == 4
    assert stats.repositories_contributed == 3


@pytest.mark.asyncio
async def test_team_leaderboard_spans_repositories():
    client = _make_client({"big": _commits("big", 50, 50), "tiny": _commits("tiny", 2, 0)})

    stats = await aggregate_org_stats(client, "org", "alice")

    board = [(m.login, m.commits, m.percentage) for m in stats.team_members]
    assert board == [("alice", 52, 51.0), ("bob", 50, 49.0)]


def test_leaderboard_tie_break_by_login():
    outcomes = [
        UnitOutcome(_repo("a"), value=_stats(4, 2, [TeamMember("zed", 2, 50.0), TeamMember("amy", 2, 50.0)])),
    ]
    stats = fold_org_stats("org", "amy", outcomes)
    assert [m.login for m in stats.team_members] == ["amy", "zed"]


@pytest.mark.asyncio
async def test_failed_repository_contributes_zero():
    client = _make_client({f"r{i}": _commits(f"r{i}", 2, 3) for i in range(5)})

    async def list_pull_requests(owner, repo, **kwargs):
        if repo == "r3":
            raise RuntimeError("API error")
        return []

    client.list_pull_requests.side_effect = list_pull_requests

    stats = await aggregate_org_stats(client, "org", "alice")

    assert stats.failed_repos == ["r3"]
    assert stats.total_repositories == 4
    assert stats.total_commits == 20
    assert stats.user_commits == 8
    assert "r3" not in [r.name for r in stats.repositories]
    assert stats.incomplete is False


@pytest.mark.asyncio
async def test_empty_org():
    client = _make_client({})
    stats = await aggregate_org_stats(client, "empty-org", "alice")
    assert stats.total_repositories == 0
    assert stats.total_commits == 0
    assert stats.overall_percentage == 0


@pytest.mark.asyncio
async def test_include_forks_passed():
    client = _make_client({"a": []})
    await aggregate_org_stats(client, "org", "alice", include_forks=True)
    client.list_org_repos.assert_called_once_with("org", include_forks=True)


@pytest.mark.asyncio
async def test_exclude_repos():
    client = _make_client({"repo1": _commits("1", 1, 0), "repo2": _commits("2", 1, 0)})
    stats = await aggregate_org_stats(client, "org", "alice", exclude_repos=["repo2"])
    assert [r.name for r in stats.repositories] == ["repo1"]


@pytest.mark.asyncio
async def test_exclude_bots_from_leaderboard():
    bot = [
        CommitRecord(sha=f"bot{i}", author_login="dependabot[bot]", author_name="dependabot", date="2024-01-01")
        for i in range(5)
    ]
    client = _make_client({"repo": _commits("r", 1, 1) + bot})

    stats = await aggregate_org_stats(client, "org", "alice", exclude_bots=True)

    assert [m.login for m in stats.team_members] == ["alice", "bob"]
    # Bot commits still count toward the totals.
    assert stats.total_commits == 7
    assert stats.team_members[0].percentage == 14.3


@pytest.mark.asyncio
async def test_timeout_returns_partial_rollup():
    client = _make_client({"fast": _commits("f", 1, 1), "slow": _commits("s", 5, 5)})

    async def list_commits(owner, repo, **kwargs):
        if repo == "slow":
            await asyncio.sleep(10)
        return _commits(repo, 1, 1)

    client.list_commits.side_effect = list_commits

    stats = await aggregate_org_stats(client, "org", "alice", AnalysisConfig(timeout=0.2))

    assert stats.incomplete is True
    assert stats.failed_repos == ["slow"]
    assert stats.total_commits == 2
    assert stats.user_commits == 1


@pytest.mark.asyncio
async def test_stop_signal_before_start_yields_empty_rollup():
    client = _make_client({"a": _commits("a", 1, 0), "b": _commits("b", 1, 0)})
    stop = asyncio.Event()
    stop.set()

    stats = await aggregate_org_stats(client, "org", "alice", AnalysisConfig(concurrency=1), stop=stop)

    assert stats.incomplete is True
    assert stats.total_commits == 0
    assert sorted(stats.failed_repos) == ["a", "b"]


@pytest.mark.asyncio
async def test_pr_and_issue_totals():
    client = _make_client({"repo": _commits("r", 1, 0)})
    client.list_pull_requests.return_value = [
        PullRequest(number=1, title="a", state="open", author_login="alice"),
        PullRequest(number=2, title="b", state="merged", author_login="bob"),
    ]
    client.list_issues.return_value = [Issue(number=3, title="c", state="open", author_login="Alice")]

    stats = await aggregate_org_stats(client, "org", "alice")

    assert stats.total_pull_requests == 2
    assert stats.user_pull_requests == 1
    assert stats.total_issues == 1
    assert stats.user_issues == 1
    assert stats.repositories[0].pull_requests == 1


def _upstream(request: httpx.Request) -> httpx.Response:
    parts = request.url.path.strip("/").split("/")
    if parts[0] == "orgs":
        return httpx.Response(200, json=[
            {"id": i, "name": name, "full_name": f"org/{name}", "owner": {"login": "org"},
             "default_branch": "main"}
            for i, name in enumerate(["r1", "r2"], 1)
        ])
    _, _, repo, kind, *rest = parts
    if kind == "branches":
        return httpx.Response(200, json=[{"name": "main"}])
    if kind == "commits" and rest:
        return httpx.Response(200, json={"files": [{"filename": "src/app.py", "additions": 3}]})
    if kind == "commits":
        return httpx.Response(200, json=[
            {"sha": f"{repo}-{login}", "author": {"login": login},
             "commit": {"author": {"name": login, "date": "2024-05-01T12:00:00Z"}, "message": "change"}}
            for login in ("alice", "bob")
        ])
    if kind == "pulls" and repo == "r2":
        return httpx.Response(500, json={"message": "server error"})
    if kind == "pulls":
        return httpx.Response(200, json=[{"number": 1, "title": "Add api", "state": "open",
                                          "user": {"login": "alice"}}])
    return httpx.Response(200, json=[])


@pytest.mark.asyncio
async def test_upstream_error_on_one_listing_keeps_repository_commits():
    async with GitHubClient("t", transport=httpx.MockTransport(_upstream)) as client:
        stats = await aggregate_org_stats(client, "org", "alice")

    # A 500 on r2's pull requests empties that listing only; r2 still counts.
    assert stats.failed_repos == []
    assert stats.total_repositories == 2
    assert stats.total_commits == 4
    assert stats.user_commits == 2
    assert stats.total_pull_requests == 1
    r2 = next(r for r in stats.repositories if r.name == "r2")
    assert r2.user_commits == 1
    assert r2.pull_requests == 0
