"""Data models for tally-stats."""

from __future__ import annotations

import math
from dataclasses import dataclass, field


def percentage(part: int, whole: int) -> float:
    """Return ``part / whole * 100`` rounded half-up to one decimal, or 0.0."""
    if whole <= 0:
        return 0.0
    return math.floor(part * 100 / whole * 10 + 0.5) / 10


@dataclass
class Repository:
    id: int
    name: str
    full_name: str
    owner: str
    default_branch: str | None = None
    url: str | None = None
    fork: bool = False
    owner_type: str | None = None
    updated_at: str | None = None
    pushed_at: str | None = None


@dataclass(frozen=True)
class FileChange:
    path: str
    status: str = "modified"
    additions: int = 0
    deletions: int = 0


@dataclass(frozen=True)
class CommitRecord:
    sha: str
    author_login: str | None
    author_name: str
    date: str
    message: str = ""
    files: tuple[FileChange, ...] = ()

    @property
    def subject(self) -> str:
        return self.message.split("\n", 1)[0].strip()


@dataclass
class PullRequest:
    number: int
    title: str
    state: str
    author_login: str | None
    body: str | None = None
    created_at: str | None = None
    closed_at: str | None = None
    merged_at: str | None = None


@dataclass
class Issue:
    number: int
    title: str
    state: str
    author_login: str | None
    body: str | None = None
    created_at: str | None = None
    closed_at: str | None = None


@dataclass
class RoleStats:
    role: str
    commit_count: int
    percentage: float


@dataclass
class TeamMember:
    login: str
    commits: int
    percentage: float


@dataclass
class ContributionStats:
    """Contribution of one user to one repository."""

    id: str
    user: str
    repository: str
    total_commits: int
    user_commits: int
    commit_percentage: float
    first_commit_date: str | None = None
    last_commit_date: str | None = None
    # Role counts cover only the ``analyzed_commits`` most recent user
    # commits that were fetched file-by-file.
    role_distribution: dict[str, RoleStats] = field(default_factory=dict)
    analyzed_commits: int = 0
    additions: int = 0
    deletions: int = 0
    pull_requests: list[PullRequest] = field(default_factory=list)
    issues: list[Issue] = field(default_factory=list)
    total_pull_requests: int = 0
    total_issues: int = 0
    commit_messages: list[str] = field(default_factory=list)
    contributors: list[TeamMember] = field(default_factory=list)
    branches: list[str] = field(default_factory=list)
    period_start: str | None = None
    period_end: str | None = None
    analyzed_at: str | None = None


@dataclass
class RepositoryContribution:
    name: str
    full_name: str
    total_commits: int
    user_commits: int
    contribution_percentage: float
    url: str | None = None
    pull_requests: int = 0
    issues: int = 0
    last_updated: str | None = None


@dataclass
class OrganizationStats:
    """Contribution of one user across the repositories of an organization."""

    id: str
    organization: str
    user: str
    total_repositories: int
    repositories_contributed: int
    total_commits: int
    user_commits: int
    overall_percentage: float
    total_pull_requests: int = 0
    total_issues: int = 0
    user_pull_requests: int = 0
    user_issues: int = 0
    repositories: list[RepositoryContribution] = field(default_factory=list)
    team_members: list[TeamMember] = field(default_factory=list)
    failed_repos: list[str] = field(default_factory=list)
    incomplete: bool = False
    period_start: str | None = None
    period_end: str | None = None
    analyzed_at: str | None = None
