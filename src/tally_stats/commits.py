"""Branch selection and commit deduplication."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from .models import CommitRecord


def select_branches(branches: Sequence[str], default_branch: str | None, cap: int) -> list[str | None]:
    """Pick at most ``cap`` branches to walk, default branch first.

    Returns ``[default_branch]`` when nothing was listed. A ``None`` entry
    means "the repository HEAD".
    """
    if not branches:
        return [default_branch]
    ordered = list(dict.fromkeys(branches))
    if default_branch in ordered:
        ordered.remove(default_branch)
        ordered.insert(0, default_branch)
    return list(ordered[:cap])


def dedupe_commits(branch_commits: Iterable[Iterable[CommitRecord]]) -> list[CommitRecord]:
    """Merge per-branch commit lists into one list unique by SHA.

    Order is first-seen across the branch iteration order.
    """
    seen: dict[str, CommitRecord] = {}
    for commits in branch_commits:
        for commit in commits:
            seen.setdefault(commit.sha, commit)
    return list(seen.values())


def most_recent_first(commits: Iterable[CommitRecord]) -> list[CommitRecord]:
    # ISO-8601 UTC timestamps sort lexicographically; ties keep input order.
    return sorted(commits, key=lambda c: c.date, reverse=True)
