"""Decide whether activity records belong to a user."""

from __future__ import annotations

from .models import CommitRecord

_KNOWN_BOTS = frozenset({
    "dependabot",
    "dependabot-preview",
    "renovate",
    "renovate-bot",
    "github-actions",
    "codecov",
    "snyk-bot",
    "greenkeeper",
    "imgbot",
    "allcontributors",
})


def matches_login(author_login: str | None, login: str) -> bool:
    """Case-insensitive account login comparison."""
    return bool(author_login) and author_login.casefold() == login.casefold()


def matches_user(commit: CommitRecord, login: str) -> bool:
    """Return True when ``commit`` was authored by ``login``.

    A linked account login is authoritative. Commits without one (made before
    the author linked their email) fall back to an exact, case-insensitive
    comparison of the raw git author name.
    """
    if commit.author_login:
        return matches_login(commit.author_login, login)
    if commit.author_name:
        return commit.author_name.casefold() == login.casefold()
    return False


def author_key(commit: CommitRecord) -> str | None:
    """Leaderboard identity: account login, else git author name."""
    return commit.author_login or commit.author_name or None


def is_bot(login: str) -> bool:
    name = login.lower()
    return name.endswith("[bot]") or name in _KNOWN_BOTS
