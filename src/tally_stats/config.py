"""Analysis tunables."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_MAX_BRANCHES = 10
DEFAULT_DETAIL_LIMIT = 20
DEFAULT_MESSAGE_LIMIT = 30
DEFAULT_CONCURRENCY = 5


@dataclass(frozen=True)
class AnalysisConfig:
    """Cost/completeness knobs for one analysis request.

    ``max_branches`` caps how many branches of a repository are walked,
    ``detail_limit`` caps how many of the user's most recent commits are
    fetched file-by-file for role classification, and ``concurrency`` caps
    how many repositories (and, within one repository, branches and commit
    details) are fetched at once. ``timeout`` bounds the whole request;
    work finished before it expires is still reported.
    """

    max_branches: int = DEFAULT_MAX_BRANCHES
    detail_limit: int = DEFAULT_DETAIL_LIMIT
    message_limit: int = DEFAULT_MESSAGE_LIMIT
    concurrency: int = DEFAULT_CONCURRENCY
    timeout: float | None = None
    since: str | None = None
    until: str | None = None

    def __post_init__(self) -> None:
        if self.max_branches < 1:
            raise ValueError("max_branches must be at least 1")
        if self.concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        if self.detail_limit < 0 or self.message_limit < 0:
            raise ValueError("detail_limit and message_limit must not be negative")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be positive")
