"""GitHub API access."""

from .client import GitHubClient
from .rate_limit import RateLimitMonitor

__all__ = ["GitHubClient", "RateLimitMonitor"]
