"""Async GitHub REST client.

Every listing call swallows upstream failures: a branch, repository or
listing whose request fails is logged and comes back empty so the caller can
carry on with its siblings.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from ..models import CommitRecord, FileChange, Issue, PullRequest, Repository
from .rate_limit import RateLimitMonitor

logger = logging.getLogger(__name__)

API_BASE = "https://api.github.com"
USER_AGENT = "tally-stats"
MAX_PER_PAGE = 100


class GitHubClient:
    """Read-only access to the parts of the GitHub API the engine needs.

    Use as an async context manager::

        async with GitHubClient(token) as client:
            branches = await client.list_branches("octo-org", "api")
    """

    def __init__(
        self,
        token: str,
        *,
        base_url: str = API_BASE,
        per_page: int = MAX_PER_PAGE,
        max_concurrency: int = 5,
        timeout: float = 30.0,
        max_retries: int = 3,
        rate_limit_threshold: int = 10,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.per_page = min(per_page, MAX_PER_PAGE)
        self.max_retries = max_retries
        self.rate_limit = RateLimitMonitor(threshold=rate_limit_threshold)
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
                "User-Agent": USER_AGENT,
            },
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    # -- transport -------------------------------------------------------

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> httpx.Response:
        attempt = 0
        while True:
            async with self._semaphore:
                await self.rate_limit.wait_if_needed()
                response = await self._client.get(path, params=params)
            self.rate_limit.update(response)
            delay = self.rate_limit.retry_delay(response, attempt)
            if delay is None or attempt >= self.max_retries:
                response.raise_for_status()
                return response
            attempt += 1
            logger.info("Rate limited on %s, retry %d in %.0fs", path, attempt, delay)
            await asyncio.sleep(delay)

    async def _paginate(self, path: str, params: dict[str, Any] | None = None) -> list[Any]:
        items: list[Any] = []
        page = 1
        while True:
            response = await self._get(path, {**(params or {}), "per_page": self.per_page, "page": page})
            if response.status_code == 204 or not response.content:
                break
            data = response.json()
            if not isinstance(data, list) or not data:
                break
            items.extend(data)
            if len(data) < self.per_page:
                break
            page += 1
        return items

    async def _get_list(self, path: str, params: dict[str, Any] | None = None) -> list[Any]:
        try:
            return await self._paginate(path, params)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("GET %s failed, treating as empty: %s", path, exc)
            return []

    # -- repository data -------------------------------------------------

    async def list_branches(self, owner: str, repo: str) -> list[str]:
        data = await self._get_list(f"/repos/{owner}/{repo}/branches")
        return [b["name"] for b in data if b.get("name")]

    async def list_commits(
        self,
        owner: str,
        repo: str,
        *,
        branch: str | None = None,
        since: str | None = None,
        until: str | None = None,
    ) -> list[CommitRecord]:
        params: dict[str, Any] = {}
        if branch:
            params["sha"] = branch
        if since:
            params["since"] = since
        if until:
            params["until"] = until
        data = await self._get_list(f"/repos/{owner}/{repo}/commits", params)
        return [parse_commit(c) for c in data if c.get("sha")]

    async def get_commit_detail(self, owner: str, repo: str, sha: str) -> list[FileChange]:
        path = f"/repos/{owner}/{repo}/commits/{sha}"
        try:
            data = (await self._get(path)).json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("GET %s failed, treating as empty: %s", path, exc)
            return []
        return [parse_file(f) for f in data.get("files") or [] if f.get("filename")]

    async def list_pull_requests(self, owner: str, repo: str, state: str = "all") -> list[PullRequest]:
        data = await self._get_list(f"/repos/{owner}/{repo}/pulls", {"state": state})
        return [parse_pull_request(pr) for pr in data]

    async def list_issues(self, owner: str, repo: str, state: str = "all") -> list[Issue]:
        data = await self._get_list(f"/repos/{owner}/{repo}/issues", {"state": state})
        # The issues endpoint also returns pull requests.
        return [parse_issue(i) for i in data if "pull_request" not in i]

    async def get_repository(self, owner: str, repo: str) -> Repository | None:
        path = f"/repos/{owner}/{repo}"
        try:
            return parse_repository((await self._get(path)).json())
        except (httpx.HTTPError, ValueError, KeyError) as exc:
            logger.warning("GET %s failed: %s", path, exc)
            return None

    # -- account data ----------------------------------------------------

    async def list_org_repos(self, org: str, include_forks: bool = False) -> list[Repository]:
        data = await self._get_list(f"/orgs/{org}/repos", {"type": "all", "sort": "updated"})
        repos = [parse_repository(r) for r in data]
        if not include_forks:
            repos = [r for r in repos if not r.fork]
        logger.info("Found %d repositories in organization %s", len(repos), org)
        return repos

    async def list_user_repos(self) -> list[Repository]:
        data = await self._get_list(
            "/user/repos",
            {"affiliation": "owner,collaborator,organization_member", "sort": "updated"},
        )
        return [parse_repository(r) for r in data]

    async def list_user_orgs(self) -> list[str]:
        data = await self._get_list("/user/orgs")
        orgs = [o["login"] for o in data if o.get("login")]
        if orgs:
            return orgs
        # Membership can be hidden from /user/orgs; recover orgs from repo owners.
        seen: dict[str, None] = {}
        for repo in await self.list_user_repos():
            if repo.owner_type == "Organization":
                seen.setdefault(repo.owner, None)
        logger.info("Recovered %d organizations from repository owners", len(seen))
        return list(seen)


def parse_commit(data: dict[str, Any]) -> CommitRecord:
    git = data.get("commit") or {}
    git_author = git.get("author") or {}
    account = data.get("author") or {}
    return CommitRecord(
        sha=data["sha"],
        author_login=account.get("login") or None,
        author_name=git_author.get("name") or "",
        date=git_author.get("date") or "",
        message=git.get("message") or "",
        files=tuple(parse_file(f) for f in data.get("files") or [] if f.get("filename")),
    )


def parse_file(data: dict[str, Any]) -> FileChange:
    return FileChange(
        path=data["filename"],
        status=data.get("status") or "modified",
        additions=data.get("additions") or 0,
        deletions=data.get("deletions") or 0,
    )


def parse_pull_request(data: dict[str, Any]) -> PullRequest:
    return PullRequest(
        number=data["number"],
        title=data.get("title") or "",
        state=data.get("state") or "",
        author_login=(data.get("user") or {}).get("login"),
        body=data.get("body"),
        created_at=data.get("created_at"),
        closed_at=data.get("closed_at"),
        merged_at=data.get("merged_at"),
    )


def parse_issue(data: dict[str, Any]) -> Issue:
    return Issue(
        number=data["number"],
        title=data.get("title") or "",
        state=data.get("state") or "",
        author_login=(data.get("user") or {}).get("login"),
        body=data.get("body"),
        created_at=data.get("created_at"),
        closed_at=data.get("closed_at"),
    )


def parse_repository(data: dict[str, Any]) -> Repository:
    owner = data.get("owner") or {}
    full_name = data.get("full_name") or f"{owner.get('login', '')}/{data['name']}"
    return Repository(
        id=data.get("id") or 0,
        name=data["name"],
        full_name=full_name,
        owner=owner.get("login") or full_name.split("/", 1)[0],
        default_branch=data.get("default_branch"),
        url=data.get("html_url"),
        fork=bool(data.get("fork")),
        owner_type=owner.get("type"),
        updated_at=data.get("updated_at"),
        pushed_at=data.get("pushed_at"),
    )
