"""GitHub API client for the endpoints the note collectors need.

The collectors only ever talk to GitHub through five calls:
- list pull requests (one page at a time)
- list milestones
- list issues (one page at a time)
- get a release by its tag
- update a release body

Design notes:
- Uses httpx for async HTTP requests
- Page numbers are passed explicitly; the caller decides when to stop
  paging, so this module never follows Link headers on its own
- Failed requests raise httpx.HTTPStatusError; there is no retry here
- Uses a Protocol so collectors don't depend on the concrete
  implementation (makes testing with fakes easy)

GitHub API docs: https://docs.github.com/en/rest
"""

from __future__ import annotations

import os
from types import TracebackType
from typing import Any, Protocol
from urllib.parse import quote

import httpx

from gh_release_notes import __version__
from gh_release_notes.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_HOST = "https://api.github.com"


def repo_path(owner: str, repo: str, *parts: str | int) -> str:
    """Build /repos/{owner}/{repo}/... with every segment percent-encoded.

    Tags may contain "/", "#" or "?", which must not be read as path,
    fragment or query delimiters.
    """
    segments = ["repos", owner, repo, *(str(part) for part in parts)]
    return "/" + "/".join(quote(segment, safe="") for segment in segments)


# ---------------------------------------------------------------------------
# Protocol (Interface)
# ---------------------------------------------------------------------------


class GitHubClientProtocol(Protocol):
    """Protocol defining the hosting API calls used by the collectors.

    List calls return the raw JSON records of one page. An empty list
    means the page is past the end of the collection.
    """

    async def list_pull_requests(
        self,
        owner: str,
        repo: str,
        *,
        state: str = "closed",
        base: str | None = None,
        sort: str = "updated",
        direction: str = "desc",
        page: int = 1,
    ) -> list[dict[str, Any]]:
        ...

    async def list_milestones(
        self,
        owner: str,
        repo: str,
        *,
        state: str = "open",
    ) -> list[dict[str, Any]]:
        ...

    async def list_issues(
        self,
        owner: str,
        repo: str,
        *,
        milestone: int | str,
        state: str = "all",
        sort: str = "updated",
        direction: str = "desc",
        page: int = 1,
    ) -> list[dict[str, Any]]:
        ...

    async def get_release_by_tag(
        self, owner: str, repo: str, tag: str
    ) -> dict[str, Any]:
        ...

    async def update_release(
        self, owner: str, repo: str, release_id: int, *, body: str
    ) -> dict[str, Any]:
        ...


# ---------------------------------------------------------------------------
# Concrete Implementation
# ---------------------------------------------------------------------------


class GitHubClient:
    """Real GitHub API client using httpx.

    The underlying connection pool lives for as long as the client is
    open, so use it as an async context manager:

    Usage:
        async with GitHubClient(token="ghp_...") as client:
            page = await client.list_pull_requests("myorg", "api", page=1)
    """

    def __init__(
        self,
        token: str | None = None,
        host: str | None = None,
        per_page: int | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the GitHub client.

        Args:
            token: GitHub personal access token. Falls back to
                   GITHUB_TOKEN environment variable if not provided.
            host: API base URL, e.g. https://github.example.com/api/v3
                  for GitHub Enterprise. Defaults to the public API.
            per_page: Page size for list calls. When None the server
                      default is used.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (tests inject a mock).
        """
        self._token = token or os.environ.get("GITHUB_TOKEN", "")
        self._host = (host or DEFAULT_HOST).rstrip("/")
        self._per_page = per_page
        self._headers: dict[str, str] = {
            "Accept": "application/vnd.github.v3+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": f"gh-release-notes/{__version__}",
        }
        if self._token:
            self._headers["Authorization"] = f"token {self._token}"
        self._client = httpx.AsyncClient(
            base_url=self._host,
            headers=self._headers,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def list_pull_requests(
        self,
        owner: str,
        repo: str,
        *,
        state: str = "closed",
        base: str | None = None,
        sort: str = "updated",
        direction: str = "desc",
        page: int = 1,
    ) -> list[dict[str, Any]]:
        """GET /repos/{owner}/{repo}/pulls for a single page.

        Args:
            owner: Repository owner
            repo: Repository name
            state: "open", "closed" or "all"
            base: Only pull requests targeting this branch, if given
            sort: "created", "updated", "popularity" or "long-running"
            direction: "asc" or "desc"
            page: 1-based page number

        Returns:
            The raw pull request records on that page

        Raises:
            httpx.HTTPStatusError: If GitHub answers with an error status
        """
        params = self._list_params(
            state=state, base=base, sort=sort, direction=direction, page=page
        )
        return await self._get(repo_path(owner, repo, "pulls"), params)

    async def list_milestones(
        self,
        owner: str,
        repo: str,
        *,
        state: str = "open",
    ) -> list[dict[str, Any]]:
        """GET /repos/{owner}/{repo}/milestones (first page only)."""
        return await self._get(
            repo_path(owner, repo, "milestones"), {"state": state}
        )

    async def list_issues(
        self,
        owner: str,
        repo: str,
        *,
        milestone: int | str,
        state: str = "all",
        sort: str = "updated",
        direction: str = "desc",
        page: int = 1,
    ) -> list[dict[str, Any]]:
        """GET /repos/{owner}/{repo}/issues for a single page.

        Note that GitHub's issues endpoint also returns pull requests.
        """
        params = self._list_params(
            milestone=milestone,
            state=state,
            sort=sort,
            direction=direction,
            page=page,
        )
        return await self._get(repo_path(owner, repo, "issues"), params)

    async def get_release_by_tag(
        self, owner: str, repo: str, tag: str
    ) -> dict[str, Any]:
        """GET /repos/{owner}/{repo}/releases/tags/{tag}.

        Raises:
            httpx.HTTPStatusError: 404 if no release has this tag
        """
        return await self._get(repo_path(owner, repo, "releases", "tags", tag))

    async def update_release(
        self, owner: str, repo: str, release_id: int, *, body: str
    ) -> dict[str, Any]:
        """PATCH /repos/{owner}/{repo}/releases/{release_id} with a new body."""
        resp = await self._client.patch(
            repo_path(owner, repo, "releases", release_id),
            json={"body": body},
        )
        resp.raise_for_status()
        return resp.json()

    def _list_params(self, **params: Any) -> dict[str, Any]:
        """Drop unset filters and add the configured page size."""
        cleaned = {key: value for key, value in params.items() if value is not None}
        if self._per_page is not None:
            cleaned["per_page"] = self._per_page
        return cleaned

    async def _get(self, url: str, params: dict[str, Any] | None = None) -> Any:
        resp = await self._client.get(url, params=params)
        logger.debug(
            "github_request",
            method="GET",
            url=url,
            params=params,
            status=resp.status_code,
        )
        resp.raise_for_status()
        return resp.json()


# ---------------------------------------------------------------------------
# Mock Implementation (for testing)
# ---------------------------------------------------------------------------


class MockGitHubClient:
    """In-memory GitHub client that serves predefined pages.

    Use this in tests and local development when you don't want to hit
    the real GitHub API. Every call is recorded in `calls` so tests can
    assert exactly which pages were requested.

    Usage:
        client = MockGitHubClient(pull_request_pages=[[pr1, pr2], [pr3]])
        page = await client.list_pull_requests("myorg", "api", page=1)
    """

    def __init__(
        self,
        pull_request_pages: list[list[dict[str, Any]]] | None = None,
        milestones: list[dict[str, Any]] | None = None,
        issue_pages: list[list[dict[str, Any]]] | None = None,
        releases: dict[str, dict[str, Any]] | None = None,
    ) -> None:
        """Initialize with optional predefined data.

        Args:
            pull_request_pages: Pages served by list_pull_requests, page 1 first
            milestones: Records served by list_milestones
            issue_pages: Pages served by list_issues, page 1 first
            releases: Mapping of tag -> release record
        """
        self._pull_request_pages = pull_request_pages or []
        self._milestones = milestones or []
        self._issue_pages = issue_pages or []
        self._releases = releases or {}
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.updated_bodies: dict[int, str] = {}

    async def list_pull_requests(
        self,
        owner: str,
        repo: str,
        *,
        state: str = "closed",
        base: str | None = None,
        sort: str = "updated",
        direction: str = "desc",
        page: int = 1,
    ) -> list[dict[str, Any]]:
        self.calls.append((
            "list_pull_requests",
            {
                "owner": owner,
                "repo": repo,
                "state": state,
                "base": base,
                "sort": sort,
                "direction": direction,
                "page": page,
            },
        ))
        return _page(self._pull_request_pages, page)

    async def list_milestones(
        self,
        owner: str,
        repo: str,
        *,
        state: str = "open",
    ) -> list[dict[str, Any]]:
        self.calls.append((
            "list_milestones", {"owner": owner, "repo": repo, "state": state}
        ))
        return list(self._milestones)

    async def list_issues(
        self,
        owner: str,
        repo: str,
        *,
        milestone: int | str,
        state: str = "all",
        sort: str = "updated",
        direction: str = "desc",
        page: int = 1,
    ) -> list[dict[str, Any]]:
        self.calls.append((
            "list_issues",
            {
                "owner": owner,
                "repo": repo,
                "milestone": milestone,
                "state": state,
                "sort": sort,
                "direction": direction,
                "page": page,
            },
        ))
        return _page(self._issue_pages, page)

    async def get_release_by_tag(
        self, owner: str, repo: str, tag: str
    ) -> dict[str, Any]:
        """Return the release for `tag`.

        Raises:
            httpx.HTTPStatusError: 404, mirroring the real API
        """
        self.calls.append((
            "get_release_by_tag", {"owner": owner, "repo": repo, "tag": tag}
        ))
        if tag not in self._releases:
            url = DEFAULT_HOST + repo_path(owner, repo, "releases", "tags", tag)
            request = httpx.Request("GET", url)
            response = httpx.Response(
                404, request=request, json={"message": "Not Found"}
            )
            raise httpx.HTTPStatusError(
                "Release not found", request=request, response=response
            )
        return dict(self._releases[tag])

    async def update_release(
        self, owner: str, repo: str, release_id: int, *, body: str
    ) -> dict[str, Any]:
        self.calls.append((
            "update_release",
            {"owner": owner, "repo": repo, "release_id": release_id, "body": body},
        ))
        self.updated_bodies[release_id] = body
        return {"id": release_id, "body": body}

    def pages_requested(self, method: str) -> list[int]:
        """Page numbers requested from a paginated method, in call order."""
        return [params["page"] for name, params in self.calls if name == method]


def _page(pages: list[list[dict[str, Any]]], page: int) -> list[dict[str, Any]]:
    if 1 <= page <= len(pages):
        return list(pages[page - 1])
    return []
