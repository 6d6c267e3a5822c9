"""GitHub REST client - raw facts about repositories and users.

Each public coroutine issues one logical request and either returns a
normalized value or raises one of the typed ``AnalysisError`` subclasses
(``NotFound``, ``RateLimited``, ``NetworkFailure``, ``Malformed``). Deciding
whether a failure is fatal is left to the orchestrator.
"""

from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx

from .config import CONTRIBUTIONS_API_URL, GITHUB_API_URL
from .contributions import ContributionDay
from .errors import Malformed, NetworkFailure, NotFound, RateLimited
from .logging import get_logger
from .sampler import TreeEntry

logger = get_logger("github")

MAX_USER_REPOS = 100

_PAGE_PARAM = re.compile(r"(?<![\w])page=(\d+)")


@dataclass(frozen=True)
class RepoFact:
    """Ground truth about one repository."""

    full_name: str
    default_branch: str
    file_tree: tuple[TreeEntry, ...] = ()
    commit_count: int = 0
    tree_truncated: bool = False


@dataclass(frozen=True)
class SampledFile:
    path: str
    content: str
    fetch_succeeded: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "content": self.content,
            "fetchSucceeded": self.fetch_succeeded,
        }


@dataclass(frozen=True)
class UserFact:
    login: str
    display_name: str | None = None
    avatar_url: str = ""
    bio: str | None = None
    followers: int = 0
    following: int = 0
    public_repo_count: int = 0
    created_at: str = ""


@dataclass(frozen=True)
class RepoRecord:
    """One entry of a user's repository listing."""

    name: str
    full_name: str
    description: str | None = None
    star_count: int = 0
    fork_count: int = 0
    language: str | None = None
    url: str = ""
    fork: bool = False


def parse_last_page(link_header: str | None) -> int:
    """Return the page number of the ``rel="last"`` link, or 0."""
    if not link_header:
        return 0
    for part in link_header.split(","):
        if 'rel="last"' not in part:
            continue
        match = _PAGE_PARAM.search(part)
        if match:
            return int(match.group(1))
    return 0


def infer_commit_count(link_header: str | None, body: Any) -> int:
    """Infer a commit count from a ``per_page=1`` commit listing.

    With one commit per page the last page number is the commit count.
    Without a pagination header the length of the single returned page is
    used, which is only exact for repositories with zero or one commit.
    """
    count = parse_last_page(link_header)
    if count == 0 and isinstance(body, list):
        count = len(body)
    return count


def decode_content(encoded: str, path: str = "") -> str:
    """Decode a base64 ``contents`` payload, returning "" if it is not UTF-8 text."""
    try:
        return base64.b64decode(encoded).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        logger.warning("Failed to decode content of %s: %s", path or "<unknown>", e)
        return ""


def count_field(data: dict[str, Any], key: str, what: str) -> int:
    """Read a numeric counter from a GitHub payload; missing or null is 0."""
    value = data.get(key)
    if value is None:
        return 0
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise Malformed(
            f"Unexpected value for {key} while fetching {what}.",
            detail=repr(value),
        ) from e


class GitHubFetcher:
    """Async client for the GitHub REST API and the contributions feed."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        token: str | None = None,
        base_url: str = GITHUB_API_URL,
        contributions_url: str = CONTRIBUTIONS_API_URL,
    ):
        self._client = client
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.contributions_url = contributions_url.rstrip("/")

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        *,
        what: str,
        github: bool = True,
    ) -> httpx.Response:
        headers = self._headers() if github else {"Accept": "application/json"}
        try:
            resp = await self._client.get(url, params=params, headers=headers)
        except httpx.TransportError as e:
            raise NetworkFailure(
                f"Could not reach upstream service while fetching {what}.",
                detail=str(e),
            ) from e

        if resp.status_code == 404:
            raise NotFound(f"{what.capitalize()} not found.", detail=url)
        if resp.status_code in (403, 429):
            raise RateLimited(
                "GitHub rate limit exceeded. Please check your GitHub token.",
                detail=resp.text[:200],
            )
        if resp.status_code >= 400:
            raise NetworkFailure(
                f"Failed to fetch {what}. API status: {resp.status_code}",
                detail=resp.text[:200],
            )
        return resp

    @staticmethod
    def _json(resp: httpx.Response, what: str, expect: type = dict) -> Any:
        try:
            data = resp.json()
        except ValueError as e:
            raise Malformed(f"Invalid JSON while fetching {what}.", detail=str(e)) from e
        if not isinstance(data, expect):
            raise Malformed(
                f"Unexpected response shape while fetching {what}.",
                detail=f"expected {expect.__name__}, got {type(data).__name__}",
            )
        return data

    # --- Repository path ---

    async def fetch_repo(self, owner: str, repo: str) -> dict[str, Any]:
        """Fetch repository metadata. The returned dict always has ``default_branch``."""
        what = "repository"
        resp = await self._get(f"{self.base_url}/repos/{owner}/{repo}", what=what)
        data = self._json(resp, what)
        if not data.get("default_branch"):
            raise Malformed("Repository metadata has no default branch.")
        return data

    async def fetch_commit_count(self, owner: str, repo: str) -> int:
        what = "commit count"
        resp = await self._get(
            f"{self.base_url}/repos/{owner}/{repo}/commits",
            params={"per_page": 1},
            what=what,
        )
        try:
            body = resp.json()
        except ValueError:
            body = None
        return infer_commit_count(resp.headers.get("Link"), body)

    async def fetch_tree(
        self, owner: str, repo: str, branch: str
    ) -> tuple[list[TreeEntry], bool]:
        """Fetch the recursive file tree. Returns (entries, truncated)."""
        what = "repository file tree"
        resp = await self._get(
            f"{self.base_url}/repos/{owner}/{repo}/git/trees/{quote(branch)}",
            params={"recursive": 1},
            what=what,
        )
        data = self._json(resp, what)
        truncated = bool(data.get("truncated"))
        if truncated:
            logger.warning(
                "File tree for %s/%s is truncated; analysis uses a partial file list",
                owner, repo,
            )

        entries = []
        for item in data.get("tree") or []:
            if isinstance(item, dict) and isinstance(item.get("path"), str):
                entries.append(TreeEntry(path=item["path"], kind=str(item.get("type", ""))))
        return entries, truncated

    async def fetch_file(
        self, owner: str, repo: str, path: str, ref: str | None = None
    ) -> SampledFile:
        what = f"content of {path}"
        params = {"ref": ref} if ref else None
        resp = await self._get(
            f"{self.base_url}/repos/{owner}/{repo}/contents/{quote(path)}",
            params=params,
            what=what,
        )
        data = self._json(resp, what)
        return SampledFile(path=path, content=decode_content(data.get("content") or "", path))

    # --- Profile path ---

    async def fetch_user(self, login: str) -> UserFact:
        what = "user"
        resp = await self._get(f"{self.base_url}/users/{login}", what=what)
        data = self._json(resp, what)
        return UserFact(
            login=data.get("login") or login,
            display_name=data.get("name"),
            avatar_url=data.get("avatar_url") or "",
            bio=data.get("bio"),
            followers=count_field(data, "followers", what),
            following=count_field(data, "following", what),
            public_repo_count=count_field(data, "public_repos", what),
            created_at=data.get("created_at") or "",
        )

    async def fetch_user_repos(self, login: str) -> list[RepoRecord]:
        """Fetch the user's non-fork repositories, most recently pushed first."""
        what = "user repositories"
        resp = await self._get(
            f"{self.base_url}/users/{login}/repos",
            params={"per_page": MAX_USER_REPOS, "sort": "pushed"},
            what=what,
        )
        data = self._json(resp, what, expect=list)

        records = []
        for item in data[:MAX_USER_REPOS]:
            if not isinstance(item, dict) or item.get("fork"):
                continue
            records.append(
                RepoRecord(
                    name=item.get("name") or "",
                    full_name=item.get("full_name") or item.get("name") or "",
                    description=item.get("description"),
                    star_count=count_field(item, "stargazers_count", what),
                    fork_count=count_field(item, "forks_count", what),
                    language=item.get("language"),
                    url=item.get("html_url") or "",
                    fork=False,
                )
            )
        return records

    async def fetch_contributions(self, login: str) -> list[ContributionDay]:
        """Fetch the trailing year of contribution counts (sparse)."""
        what = "contribution calendar"
        resp = await self._get(
            f"{self.contributions_url}/{login}",
            params={"y": "last"},
            what=what,
            github=False,
        )
        data = self._json(resp, what)

        days = []
        for item in data.get("contributions") or []:
            day = ContributionDay.from_dict(item)
            if day is not None:
                days.append(day)
        return days
