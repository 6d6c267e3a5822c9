"""Analysis orchestration - composes fetcher, sampler, model and metrics.

Two entry points, one per kind of GitHub URL:

- ``analyze_repo``: metadata -> {commit count, tree} -> sample -> file
  contents -> model -> ``AnalysisResult``
- ``analyze_profile``: {user, repos, contributions} -> model -> metrics
  and calendar -> ``ProfileAnalysisResult``

Critical failures (the repo or user itself, the file tree, the model)
raise ``AnalysisError``. Everything else degrades to a default and is
recorded as a ``DegradedNote`` on the result.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlsplit

import httpx

from .config import Settings
from .contributions import ContributionCalendar, ContributionDay, build_calendar
from .errors import AnalysisError, InvalidInput, NoRepresentativeFiles
from .github import GitHubFetcher, RepoFact, SampledFile
from .insights import GlossaryItem, InsightEngine
from .logging import get_logger
from .metrics import (
    Badge,
    RepoInfo,
    aggregate_profile,
    language_distribution,
    rank_top_repos,
    repo_prompt_entry,
    total_stars,
)
from .model import GeminiClient
from .sampler import select_representative_files
from .tasks import join

logger = get_logger("orchestrator")

GITHUB_HOSTS = frozenset({"github.com", "www.github.com"})


@dataclass(frozen=True)
class DegradedNote:
    """A non-fatal fallback taken during one analysis."""

    source: str
    reason: str

    def to_dict(self) -> dict[str, str]:
        return {"source": self.source, "reason": self.reason}


@dataclass
class AnalysisResult:
    """Complete repository analysis."""

    repo_name: str
    commit_count: int = 0
    tech_stack: list[str] = field(default_factory=list)
    file_structure_summary: str = ""
    star_rating: float = 0.0
    items: list[GlossaryItem] = field(default_factory=list)
    sampled_files: list[SampledFile] = field(default_factory=list)
    tree_truncated: bool = False
    degraded: list[DegradedNote] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "repoName": self.repo_name,
            "items": [item.to_dict() for item in self.items],
            "techStack": self.tech_stack,
            "fileStructureSummary": self.file_structure_summary,
            "commitCount": self.commit_count,
            "starRating": self.star_rating,
            "sampledFiles": [
                {"path": f.path, "fetchSucceeded": f.fetch_succeeded}
                for f in self.sampled_files
            ],
            "treeTruncated": self.tree_truncated,
            "degraded": [note.to_dict() for note in self.degraded],
        }


@dataclass
class ProfileAnalysisResult:
    """Complete developer profile analysis."""

    login: str
    name: str | None = None
    avatar_url: str = ""
    bio: str | None = None
    followers: int = 0
    following: int = 0
    public_repo_count: int = 0
    created_at: str = ""
    total_stars: int = 0
    top_repos: list[RepoInfo] = field(default_factory=list)
    language_distribution: dict[str, int] = field(default_factory=dict)
    profile_summary: str = ""
    star_rating: float = 0.0
    main_expertise: list[str] = field(default_factory=list)
    health_score: float = 0.0
    badges: list[Badge] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    contribution_data: list[ContributionDay] = field(default_factory=list)
    calendar: ContributionCalendar = field(default_factory=ContributionCalendar)
    degraded: list[DegradedNote] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "login": self.login,
            "name": self.name,
            "avatarUrl": self.avatar_url,
            "bio": self.bio,
            "followers": self.followers,
            "following": self.following,
            "publicRepoCount": self.public_repo_count,
            "createdAt": self.created_at,
            "totalStars": self.total_stars,
            "topRepos": [repo.to_dict() for repo in self.top_repos],
            "languageDistribution": self.language_distribution,
            "profileSummary": self.profile_summary,
            "starRating": self.star_rating,
            "mainExpertise": self.main_expertise,
            "healthScore": self.health_score,
            "badges": [badge.to_dict() for badge in self.badges],
            "suggestions": self.suggestions,
            "contributionData": [day.to_dict() for day in self.contribution_data],
            "calendar": self.calendar.to_dict(),
            "degraded": [note.to_dict() for note in self.degraded],
        }


# --- URL validation ---

def _github_path_segments(url: str) -> list[str]:
    url = url.strip()
    if "://" not in url:
        url = f"https://{url}"
    try:
        parts = urlsplit(url)
    except ValueError as e:
        raise InvalidInput("Invalid GitHub URL.", detail=str(e)) from e
    if parts.scheme not in ("http", "https") or (parts.hostname or "").lower() not in GITHUB_HOSTS:
        raise InvalidInput("Invalid GitHub URL. Hostname must be github.com.")
    return [segment for segment in parts.path.split("/") if segment]


def parse_repo_url(url: str) -> tuple[str, str]:
    """Return (owner, repo) from a GitHub repository URL."""
    segments = _github_path_segments(url)
    if len(segments) < 2:
        raise InvalidInput("Invalid repository path in URL. Expected github.com/<owner>/<repo>.")
    owner, repo = segments[0], segments[1]
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    if not repo:
        raise InvalidInput("Invalid repository path in URL. Expected github.com/<owner>/<repo>.")
    return owner, repo


def parse_profile_url(url: str) -> str:
    """Return the login from a GitHub profile URL."""
    segments = _github_path_segments(url)
    if not segments:
        raise InvalidInput("Invalid profile URL. Expected github.com/<username>.")
    return segments[0]


class AnalysisOrchestrator:
    """Runs one analysis per call; holds no state between calls."""

    def __init__(
        self,
        fetcher: GitHubFetcher,
        engine: InsightEngine,
        today: datetime.date | None = None,
    ):
        self.fetcher = fetcher
        self.engine = engine
        self.today = today

    async def analyze_repo(self, url: str) -> AnalysisResult:
        try:
            return await self._analyze_repo(url)
        except AnalysisError as e:
            logger.error("Repository analysis failed for %s: %s %s", url, e.user_message, e.detail)
            raise

    async def analyze_profile(self, url: str) -> ProfileAnalysisResult:
        try:
            return await self._analyze_profile(url)
        except AnalysisError as e:
            logger.error("Profile analysis failed for %s: %s %s", url, e.user_message, e.detail)
            raise

    async def _analyze_repo(self, url: str) -> AnalysisResult:
        owner, name = parse_repo_url(url)
        degraded: list[DegradedNote] = []

        meta = await self.fetcher.fetch_repo(owner, name)
        branch = meta["default_branch"]

        count_outcome, tree_outcome = await join(
            self.fetcher.fetch_commit_count(owner, name),
            self.fetcher.fetch_tree(owner, name, branch),
        )
        tree, truncated = tree_outcome.unwrap()

        commit_count = 0
        if count_outcome.ok:
            commit_count = count_outcome.value
        else:
            _degrade(degraded, "commitCount", count_outcome.error.user_message)
        if truncated:
            _degrade(degraded, "fileTree", "File tree truncated by GitHub; partial file list used.")

        fact = RepoFact(
            full_name=meta.get("full_name") or f"{owner}/{name}",
            default_branch=branch,
            file_tree=tuple(tree),
            commit_count=commit_count,
            tree_truncated=truncated,
        )

        paths = select_representative_files(fact.file_tree)
        if not paths:
            raise NoRepresentativeFiles(detail=fact.full_name)
        logger.info("Sampled %d files from %s", len(paths), fact.full_name)

        outcomes = await join(
            *(self.fetcher.fetch_file(owner, name, path, branch) for path in paths)
        )
        files = []
        for path, outcome in zip(paths, outcomes):
            if outcome.ok:
                files.append(outcome.value)
            else:
                _degrade(degraded, f"content:{path}", outcome.error.user_message)
                files.append(
                    SampledFile(
                        path=path,
                        content=f"// Error fetching content for {path}",
                        fetch_succeeded=False,
                    )
                )

        insight = await self.engine.analyze_repo(fact, files)
        for key in insight.defaulted:
            degraded.append(DegradedNote(source=f"ai:{key}", reason="Missing or invalid; default used."))

        return AnalysisResult(
            repo_name=fact.full_name,
            commit_count=fact.commit_count,
            tech_stack=insight.tech_stack,
            file_structure_summary=insight.file_structure_summary,
            star_rating=insight.star_rating,
            items=insight.items,
            sampled_files=files,
            tree_truncated=fact.tree_truncated,
            degraded=degraded,
        )

    async def _analyze_profile(self, url: str) -> ProfileAnalysisResult:
        login = parse_profile_url(url)
        degraded: list[DegradedNote] = []

        user_outcome, repos_outcome, contrib_outcome = await join(
            self.fetcher.fetch_user(login),
            self.fetcher.fetch_user_repos(login),
            self.fetcher.fetch_contributions(login),
        )
        user = user_outcome.unwrap()

        repos = []
        if repos_outcome.ok:
            repos = repos_outcome.value
        else:
            _degrade(degraded, "repositories", repos_outcome.error.user_message)

        contributions = None
        if contrib_outcome.ok:
            contributions = contrib_outcome.value
        else:
            _degrade(degraded, "contributions", contrib_outcome.error.user_message)

        insight = await self.engine.analyze_profile(
            user,
            [repo_prompt_entry(repo) for repo in rank_top_repos(repos)],
            language_distribution(repos),
            total_stars(repos),
        )
        for key in insight.defaulted:
            degraded.append(DegradedNote(source=f"ai:{key}", reason="Missing or invalid; default used."))

        metrics = aggregate_profile(user, repos, insight, contributions)

        return ProfileAnalysisResult(
            login=user.login,
            name=user.display_name,
            avatar_url=user.avatar_url,
            bio=user.bio,
            followers=user.followers,
            following=user.following,
            public_repo_count=user.public_repo_count,
            created_at=user.created_at,
            total_stars=metrics.total_stars,
            top_repos=metrics.top_repos,
            language_distribution=metrics.language_distribution,
            profile_summary=insight.profile_summary,
            star_rating=insight.star_rating,
            main_expertise=insight.main_expertise,
            health_score=metrics.health_score,
            badges=metrics.badges,
            suggestions=insight.suggestions,
            contribution_data=list(contributions or []),
            calendar=build_calendar(contributions or [], today=self.today),
            degraded=degraded,
        )


def _degrade(notes: list[DegradedNote], source: str, reason: str) -> None:
    logger.warning("Degraded %s: %s", source, reason)
    notes.append(DegradedNote(source=source, reason=reason))


def _build_orchestrator(http: httpx.AsyncClient, settings: Settings) -> AnalysisOrchestrator:
    fetcher = GitHubFetcher(
        http,
        token=settings.github_token,
        base_url=settings.github_api_url,
        contributions_url=settings.contributions_api_url,
    )
    model = GeminiClient(
        http,
        api_key=settings.gemini_api_key,
        model=settings.model,
        base_url=settings.ai_api_url,
    )
    return AnalysisOrchestrator(fetcher, InsightEngine(model))


async def analyze_repo(url: str, settings: Settings) -> AnalysisResult:
    """Analyze a repository URL with a fresh HTTP client."""
    parse_repo_url(url)
    async with httpx.AsyncClient(timeout=settings.timeout, follow_redirects=True) as http:
        return await _build_orchestrator(http, settings).analyze_repo(url)


async def analyze_profile(url: str, settings: Settings) -> ProfileAnalysisResult:
    """Analyze a profile URL with a fresh HTTP client."""
    parse_profile_url(url)
    async with httpx.AsyncClient(timeout=settings.timeout, follow_redirects=True) as http:
        return await _build_orchestrator(http, settings).analyze_profile(url)
