"""Metrics aggregation - merges GitHub ground truth with model output.

Everything here is pure: same inputs, same output. Badges are a fixed
catalog; each badge id maps to one predicate over ``ProfileFacts``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .contributions import ContributionDay, total_contributions
from .github import RepoRecord, UserFact
from .insights import ProfileInsight, RepoPitch

MAX_TOP_REPOS = 10
FALLBACK_PITCH = "An interesting project."
FALLBACK_QUALITY_SCORE = 50.0
DEFAULT_HEALTH_SCORE = 50.0

POLYGLOT_MIN_LANGUAGES = 5
STAR_GAZER_MIN_STARS = 100
COMMIT_MACHINE_MIN_CONTRIBUTIONS = 500
COMMIT_MACHINE_FALLBACK_MIN_REPOS = 50
PERFECT_README_MIN_QUALITY = 90
COMMUNITY_BUILDER_MIN_FORKS = 25
TOP_10_PERCENT_MIN_HEALTH = 90


class BadgeId(str, Enum):
    POLYGLOT = "POLYGLOT"
    STAR_GAZER = "STAR_GAZER"
    COMMIT_MACHINE = "COMMIT_MACHINE"
    PERFECT_README = "PERFECT_README"
    COMMUNITY_BUILDER = "COMMUNITY_BUILDER"
    TOP_10_PERCENT = "TOP_10_PERCENT"


@dataclass(frozen=True)
class BadgeSpec:
    id: BadgeId
    name: str
    description: str


BADGE_CATALOG: tuple[BadgeSpec, ...] = (
    BadgeSpec(BadgeId.POLYGLOT, "Polyglot", "Use 5+ languages."),
    BadgeSpec(BadgeId.STAR_GAZER, "Star Gazer", "Repo with 100+ stars."),
    BadgeSpec(BadgeId.COMMIT_MACHINE, "Commit Machine", "500+ contributions in the last year."),
    BadgeSpec(BadgeId.PERFECT_README, "Perfect Readme", "Quality score 90+."),
    BadgeSpec(BadgeId.COMMUNITY_BUILDER, "Community Builder", "25+ forks."),
    BadgeSpec(BadgeId.TOP_10_PERCENT, "Top 10%", "Health score 90+."),
)


@dataclass(frozen=True)
class Badge:
    id: BadgeId
    name: str
    description: str
    earned: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id.value,
            "name": self.name,
            "description": self.description,
            "earned": self.earned,
        }


@dataclass(frozen=True)
class RepoInfo:
    """A top repository: GitHub facts plus the model's pitch and score."""

    name: str
    description: str | None
    star_count: int
    language: str | None
    url: str
    pitch: str = FALLBACK_PITCH
    quality_score: float = FALLBACK_QUALITY_SCORE

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "stars": self.star_count,
            "language": self.language,
            "url": self.url,
            "pitch": self.pitch,
            "qualityScore": self.quality_score,
        }


@dataclass(frozen=True)
class ProfileFacts:
    """Request-local facts the badge predicates are evaluated against.

    ``contribution_total`` is None when the contributions feed was
    unavailable.
    """

    repos: tuple[RepoRecord, ...]
    languages: Mapping[str, int]
    top_repos: tuple[RepoInfo, ...]
    public_repo_count: int
    health_score: float
    contribution_total: int | None = None


@dataclass
class ProfileMetrics:
    total_stars: int = 0
    language_distribution: dict[str, int] = field(default_factory=dict)
    top_repos: list[RepoInfo] = field(default_factory=list)
    health_score: float = DEFAULT_HEALTH_SCORE
    badges: list[Badge] = field(default_factory=list)


def _owned(repos: Iterable[RepoRecord]) -> list[RepoRecord]:
    return [repo for repo in repos if not repo.fork]


def language_distribution(repos: Iterable[RepoRecord]) -> dict[str, int]:
    """Count non-fork repositories per primary language."""
    counts: dict[str, int] = {}
    for repo in _owned(repos):
        if repo.language:
            counts[repo.language] = counts.get(repo.language, 0) + 1
    return counts


def total_stars(repos: Iterable[RepoRecord]) -> int:
    return sum(repo.star_count for repo in _owned(repos))


def rank_top_repos(
    repos: Iterable[RepoRecord], limit: int = MAX_TOP_REPOS
) -> list[RepoRecord]:
    """Highest-starred non-fork repos; ties keep fetch order."""
    return sorted(_owned(repos), key=lambda r: -r.star_count)[:limit]


def repo_prompt_entry(repo: RepoRecord) -> dict[str, Any]:
    return {
        "name": repo.full_name,
        "description": repo.description,
        "stars": repo.star_count,
        "language": repo.language,
        "url": repo.url,
    }


def _clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def normalize_health_score(value: float | None) -> float:
    if value is None:
        return DEFAULT_HEALTH_SCORE
    return _clamp(value, 0.0, 100.0)


def merge_top_repos(
    ranked: Sequence[RepoRecord], pitches: Sequence[RepoPitch]
) -> list[RepoInfo]:
    """Attach the model's pitch/score to each ranked repo by exact name."""
    by_name: dict[str, RepoPitch] = {}
    for pitch in pitches:
        by_name.setdefault(pitch.name, pitch)

    merged = []
    for repo in ranked:
        ai = by_name.get(repo.full_name)
        pitch = ai.pitch if ai and ai.pitch else FALLBACK_PITCH
        score = FALLBACK_QUALITY_SCORE
        if ai and ai.quality_score is not None:
            score = _clamp(ai.quality_score, 1.0, 100.0)
        merged.append(
            RepoInfo(
                name=repo.full_name,
                description=repo.description,
                star_count=repo.star_count,
                language=repo.language,
                url=repo.url,
                pitch=pitch,
                quality_score=score,
            )
        )
    return merged


# --- Badge predicates ---

def _polyglot(facts: ProfileFacts) -> bool:
    return len(facts.languages) >= POLYGLOT_MIN_LANGUAGES


def _star_gazer(facts: ProfileFacts) -> bool:
    return any(repo.star_count >= STAR_GAZER_MIN_STARS for repo in _owned(facts.repos))


def _commit_machine(facts: ProfileFacts) -> bool:
    if facts.contribution_total is None:
        # Weak proxy used only when the contributions feed is unavailable.
        return facts.public_repo_count > COMMIT_MACHINE_FALLBACK_MIN_REPOS
    return facts.contribution_total > COMMIT_MACHINE_MIN_CONTRIBUTIONS


def _perfect_readme(facts: ProfileFacts) -> bool:
    return any(repo.quality_score >= PERFECT_README_MIN_QUALITY for repo in facts.top_repos)


def _community_builder(facts: ProfileFacts) -> bool:
    return any(repo.fork_count >= COMMUNITY_BUILDER_MIN_FORKS for repo in _owned(facts.repos))


def _top_10_percent(facts: ProfileFacts) -> bool:
    return facts.health_score >= TOP_10_PERCENT_MIN_HEALTH


BADGE_PREDICATES: dict[BadgeId, Callable[[ProfileFacts], bool]] = {
    BadgeId.POLYGLOT: _polyglot,
    BadgeId.STAR_GAZER: _star_gazer,
    BadgeId.COMMIT_MACHINE: _commit_machine,
    BadgeId.PERFECT_README: _perfect_readme,
    BadgeId.COMMUNITY_BUILDER: _community_builder,
    BadgeId.TOP_10_PERCENT: _top_10_percent,
}


def evaluate_badges(facts: ProfileFacts) -> list[Badge]:
    """Evaluate every catalog badge, in catalog order."""
    return [
        Badge(
            id=spec.id,
            name=spec.name,
            description=spec.description,
            earned=BADGE_PREDICATES[spec.id](facts),
        )
        for spec in BADGE_CATALOG
    ]


def aggregate_profile(
    user: UserFact,
    repos: Sequence[RepoRecord],
    insight: ProfileInsight,
    contributions: Sequence[ContributionDay] | None,
) -> ProfileMetrics:
    """Compute every derived profile field.

    ``contributions`` is None when the feed could not be fetched, which
    switches the Commit Machine badge to its fallback heuristic.
    """
    languages = language_distribution(repos)
    top_repos = merge_top_repos(rank_top_repos(repos), insight.top_repos)
    health_score = normalize_health_score(insight.health_score)

    facts = ProfileFacts(
        repos=tuple(repos),
        languages=languages,
        top_repos=tuple(top_repos),
        public_repo_count=user.public_repo_count,
        health_score=health_score,
        contribution_total=(
            None if contributions is None else total_contributions(contributions)
        ),
    )
    return ProfileMetrics(
        total_stars=total_stars(repos),
        language_distribution=languages,
        top_repos=top_repos,
        health_score=health_score,
        badges=evaluate_badges(facts),
    )
