"""Insight engine - builds prompts, calls the model, validates its answer.

The model's JSON is untrusted. Fields that are missing or of the wrong
shape are replaced with defaults and their names recorded in
``defaulted``; only a response that is not a JSON object at all is fatal
(raised by the client as ``AIUnavailable``).
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from .github import RepoFact, SampledFile, UserFact
from .logging import get_logger
from .model import GeminiClient
from .prompts import (
    ITEM_KINDS,
    MAX_ITEMS,
    PROFILE_SCHEMA,
    PROFILE_SYSTEM_PROMPT,
    REPO_SCHEMA,
    REPO_SYSTEM_PROMPT,
    profile_analysis_prompt,
    repo_analysis_prompt,
)

logger = get_logger("insights")

NO_SUMMARY = "No summary generated."
UNRATED = 0.0
MIN_STARS, MAX_STARS = 1.0, 5.0


@dataclass(frozen=True)
class GlossaryItem:
    name: str
    kind: str  # one of ITEM_KINDS
    path: str

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "type": self.kind, "path": self.path}


@dataclass
class RepoInsight:
    """Validated model output for a repository."""

    tech_stack: list[str] = field(default_factory=list)
    file_structure_summary: str = NO_SUMMARY
    star_rating: float = UNRATED
    items: list[GlossaryItem] = field(default_factory=list)
    defaulted: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class RepoPitch:
    """The model's per-repository entry. Fields are None when unusable."""

    name: str
    pitch: str | None = None
    quality_score: float | None = None


@dataclass
class ProfileInsight:
    """Validated model output for a profile.

    ``health_score`` stays None when the model omitted it; the metrics
    aggregator owns its default.
    """

    profile_summary: str = NO_SUMMARY
    star_rating: float = UNRATED
    main_expertise: list[str] = field(default_factory=list)
    health_score: float | None = None
    suggestions: list[str] = field(default_factory=list)
    top_repos: list[RepoPitch] = field(default_factory=list)
    defaulted: list[str] = field(default_factory=list)


# --- Field coercion ---

def _text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _number(value: Any) -> float | None:
    # bool is an int subclass; true/false is not a score
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _text_list(value: Any) -> list[str] | None:
    if not isinstance(value, list):
        return None
    seen: dict[str, None] = {}
    for item in value:
        text = _text(item)
        if text is not None:
            seen.setdefault(text, None)
    return list(seen)


def _star_rating(value: Any) -> float | None:
    number = _number(value)
    if number is None:
        return None
    return min(MAX_STARS, max(MIN_STARS, number))


def parse_repo_insight(data: dict[str, Any]) -> RepoInsight:
    insight = RepoInsight()

    tech_stack = _text_list(data.get("techStack"))
    if tech_stack is None:
        insight.defaulted.append("techStack")
    else:
        insight.tech_stack = tech_stack

    summary = _text(data.get("fileStructureSummary"))
    if summary is None:
        insight.defaulted.append("fileStructureSummary")
    else:
        insight.file_structure_summary = summary

    rating = _star_rating(data.get("starRating"))
    if rating is None:
        insight.defaulted.append("starRating")
    else:
        insight.star_rating = rating

    raw_items = data.get("items")
    if not isinstance(raw_items, list):
        insight.defaulted.append("items")
        raw_items = []
    for raw in raw_items:
        if len(insight.items) >= MAX_ITEMS:
            break
        if not isinstance(raw, dict):
            continue
        name, kind, path = _text(raw.get("name")), raw.get("type"), _text(raw.get("path"))
        if name is None or kind not in ITEM_KINDS:
            logger.debug("Dropping glossary item %r", raw)
            continue
        insight.items.append(GlossaryItem(name=name, kind=kind, path=path or ""))

    return insight


def parse_profile_insight(data: dict[str, Any]) -> ProfileInsight:
    insight = ProfileInsight()

    summary = _text(data.get("profileSummary"))
    if summary is None:
        insight.defaulted.append("profileSummary")
    else:
        insight.profile_summary = summary

    rating = _star_rating(data.get("starRating"))
    if rating is None:
        insight.defaulted.append("starRating")
    else:
        insight.star_rating = rating

    for key, attr in (("mainExpertise", "main_expertise"), ("suggestions", "suggestions")):
        values = _text_list(data.get(key))
        if values is None:
            insight.defaulted.append(key)
        else:
            setattr(insight, attr, values)

    insight.health_score = _number(data.get("healthScore"))
    if insight.health_score is None:
        insight.defaulted.append("healthScore")

    raw_repos = data.get("topRepos")
    if not isinstance(raw_repos, list):
        insight.defaulted.append("topRepos")
        raw_repos = []
    for raw in raw_repos:
        if not isinstance(raw, dict) or not isinstance(raw.get("name"), str):
            continue
        insight.top_repos.append(
            RepoPitch(
                name=raw["name"],
                pitch=_text(raw.get("pitch")),
                quality_score=_number(raw.get("qualityScore")),
            )
        )

    return insight


class InsightEngine:
    """Runs the two structured analyses against the model."""

    def __init__(self, client: GeminiClient):
        self.client = client

    async def analyze_repo(
        self, fact: RepoFact, files: Sequence[SampledFile]
    ) -> RepoInsight:
        prompt = repo_analysis_prompt(
            fact.full_name,
            [entry.path for entry in fact.file_tree],
            [(f.path, f.content) for f in files],
        )
        data = await self.client.generate_json(
            prompt, REPO_SCHEMA, system=REPO_SYSTEM_PROMPT
        )
        insight = parse_repo_insight(data)
        if insight.defaulted:
            logger.warning("Model omitted fields for %s: %s", fact.full_name, ", ".join(insight.defaulted))
        return insight

    async def analyze_profile(
        self,
        user: UserFact,
        top_repos: Sequence[dict[str, Any]],
        languages: dict[str, int],
        total_stars: int,
    ) -> ProfileInsight:
        prompt = profile_analysis_prompt(
            user.login, user.bio, top_repos, languages, total_stars, user.followers
        )
        data = await self.client.generate_json(
            prompt, PROFILE_SCHEMA, system=PROFILE_SYSTEM_PROMPT
        )
        insight = parse_profile_insight(data)
        if insight.defaulted:
            logger.warning("Model omitted fields for %s: %s", user.login, ", ".join(insight.defaulted))
        return insight
