"""Prompt templates and output schemas for structured generation.

Each template takes facts already fetched from GitHub and returns the
user prompt; the matching schema constrains the model's JSON output.
Schemas use the OpenAPI subset accepted by the Gemini API.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

MAX_TREE_PATHS = 300
MAX_ITEMS = 20
ITEM_KINDS = ("Function", "Class", "Variable")

REPO_SYSTEM_PROMPT = """You are an expert code analyst.
Analyze the provided repository structure and source files.
Base every statement on the supplied code; do not invent files or symbols.
Return a single JSON object that strictly follows the provided schema."""

PROFILE_SYSTEM_PROMPT = """You are a friendly but honest career coach for software developers.
Assess GitHub profiles using only the facts provided.
Return a single JSON object that strictly follows the provided schema."""


REPO_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "techStack": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "description": "Main languages, frameworks and significant libraries.",
        },
        "fileStructureSummary": {
            "type": "STRING",
            "description": "One-paragraph summary of the repository architecture.",
        },
        "starRating": {
            "type": "NUMBER",
            "minimum": 1.0,
            "maximum": 5.0,
            "description": "Code quality rating from 1.0 to 5.0.",
        },
        "items": {
            "type": "ARRAY",
            "description": "Glossary of key code items.",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "name": {"type": "STRING"},
                    "type": {"type": "STRING", "enum": list(ITEM_KINDS)},
                    "path": {"type": "STRING"},
                },
                "required": ["name", "type", "path"],
            },
        },
    },
    "required": ["techStack", "fileStructureSummary", "starRating", "items"],
}

PROFILE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "profileSummary": {"type": "STRING"},
        "starRating": {"type": "NUMBER", "minimum": 1.0, "maximum": 5.0},
        "mainExpertise": {"type": "ARRAY", "items": {"type": "STRING"}},
        "healthScore": {"type": "NUMBER", "minimum": 0, "maximum": 100},
        "suggestions": {"type": "ARRAY", "items": {"type": "STRING"}},
        "topRepos": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "name": {"type": "STRING"},
                    "pitch": {"type": "STRING"},
                    "qualityScore": {"type": "NUMBER", "minimum": 1, "maximum": 100},
                },
                "required": ["name", "pitch", "qualityScore"],
            },
        },
    },
    "required": [
        "profileSummary", "starRating", "mainExpertise",
        "healthScore", "suggestions", "topRepos",
    ],
}


def repo_analysis_prompt(
    full_name: str,
    tree_paths: Sequence[str],
    files: Sequence[tuple[str, str]],
) -> str:
    """Generate prompt for repository analysis.

    ``files`` is a sequence of (path, content) pairs.
    """
    listing = "\n".join(tree_paths[:MAX_TREE_PATHS])
    contents = "\n\n---\n\n".join(f"// FILE: {path}\n\n{content}" for path, content in files)

    return f"""I will provide the file structure and the content of several key source files from a GitHub repository.
Analyze this information and return a comprehensive summary as JSON.

Repository: {full_name}

File list of the entire repository (this list might be truncated):
{listing}

Content of selected source files:
{contents}

Your analysis should include:
- techStack: the main languages, frameworks and significant libraries.
- fileStructureSummary: a concise, one-paragraph summary of the repository's architecture.
- starRating: a rating from 1.0 to 5.0 assessing the quality, clarity and organization of the sampled code.
- items: a glossary of up to {MAX_ITEMS} of the most important functions, classes or variables from the provided code, each with its file path."""


def profile_analysis_prompt(
    login: str,
    bio: str | None,
    top_repos: Sequence[dict[str, Any]],
    languages: dict[str, int],
    total_stars: int,
    followers: int,
) -> str:
    """Generate prompt for developer profile analysis."""
    return f"""Analyze the GitHub profile of {login}.

Bio: {bio or "(none)"}
Followers: {followers}
Total stars across original repositories: {total_stars}
Top repositories: {json.dumps(list(top_repos))}
Languages (repository count per language): {json.dumps(languages)}

Return JSON with:
- profileSummary: two or three sentences describing this developer.
- starRating: an overall rating from 1.0 to 5.0.
- mainExpertise: the developer's main areas of expertise.
- healthScore: a profile health score from 0 to 100, weighted as:
  profile completeness 20%, repository quality 40%,
  activity and consistency 20%, community engagement 20%.
- suggestions: concrete, actionable suggestions to improve the profile.
- topRepos: for each top repository, an entry with the exact "name" given above,
  a one-sentence "pitch", and a "qualityScore" from 1 to 100."""
