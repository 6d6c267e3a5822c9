"""Markdown export of a repository glossary."""

from __future__ import annotations

from collections.abc import Iterable

from .insights import GlossaryItem

HEADINGS = {"Function": "Functions", "Class": "Classes", "Variable": "Variables"}


def glossary_markdown(repo_name: str, items: Iterable[GlossaryItem]) -> str:
    """Render glossary items grouped by kind, kinds in first-seen order."""
    grouped: dict[str, list[GlossaryItem]] = {}
    for item in items:
        grouped.setdefault(item.kind, []).append(item)

    lines = [f"# Glossary for {repo_name}", ""]
    for kind, members in grouped.items():
        lines.append(f"## {HEADINGS.get(kind, kind)}")
        lines.append("")
        for item in members:
            lines.append(f"- `{item.name}` - *{item.path}*")
        lines.append("")
    return "\n".join(lines) + "\n"
