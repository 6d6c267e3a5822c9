"""Representative file sampling.

Picks a small, deterministic subset of a repository's source files to
send to the model. Pure: no network, no filesystem.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

MAX_SAMPLED_FILES = 15

SOURCE_EXTENSIONS = (
    ".js", ".jsx", ".ts", ".tsx", ".py", ".go", ".rs",
    ".java", ".rb", ".php", ".vue", ".svelte",
)

EXCLUDED_DIRS = frozenset({
    "node_modules", "dist", "build", "vendor",
    "test", "tests", "docs", "examples",
    ".github", "assets",
})


@dataclass(frozen=True)
class TreeEntry:
    """One entry of a git tree listing."""

    path: str
    kind: str  # "blob", "tree" or "commit"

    def to_dict(self) -> dict[str, str]:
        return {"path": self.path, "kind": self.kind}


def is_source_file(path: str) -> bool:
    """True for allow-listed extensions, excluding minified bundles."""
    for ext in SOURCE_EXTENSIONS:
        if path.endswith(ext) and not path.endswith(f".min{ext}"):
            return True
    return False


def is_excluded(path: str) -> bool:
    """True if any directory segment of ``path`` is an excluded name."""
    segments = path.split("/")[:-1]
    return any(segment in EXCLUDED_DIRS for segment in segments)


def is_representative(entry: TreeEntry) -> bool:
    return entry.kind == "blob" and is_source_file(entry.path) and not is_excluded(entry.path)


def select_representative_files(
    tree: Iterable[TreeEntry],
    limit: int = MAX_SAMPLED_FILES,
) -> list[str]:
    """Return up to ``limit`` representative paths, in tree order."""
    selected: list[str] = []
    for entry in tree:
        if len(selected) >= limit:
            break
        if is_representative(entry):
            selected.append(entry.path)
    return selected
