"""Bounded textual summary of an analyzed repository."""

from __future__ import annotations

from collections import Counter
from typing import Dict, List, Mapping, Sequence

from ..models import Classification, RepositorySnapshot, ScoredFile
from .utils import (
    detect_language,
    format_size,
    is_doc_file,
    is_excluded,
    is_readme,
    is_root_file,
    is_test_file,
    truncate,
)

README_EXCERPT_CHARS = 800
TREE_EXCERPT_LINES = 30
FILE_EXCERPT_CHARS = 400
REMAINING_FILES_LIMIT = 15
TOP_LANGUAGES = 5
MAX_LINE_CHARS = 160
DESCRIPTION_CHARS = 300


def build_summary(
    snapshot: RepositorySnapshot,
    classification: Classification,
    selected: Sequence[ScoredFile],
    contents: Mapping[str, str],
) -> str:
    """Render the repository summary used as assessment evidence.

    Every section is capped on its own, so the result stays bounded however
    large the repository is. Output is deterministic for identical inputs.
    """
    files = [entry for entry in snapshot.tree.files() if not is_excluded(entry.path)]
    paths = [entry.path for entry in files]

    lines: List[str] = [f"# Repository Analysis: {_cap(snapshot.reference.slug)}", ""]
    if snapshot.description:
        lines.append(f"**Description:** {truncate(_single_line(snapshot.description), DESCRIPTION_CHARS)}")
    lines.append(f"**Project Type:** {classification.project_type.value}")
    lines.append(f"**Default Branch:** {_cap(snapshot.default_branch)}")
    lines.append("")

    lines.extend(_quality_section(files, paths, snapshot.tree.truncated))
    lines.extend(_language_section(files))

    readme_path = next((path for path in paths if is_root_file(path) and is_readme(path)), None)
    if readme_path and contents.get(readme_path):
        lines.append("## README")
        lines.append(truncate(contents[readme_path].strip(), README_EXCERPT_CHARS))
        lines.append("")

    lines.append("## File Structure")
    for path in sorted(paths)[:TREE_EXCERPT_LINES]:
        lines.append(_cap(f"- {path}"))
    if len(paths) > TREE_EXCERPT_LINES:
        lines.append(f"- ... and {len(paths) - TREE_EXCERPT_LINES} more files")
    lines.append("")

    shown = set()
    excerpts = [item for item in selected if item.entry.path in contents and item.entry.path != readme_path]
    if excerpts:
        lines.append("## Key Files")
        for item in excerpts:
            path = item.entry.path
            shown.add(path)
            lines.append(_cap(f"### {path} ({format_size(item.entry.size)})"))
            lines.append("```")
            lines.append(truncate(contents[path].strip(), FILE_EXCERPT_CHARS))
            lines.append("```")
        lines.append("")

    if readme_path:
        shown.add(readme_path)
    remaining = [path for path in sorted(paths) if path not in shown]
    if remaining:
        lines.append("## Other Files")
        for path in remaining[:REMAINING_FILES_LIMIT]:
            lines.append(_cap(f"- {path}"))
        if len(remaining) > REMAINING_FILES_LIMIT:
            lines.append(f"- ... and {len(remaining) - REMAINING_FILES_LIMIT} more")
        lines.append("")

    return "\n".join(lines).rstrip() + "\n"


def _quality_section(files, paths: Sequence[str], truncated: bool) -> List[str]:
    total_size = sum(entry.size for entry in files)
    has_readme = any(is_root_file(path) and is_readme(path) for path in paths)
    has_tests = any(is_test_file(path) for path in paths)
    has_docs = any(is_doc_file(path) for path in paths)
    lines = [
        "## Quality Overview",
        f"- Files: {len(files)}",
        f"- Total size: {format_size(total_size)}",
        f"- README: {_yes_no(has_readme)}",
        f"- Tests: {_yes_no(has_tests)}",
        f"- Documentation: {_yes_no(has_docs)}",
    ]
    if truncated:
        lines.append("- Listing truncated by the hosting API")
    lines.append("")
    return lines


def _language_section(files) -> List[str]:
    weights: Dict[str, int] = Counter()
    for entry in files:
        language = detect_language(entry.path)
        if language:
            weights[language] += entry.size
    total = sum(weights.values())
    if not total:
        return []
    ranked = sorted(weights.items(), key=lambda item: (-item[1], item[0]))[:TOP_LANGUAGES]
    lines = ["## Languages"]
    for language, size in ranked:
        lines.append(f"- {language}: {round(size * 100 / total)}%")
    lines.append("")
    return lines


def _yes_no(flag: bool) -> str:
    return "yes" if flag else "no"


def _single_line(text: str) -> str:
    return " ".join(text.split())


def _cap(line: str) -> str:
    return truncate(line, MAX_LINE_CHARS)


__all__ = ["build_summary"]
