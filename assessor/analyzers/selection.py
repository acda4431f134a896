"""Representative file selection for repository summaries."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Tuple

from ..models import ProjectType, RepositoryTree, ScoredFile, TreeEntry
from .utils import (
    is_config_file,
    is_doc_file,
    is_excluded,
    is_manifest,
    is_readme,
    is_root_file,
    is_test_file,
    mentions_testing,
)


@dataclass(frozen=True)
class ScoringPolicy:
    """Selection weights and limits.

    The weights were chosen empirically and have not been tuned against
    graded outcomes; override them through the ``policy.scoring`` section of
    ``.assessor.yml`` rather than editing the defaults.
    """

    always_important: int = 100
    priority_pattern: int = 100
    secondary_pattern: int = 50
    config_file: int = 30
    test_file: int = 20
    test_file_emphasised: int = 60
    docs_file: int = 15
    max_files: int = 10
    max_file_bytes: int = 100_000


@dataclass(frozen=True)
class SelectionPatterns:
    """Path patterns that mark the files a project type is built around."""

    priority: Tuple[str, ...] = ()
    secondary: Tuple[str, ...] = ()


_JS_ENTRY = r"\.(t|j)sx?$"

PROJECT_PATTERNS: Dict[ProjectType, SelectionPatterns] = {
    ProjectType.NEXTJS: SelectionPatterns(
        priority=(
            rf"^(src/)?app/(layout|page){_JS_ENTRY}",
            rf"^(src/)?pages/(index|_app|_document){_JS_ENTRY}",
            r"^next\.config\.(js|mjs|cjs|ts)$",
            rf"^(src/)?middleware{_JS_ENTRY}",
        ),
        secondary=(
            r"^(src/)?app/",
            r"^(src/)?pages/",
            r"^(src/)?components/",
            r"^(src/)?lib/",
        ),
    ),
    ProjectType.REACT: SelectionPatterns(
        priority=(
            rf"^src/(App|index|main){_JS_ENTRY}",
            r"^(public/)?index\.html$",
            r"^vite\.config\.(js|ts)$",
        ),
        secondary=(r"^src/components/", r"^src/(hooks|pages|context|services)/"),
    ),
    ProjectType.VUE: SelectionPatterns(
        priority=(r"^src/(App\.vue|main\.(j|t)s)$", r"^(vue|vite|nuxt)\.config\.(js|ts)$"),
        secondary=(r"^src/(components|views|pages|store)/",),
    ),
    ProjectType.ANGULAR: SelectionPatterns(
        priority=(r"^src/main\.ts$", r"^src/app/app\.(module|component|routes)\.ts$", r"^angular\.json$"),
        secondary=(r"^src/app/",),
    ),
    ProjectType.SVELTE: SelectionPatterns(
        priority=(r"^src/routes/\+page\.svelte$", r"^src/App\.svelte$", r"^svelte\.config\.(js|ts)$"),
        secondary=(r"^src/(routes|lib)/",),
    ),
    ProjectType.EXPRESS: SelectionPatterns(
        priority=(rf"^(src/)?(app|server|index){_JS_ENTRY}",),
        secondary=(r"^(src/)?(routes|controllers|models|middleware)/",),
    ),
    ProjectType.NODE: SelectionPatterns(
        priority=(rf"^(src/)?(index|main|app|server){_JS_ENTRY}",),
        secondary=(r"^(src|lib)/",),
    ),
    ProjectType.DJANGO: SelectionPatterns(
        priority=(r"(^|/)manage\.py$", r"(^|/)settings\.py$", r"(^|/)urls\.py$"),
        secondary=(r"(^|/)(models|views|forms|serializers|admin)\.py$", r"(^|/)templates/"),
    ),
    ProjectType.FASTAPI: SelectionPatterns(
        priority=(r"^(app/|src/)?main\.py$", r"^(app/|src/)?api\.py$"),
        secondary=(r"(^|/)(routers|api|models|schemas|services)/", r"(^|/)(models|schemas)\.py$"),
    ),
    ProjectType.FLASK: SelectionPatterns(
        priority=(r"^(app|main|run|wsgi)\.py$", r"^[\w-]+/__init__\.py$"),
        secondary=(r"(^|/)(routes|views|models|templates)(/|\.py$)",),
    ),
    ProjectType.PYTHON: SelectionPatterns(
        priority=(r"^(main|app|cli|__main__)\.py$", r"^(src/)?[\w-]+/(__main__|main|cli)\.py$"),
        secondary=(r"^src/", r"^[\w-]+/[\w-]+\.py$"),
    ),
    ProjectType.GO: SelectionPatterns(
        priority=(r"^main\.go$", r"^cmd/[\w-]+/main\.go$"),
        secondary=(r"^(internal|pkg|cmd)/",),
    ),
    ProjectType.RUST: SelectionPatterns(
        priority=(r"^src/(main|lib)\.rs$",),
        secondary=(r"^src/",),
    ),
    ProjectType.JAVA: SelectionPatterns(
        priority=(r"(^|/)src/main/java/.*(Application|Main)\.java$",),
        secondary=(r"(^|/)src/main/",),
    ),
    ProjectType.STATIC: SelectionPatterns(
        priority=(r"^index\.html?$", r"^(css/|styles?/)?(style|main|styles)\.css$", r"^(js/|scripts?/)?(script|main|app)\.js$"),
        secondary=(r"\.(html?|css|js)$",),
    ),
    ProjectType.UNKNOWN: SelectionPatterns(
        priority=(r"^(main|index|app)\.\w+$",),
        secondary=(r"^src/",),
    ),
}


def is_always_important(path: str) -> bool:
    """Root readme and dependency manifests are always worth reading."""
    return is_root_file(path) and (is_readme(path) or is_manifest(path))


def score_file(
    entry: TreeEntry,
    patterns: SelectionPatterns,
    *,
    emphasise_tests: bool,
    policy: ScoringPolicy,
) -> ScoredFile:
    """Return the additive score of a single tree entry."""
    path = entry.path
    score = 0
    pinned = is_always_important(path)
    if pinned:
        score += policy.always_important
    if any(re.search(pattern, path) for pattern in patterns.priority):
        score += policy.priority_pattern
    elif any(re.search(pattern, path) for pattern in patterns.secondary):
        score += policy.secondary_pattern
    if is_config_file(path):
        score += policy.config_file
    if is_test_file(path):
        score += policy.test_file_emphasised if emphasise_tests else policy.test_file
    if is_doc_file(path):
        score += policy.docs_file
    return ScoredFile(entry=entry, score=score, pinned=pinned)


def candidate_files(tree: RepositoryTree, policy: ScoringPolicy) -> List[TreeEntry]:
    """Files eligible for selection: blobs under the size cutoff, not vendored."""
    return [
        entry
        for entry in tree.files()
        if entry.size <= policy.max_file_bytes and not is_excluded(entry.path)
    ]


def select_files(
    tree: RepositoryTree,
    project_type: ProjectType,
    assignment_keywords: Iterable[str] = (),
    *,
    policy: ScoringPolicy | None = None,
) -> List[ScoredFile]:
    """Score eligible files and return the highest-ranked subset.

    Always-important files are pinned ahead of everything else so the readme
    and manifests survive the cut even when type-specific files outscore them.
    Remaining files are ordered by descending score, then path, and files that
    scored nothing are never selected.
    """
    policy = policy or ScoringPolicy()
    patterns = PROJECT_PATTERNS.get(project_type, PROJECT_PATTERNS[ProjectType.UNKNOWN])
    emphasise_tests = mentions_testing(assignment_keywords)

    scored = [
        score_file(entry, patterns, emphasise_tests=emphasise_tests, policy=policy)
        for entry in candidate_files(tree, policy)
    ]
    ranked = sorted(
        (item for item in scored if item.score > 0),
        key=lambda item: (not item.pinned, -item.score, item.entry.path),
    )
    return ranked[: policy.max_files]


def selected_paths(selected: Sequence[ScoredFile]) -> List[str]:
    return [item.entry.path for item in selected]


__all__ = [
    "PROJECT_PATTERNS",
    "ScoringPolicy",
    "SelectionPatterns",
    "candidate_files",
    "is_always_important",
    "score_file",
    "select_files",
    "selected_paths",
]
