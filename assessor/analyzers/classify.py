"""Project type classification as an ordered rule table.

Each rule is a named predicate over a :class:`ClassificationContext`. Rules are
evaluated top-to-bottom and the first match decides the label, so more
specific frameworks must appear before the generic runtime they build on
(``nextjs`` before ``react`` before ``node``).
"""

from __future__ import annotations

import json
import re
from collections import Counter
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Mapping, Optional, Sequence, Tuple

from ..models import Classification, ProjectType, RepositoryTree
from .utils import detect_language, is_excluded


@dataclass(frozen=True)
class ClassificationContext:
    """Pre-computed facts that rule predicates inspect."""

    paths: FrozenSet[str]
    root_names: FrozenSet[str]
    node_dependencies: FrozenSet[str]
    python_requirements: str
    majority_language: Optional[str]

    def has_root(self, *names: str) -> bool:
        return any(name in self.root_names for name in names)

    def has_root_matching(self, pattern: str) -> bool:
        compiled = re.compile(pattern)
        return any(compiled.match(name) for name in self.root_names)

    def has_path_matching(self, pattern: str) -> bool:
        compiled = re.compile(pattern)
        return any(compiled.search(path) for path in self.paths)

    def depends_on(self, package: str) -> bool:
        return package in self.node_dependencies

    def requires(self, package: str) -> bool:
        pattern = rf"(?i)(?:^|[\s\"'\[,=]){re.escape(package)}(?![\w-])"
        return re.search(pattern, self.python_requirements) is not None


@dataclass(frozen=True)
class ProjectTypeRule:
    """Predicate and the label it assigns."""

    name: str
    predicate: Callable[[ClassificationContext], bool]
    label: ProjectType


DEFAULT_RULES: Tuple[ProjectTypeRule, ...] = (
    ProjectTypeRule(
        "next-config-or-dependency",
        lambda ctx: ctx.has_root_matching(r"^next\.config\.(js|mjs|cjs|ts)$") or ctx.depends_on("next"),
        ProjectType.NEXTJS,
    ),
    ProjectTypeRule(
        "angular-workspace",
        lambda ctx: ctx.has_root("angular.json") or ctx.depends_on("@angular/core"),
        ProjectType.ANGULAR,
    ),
    ProjectTypeRule(
        "svelte-config-or-dependency",
        lambda ctx: ctx.has_root_matching(r"^svelte\.config\.(js|mjs|ts)$") or ctx.depends_on("svelte"),
        ProjectType.SVELTE,
    ),
    ProjectTypeRule(
        "vue-config-or-dependency",
        lambda ctx: ctx.has_root_matching(r"^vue\.config\.(js|ts)$")
        or ctx.depends_on("vue")
        or ctx.depends_on("nuxt"),
        ProjectType.VUE,
    ),
    ProjectTypeRule("react-dependency", lambda ctx: ctx.depends_on("react"), ProjectType.REACT),
    ProjectTypeRule("express-dependency", lambda ctx: ctx.depends_on("express"), ProjectType.EXPRESS),
    ProjectTypeRule(
        "node-manifest",
        lambda ctx: ctx.has_root("package.json")
        and ctx.majority_language in {"JavaScript", "TypeScript", None},
        ProjectType.NODE,
    ),
    ProjectTypeRule(
        "django-manage-or-requirement",
        lambda ctx: ctx.has_root("manage.py") or ctx.requires("django"),
        ProjectType.DJANGO,
    ),
    ProjectTypeRule("fastapi-requirement", lambda ctx: ctx.requires("fastapi"), ProjectType.FASTAPI),
    ProjectTypeRule("flask-requirement", lambda ctx: ctx.requires("flask"), ProjectType.FLASK),
    ProjectTypeRule(
        "python-manifest",
        lambda ctx: ctx.has_root("requirements.txt", "pyproject.toml", "setup.py", "Pipfile"),
        ProjectType.PYTHON,
    ),
    ProjectTypeRule("go-module", lambda ctx: ctx.has_root("go.mod"), ProjectType.GO),
    ProjectTypeRule("cargo-manifest", lambda ctx: ctx.has_root("Cargo.toml"), ProjectType.RUST),
    ProjectTypeRule(
        "java-build",
        lambda ctx: ctx.has_root("pom.xml", "build.gradle", "build.gradle.kts"),
        ProjectType.JAVA,
    ),
    ProjectTypeRule(
        "static-index",
        lambda ctx: ctx.has_path_matching(r"(^|/)index\.html?$")
        and ctx.majority_language in {"HTML", "CSS", "JavaScript"},
        ProjectType.STATIC,
    ),
    ProjectTypeRule("majority-python", lambda ctx: ctx.majority_language == "Python", ProjectType.PYTHON),
    ProjectTypeRule("majority-go", lambda ctx: ctx.majority_language == "Go", ProjectType.GO),
    ProjectTypeRule("majority-rust", lambda ctx: ctx.majority_language == "Rust", ProjectType.RUST),
    ProjectTypeRule("majority-java", lambda ctx: ctx.majority_language in {"Java", "Kotlin"}, ProjectType.JAVA),
    ProjectTypeRule(
        "majority-javascript",
        lambda ctx: ctx.majority_language in {"JavaScript", "TypeScript"},
        ProjectType.NODE,
    ),
    ProjectTypeRule("majority-html", lambda ctx: ctx.majority_language in {"HTML", "CSS"}, ProjectType.STATIC),
)


def build_context(tree: RepositoryTree, sample_contents: Mapping[str, str]) -> ClassificationContext:
    """Derive the facts rule predicates need from a tree and manifest contents."""
    files = [entry for entry in tree.files() if not is_excluded(entry.path)]
    paths = frozenset(entry.path for entry in files)
    root_names = frozenset(path for path in paths if "/" not in path)

    counts: Counter[str] = Counter()
    for entry in files:
        language = detect_language(entry.path)
        if language is not None:
            counts[language] += 1
    majority = _majority(counts)

    node_dependencies = _node_dependencies(sample_contents.get("package.json", ""))
    python_requirements = "\n".join(
        sample_contents.get(name, "")
        for name in ("requirements.txt", "pyproject.toml", "Pipfile", "setup.py")
    )

    return ClassificationContext(
        paths=paths,
        root_names=root_names,
        node_dependencies=node_dependencies,
        python_requirements=python_requirements,
        majority_language=majority,
    )


def classify_project_type(
    tree: RepositoryTree,
    sample_contents: Mapping[str, str],
    rules: Sequence[ProjectTypeRule] = DEFAULT_RULES,
) -> Classification:
    """Return the label of the first rule that matches, or ``unknown``."""
    context = build_context(tree, sample_contents)
    for rule in rules:
        if rule.predicate(context):
            return Classification(project_type=rule.label, rule=rule.name)
    return Classification(project_type=ProjectType.UNKNOWN, rule="fallback")


def _majority(counts: Counter[str]) -> Optional[str]:
    if not counts:
        return None
    # Ties resolve alphabetically so the result never depends on listing order.
    ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return ordered[0][0]


def _node_dependencies(package_json: str) -> FrozenSet[str]:
    if not package_json.strip():
        return frozenset()
    try:
        data = json.loads(package_json)
    except json.JSONDecodeError:
        # Fall back to a keyword scan for manifests that are not strict JSON.
        return frozenset(re.findall(r"\"(@?[\w./-]+)\"\s*:\s*\"[\^~<>=*\w.\-| ]*\"", package_json))
    if not isinstance(data, dict):
        return frozenset()
    names: Dict[str, None] = {}
    for key in ("dependencies", "devDependencies", "peerDependencies"):
        section = data.get(key)
        if isinstance(section, dict):
            for name in section:
                names[str(name)] = None
    return frozenset(names)


def manifest_paths(tree: RepositoryTree) -> list[str]:
    """Return root-level manifest files worth sampling before classification."""
    wanted = {"package.json", "requirements.txt", "pyproject.toml", "Pipfile", "setup.py"}
    return sorted(
        entry.path
        for entry in tree.files()
        if entry.path in wanted
    )


__all__ = [
    "ClassificationContext",
    "DEFAULT_RULES",
    "ProjectTypeRule",
    "build_context",
    "classify_project_type",
    "manifest_paths",
]
