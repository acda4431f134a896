"""Shared helper utilities for analyzer implementations."""

from __future__ import annotations

import base64
import binascii
import re
from pathlib import PurePosixPath
from typing import Iterable

_LANGUAGE_BY_SUFFIX = {
    ".py": "Python",
    ".pyi": "Python",
    ".ipynb": "Jupyter Notebook",
    ".js": "JavaScript",
    ".mjs": "JavaScript",
    ".cjs": "JavaScript",
    ".jsx": "JavaScript",
    ".ts": "TypeScript",
    ".tsx": "TypeScript",
    ".vue": "Vue",
    ".svelte": "Svelte",
    ".java": "Java",
    ".kt": "Kotlin",
    ".kts": "Kotlin",
    ".go": "Go",
    ".rs": "Rust",
    ".rb": "Ruby",
    ".php": "PHP",
    ".cs": "C#",
    ".c": "C",
    ".h": "C",
    ".cpp": "C++",
    ".hpp": "C++",
    ".cc": "C++",
    ".swift": "Swift",
    ".scala": "Scala",
    ".dart": "Dart",
    ".sh": "Shell",
    ".html": "HTML",
    ".htm": "HTML",
    ".css": "CSS",
    ".scss": "SCSS",
    ".sql": "SQL",
}

_EXCLUDED_DIRS = {
    ".git",
    ".next",
    ".venv",
    "venv",
    "node_modules",
    "__pycache__",
    ".pytest_cache",
    ".idea",
    ".vscode",
    "dist",
    "build",
    "out",
    "target",
    "vendor",
    "coverage",
}

_LOCKFILES = {
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "poetry.lock",
    "Pipfile.lock",
    "Cargo.lock",
    "go.sum",
    "composer.lock",
    "Gemfile.lock",
}

_BINARY_SUFFIXES = {
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".webp",
    ".ico",
    ".svg",
    ".bmp",
    ".pdf",
    ".zip",
    ".gz",
    ".tar",
    ".jar",
    ".class",
    ".exe",
    ".dll",
    ".so",
    ".woff",
    ".woff2",
    ".ttf",
    ".eot",
    ".mp3",
    ".mp4",
    ".mov",
    ".pyc",
    ".db",
    ".sqlite",
}

MANIFEST_FILES = (
    "package.json",
    "requirements.txt",
    "pyproject.toml",
    "Pipfile",
    "setup.py",
    "go.mod",
    "Cargo.toml",
    "pom.xml",
    "build.gradle",
    "build.gradle.kts",
    "Gemfile",
    "composer.json",
)

_README_PATTERN = re.compile(r"^readme(\.(md|markdown|rst|txt))?$", re.IGNORECASE)

_CONFIG_NAME_PATTERNS = (
    re.compile(r"\.config\.(js|cjs|mjs|ts)$"),
    re.compile(r"^tsconfig(\.[\w-]+)?\.json$"),
    re.compile(r"^\.(eslintrc|prettierrc|babelrc)(\.\w+)?$"),
    re.compile(r"^(dockerfile|docker-compose\.ya?ml|makefile|procfile)$", re.IGNORECASE),
    re.compile(r"^\.env\.(example|sample)$"),
    re.compile(r"^(setup\.cfg|tox\.ini|pytest\.ini|settings\.py|angular\.json|vercel\.json|netlify\.toml)$"),
)

_CONFIG_SUFFIXES = {".toml", ".ini", ".cfg", ".yaml", ".yml"}

_TEST_PATTERNS = (
    re.compile(r"(^|/)(tests?|__tests__|spec)/", re.IGNORECASE),
    re.compile(r"(^|/)test_[^/]+$", re.IGNORECASE),
    re.compile(r"_test\.[^/.]+$", re.IGNORECASE),
    re.compile(r"\.(test|spec)\.[^/.]+$", re.IGNORECASE),
)

_DOC_SUFFIXES = {".md", ".markdown", ".rst", ".txt", ".adoc"}

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f\ufeff\ufffe\uffff]")
_NON_PRINTABLE = re.compile(r"[\x00-\x08\x0e-\x1f\x7f-\x9f]")


# Path classification


def detect_language(path: str) -> str | None:
    """Return the language implied by a file suffix, if any."""
    return _LANGUAGE_BY_SUFFIX.get(PurePosixPath(path).suffix.lower())


def is_excluded(path: str) -> bool:
    """Return True for vendored, generated, lock or binary files."""
    parts = path.split("/")
    if any(part in _EXCLUDED_DIRS for part in parts[:-1]):
        return True
    name = parts[-1]
    if name in _LOCKFILES or name == ".DS_Store":
        return True
    if name.endswith(".min.js") or name.endswith(".map"):
        return True
    return PurePosixPath(name).suffix.lower() in _BINARY_SUFFIXES


def is_readme(path: str) -> bool:
    return bool(_README_PATTERN.match(PurePosixPath(path).name))


def is_manifest(path: str) -> bool:
    return PurePosixPath(path).name in MANIFEST_FILES


def is_root_file(path: str) -> bool:
    return "/" not in path


def is_config_file(path: str) -> bool:
    name = PurePosixPath(path).name
    if is_manifest(path):
        return False
    if any(pattern.search(name) for pattern in _CONFIG_NAME_PATTERNS):
        return True
    if path.startswith(".github/workflows/"):
        return True
    return PurePosixPath(name).suffix.lower() in _CONFIG_SUFFIXES


def is_test_file(path: str) -> bool:
    return any(pattern.search(path) for pattern in _TEST_PATTERNS)


def is_doc_file(path: str) -> bool:
    """Return True for documentation files outside the repository root."""
    if is_root_file(path):
        return False
    suffix = PurePosixPath(path).suffix.lower()
    if suffix in _DOC_SUFFIXES:
        return True
    return path.lower().startswith(("docs/", "doc/", "documentation/"))


def mentions_testing(keywords: Iterable[str]) -> bool:
    """Return True when assignment keywords ask about automated tests."""
    for keyword in keywords:
        lowered = keyword.lower()
        if lowered.startswith("test") or lowered in {"pytest", "jest", "vitest", "coverage", "tdd", "unittest"}:
            return True
    return False


# Content helpers


def sanitize_text(content: str) -> str:
    """Strip control characters and byte-order marks."""
    if not content:
        return ""
    return _CONTROL_CHARS.sub("", content).strip()


def is_binary_content(content: str) -> bool:
    if not content:
        return False
    if "\x00" in content:
        return True
    non_printable = _NON_PRINTABLE.findall(content)
    return len(non_printable) / len(content) > 0.1


def decode_base64_content(encoded: str, *, max_bytes: int = 50_000) -> str:
    """Decode hosting API file content, replacing unusable payloads with markers."""
    try:
        raw = base64.b64decode(encoded or "", validate=False)
    except (binascii.Error, ValueError):
        return "[Unable to decode file content]"
    if len(raw) > max_bytes:
        return "[File too large to process]"
    text = raw.decode("utf-8", errors="replace")
    if is_binary_content(text):
        return "[Binary file content not displayable]"
    return sanitize_text(text)


def truncate(text: str, limit: int, marker: str = "...") -> str:
    """Return text no longer than limit characters, marker included."""
    if len(text) <= limit:
        return text
    if limit <= len(marker):
        return text[:limit]
    return text[: limit - len(marker)].rstrip() + marker


def format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"
