"""Repository analyzer: tree fetch, classification, selection and summary."""

from __future__ import annotations

import re
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence

from ..errors import AssessorError
from ..logging import get_logger
from ..models import (
    EvidenceBundle,
    RepositoryReference,
    RepositorySnapshot,
    RepositoryTree,
    Rubric,
    ScoredFile,
    SourceType,
)
from ..stores.cache import Cache
from .classify import classify_project_type, manifest_paths
from .reference import parse_reference
from .selection import ScoringPolicy, select_files, selected_paths
from .summary import build_summary
from .utils import decode_base64_content

_LOGGER = get_logger("analyzers.repository")

_WORD = re.compile(r"[a-z0-9][a-z0-9+#.-]*")


class RepositoryClient(Protocol):
    """The hosting API calls the analyzer depends on."""

    def get_repository_metadata(self, owner: str, repo: str) -> Dict[str, Any]:
        ...

    def get_tree(self, owner: str, repo: str, ref: str, *, recursive: bool = True) -> RepositoryTree:
        ...

    def get_file_content(self, owner: str, repo: str, path: str) -> str:
        ...


class RepositoryAnalyzer:
    """Turns a repository URL into a bounded evidence summary."""

    CACHE_PREFIX = "github:"

    def __init__(
        self,
        client: RepositoryClient,
        *,
        cache: Cache | None = None,
        cache_ttl: float = 3600.0,
        policy: ScoringPolicy | None = None,
        batch_size: int = 10,
    ) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self.client = client
        self.cache = cache
        self.cache_ttl = cache_ttl
        self.policy = policy or ScoringPolicy()
        self.batch_size = batch_size

    def analyze(self, url: str, assignment_keywords: Iterable[str] = ()) -> EvidenceBundle:
        """Analyze the repository at ``url``.

        Raises :class:`InvalidReference`, :class:`NotFound`,
        :class:`RateLimited` or :class:`FetchTimeout`; individual file
        failures are skipped.
        """
        reference = parse_reference(url)
        keywords = list(assignment_keywords)
        snapshot = self.fetch_snapshot(reference)

        manifests = self.fetch_contents(reference, manifest_paths(snapshot.tree))
        classification = classify_project_type(snapshot.tree, manifests)
        _LOGGER.info(
            "Classified %s as %s (rule %s)",
            reference.slug,
            classification.project_type.value,
            classification.rule,
        )

        selected = select_files(
            snapshot.tree,
            classification.project_type,
            keywords,
            policy=self.policy,
        )
        _LOGGER.debug("Selected files for %s: %s", reference.slug, _describe_selection(selected))
        pending = [path for path in selected_paths(selected) if path not in manifests]
        contents = dict(manifests)
        contents.update(self.fetch_contents(reference, pending))
        fetched = sum(1 for path in selected_paths(selected) if path in contents)
        _LOGGER.info("Fetched %d of %d selected files for %s", fetched, len(selected), reference.slug)

        summary = build_summary(snapshot, classification, selected, contents)
        return EvidenceBundle(
            source_type=SourceType.GITHUB_REPO,
            summary_text=summary,
            metadata={
                "repository": reference.slug,
                "default_branch": snapshot.default_branch,
                "project_type": classification.project_type.value,
                "classification_rule": classification.rule,
                "file_count": len(snapshot.tree.files()),
                "selected_files": selected_paths(selected),
                "truncated": snapshot.tree.truncated,
            },
        )

    def fetch_snapshot(self, reference: RepositoryReference) -> RepositorySnapshot:
        """Return metadata and tree, served from the cache when possible."""
        key = f"{self.CACHE_PREFIX}{reference.slug}"
        if self.cache is not None:
            cached = self.cache.get(key)
            if isinstance(cached, RepositorySnapshot):
                _LOGGER.debug("Cache hit for %s", key)
                return cached
            _LOGGER.debug("Cache miss for %s", key)

        snapshot = self.fetch_tree(reference)
        if self.cache is not None:
            self.cache.set(key, snapshot, self.cache_ttl)
        return snapshot

    def fetch_tree(self, reference: RepositoryReference) -> RepositorySnapshot:
        """One metadata call for the default branch, then one recursive listing."""
        metadata = self.client.get_repository_metadata(reference.owner, reference.repo)
        branch = metadata.get("default_branch") or "main"
        tree = self.client.get_tree(reference.owner, reference.repo, branch, recursive=True)
        _LOGGER.info("Listed %d entries for %s@%s", len(tree.entries), reference.slug, branch)
        return RepositorySnapshot(
            reference=reference,
            default_branch=branch,
            description=metadata.get("description"),
            tree=tree,
            metadata={
                key: metadata.get(key)
                for key in ("language", "stargazers_count", "forks_count", "updated_at", "size")
                if metadata.get(key) is not None
            },
        )

    def fetch_contents(self, reference: RepositoryReference, paths: Sequence[str]) -> Dict[str, str]:
        """Fetch and decode files in fixed-size concurrent batches.

        Each batch completes before the next one starts. Failed files are
        logged and left out of the result.
        """
        contents: Dict[str, str] = {}
        if not paths:
            return contents
        with ThreadPoolExecutor(max_workers=self.batch_size) as executor:
            for start in range(0, len(paths), self.batch_size):
                batch = list(paths[start : start + self.batch_size])
                results = list(executor.map(lambda path: self._fetch_one(reference, path), batch))
                for path, content in zip(batch, results):
                    if content is not None:
                        contents[path] = content
        return contents

    def _fetch_one(self, reference: RepositoryReference, path: str) -> Optional[str]:
        try:
            encoded = self.client.get_file_content(reference.owner, reference.repo, path)
        except AssessorError as exc:
            _LOGGER.warning("Skipping %s in %s: %s", path, reference.slug, exc)
            return None
        return decode_base64_content(encoded)


def extract_assignment_keywords(rubric: Rubric | None) -> List[str]:
    """Lower-cased words longer than three characters from the rubric text.

    Order follows first appearance; duplicates are dropped.
    """
    if rubric is None:
        return []
    sources = [rubric.title, rubric.description, *rubric.criteria]
    seen: Dict[str, None] = {}
    for text in sources:
        for word in _WORD.findall((text or "").lower()):
            word = word.strip(".-")
            if len(word) > 3:
                seen.setdefault(word, None)
    return list(seen)


def _describe_selection(selected: Sequence[ScoredFile]) -> str:
    return ", ".join(f"{item.entry.path}={item.score}" for item in selected)


__all__ = ["RepositoryAnalyzer", "RepositoryClient", "extract_assignment_keywords"]
