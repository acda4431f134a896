"""Tests for the repository analyzer pipeline."""

from __future__ import annotations

import json

import pytest

from assessor.analyzers.repository import RepositoryAnalyzer, extract_assignment_keywords
from assessor.errors import InvalidReference, NotFound, RateLimited
from assessor.models import ProjectType, RepositoryReference, Rubric, SourceType
from assessor.stores.cache import MemoryCache
from tests._fixtures.fakes import FakeGitHubClient


def _nextjs_files() -> dict[str, str]:
    return {
        "README.md": "# Shop\nA storefront built with Next.js.",
        "package.json": json.dumps({"dependencies": {"next": "14.1.0", "react": "18.2.0"}}),
        "app/page.tsx": "export default function Home() { return <main>Shop</main> }",
        "app/layout.tsx": "export default function Layout({ children }) { return children }",
    }


def test_analyze_builds_nextjs_evidence() -> None:
    client = FakeGitHubClient(_nextjs_files())
    analyzer = RepositoryAnalyzer(client)

    evidence = analyzer.analyze("https://github.com/octo/shop")

    assert evidence.source_type is SourceType.GITHUB_REPO
    assert "**Project Type:** nextjs" in evidence.summary_text
    assert evidence.metadata["project_type"] == ProjectType.NEXTJS.value
    assert evidence.metadata["repository"] == "octo/shop"
    assert "README.md" in evidence.metadata["selected_files"]
    assert client.metadata_calls == 1
    assert client.tree_calls == [("octo", "shop", "main")]


def test_each_file_is_fetched_once() -> None:
    client = FakeGitHubClient(_nextjs_files())
    RepositoryAnalyzer(client).analyze("https://github.com/octo/shop")

    assert len(client.content_calls) == len(set(client.content_calls))


def test_invalid_reference_is_raised_before_any_call() -> None:
    client = FakeGitHubClient({})
    with pytest.raises(InvalidReference):
        RepositoryAnalyzer(client).analyze("https://gitlab.com/octo/shop")
    assert client.metadata_calls == 0


def test_hosting_errors_propagate() -> None:
    class _MissingClient(FakeGitHubClient):
        def get_repository_metadata(self, owner, repo):
            raise NotFound("no such repository")

    class _LimitedClient(FakeGitHubClient):
        def get_repository_metadata(self, owner, repo):
            raise RateLimited("slow down")

    with pytest.raises(NotFound):
        RepositoryAnalyzer(_MissingClient({})).analyze("https://github.com/octo/shop")
    with pytest.raises(RateLimited):
        RepositoryAnalyzer(_LimitedClient({})).analyze("https://github.com/octo/shop")


def test_individual_file_failures_are_skipped() -> None:
    client = FakeGitHubClient(_nextjs_files(), failing={"app/page.tsx"})

    evidence = RepositoryAnalyzer(client).analyze("https://github.com/octo/shop")

    assert "### app/page.tsx" not in evidence.summary_text
    assert "### app/layout.tsx" in evidence.summary_text


def test_contents_are_fetched_in_bounded_batches() -> None:
    files = {f"src/module_{index:02d}.py": "x = 1\n" for index in range(25)}
    client = FakeGitHubClient(files)
    analyzer = RepositoryAnalyzer(client, batch_size=4)

    contents = analyzer.fetch_contents(RepositoryReference("octo", "lib"), sorted(files))

    assert len(contents) == 25
    assert client.max_active <= 4


def test_snapshot_is_cached_between_runs() -> None:
    client = FakeGitHubClient(_nextjs_files())
    cache = MemoryCache()
    analyzer = RepositoryAnalyzer(client, cache=cache)

    analyzer.analyze("https://github.com/octo/shop")
    analyzer.analyze("https://github.com/octo/shop.git")

    assert client.metadata_calls == 1
    assert cache.get("github:octo/shop") is not None


def test_binary_content_is_replaced_with_marker() -> None:
    files = {"README.md": "hello", "main.py": "\x00\x01\x02binary"}
    client = FakeGitHubClient(files)

    evidence = RepositoryAnalyzer(client).analyze("https://github.com/octo/tool")

    assert "[Binary file content not displayable]" in evidence.summary_text


def test_extract_assignment_keywords_uses_rubric_text() -> None:
    rubric = Rubric(
        title="Build a REST API",
        description="Write unit tests and document the API",
        criteria=("Has tests", "Uses a database"),
    )

    keywords = extract_assignment_keywords(rubric)

    assert "build" in keywords
    assert "rest" in keywords
    assert "tests" in keywords
    assert "database" in keywords
    assert "api" not in keywords
    assert len(keywords) == len(set(keywords))
    assert extract_assignment_keywords(None) == []
