"""Tests for evidence collection across submission types."""

from __future__ import annotations

import pytest

from assessor.analyzers.repository import RepositoryAnalyzer
from assessor.analyzers.website import WebsiteProber
from assessor.errors import InvalidReference, InvalidURL
from assessor.evidence import MAX_TEXT_CHARS, EvidenceCollector, build_submission, cap_text
from assessor.models import Rubric, SourceType
from tests._fixtures.fakes import FakeGitHubClient


@pytest.fixture
def collector() -> EvidenceCollector:
    client = FakeGitHubClient(
        {
            "README.md": "# Todo API",
            "requirements.txt": "fastapi\nuvicorn\n",
            "app/main.py": "from fastapi import FastAPI\napp = FastAPI()\n",
            "tests/test_main.py": "def test_ok():\n    assert True\n",
        }
    )
    return EvidenceCollector(RepositoryAnalyzer(client), WebsiteProber())


def test_text_evidence_is_capped(collector: EvidenceCollector) -> None:
    evidence = collector.collect(build_submission("text", text="a" * (MAX_TEXT_CHARS + 500)))

    assert evidence.source_type is SourceType.TEXT
    assert evidence.summary_text.endswith("[Content truncated for assessment]")
    assert len(evidence.summary_text) <= MAX_TEXT_CHARS + 40
    assert evidence.metadata == {"length": MAX_TEXT_CHARS + 500, "truncated": True}


def test_short_text_is_kept_verbatim(collector: EvidenceCollector) -> None:
    evidence = collector.collect(build_submission(SourceType.TEXT, text="  My answer.\x00 "))

    assert evidence.summary_text == "My answer."
    assert evidence.metadata["truncated"] is False


def test_document_evidence_lists_details(collector: EvidenceCollector) -> None:
    submission = build_submission(
        "document",
        content="One two three four.",
        filename="essay.pdf",
        file_type="pdf",
        page_count=2,
    )

    evidence = collector.collect(submission)

    assert evidence.summary_text.startswith("# Document Submission")
    assert "- **Filename:** essay.pdf" in evidence.summary_text
    assert "- **Word Count:** 4" in evidence.summary_text
    assert "- **Pages:** 2" in evidence.summary_text
    assert evidence.summary_text.endswith("## Content\nOne two three four.")
    assert evidence.metadata["word_count"] == 4


def test_repository_evidence_uses_rubric_keywords(collector: EvidenceCollector) -> None:
    rubric = Rubric(title="Todo API", description="Include automated testing")

    evidence = collector.collect(build_submission("github_repo", url="https://github.com/octo/todo"), rubric)

    assert evidence.source_type is SourceType.GITHUB_REPO
    assert evidence.metadata["project_type"] == "fastapi"
    assert evidence.metadata["selected_files"][0] == "README.md"
    assert "tests/test_main.py" in evidence.metadata["selected_files"]


def test_repository_reference_errors_propagate(collector: EvidenceCollector) -> None:
    with pytest.raises(InvalidReference):
        collector.collect(build_submission("github_repo", url="not-a-repo"))


def test_website_evidence_never_raises_for_network(monkeypatch, collector: EvidenceCollector) -> None:
    def fake_urlopen(request, timeout=None):
        raise ConnectionRefusedError("refused")

    monkeypatch.setattr("assessor.analyzers.website.urlopen", fake_urlopen)

    evidence = collector.collect(build_submission("website", url="offline.example"))

    assert evidence.source_type is SourceType.WEBSITE
    assert evidence.metadata["reachable"] is False
    assert evidence.metadata["url"] == "https://offline.example/"
    assert "Not Accessible" in evidence.summary_text


def test_website_evidence_rejects_bad_urls(collector: EvidenceCollector) -> None:
    with pytest.raises(InvalidURL):
        collector.collect(build_submission("website", url="ftp://files.example"))


def test_screenshot_evidence(collector: EvidenceCollector) -> None:
    submission = build_submission(
        "screenshot",
        image_url="https://cdn.example/shot.png",
        width=1280,
        height=720,
        file_size=2048,
        file_type="png",
    )

    evidence = collector.collect(submission)

    assert evidence.summary_text.startswith("# Screenshot Submission")
    assert "- **Dimensions:** 1280x720" in evidence.summary_text
    assert "- **File Size:** 2.0 KB" in evidence.summary_text
    assert "No description was provided with the image." in evidence.summary_text


@pytest.mark.parametrize(
    ("source_type", "values"),
    [("text", {}), ("document", {"content": "  "}), ("github_repo", {}), ("screenshot", {"url": "x"}), ("video", {"url": "x"})],
)
def test_build_submission_validates_required_fields(source_type: str, values: dict) -> None:
    with pytest.raises(InvalidReference):
        build_submission(source_type, **values)


def test_cap_text_leaves_short_text_alone() -> None:
    assert cap_text("short", 10) == "short"
    assert cap_text("x" * 20, 10) == "x" * 10 + "\n\n[Content truncated for assessment]"


def test_unknown_submission_objects_are_rejected(collector: EvidenceCollector) -> None:
    with pytest.raises(TypeError):
        collector.collect(object())  # type: ignore[arg-type]
