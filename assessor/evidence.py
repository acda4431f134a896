"""Evidence collection: one bounded summary per submission."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from .analyzers.repository import RepositoryAnalyzer, extract_assignment_keywords
from .analyzers.utils import format_size, sanitize_text, truncate
from .analyzers.website import WebsiteProber, build_summary as build_website_summary
from .errors import InvalidReference
from .logging import get_logger
from .models import (
    DocumentSubmission,
    EvidenceBundle,
    GithubRepoSubmission,
    Rubric,
    ScreenshotSubmission,
    SourceType,
    SubmissionReference,
    TextSubmission,
    WebsiteSubmission,
)

_LOGGER = get_logger("evidence")

MAX_TEXT_CHARS = 8000
TRUNCATION_MARKER = "\n\n[Content truncated for assessment]"


def build_submission(source_type: SourceType | str, **values: Any) -> SubmissionReference:
    """Create the submission variant for ``source_type`` from loose field values.

    Raises :class:`InvalidReference` when the variant's required field is
    missing. Unknown fields for the chosen variant are ignored.
    """
    try:
        kind = SourceType(source_type)
    except ValueError as exc:
        raise InvalidReference(f"Unknown submission type: {source_type}") from exc

    def required(name: str) -> str:
        value = values.get(name)
        if not isinstance(value, str) or not value.strip():
            raise InvalidReference(f"{kind.value} submissions require '{name}'")
        return value

    if kind is SourceType.TEXT:
        return TextSubmission(text=required("text"))
    if kind is SourceType.DOCUMENT:
        return DocumentSubmission(
            content=required("content"),
            filename=values.get("filename"),
            file_type=values.get("file_type"),
            word_count=values.get("word_count"),
            page_count=values.get("page_count"),
        )
    if kind is SourceType.GITHUB_REPO:
        return GithubRepoSubmission(url=required("url"))
    if kind is SourceType.WEBSITE:
        return WebsiteSubmission(url=required("url"))
    return ScreenshotSubmission(
        image_url=required("image_url"),
        description=values.get("description"),
        width=values.get("width"),
        height=values.get("height"),
        file_size=values.get("file_size"),
        file_type=values.get("file_type"),
    )


def cap_text(text: str, limit: int = MAX_TEXT_CHARS) -> str:
    """Cap text at ``limit`` characters, appending a marker when cut."""
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + TRUNCATION_MARKER


class EvidenceCollector:
    """Dispatches a submission to the matching gatherer.

    Only reference-resolution errors escape ``collect``: invalid references,
    missing repositories, rate limits and hosting API timeouts.
    """

    def __init__(self, repository_analyzer: RepositoryAnalyzer, website_prober: WebsiteProber) -> None:
        self.repository_analyzer = repository_analyzer
        self.website_prober = website_prober
        self._handlers: Dict[type, Callable[..., EvidenceBundle]] = {
            TextSubmission: self._collect_text,
            DocumentSubmission: self._collect_document,
            GithubRepoSubmission: self._collect_repository,
            WebsiteSubmission: self._collect_website,
            ScreenshotSubmission: self._collect_screenshot,
        }

    def collect(self, submission: SubmissionReference, rubric: Rubric | None = None) -> EvidenceBundle:
        handler = self._handlers.get(type(submission))
        if handler is None:
            raise TypeError(f"Unsupported submission type: {type(submission).__name__}")
        _LOGGER.debug("Collecting %s evidence", submission.source_type.value)
        return handler(submission, rubric)

    def _collect_text(self, submission: TextSubmission, rubric: Optional[Rubric]) -> EvidenceBundle:
        text = sanitize_text(submission.text)
        return EvidenceBundle(
            source_type=SourceType.TEXT,
            summary_text=cap_text(text),
            metadata={"length": len(text), "truncated": len(text) > MAX_TEXT_CHARS},
        )

    def _collect_document(self, submission: DocumentSubmission, rubric: Optional[Rubric]) -> EvidenceBundle:
        content = sanitize_text(submission.content)
        details: List[str] = []
        if submission.filename:
            details.append(f"- **Filename:** {truncate(submission.filename, 200)}")
        if submission.file_type:
            details.append(f"- **File Type:** {submission.file_type}")
        word_count = submission.word_count if submission.word_count is not None else len(content.split())
        details.append(f"- **Word Count:** {word_count}")
        if submission.page_count is not None:
            details.append(f"- **Pages:** {submission.page_count}")

        summary = "# Document Submission\n\n" + "\n".join(details) + "\n\n## Content\n" + cap_text(content)
        return EvidenceBundle(
            source_type=SourceType.DOCUMENT,
            summary_text=summary,
            metadata={
                "filename": submission.filename,
                "file_type": submission.file_type,
                "word_count": word_count,
                "page_count": submission.page_count,
                "truncated": len(content) > MAX_TEXT_CHARS,
            },
        )

    def _collect_repository(self, submission: GithubRepoSubmission, rubric: Optional[Rubric]) -> EvidenceBundle:
        keywords = extract_assignment_keywords(rubric)
        return self.repository_analyzer.analyze(submission.url, keywords)

    def _collect_website(self, submission: WebsiteSubmission, rubric: Optional[Rubric]) -> EvidenceBundle:
        criteria = list(rubric.criteria) if rubric else []
        assessment = self.website_prober.assess(submission.url, criteria)
        probe = assessment.probe
        return EvidenceBundle(
            source_type=SourceType.WEBSITE,
            summary_text=build_website_summary(assessment),
            metadata={
                "url": probe.url,
                "reachable": probe.reachable,
                "status_code": probe.status_code,
                "response_time_ms": probe.response_time_ms,
                "has_https": probe.has_https,
            },
        )

    def _collect_screenshot(self, submission: ScreenshotSubmission, rubric: Optional[Rubric]) -> EvidenceBundle:
        lines = ["# Screenshot Submission", "", f"- **Image URL:** {truncate(submission.image_url, 300)}"]
        if submission.width and submission.height:
            lines.append(f"- **Dimensions:** {submission.width}x{submission.height}")
        if submission.file_size is not None:
            lines.append(f"- **File Size:** {format_size(submission.file_size)}")
        if submission.file_type:
            lines.append(f"- **Format:** {submission.file_type}")
        description = sanitize_text(submission.description or "")
        if description:
            lines.extend(["", "## Description", cap_text(description)])
        else:
            lines.extend(["", "No description was provided with the image."])
        return EvidenceBundle(
            source_type=SourceType.SCREENSHOT,
            summary_text="\n".join(lines) + "\n",
            metadata={
                "image_url": submission.image_url,
                "width": submission.width,
                "height": submission.height,
                "file_type": submission.file_type,
            },
        )


__all__ = ["EvidenceCollector", "MAX_TEXT_CHARS", "build_submission", "cap_text"]
