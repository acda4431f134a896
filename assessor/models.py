"""Core data models shared across assessor components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union


class SourceType(str, Enum):
    """Kinds of work artifacts a submission can reference."""

    TEXT = "text"
    DOCUMENT = "document"
    GITHUB_REPO = "github_repo"
    WEBSITE = "website"
    SCREENSHOT = "screenshot"


class ProjectType(str, Enum):
    """Technology stack labels produced by repository classification."""

    NEXTJS = "nextjs"
    REACT = "react"
    VUE = "vue"
    ANGULAR = "angular"
    SVELTE = "svelte"
    EXPRESS = "express"
    NODE = "node"
    DJANGO = "django"
    FASTAPI = "fastapi"
    FLASK = "flask"
    PYTHON = "python"
    GO = "go"
    RUST = "rust"
    JAVA = "java"
    STATIC = "static"
    UNKNOWN = "unknown"


class BackendTier(str, Enum):
    """Reasoning backend size variants, cheapest first."""

    FAST = "fast"
    BALANCED = "balanced"
    CAPABLE = "capable"


class Remark(str, Enum):
    """Allowed verdict categories."""

    EXCELLENT = "Excellent"
    GOOD = "Good"
    CAN_IMPROVE = "Can Improve"
    NEEDS_IMPROVEMENT = "Needs Improvement"


# Submission references


@dataclass(frozen=True)
class TextSubmission:
    """Plain text answer typed by the submitter."""

    text: str

    @property
    def source_type(self) -> SourceType:
        return SourceType.TEXT


@dataclass(frozen=True)
class DocumentSubmission:
    """Document whose text was extracted upstream."""

    content: str
    filename: Optional[str] = None
    file_type: Optional[str] = None
    word_count: Optional[int] = None
    page_count: Optional[int] = None

    @property
    def source_type(self) -> SourceType:
        return SourceType.DOCUMENT


@dataclass(frozen=True)
class GithubRepoSubmission:
    """Link to a hosted source repository."""

    url: str

    @property
    def source_type(self) -> SourceType:
        return SourceType.GITHUB_REPO


@dataclass(frozen=True)
class WebsiteSubmission:
    """Link to a deployed website."""

    url: str

    @property
    def source_type(self) -> SourceType:
        return SourceType.WEBSITE


@dataclass(frozen=True)
class ScreenshotSubmission:
    """Uploaded image with metadata extracted upstream."""

    image_url: str
    description: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    file_size: Optional[int] = None
    file_type: Optional[str] = None

    @property
    def source_type(self) -> SourceType:
        return SourceType.SCREENSHOT


SubmissionReference = Union[
    TextSubmission,
    DocumentSubmission,
    GithubRepoSubmission,
    WebsiteSubmission,
    ScreenshotSubmission,
]


# Repository analysis


@dataclass(frozen=True)
class RepositoryReference:
    """Owner/name pair parsed from a repository URL."""

    owner: str
    repo: str

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass(frozen=True)
class TreeEntry:
    """Single entry from a recursive repository listing."""

    path: str
    size: int
    kind: str

    @property
    def is_file(self) -> bool:
        return self.kind == "blob"


@dataclass
class RepositoryTree:
    """Flat, ordered listing of repository entries."""

    entries: List[TreeEntry]
    truncated: bool = False

    def files(self) -> List[TreeEntry]:
        return [entry for entry in self.entries if entry.is_file]


@dataclass
class RepositorySnapshot:
    """Repository metadata and tree as fetched from the hosting API."""

    reference: RepositoryReference
    default_branch: str
    description: Optional[str]
    tree: RepositoryTree
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ScoredFile:
    """Candidate file and its selection score."""

    entry: TreeEntry
    score: int
    pinned: bool = False


@dataclass(frozen=True)
class Classification:
    """Project type label and the rule that produced it."""

    project_type: ProjectType
    rule: str


# Evidence and rubric


@dataclass
class EvidenceBundle:
    """Normalized, length-bounded representation of a submission."""

    source_type: SourceType
    summary_text: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ReferenceExample:
    """Instructor-provided example answer used as a quality benchmark."""

    title: str
    content: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Rubric:
    """Grading policy for one question."""

    title: str
    description: str
    criteria: Tuple[str, ...] = ()
    red_flags: Tuple[str, ...] = ()
    conditional_checks: Tuple[str, ...] = ()
    custom_instructions: Optional[str] = None
    reference_example: Optional[ReferenceExample] = None
    reference_examples: Tuple[ReferenceExample, ...] = ()


# Verdicts


@dataclass(frozen=True)
class Verdict:
    """Structured outcome of one assessment."""

    remark: str
    feedback: str
    criteria_met: Tuple[str, ...]
    areas_for_improvement: Tuple[str, ...]
    confidence: float
    backend_used: str
    latency_ms: int

    @property
    def is_fallback(self) -> bool:
        return self.backend_used == "fallback"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "remark": self.remark,
            "feedback": self.feedback,
            "criteria_met": list(self.criteria_met),
            "areas_for_improvement": list(self.areas_for_improvement),
            "confidence": self.confidence,
            "backend_used": self.backend_used,
            "latency_ms": self.latency_ms,
        }


@dataclass(frozen=True)
class CriteriaComparison:
    """How many rubric criteria the verdict reports as met."""

    total_criteria: int
    criteria_met: int
    completion_percentage: int


@dataclass
class AssessmentOutcome:
    """Everything produced for one submission."""

    verdict: Verdict
    evidence: EvidenceBundle
    comparison: CriteriaComparison
    reference_example_used: Optional[str] = None
