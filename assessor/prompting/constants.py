"""Shared constants for assessment prompting."""

from __future__ import annotations

from ..models import Remark, SourceType

SYSTEM_PROMPT = (
    "You are an expert educational assessor. "
    "Always respond with valid JSON in the exact format requested."
)

ALLOWED_REMARKS: tuple[str, ...] = tuple(remark.value for remark in Remark)

SOURCE_TYPE_LABELS: dict[SourceType, str] = {
    SourceType.TEXT: "Text response",
    SourceType.DOCUMENT: "Document",
    SourceType.GITHUB_REPO: "GitHub repository",
    SourceType.WEBSITE: "Website",
    SourceType.SCREENSHOT: "Screenshot",
}

SOURCE_TYPE_GUIDANCE: dict[SourceType, tuple[str, ...]] = {
    SourceType.TEXT: (
        "Assess clarity of writing and expression",
        "Check for technical accuracy and depth",
        "Evaluate structure and organization",
        "Look for evidence of understanding rather than memorization",
    ),
    SourceType.DOCUMENT: (
        "Assess content completeness and accuracy",
        "Check formatting and professional presentation",
        "Evaluate logical flow and structure",
        "Look for proper use of technical terminology",
        "Consider adherence to assignment requirements",
    ),
    SourceType.GITHUB_REPO: (
        "Assess code quality, organization and structure",
        "Check for proper documentation (README, comments)",
        "Evaluate best practices and coding standards",
        "Look for working functionality and error handling",
        "Consider repository organization and file structure",
    ),
    SourceType.WEBSITE: (
        "Assess functionality and user experience",
        "Check responsive design and accessibility",
        "Evaluate technical implementation against the automated checks",
        "Look for proper implementation of requirements",
        "Consider performance and optimization",
    ),
    SourceType.SCREENSHOT: (
        "Assess visual elements and layout",
        "Check for completeness of required components",
        "Evaluate quality and clarity of the image",
        "Consider adherence to design requirements",
    ),
}

REMARK_GUIDELINES: dict[str, str] = {
    Remark.EXCELLENT.value: "Exceeds expectations, meets all or nearly all criteria with exceptional quality",
    Remark.GOOD.value: "Meets most criteria (70% or more) with minor improvements needed",
    Remark.CAN_IMPROVE.value: "Meets some criteria (40-69%) but has notable gaps",
    Remark.NEEDS_IMPROVEMENT.value: "Meets few criteria (under 40%) or has significant issues",
}


__all__ = [
    "ALLOWED_REMARKS",
    "REMARK_GUIDELINES",
    "SOURCE_TYPE_GUIDANCE",
    "SOURCE_TYPE_LABELS",
    "SYSTEM_PROMPT",
]
