"""Submission analyzers: repository and website evidence gathering."""

from __future__ import annotations

from .classify import DEFAULT_RULES, ProjectTypeRule, classify_project_type
from .reference import parse_reference
from .repository import RepositoryAnalyzer, extract_assignment_keywords
from .selection import ScoringPolicy, select_files
from .summary import build_summary
from .website import WebsiteProber, normalize

__all__ = [
    "DEFAULT_RULES",
    "ProjectTypeRule",
    "RepositoryAnalyzer",
    "ScoringPolicy",
    "WebsiteProber",
    "build_summary",
    "classify_project_type",
    "extract_assignment_keywords",
    "normalize",
    "parse_reference",
    "select_files",
]
