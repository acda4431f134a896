"""Builds assessment prompts from evidence and rubrics."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Mapping

from jinja2 import Environment, FileSystemLoader

from ..models import EvidenceBundle, ReferenceExample, Rubric
from .constants import (
    ALLOWED_REMARKS,
    REMARK_GUIDELINES,
    SOURCE_TYPE_GUIDANCE,
    SOURCE_TYPE_LABELS,
    SYSTEM_PROMPT,
)

_METADATA_VALUE_CHARS = 300


class PromptBuilder:
    """Renders the assessment template.

    Section order is fixed: context, evidence, reference example, criteria,
    red flags, bonus checks, custom instructions, type guidance, then the
    output schema. Identical inputs always render identical prompts.
    """

    SYSTEM_PROMPT = SYSTEM_PROMPT
    TEMPLATE_NAME = "assessment.j2"

    def __init__(self, templates_dir: Path | None = None) -> None:
        self.templates_dir = templates_dir or Path(__file__).with_name("templates")
        self._env = self._create_env(self.templates_dir)

    def build(
        self,
        evidence: EvidenceBundle,
        rubric: Rubric,
        *,
        reference_example: ReferenceExample | None = None,
    ) -> str:
        reference = reference_example or rubric.reference_example
        context = {
            "title": rubric.title,
            "description": rubric.description,
            "source_label": SOURCE_TYPE_LABELS[evidence.source_type],
            "evidence": evidence.summary_text.strip(),
            "reference": reference,
            "reference_metadata": _format_metadata(reference.metadata) if reference else [],
            "criteria": list(rubric.criteria),
            "red_flags": list(rubric.red_flags),
            "conditional_checks": list(rubric.conditional_checks),
            "custom_instructions": (rubric.custom_instructions or "").strip(),
            "guidance": SOURCE_TYPE_GUIDANCE[evidence.source_type],
            "remark_guidelines": list(REMARK_GUIDELINES.items()),
            "allowed_remarks": ALLOWED_REMARKS,
        }
        template = self._env.get_template(self.TEMPLATE_NAME)
        return template.render(**context).strip() + "\n"

    @staticmethod
    def _create_env(templates_dir: Path) -> Environment:
        directories = [str(templates_dir)]
        default_dir = str(Path(__file__).with_name("templates"))
        if default_dir not in directories:
            directories.append(default_dir)
        loader = FileSystemLoader(directories)
        return Environment(loader=loader, autoescape=False, trim_blocks=True, lstrip_blocks=True)


def _format_metadata(metadata: Mapping[str, Any]) -> List[str]:
    lines: List[str] = []
    for key in sorted(metadata):
        value = metadata[key]
        if isinstance(value, (dict, list, tuple)):
            rendered = json.dumps(value, sort_keys=True, default=str)
        else:
            rendered = str(value)
        if len(rendered) > _METADATA_VALUE_CHARS:
            rendered = rendered[: _METADATA_VALUE_CHARS - 3] + "..."
        lines.append(f"{key}: {rendered}")
    return lines


def build_prompt(evidence: EvidenceBundle, rubric: Rubric) -> str:
    """Convenience wrapper using the packaged template."""
    return PromptBuilder().build(evidence, rubric)


__all__ = ["PromptBuilder", "build_prompt"]
