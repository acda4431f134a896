"""Assessment orchestration: backend routing, prompting and validation."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Sequence

from .errors import AssessorError, RateLimited
from .evidence import EvidenceCollector
from .failsafe import FALLBACK_BACKEND, build_fallback_verdict
from .llm.runner import LLMRunner
from .logging import get_logger
from .models import (
    AssessmentOutcome,
    BackendTier,
    CriteriaComparison,
    EvidenceBundle,
    ReferenceExample,
    Rubric,
    SourceType,
    SubmissionReference,
    Verdict,
)
from .prompting.builder import PromptBuilder
from .stores.rate_limit import RateLimiter
from .validators.verdict import parse_and_validate


class AssessmentState(str, Enum):
    """Request lifecycle, logged at DEBUG as each step completes."""

    RECEIVED = "received"
    EVIDENCE_GATHERING = "evidence_gathering"
    PROMPT_BUILT = "prompt_built"
    BACKEND_INVOKED = "backend_invoked"
    VALIDATED = "validated"
    FALLBACK_APPLIED = "fallback_applied"
    DONE = "done"


@dataclass(frozen=True)
class RoutingPolicy:
    """Evidence length thresholds used to pick a backend tier."""

    low_length: int = 500
    high_length: int = 5000


_REPOSITORY_METADATA_KEYS = ("file_structure", "features")
_DOCUMENT_METADATA_KEYS = ("word_count", "topics")


def select_backend(
    source_type: SourceType,
    evidence_length: int,
    has_reference_example: bool,
    policy: RoutingPolicy | None = None,
) -> BackendTier:
    """Choose a backend tier; the first matching rule wins."""
    policy = policy or RoutingPolicy()
    if source_type in (SourceType.GITHUB_REPO, SourceType.WEBSITE):
        return BackendTier.CAPABLE
    if has_reference_example:
        return BackendTier.CAPABLE
    if evidence_length > policy.high_length:
        return BackendTier.CAPABLE
    if evidence_length < policy.low_length and source_type is SourceType.TEXT:
        return BackendTier.FAST
    return BackendTier.BALANCED


def select_reference_example(
    examples: Sequence[ReferenceExample],
    source_type: SourceType,
) -> Optional[ReferenceExample]:
    """Pick the most informative reference example for a submission type.

    A single example is used as is. Otherwise examples carrying metadata are
    preferred, and among those the ones with the metadata keys that matter
    for the submission type. Ties keep the original order.
    """
    if not examples:
        return None
    if len(examples) == 1:
        return examples[0]

    with_metadata = [example for example in examples if example.metadata]
    if not with_metadata:
        return examples[0]

    if source_type is SourceType.GITHUB_REPO:
        preferred_keys: Iterable[str] = _REPOSITORY_METADATA_KEYS
    elif source_type is SourceType.DOCUMENT:
        preferred_keys = _DOCUMENT_METADATA_KEYS
    else:
        return with_metadata[0]

    for example in with_metadata:
        if any(key in example.metadata for key in preferred_keys):
            return example
    return with_metadata[0]


def compare_criteria(criteria_met: Sequence[str], criteria: Sequence[str]) -> CriteriaComparison:
    """Count how many rubric criteria the verdict reports as met."""
    total = len(criteria)
    wanted = {criterion.strip().lower() for criterion in criteria}
    met = len({item.strip().lower() for item in criteria_met} & wanted)
    percentage = round(met * 100 / total) if total else 0
    return CriteriaComparison(total_criteria=total, criteria_met=met, completion_percentage=percentage)


class AssessmentOrchestrator:
    """Turns evidence and a rubric into a validated verdict.

    No retries happen here. Backend errors, timeouts and unusable responses
    all produce the fallback verdict instead of an exception.
    """

    def __init__(
        self,
        runner: LLMRunner,
        *,
        prompt_builder: PromptBuilder | None = None,
        routing: RoutingPolicy | None = None,
        clock=time.perf_counter,
    ) -> None:
        self.runner = runner
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.routing = routing or RoutingPolicy()
        self.logger = get_logger("orchestrator")
        self._clock = clock

    def select_backend(
        self,
        source_type: SourceType,
        evidence_length: int,
        has_reference_example: bool,
    ) -> BackendTier:
        return select_backend(source_type, evidence_length, has_reference_example, self.routing)

    def build_prompt(
        self,
        evidence: EvidenceBundle,
        rubric: Rubric,
        *,
        reference_example: ReferenceExample | None = None,
    ) -> str:
        return self.prompt_builder.build(evidence, rubric, reference_example=reference_example)

    def invoke(self, prompt: str, tier: BackendTier) -> str:
        """One chat completion; raises BackendFailure or BackendTimeout."""
        return self.runner.run(prompt, tier=tier, system=self.prompt_builder.SYSTEM_PROMPT)

    def parse_and_validate(self, raw: str, *, backend_used: str, latency_ms: int) -> Verdict:
        return parse_and_validate(raw, backend_used=backend_used, latency_ms=latency_ms)

    def resolve_reference_example(self, rubric: Rubric, source_type: SourceType) -> Optional[ReferenceExample]:
        if rubric.reference_examples:
            return select_reference_example(rubric.reference_examples, source_type)
        return rubric.reference_example

    def assess(
        self,
        evidence: EvidenceBundle,
        rubric: Rubric,
        *,
        request_id: str | None = None,
    ) -> Verdict:
        request_id = request_id or uuid.uuid4().hex[:12]
        started = self._clock()

        reference = self.resolve_reference_example(rubric, evidence.source_type)
        tier = self.select_backend(evidence.source_type, len(evidence.summary_text), reference is not None)
        model = self.runner.model_for(tier)
        self.logger.info(
            "Assessing %s evidence (%d chars) with %s tier model %s",
            evidence.source_type.value,
            len(evidence.summary_text),
            tier.value,
            model,
        )

        prompt = self.build_prompt(evidence, rubric, reference_example=reference)
        self._transition(request_id, AssessmentState.PROMPT_BUILT)

        try:
            raw = self.invoke(prompt, tier)
        except AssessorError as exc:
            self._transition(request_id, AssessmentState.BACKEND_INVOKED)
            self.logger.warning("Backend %s failed, applying fallback: %s", model, exc)
            self._transition(request_id, AssessmentState.FALLBACK_APPLIED)
            verdict = build_fallback_verdict(self._elapsed_ms(started))
            self._transition(request_id, AssessmentState.DONE)
            return verdict
        self._transition(request_id, AssessmentState.BACKEND_INVOKED)

        verdict = self.parse_and_validate(raw, backend_used=model, latency_ms=self._elapsed_ms(started))
        if verdict.backend_used == FALLBACK_BACKEND:
            self._transition(request_id, AssessmentState.FALLBACK_APPLIED)
        else:
            self._transition(request_id, AssessmentState.VALIDATED)
        self._transition(request_id, AssessmentState.DONE)
        return verdict

    def _elapsed_ms(self, started: float) -> int:
        return max(0, int((self._clock() - started) * 1000))

    def _transition(self, request_id: str, state: AssessmentState) -> None:
        self.logger.debug("assessment %s -> %s", request_id, state.value)


class AssessmentPipeline:
    """Rate limit check, evidence collection, assessment and comparison."""

    def __init__(
        self,
        collector: EvidenceCollector,
        orchestrator: AssessmentOrchestrator,
        *,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        self.collector = collector
        self.orchestrator = orchestrator
        self.rate_limiter = rate_limiter
        self.logger = get_logger("pipeline")

    def run(
        self,
        submission: SubmissionReference,
        rubric: Rubric,
        *,
        subject_key: str | None = None,
    ) -> AssessmentOutcome:
        request_id = uuid.uuid4().hex[:12]
        self.logger.debug("assessment %s -> %s", request_id, AssessmentState.RECEIVED.value)
        if self.rate_limiter is not None and not self.rate_limiter.try_acquire(subject_key or "anonymous"):
            self.logger.warning("Rate limit exceeded for %s", subject_key or "anonymous")
            raise RateLimited("Too many assessment requests, please try again later")

        self.logger.debug("assessment %s -> %s", request_id, AssessmentState.EVIDENCE_GATHERING.value)
        evidence = self.collector.collect(submission, rubric)
        verdict = self.orchestrator.assess(evidence, rubric, request_id=request_id)

        reference = self.orchestrator.resolve_reference_example(rubric, evidence.source_type)
        return AssessmentOutcome(
            verdict=verdict,
            evidence=evidence,
            comparison=compare_criteria(verdict.criteria_met, rubric.criteria),
            reference_example_used=reference.title if reference else None,
        )


__all__ = [
    "AssessmentOrchestrator",
    "AssessmentPipeline",
    "AssessmentState",
    "RoutingPolicy",
    "compare_criteria",
    "select_backend",
    "select_reference_example",
]
