"""Tests for assessor.orchestrator."""

from __future__ import annotations

import http.client
import json
from concurrent.futures import ThreadPoolExecutor

import pytest

from assessor.analyzers.repository import RepositoryAnalyzer
from assessor.analyzers.website import WebsiteProber
from assessor.errors import BackendFailure, BackendTimeout, RateLimited
from assessor.evidence import EvidenceCollector, build_submission
from assessor.llm.runner import LLMRunner
from assessor.models import BackendTier, EvidenceBundle, ReferenceExample, Rubric, SourceType
from assessor.orchestrator import (
    AssessmentOrchestrator,
    AssessmentPipeline,
    RoutingPolicy,
    compare_criteria,
    select_backend,
    select_reference_example,
)
from assessor.stores.rate_limit import SlidingWindowRateLimiter
from tests._fixtures.fakes import FakeGitHubClient, ScriptedRunner

_GOOD_RESPONSE = json.dumps(
    {
        "remark": "Good",
        "feedback": "Clear answer with a worked example.",
        "criteria_met": ["Explains the concept", "gives an example"],
        "areas_for_improvement": ["Cite sources"],
        "confidence": 0.8,
    }
)


def _rubric(**overrides) -> Rubric:
    values = dict(
        title="Explain recursion",
        description="Describe recursion in your own words.",
        criteria=("Explains the concept", "Gives an example", "Mentions base case"),
    )
    values.update(overrides)
    return Rubric(**values)


def _text_evidence(length: int = 100) -> EvidenceBundle:
    return EvidenceBundle(source_type=SourceType.TEXT, summary_text="r" * length)


@pytest.mark.parametrize(
    ("source_type", "length", "has_reference", "expected"),
    [
        (SourceType.GITHUB_REPO, 10, False, BackendTier.CAPABLE),
        (SourceType.WEBSITE, 10, False, BackendTier.CAPABLE),
        (SourceType.TEXT, 100, True, BackendTier.CAPABLE),
        (SourceType.DOCUMENT, 6000, False, BackendTier.CAPABLE),
        (SourceType.TEXT, 499, False, BackendTier.FAST),
        (SourceType.TEXT, 500, False, BackendTier.BALANCED),
        (SourceType.DOCUMENT, 100, False, BackendTier.BALANCED),
        (SourceType.SCREENSHOT, 100, False, BackendTier.BALANCED),
        (SourceType.TEXT, 5000, False, BackendTier.BALANCED),
    ],
)
def test_select_backend_rules(source_type, length, has_reference, expected) -> None:
    assert select_backend(source_type, length, has_reference) is expected


def test_routing_thresholds_are_configurable() -> None:
    policy = RoutingPolicy(low_length=50, high_length=80)

    assert select_backend(SourceType.TEXT, 60, False, policy) is BackendTier.BALANCED
    assert select_backend(SourceType.TEXT, 81, False, policy) is BackendTier.CAPABLE


def test_assess_uses_selected_tier_and_validates() -> None:
    runner = ScriptedRunner(_GOOD_RESPONSE)
    orchestrator = AssessmentOrchestrator(runner)

    verdict = orchestrator.assess(_text_evidence(), _rubric())

    assert verdict.remark == "Good"
    assert verdict.backend_used == "fast-model"
    assert runner.calls[0]["tier"] is BackendTier.FAST
    assert runner.calls[0]["system"] == orchestrator.prompt_builder.SYSTEM_PROMPT
    assert "## ASSESSMENT CRITERIA" in runner.calls[0]["prompt"]


@pytest.mark.parametrize("error", [BackendFailure("500"), BackendTimeout("slow")])
def test_backend_errors_yield_fallback(error: Exception) -> None:
    orchestrator = AssessmentOrchestrator(ScriptedRunner(error))

    verdict = orchestrator.assess(_text_evidence(), _rubric())

    assert verdict.is_fallback
    assert verdict.remark == "Can Improve"
    assert verdict.confidence == 0.5


def test_invalid_backend_output_yields_fallback() -> None:
    verdict = AssessmentOrchestrator(ScriptedRunner("not json at all")).assess(_text_evidence(), _rubric())

    assert verdict.is_fallback


def test_latency_is_measured_with_clock() -> None:
    ticks = iter([10.0, 10.25])
    orchestrator = AssessmentOrchestrator(ScriptedRunner(_GOOD_RESPONSE), clock=lambda: next(ticks))

    assert orchestrator.assess(_text_evidence(), _rubric()).latency_ms == 250


def test_reference_example_routes_to_capable_model() -> None:
    runner = ScriptedRunner(_GOOD_RESPONSE)
    rubric = _rubric(reference_example=ReferenceExample(title="Model answer", content="Recursion is..."))

    AssessmentOrchestrator(runner).assess(_text_evidence(), rubric)

    assert runner.calls[0]["tier"] is BackendTier.CAPABLE
    assert "## REFERENCE EXAMPLE: Model answer" in runner.calls[0]["prompt"]


def test_select_reference_example_prefers_relevant_metadata() -> None:
    plain = ReferenceExample(title="plain", content="a")
    generic = ReferenceExample(title="generic", content="b", metadata={"notes": "x"})
    repo = ReferenceExample(title="repo", content="c", metadata={"file_structure": ["src/"]})
    doc = ReferenceExample(title="doc", content="d", metadata={"word_count": 900})

    examples = (plain, generic, repo, doc)
    assert select_reference_example(examples, SourceType.GITHUB_REPO) is repo
    assert select_reference_example(examples, SourceType.DOCUMENT) is doc
    assert select_reference_example(examples, SourceType.TEXT) is generic
    assert select_reference_example((plain, ReferenceExample(title="p2", content="e")), SourceType.TEXT) is plain
    assert select_reference_example((doc,), SourceType.GITHUB_REPO) is doc
    assert select_reference_example((), SourceType.TEXT) is None


def test_compare_criteria_is_case_insensitive() -> None:
    comparison = compare_criteria(["explains the concept", "Gives an example", "Unknown"], _rubric().criteria)

    assert comparison.total_criteria == 3
    assert comparison.criteria_met == 2
    assert comparison.completion_percentage == 67
    assert compare_criteria(["anything"], ()).completion_percentage == 0


def _pipeline(runner: ScriptedRunner, *, rate_limiter=None) -> AssessmentPipeline:
    collector = EvidenceCollector(RepositoryAnalyzer(FakeGitHubClient({})), WebsiteProber())
    return AssessmentPipeline(collector, AssessmentOrchestrator(runner), rate_limiter=rate_limiter)


def test_pipeline_produces_outcome() -> None:
    rubric = _rubric(
        reference_examples=(
            ReferenceExample(title="first", content="a"),
            ReferenceExample(title="with metadata", content="b", metadata={"topics": ["base case"]}),
        )
    )

    outcome = _pipeline(ScriptedRunner(_GOOD_RESPONSE)).run(build_submission("text", text="Recursion calls itself."), rubric)

    assert outcome.verdict.remark == "Good"
    assert outcome.evidence.summary_text == "Recursion calls itself."
    assert outcome.comparison.criteria_met == 2
    assert outcome.reference_example_used == "with metadata"


def test_pipeline_enforces_rate_limit() -> None:
    runner = ScriptedRunner(_GOOD_RESPONSE)
    pipeline = _pipeline(runner, rate_limiter=SlidingWindowRateLimiter(max_requests=1, window_seconds=60))
    submission = build_submission("text", text="answer")

    pipeline.run(submission, _rubric(), subject_key="student-7")
    with pytest.raises(RateLimited):
        pipeline.run(submission, _rubric(), subject_key="student-7")
    pipeline.run(submission, _rubric(), subject_key="student-8")

    assert len(runner.calls) == 2


def test_concurrent_assessments_do_not_share_state() -> None:
    runner = ScriptedRunner(_GOOD_RESPONSE)
    orchestrator = AssessmentOrchestrator(runner)
    evidences = [EvidenceBundle(source_type=SourceType.TEXT, summary_text=f"answer {index}") for index in range(8)]

    with ThreadPoolExecutor(max_workers=4) as executor:
        verdicts = list(executor.map(lambda evidence: orchestrator.assess(evidence, _rubric()), evidences))

    assert all(verdict.remark == "Good" for verdict in verdicts)
    prompts = sorted(call["prompt"] for call in runner.calls)
    assert all(any(f"answer {index}" in prompt for prompt in prompts) for index in range(8))


def test_dropped_backend_connection_yields_fallback(monkeypatch) -> None:
    def fake_urlopen(request, timeout=None):
        raise http.client.RemoteDisconnected("Remote end closed connection without response")

    monkeypatch.setattr("assessor.llm.runner.urlopen", fake_urlopen)
    runner = LLMRunner(base_url="http://127.0.0.1:9/v1", api_key=None)

    verdict = AssessmentOrchestrator(runner).assess(EvidenceBundle(source_type=SourceType.TEXT, summary_text="hello"), _rubric())

    assert verdict.is_fallback
    assert verdict.remark == "Can Improve"
