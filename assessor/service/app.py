"""FastAPI application entrypoint for assessor service mode."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, Dict, List, Literal, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..config import ConfigError, load_config, rubric_from_dict
from ..errors import FetchTimeout, InvalidReference, NotFound, RateLimited
from ..evidence import build_submission
from ..factory import build_pipeline
from ..logging import get_logger
from ..models import AssessmentOutcome, EvidenceBundle, SubmissionReference
from ..orchestrator import AssessmentPipeline

_LOGGER = get_logger("service")

SubmissionKind = Literal["text", "document", "github_repo", "website", "screenshot"]


class SubmissionPayload(BaseModel):
    type: SubmissionKind
    text: Optional[str] = None
    url: Optional[str] = None
    content: Optional[str] = None
    filename: Optional[str] = None
    file_type: Optional[str] = None
    word_count: Optional[int] = None
    page_count: Optional[int] = None
    image_url: Optional[str] = None
    description: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    file_size: Optional[int] = None

    def to_submission(self) -> SubmissionReference:
        values = self.model_dump(exclude={"type"}, exclude_none=True)
        return build_submission(self.type, **values)


class ReferenceExamplePayload(BaseModel):
    title: Optional[str] = None
    content: str
    metadata: Dict[str, Any] = Field(default_factory=dict)


class RubricPayload(BaseModel):
    title: str
    description: str
    criteria: List[str] = Field(default_factory=list)
    red_flags: List[str] = Field(default_factory=list)
    conditional_checks: List[str] = Field(default_factory=list)
    custom_instructions: Optional[str] = None
    reference_example: Optional[ReferenceExamplePayload] = None
    reference_examples: List[ReferenceExamplePayload] = Field(default_factory=list)


class EvidenceRequest(BaseModel):
    submission: SubmissionPayload
    rubric: Optional[RubricPayload] = None


class EvidenceResponse(BaseModel):
    source_type: str
    summary_text: str
    metadata: Dict[str, Any]


class AssessRequest(BaseModel):
    submission: SubmissionPayload
    rubric: RubricPayload
    subject_key: Optional[str] = None


class VerdictResponse(BaseModel):
    remark: str
    feedback: str
    criteria_met: List[str]
    areas_for_improvement: List[str]
    confidence: float
    backend_used: str
    latency_ms: int


class ComparisonResponse(BaseModel):
    total_criteria: int
    criteria_met: int
    completion_percentage: int


class AssessResponse(BaseModel):
    verdict: VerdictResponse
    evidence: EvidenceResponse
    comparison: ComparisonResponse
    reference_example_used: Optional[str] = None


class HealthResponse(BaseModel):
    status: str


def _default_pipeline() -> AssessmentPipeline:
    return build_pipeline(load_config(Path.cwd()))


def _evidence_response(evidence: EvidenceBundle) -> EvidenceResponse:
    return EvidenceResponse(
        source_type=evidence.source_type.value,
        summary_text=evidence.summary_text,
        metadata=evidence.metadata,
    )


def _assess_response(outcome: AssessmentOutcome) -> AssessResponse:
    comparison = outcome.comparison
    return AssessResponse(
        verdict=VerdictResponse(**outcome.verdict.to_dict()),
        evidence=_evidence_response(outcome.evidence),
        comparison=ComparisonResponse(
            total_criteria=comparison.total_criteria,
            criteria_met=comparison.criteria_met,
            completion_percentage=comparison.completion_percentage,
        ),
        reference_example_used=outcome.reference_example_used,
    )


async def _run_blocking(func: Callable[[], Any]) -> Any:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, func)


def create_app(
    pipeline_factory: Callable[[], AssessmentPipeline] = _default_pipeline,
) -> FastAPI:
    """Create the FastAPI application exposing evidence and assessment.

    The factory runs once, so the pipeline's cache and rate limiter are
    shared by every request the app serves.
    """
    app = FastAPI(title="Assessor Service", version="1.0.0")
    pipeline = pipeline_factory()

    async def get_pipeline() -> AssessmentPipeline:
        return pipeline

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/evidence", response_model=EvidenceResponse)
    async def collect_evidence(
        payload: EvidenceRequest,
        pipeline: AssessmentPipeline = Depends(get_pipeline),
    ) -> EvidenceResponse:
        submission = payload.submission.to_submission()
        rubric = rubric_from_dict(payload.rubric.model_dump()) if payload.rubric else None
        evidence = await _run_blocking(lambda: pipeline.collector.collect(submission, rubric))
        return _evidence_response(evidence)

    @app.post("/assess", response_model=AssessResponse)
    async def assess(
        payload: AssessRequest,
        pipeline: AssessmentPipeline = Depends(get_pipeline),
    ) -> AssessResponse:
        submission = payload.submission.to_submission()
        rubric = rubric_from_dict(payload.rubric.model_dump())
        outcome = await _run_blocking(
            lambda: pipeline.run(submission, rubric, subject_key=payload.subject_key)
        )
        return _assess_response(outcome)

    def _error(status_code: int) -> Callable[[Any, Exception], Any]:
        async def handler(_: Any, exc: Exception) -> JSONResponse:
            _LOGGER.info("Request failed with %d: %s", status_code, exc)
            return JSONResponse(status_code=status_code, content={"detail": str(exc)})

        return handler

    app.add_exception_handler(InvalidReference, _error(400))
    app.add_exception_handler(ConfigError, _error(400))
    app.add_exception_handler(NotFound, _error(404))
    app.add_exception_handler(RateLimited, _error(429))
    app.add_exception_handler(FetchTimeout, _error(504))

    return app


def run_service(host: str = "0.0.0.0", port: int = 8000) -> None:  # pragma: no cover - integration path
    import uvicorn

    app = create_app()
    uvicorn.run(app, host=host, port=port)


__all__ = ["create_app", "run_service"]
