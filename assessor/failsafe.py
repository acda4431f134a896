"""Fail-safe verdict returned whenever the backend cannot be trusted."""

from __future__ import annotations

from .models import Remark, Verdict

FALLBACK_BACKEND = "fallback"
FALLBACK_CONFIDENCE = 0.5
FALLBACK_FEEDBACK = (
    "Your submission has been received, but an automated assessment could not be "
    "completed at this time. Please review the assignment requirements and make sure "
    "every criterion is clearly addressed. An instructor may review your submission manually."
)
FALLBACK_AREAS = (
    "Review the assignment criteria and confirm each one is addressed",
    "Resubmit later for a complete automated assessment",
)


def build_fallback_verdict(latency_ms: int = 0) -> Verdict:
    """Return the fixed verdict used when assessment fails."""
    return Verdict(
        remark=Remark.CAN_IMPROVE.value,
        feedback=FALLBACK_FEEDBACK,
        criteria_met=(),
        areas_for_improvement=FALLBACK_AREAS,
        confidence=FALLBACK_CONFIDENCE,
        backend_used=FALLBACK_BACKEND,
        latency_ms=max(0, int(latency_ms)),
    )


__all__ = ["FALLBACK_BACKEND", "FALLBACK_CONFIDENCE", "FALLBACK_FEEDBACK", "build_fallback_verdict"]
