"""Parsing and repair of backend responses into verdicts."""

from __future__ import annotations

import json
import math
import re
from typing import Any, Dict, Tuple

from ..errors import SchemaValidationFailure
from ..failsafe import build_fallback_verdict
from ..logging import get_logger
from ..models import Remark, Verdict

_LOGGER = get_logger("validators.verdict")

ALLOWED_REMARKS = tuple(remark.value for remark in Remark)
DEFAULT_REMARK = Remark.CAN_IMPROVE.value
DEFAULT_CONFIDENCE = 0.75
MIN_CONFIDENCE = 0.5
MAX_CONFIDENCE = 1.0

_FENCE = re.compile(r"^\s*```[a-zA-Z]*\s*\n?(.*?)\n?\s*```\s*$", re.DOTALL)
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f\ufffe\uffff]")
_ESCAPED_NULL = re.compile(r"\\u0000|\\x00")


def strip_control(value: str) -> str:
    """Remove NUL bytes, their escaped forms and other control characters."""
    return _CONTROL_CHARS.sub("", _ESCAPED_NULL.sub("", value))


def clean_text(value: str) -> str:
    return strip_control(value).strip()


def decode_payload(raw: str) -> Dict[str, Any]:
    """Decode a JSON object, tolerating a surrounding markdown code fence."""
    if not isinstance(raw, str) or not raw.strip():
        raise SchemaValidationFailure("Empty backend response")
    text = _ESCAPED_NULL.sub("", raw).strip()
    fenced = _FENCE.match(text)
    if fenced:
        text = fenced.group(1).strip()
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SchemaValidationFailure(f"Backend response is not JSON: {exc.msg}") from exc
    if not isinstance(payload, dict):
        raise SchemaValidationFailure("Backend response is not a JSON object")
    return payload


def coerce_remark(value: Any) -> str:
    if isinstance(value, str) and value.strip() in ALLOWED_REMARKS:
        return value.strip()
    return DEFAULT_REMARK


def coerce_confidence(value: Any) -> float:
    # bool is an int subclass but never a meaningful confidence.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_CONFIDENCE
    if math.isnan(value):
        return DEFAULT_CONFIDENCE
    return max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, float(value)))


def coerce_string_list(value: Any) -> Tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    items = (clean_text(item) for item in value if isinstance(item, str))
    return tuple(item for item in items if item)


def build_verdict(payload: Dict[str, Any], *, backend_used: str, latency_ms: int) -> Verdict:
    """Repair a decoded payload into a verdict or raise SchemaValidationFailure."""
    remark = payload.get("remark")
    feedback = payload.get("feedback")
    if not remark or (isinstance(remark, str) and not remark.strip()):
        raise SchemaValidationFailure("Missing required field: remark")
    if not isinstance(feedback, str) or not clean_text(feedback):
        raise SchemaValidationFailure("Missing required field: feedback")

    coerced_remark = coerce_remark(remark)
    if coerced_remark != str(remark).strip():
        _LOGGER.info("Replaced unknown remark %r with %r", remark, coerced_remark)

    return Verdict(
        remark=coerced_remark,
        feedback=strip_control(feedback),
        criteria_met=coerce_string_list(payload.get("criteria_met")),
        areas_for_improvement=coerce_string_list(payload.get("areas_for_improvement")),
        confidence=coerce_confidence(payload.get("confidence")),
        backend_used=backend_used,
        latency_ms=latency_ms,
    )


def parse_and_validate(raw: str, *, backend_used: str = "unknown", latency_ms: int = 0) -> Verdict:
    """Return a verdict for ``raw``; never raises.

    Responses missing ``remark`` or ``feedback``, or that are not a JSON
    object at all, yield the fallback verdict.
    """
    try:
        payload = decode_payload(raw)
        return build_verdict(payload, backend_used=backend_used, latency_ms=latency_ms)
    except SchemaValidationFailure as exc:
        _LOGGER.warning("Backend response rejected, applying fallback: %s", exc)
        return build_fallback_verdict(latency_ms)


__all__ = [
    "ALLOWED_REMARKS",
    "DEFAULT_CONFIDENCE",
    "build_verdict",
    "clean_text",
    "coerce_confidence",
    "coerce_remark",
    "coerce_string_list",
    "decode_payload",
    "parse_and_validate",
    "strip_control",
]
