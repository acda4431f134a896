"""Reasoning backend adapters."""

from .runner import LLMRequest, LLMRunner

__all__ = ["LLMRequest", "LLMRunner"]
