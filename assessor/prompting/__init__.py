"""Prompt assembly for the reasoning backend."""

from .builder import PromptBuilder, build_prompt

__all__ = ["PromptBuilder", "build_prompt"]
