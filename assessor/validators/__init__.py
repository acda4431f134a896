"""Validation of backend responses."""

from .verdict import ALLOWED_REMARKS, parse_and_validate

__all__ = ["ALLOWED_REMARKS", "parse_and_validate"]
