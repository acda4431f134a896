"""Hosting API access for repository evidence."""

from .client import GitHubClient

__all__ = ["GitHubClient"]
