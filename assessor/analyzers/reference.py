"""Repository URL parsing."""

from __future__ import annotations

import re

from ..errors import InvalidReference
from ..models import RepositoryReference

_REPOSITORY_URL = re.compile(
    r"^(?:https?://)?(?:www\.)?github\.com/"
    r"(?P<owner>[A-Za-z0-9](?:[A-Za-z0-9-]{0,38}))/"
    r"(?P<repo>[A-Za-z0-9._-]+?)"
    r"(?:\.git)?(?:/[^\s]*)?/?$",
    re.IGNORECASE,
)

_RESERVED_OWNERS = {"orgs", "settings", "marketplace", "topics", "explore", "features", "login"}


def parse_reference(url: str) -> RepositoryReference:
    """Return the owner/repo pair for a repository URL or raise InvalidReference."""
    candidate = (url or "").strip()
    if not candidate:
        raise InvalidReference("Please provide a GitHub repository URL")

    match = _REPOSITORY_URL.match(candidate)
    if match is None:
        raise InvalidReference(f"Invalid GitHub repository URL: {candidate}")

    owner = match.group("owner")
    repo = match.group("repo")
    if owner.lower() in _RESERVED_OWNERS or repo in {".", ".."}:
        raise InvalidReference(f"Invalid GitHub repository URL: {candidate}")
    return RepositoryReference(owner=owner, repo=repo)


def is_valid_reference(url: str) -> bool:
    try:
        parse_reference(url)
    except InvalidReference:
        return False
    return True


__all__ = ["is_valid_reference", "parse_reference"]
