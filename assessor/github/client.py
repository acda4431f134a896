"""Minimal GitHub REST v3 client used by the repository analyzer."""

from __future__ import annotations

import http.client
import json
import os
import socket
from typing import Any, Dict, Optional
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from ..errors import FetchTimeout, NotFound, RateLimited
from ..logging import get_logger
from ..models import RepositoryTree, TreeEntry

_LOGGER = get_logger("github")


class GitHubClient:
    """Thin wrapper over the three hosting API calls the analyzer needs.

    Calls are made with ``urllib`` and are never retried here; callers decide
    what to do with :class:`NotFound`, :class:`RateLimited` and
    :class:`FetchTimeout`.
    """

    DEFAULT_API_URL = "https://api.github.com"
    ENV_TOKEN_KEYS = ("ASSESSOR_GITHUB_TOKEN", "GITHUB_TOKEN")
    USER_AGENT = "assessor-evidence-collector"

    def __init__(
        self,
        *,
        api_url: str | None = None,
        token: str | None = None,
        request_timeout: float = 15.0,
    ) -> None:
        self.api_url = (api_url or self.DEFAULT_API_URL).rstrip("/")
        self.token = token if token is not None else self._env_token()
        self.request_timeout = request_timeout

    def get_repository_metadata(self, owner: str, repo: str) -> Dict[str, Any]:
        payload = self._get_json(f"/repos/{_segment(owner)}/{_segment(repo)}")
        if not isinstance(payload, dict):
            raise NotFound(f"Unexpected metadata payload for {owner}/{repo}")
        return payload

    def get_tree(self, owner: str, repo: str, ref: str, *, recursive: bool = True) -> RepositoryTree:
        path = f"/repos/{_segment(owner)}/{_segment(repo)}/git/trees/{quote(ref, safe='')}"
        if recursive:
            path += "?recursive=1"
        payload = self._get_json(path)
        raw_entries = payload.get("tree") if isinstance(payload, dict) else None
        if not isinstance(raw_entries, list):
            raise NotFound(f"Repository tree unavailable for {owner}/{repo}@{ref}")

        entries = []
        for item in raw_entries:
            if not isinstance(item, dict) or not isinstance(item.get("path"), str):
                continue
            size = item.get("size")
            entries.append(
                TreeEntry(
                    path=item["path"],
                    size=size if isinstance(size, int) else 0,
                    kind=str(item.get("type") or "blob"),
                )
            )
        truncated = bool(payload.get("truncated"))
        if truncated:
            _LOGGER.warning("Tree listing for %s/%s was truncated by the API", owner, repo)
        return RepositoryTree(entries=entries, truncated=truncated)

    def get_file_content(self, owner: str, repo: str, path: str) -> str:
        """Return the base64 encoded content of a single file."""
        encoded_path = quote(path, safe="/")
        payload = self._get_json(f"/repos/{_segment(owner)}/{_segment(repo)}/contents/{encoded_path}")
        if not isinstance(payload, dict) or not isinstance(payload.get("content"), str):
            raise NotFound(f"No file content for {path}")
        return payload["content"]

    # ------------------------------------------------------------------
    # Internal helpers

    def _get_json(self, path: str) -> Any:
        url = f"{self.api_url}{path}"
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": self.USER_AGENT,
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        request = Request(url, headers=headers, method="GET")

        try:
            with urlopen(request, timeout=self.request_timeout) as response:  # type: ignore[arg-type]
                raw = response.read()
        except HTTPError as exc:
            raise _map_http_error(exc, url) from exc
        except (socket.timeout, TimeoutError) as exc:
            raise FetchTimeout(f"GitHub API timed out: {url}") from exc
        except URLError as exc:
            if isinstance(exc.reason, (socket.timeout, TimeoutError)):
                raise FetchTimeout(f"GitHub API timed out: {url}") from exc
            raise FetchTimeout(f"GitHub API unreachable: {exc.reason}") from exc
        except (OSError, http.client.HTTPException) as exc:
            raise FetchTimeout(f"GitHub API connection failed: {exc!r}") from exc

        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise NotFound(f"GitHub API returned invalid JSON for {url}") from exc

    def _env_token(self) -> Optional[str]:
        for key in self.ENV_TOKEN_KEYS:
            value = os.getenv(key)
            if value:
                return value
        return None


def _segment(value: str) -> str:
    return quote(value, safe="")


def _map_http_error(exc: HTTPError, url: str) -> Exception:
    if exc.code in (404, 409):
        # 409 is what the API answers for an empty repository.
        return NotFound(f"Repository not found or empty: {url}")
    if exc.code in (403, 429):
        return RateLimited(f"GitHub API rate limit or access denied ({exc.code})")
    if exc.code in (408, 504):
        return FetchTimeout(f"GitHub API timed out ({exc.code})")
    return NotFound(f"GitHub API request failed with status {exc.code}: {url}")


__all__ = ["GitHubClient"]
