"""Tests for the GitHub REST client."""

from __future__ import annotations

import http.client
import io
import socket
from urllib.error import HTTPError, URLError

import pytest

from assessor.errors import FetchTimeout, NotFound, RateLimited
from assessor.github import GitHubClient
from tests._fixtures.fakes import FakeResponse, encode


def _http_error(code: int) -> HTTPError:
    return HTTPError("https://api.github.com/x", code, "error", {}, io.BytesIO(b"{}"))


def test_metadata_request_carries_token(monkeypatch) -> None:
    captured = {}

    def fake_urlopen(request, timeout=None):
        captured["url"] = request.full_url
        captured["auth"] = request.get_header("Authorization")
        captured["timeout"] = timeout
        return FakeResponse({"default_branch": "trunk", "description": "demo"})

    monkeypatch.setattr("assessor.github.client.urlopen", fake_urlopen)

    client = GitHubClient(token="secret", request_timeout=7.0)
    metadata = client.get_repository_metadata("octo", "shop")

    assert metadata["default_branch"] == "trunk"
    assert captured == {
        "url": "https://api.github.com/repos/octo/shop",
        "auth": "Bearer secret",
        "timeout": 7.0,
    }


def test_token_falls_back_to_environment(monkeypatch) -> None:
    monkeypatch.delenv("ASSESSOR_GITHUB_TOKEN", raising=False)
    monkeypatch.setenv("GITHUB_TOKEN", "from-env")

    assert GitHubClient().token == "from-env"


def test_get_tree_parses_entries(monkeypatch) -> None:
    payload = {
        "truncated": True,
        "tree": [
            {"path": "README.md", "type": "blob", "size": 120},
            {"path": "src", "type": "tree"},
            {"path": "src/app.py", "type": "blob", "size": 2048},
            {"type": "blob"},
        ],
    }
    urls = []

    def fake_urlopen(request, timeout=None):
        urls.append(request.full_url)
        return FakeResponse(payload)

    monkeypatch.setattr("assessor.github.client.urlopen", fake_urlopen)

    tree = GitHubClient(token="").get_tree("octo", "shop", "main")

    assert urls == ["https://api.github.com/repos/octo/shop/git/trees/main?recursive=1"]
    assert [entry.path for entry in tree.entries] == ["README.md", "src", "src/app.py"]
    assert [entry.path for entry in tree.files()] == ["README.md", "src/app.py"]
    assert tree.entries[1].size == 0
    assert tree.truncated is True


def test_get_file_content_returns_encoded_payload(monkeypatch) -> None:
    monkeypatch.setattr(
        "assessor.github.client.urlopen",
        lambda request, timeout=None: FakeResponse({"content": encode("print('hi')")}),
    )

    assert GitHubClient(token="").get_file_content("octo", "shop", "src/app.py") == encode("print('hi')")


@pytest.mark.parametrize(
    ("code", "error"),
    [
        (404, NotFound),
        (409, NotFound),
        (403, RateLimited),
        (429, RateLimited),
        (504, FetchTimeout),
        (500, NotFound),
    ],
)
def test_http_errors_are_mapped(monkeypatch, code: int, error: type) -> None:
    def fake_urlopen(request, timeout=None):
        raise _http_error(code)

    monkeypatch.setattr("assessor.github.client.urlopen", fake_urlopen)

    with pytest.raises(error):
        GitHubClient(token="").get_repository_metadata("octo", "shop")


def test_timeouts_raise_fetch_timeout(monkeypatch) -> None:
    def fake_urlopen(request, timeout=None):
        raise URLError(socket.timeout("timed out"))

    monkeypatch.setattr("assessor.github.client.urlopen", fake_urlopen)

    with pytest.raises(FetchTimeout):
        GitHubClient(token="").get_tree("octo", "shop", "main")


def test_invalid_json_is_not_found(monkeypatch) -> None:
    monkeypatch.setattr(
        "assessor.github.client.urlopen",
        lambda request, timeout=None: FakeResponse(body=b"<html>oops</html>"),
    )

    with pytest.raises(NotFound):
        GitHubClient(token="").get_repository_metadata("octo", "shop")


@pytest.mark.parametrize(
    "error",
    [http.client.RemoteDisconnected("closed"), http.client.BadStatusLine("garbage"), ConnectionResetError("reset")],
)
def test_transport_errors_raise_fetch_timeout(monkeypatch, error: Exception) -> None:
    def fake_urlopen(request, timeout=None):
        raise error

    monkeypatch.setattr("assessor.github.client.urlopen", fake_urlopen)

    with pytest.raises(FetchTimeout):
        GitHubClient(token="").get_repository_metadata("octo", "shop")
