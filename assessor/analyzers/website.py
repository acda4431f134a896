"""Website probing: reachability, timing and light metadata extraction."""

from __future__ import annotations

import http.client
import re
import socket
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence
from urllib.error import HTTPError
from urllib.parse import urlsplit, urlunsplit
from urllib.request import Request, urlopen

from ..errors import InvalidURL, NetworkUnavailable
from ..logging import get_logger
from .utils import sanitize_text, truncate

_LOGGER = get_logger("analyzers.website")

USER_AGENT = "Mozilla/5.0 (Assessment Agent Bot)"
METADATA_SCAN_CHARS = 2000
SUMMARY_PREVIEW_CHARS = 500
FAST_RESPONSE_MS = 1000
SLOW_RESPONSE_MS = 3000
# UTF-8 needs at most four bytes per character.
BYTES_PER_CHAR = 4

_SCHEME = re.compile(r"^[a-z][a-z0-9+.-]*://", re.IGNORECASE)
_HOST = re.compile(r"^(?=.{1,253}$)[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?(?:\.[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?)*$", re.IGNORECASE)
_TITLE = re.compile(r"<title[^>]*>([^<]+)</title>", re.IGNORECASE)
_DESCRIPTION = re.compile(r"<meta\s+name=[\"']description[\"']\s+content=[\"']([^\"']+)[\"']", re.IGNORECASE)
_VIEWPORT = re.compile(r"<meta\s+name=[\"']viewport[\"']\s+content=[\"']([^\"']+)[\"']", re.IGNORECASE)
_FAVICON = re.compile(r"<link[^>]+rel=[\"'](?:icon|shortcut icon)[\"']", re.IGNORECASE)


@dataclass
class PageMetadata:
    title: Optional[str] = None
    description: Optional[str] = None
    viewport: Optional[str] = None
    has_favicon: bool = False


@dataclass
class ProbeResult:
    """Outcome of fetching one URL. Unreachable sites are a normal result."""

    url: str
    reachable: bool
    has_https: bool
    status_code: Optional[int] = None
    response_time_ms: Optional[int] = None
    headers: Dict[str, str] = field(default_factory=dict)
    metadata: PageMetadata = field(default_factory=PageMetadata)
    html_preview: Optional[str] = None
    error: Optional[str] = None


@dataclass
class WebsiteAssessment:
    probe: ProbeResult
    strengths: List[str] = field(default_factory=list)
    issues: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)


def normalize(url: str) -> str:
    """Return an absolute http(s) URL or raise :class:`InvalidURL`.

    ``example.com`` becomes ``https://example.com/``.
    """
    candidate = (url or "").strip()
    if not candidate:
        raise InvalidURL("Please provide a website URL")
    if not _SCHEME.match(candidate):
        candidate = f"https://{candidate}"

    try:
        parts = urlsplit(candidate)
        port = parts.port
    except ValueError as exc:
        raise InvalidURL(f"Invalid URL format: {url}") from exc
    if parts.scheme.lower() not in ("http", "https"):
        raise InvalidURL(f"Unsupported URL scheme: {parts.scheme}")
    host = parts.hostname or ""
    if not _HOST.match(host) and not _is_ip_literal(host):
        raise InvalidURL(f"Invalid URL format: {url}")

    netloc = host.lower()
    if ":" in netloc:
        netloc = f"[{netloc}]"
    if port is not None:
        netloc = f"{netloc}:{port}"
    if parts.username:
        raise InvalidURL("URLs with credentials are not accepted")
    return urlunsplit((parts.scheme.lower(), netloc, parts.path or "/", parts.query, ""))


def is_valid_url(url: str) -> bool:
    try:
        normalize(url)
    except InvalidURL:
        return False
    return True


def extract_metadata(html: str, *, limit: int = METADATA_SCAN_CHARS) -> PageMetadata:
    """Pull title, description, viewport and favicon hints from the page head."""
    head = html[:limit]
    metadata = PageMetadata()
    match = _TITLE.search(head)
    if match:
        metadata.title = sanitize_text(match.group(1)) or None
    match = _DESCRIPTION.search(head)
    if match:
        metadata.description = sanitize_text(match.group(1)) or None
    match = _VIEWPORT.search(head)
    if match:
        metadata.viewport = match.group(1).strip()
    metadata.has_favicon = _FAVICON.search(head) is not None
    return metadata


class WebsiteProber:
    """Fetches websites with a fixed identifying User-Agent.

    Probing never raises for network reasons: DNS failures, refused
    connections and timeouts all come back as ``reachable=False``.
    """

    def __init__(
        self,
        *,
        timeout: float = 10.0,
        user_agent: str = USER_AGENT,
        preview_chars: int = METADATA_SCAN_CHARS,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self.preview_chars = preview_chars
        self.read_limit = max(preview_chars, METADATA_SCAN_CHARS) * BYTES_PER_CHAR
        self._clock = clock

    def probe(self, url: str) -> ProbeResult:
        normalized = normalize(url)
        has_https = normalized.startswith("https://")
        started = self._clock()
        try:
            status, headers = self._head(normalized)
        except NetworkUnavailable as exc:
            _LOGGER.info("Website %s unreachable: %s", normalized, exc)
            return ProbeResult(url=normalized, reachable=False, has_https=has_https, error=str(exc))
        elapsed_ms = int((self._clock() - started) * 1000)

        reachable = 200 <= status < 400
        result = ProbeResult(
            url=normalized,
            reachable=reachable,
            has_https=has_https,
            status_code=status,
            response_time_ms=elapsed_ms,
            headers=headers,
        )
        if not reachable:
            return result

        try:
            html = self._get(normalized)
        except NetworkUnavailable as exc:
            _LOGGER.warning("Could not fetch page body for %s: %s", normalized, exc)
            return result
        result.html_preview = html[: self.preview_chars]
        result.metadata = extract_metadata(html)
        return result

    def assess(self, url: str, criteria: Sequence[str] = ()) -> WebsiteAssessment:
        """Apply the fixed reachability, security, speed and metadata checks."""
        probe = self.probe(url)
        assessment = WebsiteAssessment(probe=probe)
        strengths = assessment.strengths
        issues = assessment.issues
        recommendations = assessment.recommendations

        if probe.reachable:
            strengths.append("Website is accessible and responding")
        else:
            issues.append(f"Website is not accessible (Status: {probe.status_code or 'Unknown'})")
            recommendations.append("Ensure the website is publicly accessible")

        if probe.has_https:
            strengths.append("Uses HTTPS for secure connections")
        else:
            issues.append("Website does not use HTTPS")
            recommendations.append("Implement SSL/TLS certificate for secure connections")

        if probe.response_time_ms is not None:
            if probe.response_time_ms > SLOW_RESPONSE_MS:
                issues.append(f"Slow response time: {probe.response_time_ms}ms")
                recommendations.append(f"Optimize server response time (target < {FAST_RESPONSE_MS}ms)")
            elif probe.response_time_ms < FAST_RESPONSE_MS:
                strengths.append("Fast response time")

        if probe.reachable:
            meta = probe.metadata
            if meta.title:
                strengths.append("Has page title")
            else:
                issues.append("Missing page title")
                recommendations.append("Add descriptive page title")
            if meta.description:
                strengths.append("Has meta description")
            else:
                recommendations.append("Add meta description for SEO")
            if meta.viewport:
                strengths.append("Has viewport meta tag (mobile-friendly)")
            else:
                recommendations.append("Add viewport meta tag for responsive design")
            if meta.has_favicon:
                strengths.append("Has favicon")
            else:
                recommendations.append("Add a favicon")

        if criteria:
            _LOGGER.debug("Website checks are fixed; %d rubric criteria left to the backend", len(criteria))
        return assessment

    # ------------------------------------------------------------------
    # HTTP helpers

    def _request(self, url: str, method: str) -> Request:
        return Request(url, headers={"User-Agent": self.user_agent}, method=method)

    def _head(self, url: str) -> tuple[int, Dict[str, str]]:
        try:
            with urlopen(self._request(url, "HEAD"), timeout=self.timeout) as response:  # type: ignore[arg-type]
                status = getattr(response, "status", None) or response.getcode()
                headers = {key.lower(): value for key, value in response.headers.items()}
        except HTTPError as exc:
            headers = {key.lower(): value for key, value in (exc.headers or {}).items()}
            return exc.code, headers
        except (OSError, http.client.HTTPException) as exc:
            raise NetworkUnavailable(_reason(exc)) from exc
        return int(status), headers

    def _get(self, url: str) -> str:
        try:
            with urlopen(self._request(url, "GET"), timeout=self.timeout) as response:  # type: ignore[arg-type]
                raw = response.read(self.read_limit)
        except (OSError, http.client.HTTPException) as exc:
            raise NetworkUnavailable(_reason(exc)) from exc
        return raw.decode("utf-8", errors="replace")


def build_summary(assessment: WebsiteAssessment) -> str:
    """Render the assessment as bounded markdown evidence."""
    probe = assessment.probe
    lines = [f"# Website Assessment: {truncate(probe.url, 200)}", ""]
    lines.append("## Accessibility Status")
    lines.append(f"- **Status:** {'Accessible' if probe.reachable else 'Not Accessible'}")
    lines.append(f"- **Status Code:** {probe.status_code if probe.status_code is not None else 'N/A'}")
    response_time = f"{probe.response_time_ms}ms" if probe.response_time_ms is not None else "N/A"
    lines.append(f"- **Response Time:** {response_time}")
    lines.append(f"- **Protocol:** {'HTTPS' if probe.has_https else 'HTTP (insecure)'}")
    lines.append("")

    meta = probe.metadata
    if probe.reachable:
        lines.append("## Page Metadata")
        lines.append(f"- **Title:** {truncate(meta.title, 200) if meta.title else 'None'}")
        if meta.description:
            lines.append(f"- **Description:** {truncate(meta.description, 300)}")
        if meta.viewport:
            lines.append(f"- **Viewport:** {truncate(meta.viewport, 120)}")
        lines.append(f"- **Favicon:** {'Yes' if meta.has_favicon else 'No'}")
        lines.append("")

    for heading, items in (
        ("Strengths", assessment.strengths),
        ("Issues Found", assessment.issues),
        ("Recommendations", assessment.recommendations),
    ):
        if items:
            lines.append(f"## {heading}")
            lines.extend(f"- {truncate(item, 200)}" for item in items)
            lines.append("")

    if probe.html_preview:
        lines.append(f"## HTML Preview (first {SUMMARY_PREVIEW_CHARS} characters)")
        lines.append("```html")
        lines.append(probe.html_preview[:SUMMARY_PREVIEW_CHARS])
        lines.append("```")

    return "\n".join(lines).rstrip() + "\n"


def _is_ip_literal(host: str) -> bool:
    try:
        socket.inet_pton(socket.AF_INET6 if ":" in host else socket.AF_INET, host)
    except (OSError, ValueError):
        return False
    return True


def _reason(exc: Exception) -> str:
    reason = getattr(exc, "reason", None)
    return str(reason or exc)


__all__ = [
    "PageMetadata",
    "ProbeResult",
    "USER_AGENT",
    "WebsiteAssessment",
    "WebsiteProber",
    "build_summary",
    "extract_metadata",
    "is_valid_url",
    "normalize",
]
