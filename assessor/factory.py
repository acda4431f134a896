"""Wiring of configured components for the CLI and service."""

from __future__ import annotations

from .analyzers.repository import RepositoryAnalyzer, RepositoryClient
from .analyzers.website import USER_AGENT, WebsiteProber
from .config import AssessorConfig
from .evidence import EvidenceCollector
from .github.client import GitHubClient
from .llm.runner import LLMRunner
from .orchestrator import AssessmentOrchestrator, AssessmentPipeline
from .stores.cache import Cache, MemoryCache
from .stores.rate_limit import RateLimiter, SlidingWindowRateLimiter


def build_runner(config: AssessorConfig) -> LLMRunner:
    llm = config.llm
    return LLMRunner(
        llm.models,
        base_url=llm.base_url,
        api_key=llm.api_key,
        temperature=llm.temperature,
        max_tokens=llm.max_tokens,
        request_timeout=llm.request_timeout,
    )


def build_collector(
    config: AssessorConfig,
    *,
    client: RepositoryClient | None = None,
    cache: Cache | None = None,
) -> EvidenceCollector:
    github = config.github
    client = client or GitHubClient(
        api_url=github.api_url,
        token=github.token,
        request_timeout=github.request_timeout,
    )
    analyzer = RepositoryAnalyzer(
        client,
        cache=cache,
        cache_ttl=config.cache.ttl_seconds,
        policy=config.scoring,
        batch_size=github.batch_size,
    )
    prober = WebsiteProber(
        timeout=config.website.timeout,
        user_agent=config.website.user_agent or USER_AGENT,
        preview_chars=config.website.preview_chars,
    )
    return EvidenceCollector(analyzer, prober)


def build_pipeline(
    config: AssessorConfig,
    *,
    runner: LLMRunner | None = None,
    client: RepositoryClient | None = None,
    cache: Cache | None = None,
    rate_limiter: RateLimiter | None = None,
) -> AssessmentPipeline:
    """Assemble a pipeline; each call gets its own cache and rate limiter."""
    cache = cache if cache is not None else MemoryCache(max_entries=config.cache.max_entries)
    if rate_limiter is None:
        rate_limiter = SlidingWindowRateLimiter(
            max_requests=config.rate_limit.max_requests,
            window_seconds=config.rate_limit.window_seconds,
        )
    collector = build_collector(config, client=client, cache=cache)
    orchestrator = AssessmentOrchestrator(runner or build_runner(config), routing=config.routing)
    return AssessmentPipeline(collector, orchestrator, rate_limiter=rate_limiter)


__all__ = ["build_collector", "build_pipeline", "build_runner"]
