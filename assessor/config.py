"""Configuration loading for assessor (.assessor.yml) and rubric files."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .analyzers.selection import ScoringPolicy
from .models import BackendTier, ReferenceExample, Rubric
from .orchestrator import RoutingPolicy

CONFIG_FILENAME = ".assessor.yml"


class ConfigError(RuntimeError):
    """Raised when a configuration or rubric file cannot be parsed."""


@dataclass
class LLMConfig:
    """Reasoning backend settings."""

    base_url: Optional[str] = None
    api_key: Optional[str] = None
    models: Dict[BackendTier, str] = field(default_factory=dict)
    temperature: float = 0.3
    max_tokens: int = 1000
    request_timeout: float = 30.0


@dataclass
class GitHubConfig:
    api_url: Optional[str] = None
    token: Optional[str] = None
    request_timeout: float = 15.0
    batch_size: int = 10


@dataclass
class WebsiteConfig:
    user_agent: Optional[str] = None
    timeout: float = 10.0
    preview_chars: int = 2000


@dataclass
class CacheConfig:
    ttl_seconds: float = 3600.0
    max_entries: int = 256


@dataclass
class RateLimitConfig:
    max_requests: int = 10
    window_seconds: float = 60.0


@dataclass
class AssessorConfig:
    """Represents the settings defined in .assessor.yml."""

    root: Path
    llm: LLMConfig = field(default_factory=LLMConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)
    website: WebsiteConfig = field(default_factory=WebsiteConfig)
    scoring: ScoringPolicy = field(default_factory=ScoringPolicy)
    routing: RoutingPolicy = field(default_factory=RoutingPolicy)
    cache: CacheConfig = field(default_factory=CacheConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)


def load_config(config_path: Path) -> AssessorConfig:
    """Load configuration from disk; a missing file yields defaults."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    data: Dict[str, Any] = {}
    if config_file.exists():
        loaded = _read_yaml(config_file)
        if not isinstance(loaded, dict):
            raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")
        data = loaded

    llm_data = _as_dict(data.get("llm"))
    llm = LLMConfig(
        base_url=_as_str(llm_data.get("base_url")) or os.getenv("ASSESSOR_LLM_BASE_URL"),
        api_key=_as_str(llm_data.get("api_key")) or _first_env("ASSESSOR_LLM_API_KEY", "GROQ_API_KEY"),
        models=_parse_models(llm_data.get("models")),
        temperature=_or_default(_as_float(llm_data.get("temperature")), 0.3),
        max_tokens=_or_default(_as_int(llm_data.get("max_tokens")), 1000),
        request_timeout=_or_default(_as_float(llm_data.get("request_timeout")), 30.0),
    )

    github_data = _as_dict(data.get("github"))
    github = GitHubConfig(
        api_url=_as_str(github_data.get("api_url")),
        token=_as_str(github_data.get("token")) or _first_env("ASSESSOR_GITHUB_TOKEN", "GITHUB_TOKEN"),
        request_timeout=_or_default(_as_float(github_data.get("request_timeout")), 15.0),
        batch_size=_positive(_as_int(github_data.get("batch_size")), 10, "github.batch_size"),
    )

    website_data = _as_dict(data.get("website"))
    website = WebsiteConfig(
        user_agent=_as_str(website_data.get("user_agent")),
        timeout=_or_default(_as_float(website_data.get("timeout")), 10.0),
        preview_chars=_positive(_as_int(website_data.get("preview_chars")), 2000, "website.preview_chars"),
    )

    policy_data = _as_dict(data.get("policy"))
    scoring = _override_ints(ScoringPolicy(), _as_dict(policy_data.get("scoring")), "policy.scoring")
    routing = _override_ints(RoutingPolicy(), _as_dict(policy_data.get("routing")), "policy.routing")

    cache_data = _as_dict(data.get("cache"))
    cache = CacheConfig(
        ttl_seconds=_or_default(_as_float(cache_data.get("ttl_seconds")), 3600.0),
        max_entries=_positive(_as_int(cache_data.get("max_entries")), 256, "cache.max_entries"),
    )

    limit_data = _as_dict(data.get("rate_limit"))
    rate_limit = RateLimitConfig(
        max_requests=_positive(_as_int(limit_data.get("max_requests")), 10, "rate_limit.max_requests"),
        window_seconds=_or_default(_as_float(limit_data.get("window_seconds")), 60.0),
    )

    return AssessorConfig(
        root=root,
        llm=llm,
        github=github,
        website=website,
        scoring=scoring,
        routing=routing,
        cache=cache,
        rate_limit=rate_limit,
    )


def load_rubric(path: Path) -> Rubric:
    """Load a rubric from a YAML file.

    Required keys are ``title`` and ``description``. A single
    ``reference_example`` mapping and a ``reference_examples`` list are both
    accepted.
    """
    path = path.expanduser()
    if not path.exists():
        raise ConfigError(f"Rubric file not found: {path}")
    data = _read_yaml(path)
    if not isinstance(data, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")
    return rubric_from_dict(data, source=path.name)


def rubric_from_dict(data: Dict[str, Any], *, source: str = "rubric") -> Rubric:
    title = _as_str(data.get("title"))
    description = _as_str(data.get("description"))
    if not title or not description:
        raise ConfigError(f"{source} requires 'title' and 'description'")

    reference = _parse_reference_example(data.get("reference_example"), source)
    examples = tuple(
        example
        for example in (_parse_reference_example(item, source) for item in _as_list(data.get("reference_examples")))
        if example is not None
    )
    return Rubric(
        title=title,
        description=description,
        criteria=tuple(_as_str_list(data.get("criteria"))),
        red_flags=tuple(_as_str_list(data.get("red_flags"))),
        conditional_checks=tuple(_as_str_list(data.get("conditional_checks"))),
        custom_instructions=_as_str(data.get("custom_instructions")),
        reference_example=reference,
        reference_examples=examples,
    )


def _parse_reference_example(value: Any, source: str) -> Optional[ReferenceExample]:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ConfigError(f"{source}: reference examples must be mappings")
    content = _as_str(value.get("content"))
    if not content:
        raise ConfigError(f"{source}: reference example requires 'content'")
    return ReferenceExample(
        title=_as_str(value.get("title")) or "Reference example",
        content=content,
        metadata=_as_dict(value.get("metadata")),
    )


def _parse_models(value: Any) -> Dict[BackendTier, str]:
    models: Dict[BackendTier, str] = {}
    for key, model in _as_dict(value).items():
        try:
            tier = BackendTier(str(key).lower())
        except ValueError as exc:
            raise ConfigError(f"Unknown backend tier in llm.models: {key}") from exc
        name = _as_str(model)
        if name:
            models[tier] = name
    return models


def _override_ints(policy: Any, overrides: Dict[str, Any], section: str) -> Any:
    known = {item.name for item in fields(policy)}
    values: Dict[str, int] = {}
    for key, raw in overrides.items():
        if key not in known:
            raise ConfigError(f"Unknown key in {section}: {key}")
        value = _as_int(raw)
        if value is None:
            raise ConfigError(f"{section}.{key} must be an integer")
        values[key] = value
    return type(policy)(**{**{item.name: getattr(policy, item.name) for item in fields(policy)}, **values})


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_yaml(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return {} if loaded is None else loaded


def _first_env(*keys: str) -> Optional[str]:
    for key in keys:
        value = os.getenv(key)
        if value:
            return value
    return None


def _or_default(value: Any, default: Any) -> Any:
    return default if value is None else value


def _positive(value: Optional[int], default: int, name: str) -> int:
    if value is None:
        return default
    if value <= 0:
        raise ConfigError(f"{name} must be positive")
    return value


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    return str(value) if isinstance(value, (str, int, float)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float)) and not isinstance(item, bool)]
    return []


__all__ = [
    "AssessorConfig",
    "CacheConfig",
    "ConfigError",
    "GitHubConfig",
    "LLMConfig",
    "RateLimitConfig",
    "WebsiteConfig",
    "load_config",
    "load_rubric",
    "rubric_from_dict",
]
