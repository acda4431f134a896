"""Adapter around an OpenAI-compatible chat-completions backend."""

from __future__ import annotations

import http.client
import json
import os
import socket
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional, Sequence
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from ..errors import BackendFailure, BackendTimeout
from ..models import BackendTier

_AUTO_API_KEY = object()


@dataclass
class LLMRequest:
    """Represents one chat completion request."""

    prompt: str
    system: Optional[str]
    model: str
    temperature: Optional[float]
    max_tokens: Optional[int]
    base_url: str
    api_key: Optional[str]
    request_timeout: Optional[float]
    json_mode: bool = True


class LLMRunner:
    """Executes prompts against the configured reasoning backend.

    Each :class:`BackendTier` maps to a model name; ``run`` sends exactly one
    request and never retries.
    """

    DEFAULT_BASE_URL = "https://api.groq.com/openai/v1"
    DEFAULT_MODELS: Mapping[BackendTier, str] = {
        BackendTier.FAST: "llama-3.1-8b-instant",
        BackendTier.BALANCED: "mixtral-8x7b-32768",
        BackendTier.CAPABLE: "llama-3.3-70b-versatile",
    }
    ENV_BASE_URL_KEYS = ("ASSESSOR_LLM_BASE_URL", "OPENAI_BASE_URL")
    ENV_API_KEY_KEYS = ("ASSESSOR_LLM_API_KEY", "GROQ_API_KEY", "OPENAI_API_KEY")

    def __init__(
        self,
        models: Mapping[BackendTier | str, str] | None = None,
        *,
        base_url: str | None = None,
        temperature: Optional[float] = 0.3,
        max_tokens: Optional[int] = 1000,
        api_key: str | None | object = _AUTO_API_KEY,
        request_timeout: Optional[float] = 30.0,
        runner: Callable[[LLMRequest], str] | None = None,
    ) -> None:
        self.models = self._resolve_models(models)
        self.base_url = self._resolve_base_url(base_url)
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.api_key = self._resolve_api_key(api_key)
        self.request_timeout = request_timeout
        self._runner = runner or self._http_runner

    def model_for(self, tier: BackendTier) -> str:
        return self.models[tier]

    def run(self, prompt: str, *, tier: BackendTier, system: str | None = None) -> str:
        """Send the prompt to the model for ``tier`` and return the response text."""
        request = LLMRequest(
            prompt=prompt,
            system=system,
            model=self.model_for(tier),
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            base_url=self.base_url,
            api_key=self.api_key,
            request_timeout=self.request_timeout,
        )
        return self._runner(request)

    @staticmethod
    def _http_runner(request: LLMRequest) -> str:
        endpoint = f"{request.base_url}/chat/completions"
        payload: dict[str, object] = {
            "model": request.model,
            "messages": LLMRunner._build_messages(request.system, request.prompt),
        }
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        if request.max_tokens is not None:
            payload["max_tokens"] = request.max_tokens
        if request.json_mode:
            payload["response_format"] = {"type": "json_object"}

        data = json.dumps(payload).encode("utf-8")
        headers = {"Content-Type": "application/json"}
        if request.api_key:
            headers["Authorization"] = f"Bearer {request.api_key}"

        http_request = Request(endpoint, data=data, headers=headers, method="POST")
        timeout = request.request_timeout or 30.0

        try:
            with urlopen(http_request, timeout=timeout) as response:  # type: ignore[arg-type]
                raw = response.read()
        except HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="ignore") if hasattr(exc, "read") else ""
            message = detail.strip() or exc.reason
            raise BackendFailure(
                f"Backend request failed with status {exc.code}: {message}"
            ) from exc
        except (socket.timeout, TimeoutError) as exc:
            raise BackendTimeout(f"Backend did not answer within {timeout}s") from exc
        except URLError as exc:
            if isinstance(exc.reason, (socket.timeout, TimeoutError)):
                raise BackendTimeout(f"Backend did not answer within {timeout}s") from exc
            raise BackendFailure(f"Backend request failed: {exc.reason}") from exc
        except (OSError, http.client.HTTPException) as exc:
            raise BackendFailure(f"Backend connection failed: {exc!r}") from exc

        try:
            response_payload = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise BackendFailure("Backend returned invalid JSON") from exc

        content = LLMRunner._extract_content(response_payload)
        if not content:
            raise BackendFailure("Backend returned an empty response")
        return content.strip()

    @staticmethod
    def _build_messages(system: str | None, prompt: str) -> list[dict[str, str]]:
        messages: list[dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        return messages

    @staticmethod
    def _extract_content(payload: object) -> str:
        if not isinstance(payload, dict):
            return ""
        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            return ""
        first = choices[0]
        if not isinstance(first, dict):
            return ""
        message = first.get("message")
        if isinstance(message, dict):
            content = message.get("content")
            if isinstance(content, str):
                return content
        text = first.get("text")
        if isinstance(text, str):
            return text
        return ""

    def _resolve_models(self, models: Mapping[BackendTier | str, str] | None) -> Dict[BackendTier, str]:
        resolved: Dict[BackendTier, str] = dict(self.DEFAULT_MODELS)
        for key, value in (models or {}).items():
            if value:
                resolved[BackendTier(key)] = value
        return resolved

    def _resolve_base_url(self, base_url: str | None) -> str:
        value = base_url or self._first_env_value(self.ENV_BASE_URL_KEYS) or self.DEFAULT_BASE_URL
        return value.rstrip("/")

    def _resolve_api_key(self, api_key: str | None | object) -> str | None:
        if api_key is _AUTO_API_KEY:
            return self._first_env_value(self.ENV_API_KEY_KEYS)
        return api_key  # type: ignore[return-value]

    @staticmethod
    def _first_env_value(keys: Sequence[str]) -> str | None:
        for key in keys:
            value = os.getenv(key)
            if value:
                return value
        return None
