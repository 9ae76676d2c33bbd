"""Summary: AI provider abstraction and implementations.

Importance: Centralizes LLM access for portability and auditability.
Alternatives: Call provider SDKs directly in each service.
"""

from __future__ import annotations

import json
import time
import urllib.error
import urllib.request
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from builddesk.config import AppConfig
from builddesk.errors import UpstreamServiceFailure


class AiProvider(ABC):
    """Summary: Abstract interface for AI text generation.

    Importance: Allows switching between local and cloud LLMs without refactors.
    Alternatives: Use a single vendor SDK and accept lock-in risk.
    """

    @abstractmethod
    def generate_text(
        self, prompt: str, purpose: str, model: str | None = None
    ) -> tuple[str, int]:
        """Summary: Generate a response for a prompt, optionally with a specific model.

        Importance: Standardizes AI outputs for downstream services.
        Alternatives: Return provider-specific response objects directly.
        """


class MockAiProvider(AiProvider):
    """Summary: Deterministic AI provider for local testing.

    Importance: Enables offline workflows and repeatable tests.
    Alternatives: Use a small local LLM for all development tasks.
    """

    def generate_text(
        self, prompt: str, purpose: str, model: str | None = None
    ) -> tuple[str, int]:
        started = time.time()
        response = f"[mock:{purpose}] {prompt[:240]}"
        latency_ms = int((time.time() - started) * 1000)
        return response, latency_ms


def _post_json(
    url: str, payload: dict[str, Any], headers: dict[str, str], timeout: int, label: str
) -> tuple[dict[str, Any], int]:
    request = urllib.request.Request(
        url=url,
        data=json.dumps(payload).encode("utf-8"),
        headers={"Content-Type": "application/json", **headers},
        method="POST",
    )
    started = time.time()
    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:
            raw = json.loads(response.read().decode("utf-8"))
    except (urllib.error.URLError, TimeoutError) as exc:
        raise UpstreamServiceFailure(f"{label} request failed: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise UpstreamServiceFailure(f"{label} returned invalid JSON: {exc}") from exc
    latency_ms = int((time.time() - started) * 1000)
    return raw, latency_ms


class OllamaProvider(AiProvider):
    """Summary: AI provider that targets a local Ollama server.

    Importance: Supports privacy-sensitive workflows on local hardware.
    Alternatives: Use llama.cpp directly with a Python binding.
    """

    def __init__(self, base_url: str, model: str, timeout: int = 60) -> None:
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._timeout = timeout

    def generate_text(
        self, prompt: str, purpose: str, model: str | None = None
    ) -> tuple[str, int]:
        """Summary: Generate text using the Ollama HTTP API.

        Importance: Enables local inference for drafts and content.
        Alternatives: Use Ollama's CLI and parse its output.
        """

        payload = {"model": model or self._model, "prompt": prompt, "stream": False}
        raw, latency_ms = _post_json(
            f"{self._base_url}/api/generate", payload, {}, self._timeout, "Ollama"
        )
        return raw.get("response", ""), latency_ms


class OpenAiProvider(AiProvider):
    """Summary: AI provider using OpenAI's chat completion API.

    Importance: Enables higher-quality content when configured.
    Alternatives: Use other cloud providers or a local model.
    """

    def __init__(self, api_key: str, model: str, timeout: int = 60, temperature: float = 0.2) -> None:
        self._api_key = api_key
        self._model = model
        self._timeout = timeout
        self._temperature = temperature

    def generate_text(
        self, prompt: str, purpose: str, model: str | None = None
    ) -> tuple[str, int]:
        payload = {
            "model": model or self._model,
            "messages": [
                {"role": "system", "content": f"You are BuildDesk. Task: {purpose}."},
                {"role": "user", "content": prompt},
            ],
            "temperature": self._temperature,
        }
        raw, latency_ms = _post_json(
            "https://api.openai.com/v1/chat/completions",
            payload,
            {"Authorization": f"Bearer {self._api_key}"},
            self._timeout,
            "OpenAI",
        )
        try:
            content = raw["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise UpstreamServiceFailure(f"OpenAI response missing content: {exc}") from exc
        return content, latency_ms


class AnthropicProvider(AiProvider):
    """Summary: AI provider using Anthropic's messages API.

    Importance: Primary provider for long-form content generation.
    Alternatives: Use the OpenAI provider for all generation.
    """

    def __init__(
        self, api_key: str, model: str, timeout: int = 60, temperature: float = 0.7
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._timeout = timeout
        self._temperature = temperature

    def generate_text(
        self, prompt: str, purpose: str, model: str | None = None
    ) -> tuple[str, int]:
        payload = {
            "model": model or self._model,
            "max_tokens": 4000,
            "temperature": self._temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        raw, latency_ms = _post_json(
            "https://api.anthropic.com/v1/messages",
            payload,
            {"x-api-key": self._api_key, "anthropic-version": "2023-06-01"},
            self._timeout,
            "Anthropic",
        )
        try:
            content = raw["content"][0]["text"]
        except (KeyError, IndexError, TypeError) as exc:
            raise UpstreamServiceFailure(f"Anthropic response missing content: {exc}") from exc
        return content, latency_ms


@dataclass(frozen=True)
class AiProviderFactory:
    """Summary: Factory for selecting AI providers from configuration.

    Importance: Keeps provider selection logic centralized.
    Alternatives: Wire providers manually at the application entrypoint.
    """

    config: AppConfig

    def build(self) -> AiProvider:
        config = self.config
        if config.ai_provider == "ollama":
            return OllamaProvider(config.ollama_url, config.ollama_model, config.ai_timeout_seconds)
        if config.ai_provider == "openai":
            if not config.openai_api_key:
                raise ValueError("OPENAI_API_KEY is required for openai provider")
            return OpenAiProvider(
                config.openai_api_key,
                config.openai_model,
                config.ai_timeout_seconds,
                config.blog_temperature,
            )
        if config.ai_provider == "anthropic":
            if not config.anthropic_api_key:
                raise ValueError("ANTHROPIC_API_KEY is required for anthropic provider")
            return AnthropicProvider(
                config.anthropic_api_key,
                config.anthropic_model,
                config.ai_timeout_seconds,
                config.blog_temperature,
            )
        return MockAiProvider()


def estimate_tokens(text: str) -> int:
    """Summary: Estimate tokens from text length.

    Importance: Provides a rough metric for AI usage auditing.
    Alternatives: Use provider token counters or tiktoken.
    """

    return max(1, len(text) // 4)
