"""Summary: Tests for AI abstraction layer.

Importance: Ensures AI providers return expected outputs and fail cleanly.
Alternatives: Skip AI testing and rely on manual verification.
"""

from __future__ import annotations

import pytest

from builddesk.ai import (
    AiProviderFactory,
    AnthropicProvider,
    MockAiProvider,
    OllamaProvider,
    estimate_tokens,
)
from builddesk.config import AppConfig
from builddesk.errors import UpstreamServiceFailure


def _build_config(ai_provider: str, anthropic_api_key: str | None = None) -> AppConfig:
    """Summary: Build an AppConfig for provider selection tests."""

    return AppConfig(
        db_path="unused.db",
        ai_provider=ai_provider,
        openai_api_key=None,
        openai_model="gpt-4o-mini",
        anthropic_api_key=anthropic_api_key,
        anthropic_model="claude-sonnet-4-20250514",
        anthropic_fallback_model="claude-3-5-haiku-20241022",
        ollama_url="http://localhost:11434",
        ollama_model="llama3",
        ai_timeout_seconds=5,
        api_host="127.0.0.1",
        api_port=8000,
        api_key="",
        support_team_name="BuildDesk Support Team",
        knowledge_base_url="https://builddesk.com/knowledge-base",
        priority_urgent_keywords=["urgent"],
        priority_high_keywords=["error"],
        priority_low_keywords=["suggestion"],
        blog_target_word_count=1200,
        blog_temperature=0.7,
    )


def test_mock_ai_provider_returns_response() -> None:
    """Summary: Verify mock AI provider returns deterministic text.

    Importance: Confirms basic AI abstraction behavior for tests.
    Alternatives: Use live providers in integration tests only.
    """

    provider = MockAiProvider()
    response, latency = provider.generate_text("Hello", "test")
    assert "[mock:test]" in response
    assert latency >= 0


def test_factory_selects_provider() -> None:
    """Summary: Verify provider selection and required credentials.

    Importance: Misconfigured cloud providers must fail at startup.
    Alternatives: Fail on the first generation request.
    """

    assert isinstance(AiProviderFactory(_build_config("mock")).build(), MockAiProvider)
    assert isinstance(AiProviderFactory(_build_config("ollama")).build(), OllamaProvider)
    anthropic = AiProviderFactory(_build_config("anthropic", anthropic_api_key="key")).build()
    assert isinstance(anthropic, AnthropicProvider)
    with pytest.raises(ValueError):
        AiProviderFactory(_build_config("openai")).build()
    with pytest.raises(ValueError):
        AiProviderFactory(_build_config("anthropic")).build()


def test_config_model_names() -> None:
    config = _build_config("anthropic", anthropic_api_key="key")
    assert config.model_name == "claude-sonnet-4-20250514"
    assert config.fallback_model_name == "claude-3-5-haiku-20241022"
    assert _build_config("mock").fallback_model_name == "mock"


def test_unreachable_provider_raises_upstream_failure() -> None:
    provider = OllamaProvider("http://127.0.0.1:9", "llama3", timeout=2)
    with pytest.raises(UpstreamServiceFailure):
        provider.generate_text("Hello", "test")


def test_estimate_tokens() -> None:
    assert estimate_tokens("") == 1
    assert estimate_tokens("a" * 40) == 10
