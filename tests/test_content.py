"""Summary: Tests for blog content generation and its fallback chain.

Importance: Ensures model failures degrade to the fallback model and then the template.
Alternatives: Test content generation against live providers only.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from builddesk.ai import AiProvider
from builddesk.content import (
    DEFAULT_KEYWORDS,
    BlogContentGenerator,
    FallbackTemplate,
    GenerationSettings,
    ParsedContent,
    create_fallback_content,
    extract_json_block,
    parse_blog_content,
)
from builddesk.errors import InvalidInput, MalformedUpstreamResponse, UpstreamServiceFailure
from builddesk.services import ContentService
from builddesk.storage.sqlite_store import SqliteStore

SETTINGS = GenerationSettings(preferred_model="primary", fallback_model="backup")

ARTICLE = {
    "title": "Site Safety in 2025",
    "body": "word " * 450,
    "excerpt": "A short summary.",
    "seo_title": "Site Safety Guide",
    "seo_description": "Everything about site safety.",
    "keywords": ["site safety"],
    "estimated_read_time": 3,
}


class ScriptedProvider(AiProvider):
    """Summary: Provider that replays scripted answers or failures in order."""

    def __init__(self, *answers: str | Exception) -> None:
        self._answers = list(answers)
        self.models: list[str | None] = []

    def generate_text(
        self, prompt: str, purpose: str, model: str | None = None
    ) -> tuple[str, int]:
        self.models.append(model)
        answer = self._answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer, 5


def test_generate_parses_fenced_json_from_primary_model() -> None:
    """Summary: Verify a fenced JSON answer from the primary model is used.

    Importance: The common path should not touch the fallback model.
    Alternatives: Always query both models and pick the best.
    """

    provider = ScriptedProvider(f"Here you go:\n```json\n{json.dumps(ARTICLE)}\n```")
    outcome = BlogContentGenerator(provider, SETTINGS).generate("Site Safety", 2025)
    assert isinstance(outcome, ParsedContent)
    assert outcome.model == "primary"
    assert outcome.content.title == "Site Safety in 2025"
    assert outcome.content.estimated_read_time == 3
    assert provider.models == ["primary"]
    assert len(outcome.attempts) == 1


def test_generate_uses_fallback_model_after_malformed_answer() -> None:
    provider = ScriptedProvider("Sorry, I cannot help with that.", json.dumps(ARTICLE))
    outcome = BlogContentGenerator(provider, SETTINGS).generate("Site Safety", 2025)
    assert isinstance(outcome, ParsedContent)
    assert outcome.model == "backup"
    assert provider.models == ["primary", "backup"]
    assert outcome.attempts[0].error
    assert outcome.attempts[1].error is None


def test_generate_falls_back_to_template_when_both_models_fail() -> None:
    """Summary: Verify the deterministic template is used after two failures.

    Importance: Generation always returns content, and the outcome says it is templated.
    Alternatives: Raise an error to the caller.
    """

    provider = ScriptedProvider(
        UpstreamServiceFailure("timeout"), UpstreamServiceFailure("timeout")
    )
    outcome = BlogContentGenerator(provider, SETTINGS).generate("Safety Training", 2025)
    assert isinstance(outcome, FallbackTemplate)
    assert outcome.reason == "timeout"
    assert len(outcome.attempts) == 2
    content = outcome.content
    assert content.title == "Safety Training: Complete Guide for Construction Professionals"
    assert content.seo_title == "Safety Training Guide for Construction | 2025"
    assert content.keywords == DEFAULT_KEYWORDS
    assert content.estimated_read_time == 6


def test_content_service_audits_every_attempt(tmp_path: Path) -> None:
    """Summary: Verify each model call is written to the AI audit tables.

    Importance: Keeps a trace of prompts even when the template is used.
    Alternatives: Audit only successful generations.
    """

    store = SqliteStore(str(tmp_path / "test.db"))
    store.initialize()
    provider = ScriptedProvider("not json", UpstreamServiceFailure("down"))
    service = ContentService(
        store=store, ai_provider=provider, provider_name="scripted", settings=SETTINGS
    )
    outcome = service.generate_blog_post("Site Safety", 2025)
    assert isinstance(outcome, FallbackTemplate)
    requests = store.list_ai_requests()
    assert [request.model for request in requests] == ["backup", "primary"]
    assert all(request.purpose == "blog_content" for request in requests)
    with pytest.raises(InvalidInput):
        service.generate_blog_post(" ")


def test_generate_requires_topic() -> None:
    with pytest.raises(InvalidInput):
        BlogContentGenerator(ScriptedProvider(), SETTINGS).generate("  ", 2025)


def test_fallback_content_is_deterministic() -> None:
    first = create_fallback_content("Crane Logistics", SETTINGS, 2025)
    second = create_fallback_content("Crane Logistics", SETTINGS, 2025)
    assert first == second
    assert "crane logistics" in first.body


def test_extract_json_block_variants() -> None:
    assert extract_json_block('prefix {"title": "x"} suffix') == {"title": "x"}
    assert extract_json_block('```\n{"title": "y"}\n```') == {"title": "y"}
    with pytest.raises(MalformedUpstreamResponse):
        extract_json_block("no json here")
    with pytest.raises(MalformedUpstreamResponse):
        extract_json_block("{not valid json}")


def test_parse_blog_content_validates_fields() -> None:
    """Summary: Verify missing fields are rejected and read time is estimated.

    Importance: Partial answers count as failures rather than blank content.
    Alternatives: Fill missing fields with empty strings.
    """

    incomplete = dict(ARTICLE)
    del incomplete["seo_title"]
    with pytest.raises(MalformedUpstreamResponse):
        parse_blog_content(json.dumps(incomplete), SETTINGS)

    no_read_time = dict(ARTICLE)
    del no_read_time["estimated_read_time"]
    del no_read_time["keywords"]
    content = parse_blog_content(json.dumps(no_read_time), SETTINGS)
    assert content.estimated_read_time == 3
    assert content.keywords == DEFAULT_KEYWORDS
