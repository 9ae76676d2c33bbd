"""Summary: Blog content generation with model fallback and a deterministic template.

Importance: A malformed or failed LLM answer never fails the whole generation request.
Alternatives: Surface LLM failures to the caller and let them retry.
"""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Union

from builddesk.ai import AiProvider
from builddesk.errors import InvalidInput, MalformedUpstreamResponse, UpstreamServiceFailure

logger = logging.getLogger(__name__)

WORDS_PER_MINUTE = 200
DEFAULT_KEYWORDS = (
    "construction management",
    "project planning",
    "construction best practices",
    "building industry",
    "construction technology",
)
REQUIRED_FIELDS = ("title", "body", "excerpt", "seo_title", "seo_description")

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)
_BARE_JSON = re.compile(r"\{.*\}", re.DOTALL)


@dataclass(frozen=True)
class GenerationSettings:
    """Summary: Model and editorial settings for one generation request.

    Importance: Keeps primary and fallback model choices explicit per request.
    Alternatives: Read settings from global configuration inside the generator.
    """

    preferred_model: str
    fallback_model: str
    temperature: float = 0.7
    target_word_count: int = 1200
    target_keywords: tuple[str, ...] = ()
    content_style: str = "professional"


@dataclass(frozen=True)
class BlogContent:
    title: str
    body: str
    excerpt: str
    seo_title: str
    seo_description: str
    keywords: tuple[str, ...]
    estimated_read_time: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "body": self.body,
            "excerpt": self.excerpt,
            "seo_title": self.seo_title,
            "seo_description": self.seo_description,
            "keywords": list(self.keywords),
            "estimated_read_time": self.estimated_read_time,
        }


@dataclass(frozen=True)
class ModelAttempt:
    """Summary: One call made to a model while generating content."""

    model: str
    prompt: str
    response_text: str
    latency_ms: int
    error: str | None = None


@dataclass(frozen=True)
class ParsedContent:
    """Summary: Content parsed from a model answer."""

    content: BlogContent
    model: str
    attempts: tuple[ModelAttempt, ...] = field(default=())


@dataclass(frozen=True)
class FallbackTemplate:
    """Summary: Deterministic templated content used when no model answer was usable."""

    content: BlogContent
    reason: str
    attempts: tuple[ModelAttempt, ...] = field(default=())


GenerationOutcome = Union[ParsedContent, FallbackTemplate]


def extract_json_block(text: str) -> dict[str, Any]:
    """Summary: Pull the first JSON object out of a model answer.

    Importance: Models often wrap JSON in prose or markdown code fences.
    Alternatives: Require the provider's structured-output mode.
    """

    match = _FENCED_JSON.search(text) or _BARE_JSON.search(text)
    if not match:
        raise MalformedUpstreamResponse("No JSON object found in model response")
    candidate = match.group(1) if match.re is _FENCED_JSON else match.group(0)
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise MalformedUpstreamResponse(f"Failed to parse JSON from model response: {exc}") from exc
    if not isinstance(parsed, dict):
        raise MalformedUpstreamResponse("Model response JSON is not an object")
    return parsed


def estimate_read_time(text: str) -> int:
    return max(1, math.ceil(len(text.split()) / WORDS_PER_MINUTE))


def parse_blog_content(text: str, settings: GenerationSettings) -> BlogContent:
    """Summary: Validate a model answer into BlogContent.

    Importance: Missing fields count as a malformed answer, not as empty content.
    Alternatives: Accept partial content and fill gaps with blanks.
    """

    data = extract_json_block(text)
    missing = [
        name for name in REQUIRED_FIELDS if not isinstance(data.get(name), str) or not data[name].strip()
    ]
    if missing:
        raise MalformedUpstreamResponse(f"Model response missing fields: {', '.join(missing)}")
    keywords = data.get("keywords")
    if isinstance(keywords, list) and all(isinstance(item, str) for item in keywords) and keywords:
        parsed_keywords = tuple(keywords)
    else:
        parsed_keywords = settings.target_keywords or DEFAULT_KEYWORDS
    read_time = data.get("estimated_read_time")
    if not isinstance(read_time, int) or isinstance(read_time, bool) or read_time <= 0:
        read_time = estimate_read_time(data["body"])
    return BlogContent(
        title=data["title"].strip(),
        body=data["body"],
        excerpt=data["excerpt"].strip(),
        seo_title=data["seo_title"].strip(),
        seo_description=data["seo_description"].strip(),
        keywords=parsed_keywords,
        estimated_read_time=read_time,
    )


def build_prompt(topic: str, settings: GenerationSettings) -> str:
    keywords = ", ".join(settings.target_keywords) or "none specified"
    return (
        f'Write a comprehensive blog article about: "{topic}" for construction management '
        "professionals.\n\n"
        f"Target word count: {settings.target_word_count}\n"
        f"Content style: {settings.content_style}\n"
        f"Target keywords: {keywords}\n\n"
        "Return only a JSON object with these fields:\n"
        "{\n"
        '  "title": "Compelling article title",\n'
        '  "body": "Full article in markdown",\n'
        '  "excerpt": "Engaging 2-3 sentence summary (160 chars max)",\n'
        '  "seo_title": "SEO-optimized title (60 chars max)",\n'
        '  "seo_description": "SEO meta description (160 chars max)",\n'
        '  "keywords": ["primary keyword", "secondary keyword"],\n'
        '  "estimated_read_time": 8\n'
        "}"
    )


def build_fallback_prompt(topic: str, settings: GenerationSettings) -> str:
    return (
        f'Write a {settings.target_word_count}-word blog article about "{topic}" for '
        "construction professionals. Return as JSON with fields: title, body, excerpt, "
        "seo_title, seo_description, keywords, estimated_read_time."
    )


_CHALLENGES = (
    "Budget constraints and cost management pressures",
    "Evolving safety regulations and compliance requirements",
    "Skilled labor shortages across the industry",
    "Integration of new technologies and digital tools",
    "Complex project coordination and stakeholder management",
)
_PRACTICES = (
    ("Comprehensive Planning Phase", "Develop detailed project plans with clear milestones, "
     "resource requirements, and risk assessments before breaking ground."),
    ("Technology-Driven Project Management", "Use construction management software and mobile "
     "tools for real-time project tracking."),
    ("Safety-First Culture", "Hold daily safety briefings and regular safety training."),
    ("Quality Control Systems", "Inspect systematically and document each project phase."),
    ("Stakeholder Communication", "Keep clients, subcontractors and suppliers informed through "
     "scheduled meetings and progress reports."),
)
_METRICS = (
    "Project completion times compared to planned schedules",
    "Budget variance and cost control metrics",
    "Safety incident rates and near-miss reporting",
    "Quality scores and defect rates",
    "Client satisfaction and repeat business rates",
)


def create_fallback_content(topic: str, settings: GenerationSettings, year: int) -> BlogContent:
    """Summary: Build a deterministic article for a topic.

    Importance: Same topic, settings and year always yield the same document.
    Alternatives: Return an error page when generation fails.
    """

    subject = topic.lower()
    sections = [
        f"# {topic}",
        (
            f"In the construction industry of {year}, {subject} has become a critical factor for "
            f"project success. Companies that fail to modernize their approach to {subject} often "
            "struggle with cost overruns, safety incidents, and project delays. This guide covers "
            f"the essential elements and best practices of {subject}."
        ),
        "## Current Industry Challenges",
        "\n".join(f"- {challenge}" for challenge in _CHALLENGES),
        "## Essential Best Practices",
        "\n\n".join(
            f"### {index}. {name}\n\n{text}" for index, (name, text) in enumerate(_PRACTICES, start=1)
        ),
        "## Measuring Success",
        f"Track the effectiveness of your {subject} program through key performance indicators:",
        "\n".join(f"- {metric}" for metric in _METRICS),
        "## Conclusion",
        (
            f"Success in {subject} requires proven practices, modern technology, and continuous "
            "improvement. Start with solid fundamentals and add advanced techniques as your team "
            "gains experience."
        ),
    ]
    return BlogContent(
        title=f"{topic}: Complete Guide for Construction Professionals",
        body="\n\n".join(sections),
        excerpt=(
            f"Comprehensive guide to {subject} in construction, covering best practices, technology "
            f"integration, and implementation strategies for {year}."
        ),
        seo_title=f"{topic} Guide for Construction | {year}",
        seo_description=(
            f"Master {subject} in construction with proven strategies, best practices, and "
            "technology solutions. Complete guide for construction professionals."
        ),
        keywords=settings.target_keywords or DEFAULT_KEYWORDS,
        estimated_read_time=max(1, math.ceil(settings.target_word_count / WORDS_PER_MINUTE)),
    )


@dataclass(frozen=True)
class BlogContentGenerator:
    """Summary: Generates blog content from a topic with a single fallback chain.

    Importance: Primary model, then fallback model once, then the deterministic template.
    Alternatives: Retry the primary model until it succeeds.
    """

    ai_provider: AiProvider
    settings: GenerationSettings

    def generate(self, topic: str, year: int) -> GenerationOutcome:
        """Summary: Generate content for a topic.

        Importance: Always returns content; the outcome type records whether a model produced it.
        Alternatives: Raise on failure and let the caller choose a fallback.
        """

        if not topic or not topic.strip():
            raise InvalidInput("Topic is required")
        topic = topic.strip()
        attempts: list[ModelAttempt] = []
        plan = (
            (self.settings.preferred_model, build_prompt(topic, self.settings)),
            (self.settings.fallback_model, build_fallback_prompt(topic, self.settings)),
        )
        last_error = ""
        for model, prompt in plan:
            response_text = ""
            latency_ms = 0
            try:
                response_text, latency_ms = self.ai_provider.generate_text(
                    prompt, purpose="blog_content", model=model
                )
                content = parse_blog_content(response_text, self.settings)
            except UpstreamServiceFailure as exc:
                last_error = str(exc)
                attempts.append(ModelAttempt(model, prompt, response_text, latency_ms, last_error))
                logger.warning("Model %s failed for topic %r: %s", model, topic, exc)
                continue
            attempts.append(ModelAttempt(model, prompt, response_text, latency_ms))
            logger.info("Generated content for %r with model %s.", topic, model)
            return ParsedContent(content=content, model=model, attempts=tuple(attempts))
        logger.warning("Using fallback template for topic %r.", topic)
        return FallbackTemplate(
            content=create_fallback_content(topic, self.settings, year),
            reason=last_error,
            attempts=tuple(attempts),
        )
