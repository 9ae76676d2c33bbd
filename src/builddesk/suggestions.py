"""Summary: Suggestion composer and knowledge-base article ranking.

Importance: Turns a classification into routing hints, draft replies and article links.
Alternatives: Leave routing and replies entirely to support agents.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

from builddesk.models import (
    ArticleMatch,
    ClassificationResult,
    Complexity,
    KnowledgeArticle,
    Suggestion,
    SuggestionType,
    TicketCategory,
    TicketRecord,
    UserContext,
)
from builddesk.response_templates import template_for

AUTO_RESPONSE_CONFIDENCE = 0.85
CATEGORY_MATCH_BONUS = 0.3

_TOKEN = re.compile(r"[a-z0-9]+")
_STOPWORDS = frozenset(
    {
        "the", "and", "for", "with", "your", "you", "how", "what", "from",
        "this", "that", "are", "can", "not", "into", "use", "using", "about",
    }
)


@dataclass(frozen=True)
class ResponseSettings:
    """Summary: Branding used when rendering replies."""

    product_name: str = "BuildDesk"
    team_name: str = "BuildDesk Support Team"
    knowledge_base_url: str = "https://builddesk.com/knowledge-base"


def greeting_for(context: UserContext) -> str:
    """Summary: Personalize the greeting for known accounts.

    Importance: Anonymous tickets get a generic greeting.
    Alternatives: Always use a generic greeting.
    """

    if not context.user_found:
        return "Hi there,"
    name = context.company_name or context.display_name or "there"
    return f"Hi {name},"


def render_response(
    category: TicketCategory,
    context: UserContext,
    settings: ResponseSettings | None = None,
) -> str:
    """Summary: Render the canned reply for a category.

    Importance: Produces consistent wording for auto-responses and agent drafts.
    Alternatives: Generate replies with an LLM.
    """

    settings = settings or ResponseSettings()
    body = template_for(category).body.format(knowledge_base_url=settings.knowledge_base_url)
    return (
        f"{greeting_for(context)}\n\n"
        f"Thank you for contacting {settings.product_name} support.\n\n"
        f"{body}"
        f"\nBest regards,\n{settings.team_name}"
    )


def compose(
    classification: ClassificationResult,
    context: UserContext,
    settings: ResponseSettings | None = None,
) -> list[Suggestion]:
    """Summary: Build suggestions for a classified ticket.

    Importance: Always routes; auto-responds only to simple how-to questions.
    Alternatives: Auto-respond to every ticket category.
    """

    suggestions = [
        Suggestion(
            suggestion_type=SuggestionType.ROUTING,
            confidence_score=classification.confidence,
            category=classification.category,
            priority=classification.priority,
        )
    ]
    if (
        classification.category is TicketCategory.HOW_TO_QUESTION
        and classification.complexity is Complexity.SIMPLE
    ):
        suggestions.append(
            Suggestion(
                suggestion_type=SuggestionType.AUTO_RESPONSE,
                confidence_score=AUTO_RESPONSE_CONFIDENCE,
                content=render_response(classification.category, context, settings),
            )
        )
    return suggestions


def _terms(text: str) -> set[str]:
    return {
        token
        for token in _TOKEN.findall(text.lower())
        if len(token) > 2 and token not in _STOPWORDS
    }


def helpful_rate(article: KnowledgeArticle) -> float:
    return article.helpful_count / max(article.helpful_count + article.not_helpful_count, 1)


def rank_articles(
    articles: Iterable[KnowledgeArticle],
    record: TicketRecord,
    classification: ClassificationResult,
    limit: int = 3,
) -> list[ArticleMatch]:
    """Summary: Rank knowledge-base articles by keyword overlap with a ticket.

    Importance: Surfaces the most relevant self-service answers for agents and users.
    Alternatives: Use vector embeddings for semantic similarity.
    """

    ticket_terms = _terms(record.text)
    scored: list[tuple[float, KnowledgeArticle]] = []
    for article in articles:
        article_terms = _terms(f"{article.title} {' '.join(article.tags)}")
        overlap = len(article_terms & ticket_terms) / len(article_terms) if article_terms else 0.0
        if article.category == classification.category.value:
            overlap += CATEGORY_MATCH_BONUS
        score = round(min(overlap, 1.0), 2)
        if score > 0:
            scored.append((score, article))
    scored.sort(key=lambda item: (-item[0], -item[1].helpful_count, item[1].article_id))
    return [
        ArticleMatch(
            article_id=article.article_id,
            title=article.title,
            match_score=score,
            helpful_rate=round(helpful_rate(article), 2),
        )
        for score, article in scored[:limit]
    ]
