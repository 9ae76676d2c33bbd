"""Summary: Read-only keyword tables that drive the triage classifiers.

Importance: Keeps every heuristic vocabulary in one immutable, shareable place.
Alternatives: Store keyword lists in the database and reload per request.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from functools import lru_cache
from types import MappingProxyType
from typing import Iterable, Mapping

from builddesk.models import Priority, TicketCategory


@dataclass(frozen=True)
class KeywordGroup:
    """Summary: One regular-expression keyword group and the weight it adds.

    Importance: A category's score is the sum of the weights of its matching groups.
    Alternatives: Score each keyword individually.
    """

    pattern: re.Pattern[str]
    weight: int

    @staticmethod
    def of(expression: str, weight: int) -> "KeywordGroup":
        return KeywordGroup(re.compile(expression, re.IGNORECASE), weight)

    def matches(self, text: str) -> bool:
        return self.pattern.search(text) is not None


@dataclass(frozen=True)
class KeywordTables:
    """Summary: Immutable vocabulary for categorization, priority, sentiment and complexity.

    Importance: Loaded once and passed by reference into pure classifier functions.
    Alternatives: Module-level mutable lists edited at runtime.
    """

    categories: Mapping[TicketCategory, tuple[KeywordGroup, ...]]
    priority: Mapping[Priority, tuple[str, ...]]
    frustrated: tuple[str, ...]
    happy: tuple[str, ...]
    technical_terms: tuple[str, ...]
    conjunctions: tuple[str, ...]

    def with_priority_keywords(
        self,
        urgent: Iterable[str] | None = None,
        high: Iterable[str] | None = None,
        low: Iterable[str] | None = None,
    ) -> "KeywordTables":
        """Summary: Return a copy with configured priority phrase lists.

        Importance: Lets deployments tune priority vocabulary without touching code.
        Alternatives: Edit the default table in place.
        """

        priority = dict(self.priority)
        for level, phrases in ((Priority.URGENT, urgent), (Priority.HIGH, high), (Priority.LOW, low)):
            if phrases is not None:
                cleaned = tuple(phrase.strip().lower() for phrase in phrases if phrase.strip())
                if cleaned:
                    priority[level] = cleaned
        return replace(self, priority=MappingProxyType(priority))


def phrase_pattern(phrase: str) -> re.Pattern[str]:
    """Compile a whole-word, case-insensitive pattern that also matches plural and verb endings."""

    return _phrase_pattern(phrase.lower())


@lru_cache(maxsize=512)
def _phrase_pattern(phrase: str) -> re.Pattern[str]:
    return re.compile(rf"(?<!\w){re.escape(phrase)}(?:s|es|ed|ing)?(?!\w)", re.IGNORECASE)


@lru_cache(maxsize=1)
def default_keyword_tables() -> KeywordTables:
    """Summary: Build the default process-wide keyword tables.

    Importance: Single cached instance shared read-only across requests.
    Alternatives: Rebuild the tables for every classification call.
    """

    categories: dict[TicketCategory, tuple[KeywordGroup, ...]] = {
        TicketCategory.INTEGRATION_ISSUE: (
            KeywordGroup.of(
                r"\b(?:quickbooks|stripe|calendars?|sync(?:s|ed|ing)?|integrations?"
                r"|connect(?:s|ed|ing|ion)?|oauth)\b",
                3,
            ),
            KeywordGroup.of(r"\b(?:webhooks?|api keys?)\b", 2),
        ),
        TicketCategory.BILLING_QUESTION: (
            KeywordGroup.of(
                r"\b(?:billing|billed|invoices?|payments?|subscriptions?|charged?|charges"
                r"|refunds?|cancel(?:led|lation)?)\b",
                3,
            ),
        ),
        TicketCategory.FEATURE_REQUEST: (
            KeywordGroup.of(
                r"\b(?:features?|requests?|add|would be nice|suggestions?|enhancements?)\b",
                3,
            ),
        ),
        TicketCategory.BUG_REPORT: (
            KeywordGroup.of(
                r"\b(?:bugs?|errors?|broken|not working|crash(?:es|ed|ing)?"
                r"|freez(?:e|es|ing)|frozen|glitch(?:es|y)?)\b",
                3,
            ),
        ),
        TicketCategory.HOW_TO_QUESTION: (
            KeywordGroup.of(r"\b(?:how to|how do i|how can i|where is|tutorials?|guides?)\b", 3),
        ),
        TicketCategory.ACCOUNT_MANAGEMENT: (
            KeywordGroup.of(
                r"\b(?:passwords?|log ?in|sign ?in|locked out|reset my|two[- ]factor|2fa)\b",
                3,
            ),
            KeywordGroup.of(r"\b(?:accounts?|profile|permissions?|invite|team members?)\b", 2),
        ),
        TicketCategory.PERFORMANCE_ISSUE: (
            KeywordGroup.of(
                r"\b(?:slow(?:ly|ness)?|loading|performance|lag(?:s|gy|ging)?|timeouts?"
                r"|timed out|takes too long)\b",
                3,
            ),
        ),
        TicketCategory.DATA_EXPORT_IMPORT: (
            KeywordGroup.of(
                r"\b(?:export(?:s|ed|ing)?|import(?:s|ed|ing)?|csv|data transfer"
                r"|migrat(?:e|ed|ion|ing))\b",
                3,
            ),
        ),
        TicketCategory.MOBILE_ISSUE: (
            KeywordGroup.of(r"\b(?:mobile|iphone|ipad|android|app|phone|tablet|ios)\b", 2),
        ),
        TicketCategory.GENERAL_INQUIRY: (),
    }
    priority = {
        Priority.URGENT: (
            "urgent",
            "asap",
            "immediately",
            "critical",
            "down",
            "not working",
            "broken",
            "emergency",
        ),
        Priority.HIGH: (
            "important",
            "soon",
            "blocking",
            "cannot",
            "can't",
            "unable",
            "error",
            "failed",
        ),
        Priority.LOW: ("suggestion", "feature request", "nice to have", "would like"),
    }
    return KeywordTables(
        categories=MappingProxyType(categories),
        priority=MappingProxyType(priority),
        frustrated=(
            "frustrated",
            "frustrating",
            "disappointed",
            "annoyed",
            "terrible",
            "awful",
            "useless",
            "horrible",
            "broken",
            "unacceptable",
        ),
        happy=("great", "love", "excellent", "awesome", "fantastic", "wonderful"),
        technical_terms=(
            "api",
            "database",
            "query",
            "authentication",
            "authorization",
            "encryption",
            "backend",
            "frontend",
            "server",
            "client",
        ),
        conjunctions=("also", "and", "plus", "additionally", "furthermore"),
    )
