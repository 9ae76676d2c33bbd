"""Summary: Heuristic ticket classifiers (category, priority, sentiment, complexity).

Importance: Provides deterministic, explainable triage without calling an LLM.
Alternatives: Use a supervised ML classifier or LLM-based categorizer.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from builddesk.errors import InvalidInput
from builddesk.keywords import KeywordTables, default_keyword_tables, phrase_pattern
from builddesk.models import (
    ClassificationResult,
    Complexity,
    Priority,
    Sentiment,
    TicketCategory,
    TicketRecord,
    parse_priority,
)

_REPEATED_PUNCTUATION = re.compile(r"[!?]{3,}")
_CAPS_WORD = re.compile(r"\b[A-Z]{3,}\b")
_EMAIL = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
_URL = re.compile(r"https?://[^\s<>\"']+")
_ERROR_CODE = re.compile(r"\berror\s*:?\s*\d+|\bcode\s*:?\s*\d+", re.IGNORECASE)
_AMOUNT = re.compile(r"\$[\d,]+\.?\d*")

LONG_BODY_CHARS = 500
VERY_LONG_BODY_CHARS = 1000


def _require_text(text: object) -> str:
    if not isinstance(text, str):
        raise InvalidInput(f"Expected text, got {type(text).__name__}")
    if not text.strip():
        raise InvalidInput("Cannot classify empty text")
    return text


def categorize(
    text: str, tables: KeywordTables | None = None
) -> tuple[TicketCategory, int]:
    """Summary: Score text against every category's keyword groups.

    Importance: Picks the routing category; ties go to the first-declared category.
    Alternatives: Return every category above a threshold.
    """

    lowered = _require_text(text).lower()
    tables = tables or default_keyword_tables()
    best = TicketCategory.GENERAL_INQUIRY
    best_score = 0
    for category in TicketCategory:
        groups = tables.categories.get(category, ())
        score = sum(group.weight for group in groups if group.matches(lowered))
        if score > best_score:
            best, best_score = category, score
    return best, best_score


def classify_priority(
    text: str,
    current_priority: Priority | str | None = None,
    tables: KeywordTables | None = None,
) -> Priority:
    """Summary: Resolve priority from phrases in strict urgent > high > low order.

    Importance: The first level with any hit wins, so ambiguous text resolves deterministically.
    Alternatives: Count hits per level and take the maximum.
    """

    lowered = _require_text(text).lower()
    tables = tables or default_keyword_tables()
    for level in (Priority.URGENT, Priority.HIGH, Priority.LOW):
        for phrase in tables.priority.get(level, ()):
            if phrase_pattern(phrase).search(lowered):
                return level
    return parse_priority(current_priority) or Priority.MEDIUM


def sentiment_score(text: str, tables: KeywordTables | None = None) -> int:
    """Summary: Compute the signed sentiment score for text.

    Importance: Every keyword occurrence counts, so repeats compound.
    Alternatives: Use a lexicon-based sentiment library.
    """

    text = _require_text(text)
    tables = tables or default_keyword_tables()
    lowered = text.lower()
    score = 0
    for keyword in tables.frustrated:
        score -= 2 * len(phrase_pattern(keyword).findall(lowered))
    for keyword in tables.happy:
        score += 2 * len(phrase_pattern(keyword).findall(lowered))
    if _REPEATED_PUNCTUATION.search(text):
        score -= 1
    # Caps are checked on the original text; the keyword pass is case-insensitive.
    if len(_CAPS_WORD.findall(text)) >= 3:
        score -= 1
    return score


def score_sentiment(text: str, tables: KeywordTables | None = None) -> Sentiment:
    """Summary: Bucket the sentiment score into a label."""

    score = sentiment_score(text, tables)
    if score < -2:
        return Sentiment.FRUSTRATED
    if score > 2:
        return Sentiment.HAPPY
    return Sentiment.NEUTRAL


def complexity_score(
    text: str, record: TicketRecord, tables: KeywordTables | None = None
) -> int:
    """Summary: Accumulate complexity points from length, questions and jargon.

    Importance: Keeps auto-responses away from tickets that need an engineer.
    Alternatives: Estimate complexity with an LLM prompt.
    """

    lowered = _require_text(text).lower()
    tables = tables or default_keyword_tables()
    score = 0
    if len(record.body) > LONG_BODY_CHARS:
        score += 2
    if len(record.body) > VERY_LONG_BODY_CHARS:
        score += 2
    if lowered.count("?") > 3:
        score += 2
    distinct_terms = {
        term for term in tables.technical_terms if phrase_pattern(term).search(lowered)
    }
    if len(distinct_terms) > 3:
        score += 2
    if any(phrase_pattern(word).search(lowered) for word in tables.conjunctions):
        score += 1
    return score


def estimate_complexity(
    text: str, record: TicketRecord, tables: KeywordTables | None = None
) -> Complexity:
    """Summary: Bucket the complexity score into a label."""

    score = complexity_score(text, record, tables)
    if score > 5:
        return Complexity.COMPLEX
    if score > 2:
        return Complexity.MEDIUM
    return Complexity.SIMPLE


def extract_key_info(text: str) -> dict[str, list[str]]:
    """Summary: Pull emails, URLs, error codes and dollar amounts out of text.

    Importance: Gives agents the concrete identifiers mentioned in a ticket.
    Alternatives: Leave extraction to the agent reading the ticket.
    """

    text = _require_text(text)
    info: dict[str, list[str]] = {}
    emails = _EMAIL.findall(text)
    if emails:
        info["emails"] = emails
    urls = [url.rstrip(".,;:!?)") for url in _URL.findall(text)]
    if urls:
        info["urls"] = urls
    error_codes = _ERROR_CODE.findall(text)
    if error_codes:
        info["error_codes"] = error_codes
    amounts = _AMOUNT.findall(text)
    if amounts:
        info["amounts"] = amounts
    return info


def calculate_confidence(
    category: TicketCategory, priority: Priority, sentiment: Sentiment
) -> float:
    """Summary: Heuristic confidence for a classification.

    Importance: Each non-default signal adds certainty to the routing suggestion.
    Alternatives: Use calibrated model probabilities.
    """

    confidence = 0.7
    if category is not TicketCategory.GENERAL_INQUIRY:
        confidence += 0.1
    if priority is not Priority.MEDIUM:
        confidence += 0.1
    if sentiment is not Sentiment.NEUTRAL:
        confidence += 0.1
    return round(min(confidence, 1.0), 2)


@dataclass(frozen=True)
class TicketClassifier:
    """Summary: Runs every heuristic classifier over one ticket.

    Importance: Produces a single classification object per ticket.
    Alternatives: Call each classifier separately in the service layer.
    """

    tables: KeywordTables = field(default_factory=default_keyword_tables)

    def classify(self, record: TicketRecord) -> ClassificationResult:
        """Summary: Classify a ticket into category, priority, sentiment and complexity.

        Importance: Core triage step feeding suggestions and routing.
        Alternatives: Ask an LLM for a structured classification.
        """

        text = record.text
        category, _ = categorize(text, self.tables)
        priority = classify_priority(text, record.priority, self.tables)
        sentiment = score_sentiment(text, self.tables)
        complexity = estimate_complexity(text, record, self.tables)
        return ClassificationResult(
            category=category,
            priority=priority,
            sentiment=sentiment,
            complexity=complexity,
            extracted_info=extract_key_info(text),
            confidence=calculate_confidence(category, priority, sentiment),
        )
