"""Summary: Domain model dataclasses for BuildDesk.

Importance: Defines the tagged records shared by classifiers, scorers, services and storage.
Alternatives: Use Pydantic models or raw database rows directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping

from builddesk.errors import InvalidInput


class TicketCategory(str, Enum):
    """Summary: Closed set of support ticket categories.

    Importance: Declaration order is the tie-break order for keyword scoring.
    Alternatives: Use free-form category strings.
    """

    INTEGRATION_ISSUE = "integration_issue"
    BILLING_QUESTION = "billing_question"
    FEATURE_REQUEST = "feature_request"
    BUG_REPORT = "bug_report"
    HOW_TO_QUESTION = "how_to_question"
    ACCOUNT_MANAGEMENT = "account_management"
    PERFORMANCE_ISSUE = "performance_issue"
    DATA_EXPORT_IMPORT = "data_export_import"
    MOBILE_ISSUE = "mobile_issue"
    GENERAL_INQUIRY = "general_inquiry"


class Priority(str, Enum):
    URGENT = "urgent"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Sentiment(str, Enum):
    FRUSTRATED = "frustrated"
    NEUTRAL = "neutral"
    HAPPY = "happy"


class Complexity(str, Enum):
    SIMPLE = "simple"
    MEDIUM = "medium"
    COMPLEX = "complex"


class HealthStatus(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    WARNING = "warning"
    CRITICAL = "critical"


class Trend(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class DimensionName(str, Enum):
    """Summary: Named axes of project health.

    Importance: Keys the dispatch from dimension name to its scoring formula.
    Alternatives: Pass scoring callables around directly.
    """

    SCHEDULE = "schedule"
    BUDGET = "budget"
    SAFETY = "safety"
    TEAM = "team"
    PROGRESS = "progress"


class SuggestionType(str, Enum):
    ROUTING = "routing"
    AUTO_RESPONSE = "auto_response"


def parse_priority(value: str | Priority | None) -> Priority | None:
    """Summary: Coerce a raw priority value into the Priority enum.

    Importance: Validates priorities at the ingestion boundary.
    Alternatives: Trust priority strings from storage as-is.
    """

    if value is None or value == "":
        return None
    if isinstance(value, Priority):
        return value
    try:
        return Priority(str(value).strip().lower())
    except ValueError as exc:
        raise InvalidInput(f"Unknown priority: {value!r}") from exc


@dataclass(frozen=True)
class TicketRecord:
    """Summary: Classifiable support ticket (subject, body, optional priority).

    Importance: Immutable input to the triage engine, validated on construction.
    Alternatives: Pass untyped dictionaries from the datastore.
    """

    ticket_id: str
    subject: str
    body: str
    customer_email: str | None = None
    priority: Priority | None = None
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.subject, str) or not isinstance(self.body, str):
            raise InvalidInput("Ticket subject and body must be strings")
        if not f"{self.subject}{self.body}".strip():
            raise InvalidInput(f"Ticket {self.ticket_id} has no text to classify")

    @property
    def text(self) -> str:
        """Summary: Subject and body joined as one classifiable string."""

        return f"{self.subject} {self.body}"

    @staticmethod
    def from_mapping(data: Mapping[str, Any]) -> "TicketRecord":
        """Summary: Build a ticket from a storage row or request payload.

        Importance: Keeps validation at the boundary instead of downstream.
        Alternatives: Construct records field by field at each call site.
        """

        created_at = data.get("created_at")
        if isinstance(created_at, str) and created_at:
            created_at = datetime.fromisoformat(created_at)
        return TicketRecord(
            ticket_id=str(data["ticket_id"]),
            subject=data.get("subject") or "",
            body=data.get("body") or "",
            customer_email=data.get("customer_email") or None,
            priority=parse_priority(data.get("priority")),
            created_at=created_at or None,
        )


@dataclass(frozen=True)
class ClassificationResult:
    """Summary: Output of one triage classification pass.

    Importance: Carries every classifier output plus extracted fields and confidence.
    Alternatives: Return separate values from each classifier.
    """

    category: TicketCategory
    priority: Priority
    sentiment: Sentiment
    complexity: Complexity
    extracted_info: dict[str, list[str]] = field(default_factory=dict)
    confidence: float = 0.7

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.value,
            "priority": self.priority.value,
            "sentiment": self.sentiment.value,
            "complexity": self.complexity.value,
            "extracted_info": {key: list(values) for key, values in self.extracted_info.items()},
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class HealthDimensionResult:
    """Summary: Score, status bucket and trend for one health dimension.

    Importance: Ephemeral per-pass result; recomputed on demand.
    Alternatives: Store running health metrics and update them incrementally.
    """

    name: DimensionName
    score: float
    status: HealthStatus
    trend: Trend
    details: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name.value,
            "score": self.score,
            "status": self.status.value,
            "trend": self.trend.value,
            "details": self.details,
        }


@dataclass(frozen=True)
class AggregateHealthResult:
    """Summary: Unweighted mean of dimension scores with a derived status.

    Importance: Gives a single project health figure for dashboards.
    Alternatives: Weight dimensions by reliability.
    """

    overall_score: float
    overall_status: HealthStatus
    dimensions: tuple[HealthDimensionResult, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "overall_score": self.overall_score,
            "overall_status": self.overall_status.value,
            "dimensions": [dimension.to_dict() for dimension in self.dimensions],
        }


@dataclass(frozen=True)
class Suggestion:
    """Summary: Routing hint or auto-response text produced from a classification.

    Importance: Separates engine output from how the caller persists or displays it.
    Alternatives: Write suggestions straight to storage inside the composer.
    """

    suggestion_type: SuggestionType
    confidence_score: float
    category: TicketCategory | None = None
    priority: Priority | None = None
    content: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "suggestion_type": self.suggestion_type.value,
            "confidence_score": self.confidence_score,
            "suggested_category": self.category.value if self.category else None,
            "suggested_priority": self.priority.value if self.priority else None,
            "suggested_content": self.content,
        }


@dataclass(frozen=True)
class SupportHistory:
    total_tickets: int = 0
    open_tickets: int = 0
    last_ticket_date: str | None = None


@dataclass(frozen=True)
class UserContext:
    """Summary: Account, company and activity context for a ticket reporter.

    Importance: Personalizes responses and informs agents about the account.
    Alternatives: Look up context lazily in every consumer.
    """

    user_found: bool
    user_id: int | None = None
    display_name: str | None = None
    company_id: int | None = None
    company_name: str | None = None
    account_age_days: int = 0
    subscription_status: str | None = None
    subscription_tier: str | None = None
    last_login: str | None = None
    account_health_score: float | None = None
    risk_level: str | None = None
    recent_actions: tuple[str, ...] = ()
    integration_status: dict[str, bool] = field(default_factory=dict)
    support_history: SupportHistory = field(default_factory=SupportHistory)

    @staticmethod
    def not_found() -> "UserContext":
        """Summary: Sentinel context for anonymous or unknown reporters."""

        return UserContext(user_found=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_found": self.user_found,
            "user_id": self.user_id,
            "display_name": self.display_name,
            "company_id": self.company_id,
            "company_name": self.company_name,
            "account_age_days": self.account_age_days,
            "subscription_status": self.subscription_status,
            "subscription_tier": self.subscription_tier,
            "last_login": self.last_login,
            "account_health_score": self.account_health_score,
            "risk_level": self.risk_level,
            "recent_actions": list(self.recent_actions),
            "integration_status": dict(self.integration_status),
            "support_history": {
                "total_tickets": self.support_history.total_tickets,
                "open_tickets": self.support_history.open_tickets,
                "last_ticket_date": self.support_history.last_ticket_date,
            },
        }


@dataclass(frozen=True)
class Company:
    name: str
    created_at: datetime
    subscription_status: str | None = None
    subscription_tier: str | None = None
    financial_integration: bool = False
    mobile_access: bool = False


@dataclass(frozen=True)
class UserProfile:
    email: str
    display_name: str
    company_id: int | None = None
    last_login: datetime | None = None


@dataclass(frozen=True)
class KnowledgeArticle:
    """Summary: Knowledge-base article with helpfulness counters.

    Importance: Candidate answer surfaced next to a triaged ticket.
    Alternatives: Link to a search page instead of specific articles.
    """

    article_id: int
    title: str
    category: str
    content: str = ""
    tags: tuple[str, ...] = ()
    helpful_count: int = 0
    not_helpful_count: int = 0


@dataclass(frozen=True)
class ArticleMatch:
    article_id: int
    title: str
    match_score: float
    helpful_rate: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "article_id": self.article_id,
            "title": self.title,
            "match_score": self.match_score,
            "helpful_rate": self.helpful_rate,
        }


@dataclass(frozen=True)
class TicketAnalysis:
    """Summary: Full result of analyzing one ticket.

    Importance: Bundles classification, context, suggestions and articles for callers.
    Alternatives: Return each piece from a separate call.
    """

    ticket_id: str
    classification: ClassificationResult
    context: UserContext
    suggestions: tuple[Suggestion, ...]
    articles: tuple[ArticleMatch, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "ticket_id": self.ticket_id,
            "analysis": self.classification.to_dict(),
            "context": self.context.to_dict(),
            "suggestions": [suggestion.to_dict() for suggestion in self.suggestions],
            "kb_articles": [article.to_dict() for article in self.articles],
        }


@dataclass(frozen=True)
class AiRequest:
    """Summary: Records an AI request for audit and traceability.

    Importance: Provides visibility into prompts and provider usage.
    Alternatives: Log requests only in observability logs.
    """

    provider: str
    model: str
    prompt: str
    purpose: str
    timestamp: datetime


@dataclass(frozen=True)
class AiResponse:
    request_id: int
    response_text: str
    latency_ms: int
    token_estimate: int
