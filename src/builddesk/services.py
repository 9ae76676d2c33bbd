"""Summary: Core application services for BuildDesk.

Importance: Orchestrates ticket intake, triage, account context and content generation.
Alternatives: Build a full service layer with a dependency injection framework.
"""

from __future__ import annotations

import json
import logging
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from builddesk.ai import AiProvider, estimate_tokens
from builddesk.classifier import TicketClassifier
from builddesk.content import BlogContentGenerator, GenerationOutcome, GenerationSettings
from builddesk.context import ContextProvider, KnowledgeBaseIndex, TicketSource
from builddesk.errors import InvalidInput, UpstreamServiceFailure
from builddesk.models import (
    AiRequest,
    AiResponse,
    ClassificationResult,
    Company,
    KnowledgeArticle,
    TicketAnalysis,
    TicketRecord,
    UserProfile,
    parse_priority,
)
from builddesk.storage.sqlite_store import SqliteStore
from builddesk.suggestions import ResponseSettings, compose, rank_articles, render_response

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TicketService:
    """Summary: Handles intake of support tickets.

    Importance: Validates tickets once at the boundary before they are stored.
    Alternatives: Insert raw request payloads directly.
    """

    store: SqliteStore

    def create_ticket(
        self,
        subject: str,
        body: str,
        customer_email: str | None = None,
        priority: str | None = None,
        ticket_id: str | None = None,
    ) -> TicketRecord:
        record = TicketRecord(
            ticket_id=ticket_id or uuid.uuid4().hex,
            subject=subject,
            body=body,
            customer_email=customer_email.lower() if customer_email else None,
            priority=parse_priority(priority),
            created_at=datetime.utcnow(),
        )
        self.store.save_ticket(record)
        logger.info("Created ticket %s.", record.ticket_id)
        return record


@dataclass(frozen=True)
class AccountService:
    """Summary: Registers companies, user profiles and account health snapshots.

    Importance: Supplies the data the context provider reads for personalization.
    Alternatives: Sync accounts from an external CRM.
    """

    store: SqliteStore

    def add_profile(
        self,
        email: str,
        display_name: str,
        company_name: str | None = None,
        subscription_tier: str | None = None,
        now: datetime | None = None,
    ) -> int:
        now = now or datetime.utcnow()
        company_id = None
        if company_name:
            company_id = self.store.create_company(
                Company(
                    name=company_name,
                    created_at=now,
                    subscription_status="active",
                    subscription_tier=subscription_tier,
                )
            )
        profile_id = self.store.save_profile(
            UserProfile(email=email, display_name=display_name, company_id=company_id, last_login=now)
        )
        logger.info("Registered profile %s for %s.", profile_id, email)
        return profile_id


@dataclass(frozen=True)
class KnowledgeBaseService:
    """Summary: Loads knowledge-base articles from JSON fixtures.

    Importance: Seeds the article index used for ticket suggestions.
    Alternatives: Author articles through an admin UI only.
    """

    store: SqliteStore

    def load_fixture(self, path: Path) -> list[int]:
        data = json.loads(path.read_text(encoding="utf-8"))
        ids = [
            self.store.add_article(
                title=item["title"],
                category=item["category"],
                content=item.get("content", ""),
                tags=item.get("tags", []),
                helpful_count=int(item.get("helpful_count", 0)),
                not_helpful_count=int(item.get("not_helpful_count", 0)),
            )
            for item in data
        ]
        logger.info("Loaded %s knowledge-base articles.", len(ids))
        return ids


@dataclass(frozen=True)
class TriageService:
    """Summary: Analyzes support tickets end to end.

    Importance: Classifies, gathers context, suggests replies and records the outcome.
    Alternatives: Let agents triage every ticket manually.
    """

    store: SqliteStore
    classifier: TicketClassifier
    tickets: TicketSource
    contexts: ContextProvider
    knowledge_base: KnowledgeBaseIndex
    response_settings: ResponseSettings
    candidate_limit: int = 10
    article_limit: int = 3

    def classify_text(
        self, subject: str, body: str, priority: str | None = None
    ) -> ClassificationResult:
        """Summary: Classify ad-hoc text without storing anything."""

        record = TicketRecord(
            ticket_id="adhoc", subject=subject, body=body, priority=parse_priority(priority)
        )
        return self.classifier.classify(record)

    def analyze_ticket(self, ticket_id: str, now: datetime | None = None) -> TicketAnalysis:
        """Summary: Run full triage on a stored ticket.

        Importance: Context and article lookups run in parallel and are joined before composing.
        Alternatives: Fetch context and articles sequentially.
        """

        now = now or datetime.utcnow()
        logger.info("Analyzing ticket %s...", ticket_id)
        record = self.tickets.get_ticket(ticket_id)
        classification = self.classifier.classify(record)
        with ThreadPoolExecutor(max_workers=2) as pool:
            context_future = pool.submit(self.contexts.context_for, record.customer_email, now)
            articles_future = pool.submit(self._candidate_articles, record, classification)
            context = context_future.result()
            candidates = articles_future.result()
        suggestions = compose(classification, context, self.response_settings)
        matches = rank_articles(candidates, record, classification, limit=self.article_limit)
        self.store.save_suggestions(ticket_id, suggestions, created_at=now)
        self.store.update_ticket_triage(ticket_id, classification.category, classification.priority)
        self.store.save_ticket_context(ticket_id, context.to_dict(), updated_at=now)
        logger.info(
            "Ticket %s analyzed: %s/%s.",
            ticket_id,
            classification.category.value,
            classification.priority.value,
        )
        return TicketAnalysis(
            ticket_id=ticket_id,
            classification=classification,
            context=context,
            suggestions=tuple(suggestions),
            articles=tuple(matches),
        )

    def draft_response(self, ticket_id: str, now: datetime | None = None) -> str:
        """Summary: Render the canned reply for a ticket's category.

        Importance: Gives agents a starting reply even when no auto-response was suggested.
        Alternatives: Draft replies with an LLM.
        """

        record = self.tickets.get_ticket(ticket_id)
        classification = self.classifier.classify(record)
        context = self.contexts.context_for(record.customer_email, now or datetime.utcnow())
        return render_response(classification.category, context, self.response_settings)

    def _candidate_articles(
        self, record: TicketRecord, classification: ClassificationResult
    ) -> list[KnowledgeArticle]:
        try:
            return self.knowledge_base.search(
                classification.category.value, record.text, self.candidate_limit
            )
        except UpstreamServiceFailure as exc:
            logger.warning("Knowledge base unavailable for ticket %s: %s", record.ticket_id, exc)
            return []


@dataclass(frozen=True)
class ContentService:
    """Summary: Generates blog posts and audits every model call.

    Importance: Keeps a trace of prompts, responses and latency per generation.
    Alternatives: Log model calls only to application logs.
    """

    store: SqliteStore
    ai_provider: AiProvider
    provider_name: str
    settings: GenerationSettings

    def generate_blog_post(self, topic: str, year: int | None = None) -> GenerationOutcome:
        if not topic or not topic.strip():
            raise InvalidInput("Topic is required")
        generator = BlogContentGenerator(ai_provider=self.ai_provider, settings=self.settings)
        outcome = generator.generate(topic, year or datetime.utcnow().year)
        for attempt in outcome.attempts:
            request_id = self.store.log_ai_request(
                AiRequest(
                    provider=self.provider_name,
                    model=attempt.model,
                    prompt=attempt.prompt,
                    purpose="blog_content",
                    timestamp=datetime.utcnow(),
                )
            )
            self.store.log_ai_response(
                AiResponse(
                    request_id=request_id,
                    response_text=attempt.response_text or (attempt.error or ""),
                    latency_ms=attempt.latency_ms,
                    token_estimate=estimate_tokens(attempt.response_text),
                )
            )
        return outcome
