"""Summary: Tests for the ticket triage service.

Importance: Ensures analysis combines classification, context, suggestions and articles.
Alternatives: Validate triage manually through the API.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from builddesk.classifier import TicketClassifier
from builddesk.context import (
    KnowledgeBaseIndex,
    SqliteContextProvider,
    SqliteKnowledgeBaseIndex,
    SqliteTicketSource,
)
from builddesk.errors import RecordNotFound, UpstreamServiceFailure
from builddesk.models import (
    Company,
    KnowledgeArticle,
    Priority,
    Sentiment,
    SuggestionType,
    TicketCategory,
    TicketRecord,
    UserProfile,
)
from builddesk.services import TicketService, TriageService
from builddesk.storage.sqlite_store import SqliteStore
from builddesk.suggestions import ResponseSettings

NOW = datetime(2024, 3, 1, 12, 0)


class UnavailableIndex(KnowledgeBaseIndex):
    def search(self, category: str, text: str, limit: int) -> list[KnowledgeArticle]:
        raise UpstreamServiceFailure("index offline")


def _store(tmp_path: Path) -> SqliteStore:
    store = SqliteStore(str(tmp_path / "test.db"))
    store.initialize()
    return store


def _service(store: SqliteStore, index: KnowledgeBaseIndex | None = None) -> TriageService:
    return TriageService(
        store=store,
        classifier=TicketClassifier(),
        tickets=SqliteTicketSource(store),
        contexts=SqliteContextProvider(store),
        knowledge_base=index or SqliteKnowledgeBaseIndex(store),
        response_settings=ResponseSettings(),
    )


def _seed_account(store: SqliteStore) -> int:
    company_id = store.create_company(
        Company(
            name="Acme Builders",
            created_at=datetime(2024, 1, 1),
            subscription_status="active",
            subscription_tier="pro",
            financial_integration=True,
        )
    )
    profile_id = store.save_profile(
        UserProfile(email="pm@acme.com", display_name="Dana", company_id=company_id)
    )
    store.record_health_score(company_id, 72.0, "medium", NOW)
    store.log_activity(profile_id, "sync_attempt", NOW)
    return profile_id


def test_analyze_ticket_end_to_end(tmp_path: Path) -> None:
    """Summary: Verify a frustrated integration ticket is fully analyzed and stored.

    Importance: Exercises the main support workflow across every component.
    Alternatives: Test each component separately only.
    """

    store = _store(tmp_path)
    _seed_account(store)
    store.add_article(
        "Connecting QuickBooks", "integration_issue", "Steps", ["quickbooks", "sync"], 9, 1
    )
    ticket = TicketService(store).create_ticket(
        "URGENT: QuickBooks sync is broken", "nothing works!!!", customer_email="PM@acme.com"
    )

    analysis = _service(store).analyze_ticket(ticket.ticket_id, now=NOW)

    classification = analysis.classification
    assert classification.category is TicketCategory.INTEGRATION_ISSUE
    assert classification.priority is Priority.URGENT
    assert classification.sentiment is Sentiment.FRUSTRATED
    assert [item.suggestion_type for item in analysis.suggestions] == [SuggestionType.ROUTING]
    assert [article.title for article in analysis.articles] == ["Connecting QuickBooks"]
    assert analysis.articles[0].match_score == 0.97

    context = analysis.context
    assert context.user_found is True
    assert context.company_name == "Acme Builders"
    assert context.account_age_days == 60
    assert context.account_health_score == 72.0
    assert context.recent_actions == ("sync_attempt",)
    assert context.integration_status["quickbooks"] is True
    assert context.support_history.total_tickets == 1

    summary = store.get_ticket_summary(ticket.ticket_id)
    assert summary is not None
    assert (summary.category, summary.priority) == ("integration_issue", "urgent")
    assert len(store.list_suggestions(ticket.ticket_id)) == 1
    assert store.get_ticket_context(ticket.ticket_id)["company_name"] == "Acme Builders"

    payload = analysis.to_dict()
    assert payload["analysis"]["category"] == "integration_issue"
    assert payload["kb_articles"][0]["helpful_rate"] == 0.9


def test_analyze_simple_how_to_adds_auto_response(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.save_ticket(
        TicketRecord(
            ticket_id="t-howto",
            subject="How do I create a schedule",
            body="Where is the schedule page",
        )
    )
    analysis = _service(store).analyze_ticket("t-howto", now=NOW)
    assert analysis.classification.category is TicketCategory.HOW_TO_QUESTION
    assert analysis.context.user_found is False
    auto = analysis.suggestions[1]
    assert auto.suggestion_type is SuggestionType.AUTO_RESPONSE
    assert auto.content.startswith("Hi there,")
    assert len(store.list_suggestions("t-howto")) == 2


def test_analyze_survives_knowledge_base_outage(tmp_path: Path) -> None:
    """Summary: Verify an index failure yields no articles instead of an error.

    Importance: Article lookup is optional and must not block triage.
    Alternatives: Fail the whole analysis when the index is down.
    """

    store = _store(tmp_path)
    store.save_ticket(TicketRecord(ticket_id="t-1", subject="Invoice", body="Refund please"))
    analysis = _service(store, UnavailableIndex()).analyze_ticket("t-1", now=NOW)
    assert analysis.articles == ()
    assert analysis.classification.category is TicketCategory.BILLING_QUESTION


def test_analyze_missing_ticket_raises(tmp_path: Path) -> None:
    with pytest.raises(RecordNotFound):
        _service(_store(tmp_path)).analyze_ticket("missing", now=NOW)


def test_draft_response_personalizes_greeting(tmp_path: Path) -> None:
    store = _store(tmp_path)
    _seed_account(store)
    store.save_ticket(
        TicketRecord(
            ticket_id="t-bill",
            subject="Invoice question",
            body="Why was I charged twice?",
            customer_email="pm@acme.com",
        )
    )
    draft = _service(store).draft_response("t-bill", now=NOW)
    assert draft.startswith("Hi Acme Builders,")
    assert "Settings → Billing" in draft


def test_classify_text_does_not_store(tmp_path: Path) -> None:
    store = _store(tmp_path)
    result = _service(store).classify_text("App crashes on iPhone", "The mobile app is slow")
    assert result.category is TicketCategory.BUG_REPORT
    assert store.get_ticket("adhoc") is None
