"""Summary: Collaborator interfaces for tickets, account context and the knowledge base.

Importance: Keeps the triage engine independent of where records and context come from.
Alternatives: Query the datastore directly inside the triage service.
"""

from __future__ import annotations

import sqlite3
from abc import ABC, abstractmethod
from datetime import datetime

from builddesk.errors import RecordNotFound, UpstreamServiceFailure
from builddesk.models import KnowledgeArticle, SupportHistory, TicketRecord, UserContext
from builddesk.storage.sqlite_store import SqliteStore


class TicketSource(ABC):
    """Summary: Supplies classifiable tickets by id."""

    @abstractmethod
    def get_ticket(self, ticket_id: str) -> TicketRecord:
        """Summary: Fetch a ticket, raising RecordNotFound when it does not exist.

        Importance: Missing tickets must reach the caller rather than classify as empty.
        Alternatives: Return None and let callers check.
        """


class ContextProvider(ABC):
    """Summary: Supplies account context keyed by reporter email."""

    @abstractmethod
    def context_for(self, email: str | None, now: datetime) -> UserContext:
        """Summary: Build the reporter's context, or the not-found sentinel.

        Importance: Anonymous tickets are valid input and must not raise.
        Alternatives: Raise for unknown reporters.
        """


class KnowledgeBaseIndex(ABC):
    """Summary: Ranked-list query over knowledge-base articles."""

    @abstractmethod
    def search(self, category: str, text: str, limit: int) -> list[KnowledgeArticle]:
        """Summary: Return candidate articles for a category and ticket text."""


class SqliteTicketSource(TicketSource):
    def __init__(self, store: SqliteStore) -> None:
        self._store = store

    def get_ticket(self, ticket_id: str) -> TicketRecord:
        record = self._store.get_ticket(ticket_id)
        if record is None:
            raise RecordNotFound(f"Ticket {ticket_id} not found")
        return record


class SqliteContextProvider(ContextProvider):
    """Summary: Builds user context from profiles, companies, activity and tickets.

    Importance: Gives agents account details next to every analyzed ticket.
    Alternatives: Fetch context from a CRM API.
    """

    def __init__(self, store: SqliteStore, activity_limit: int = 10, history_limit: int = 5) -> None:
        self._store = store
        self._activity_limit = activity_limit
        self._history_limit = history_limit

    def context_for(self, email: str | None, now: datetime) -> UserContext:
        if not email:
            return UserContext.not_found()
        profile = self._store.get_profile_by_email(email)
        if profile is None:
            return UserContext.not_found()
        company = self._store.get_company(profile.company_id) if profile.company_id else None
        health = self._store.latest_health_score(company.id) if company else None
        tickets = self._store.list_tickets_by_email(email, limit=self._history_limit)
        account_age = 0
        if company:
            account_age = (now - datetime.fromisoformat(company.created_at)).days
        integration_status: dict[str, bool] = {}
        if company:
            integration_status = {
                "quickbooks": company.financial_integration,
                "stripe": True,
                "mobile": company.mobile_access,
            }
        return UserContext(
            user_found=True,
            user_id=profile.id,
            display_name=profile.display_name,
            company_id=company.id if company else None,
            company_name=company.name if company else None,
            account_age_days=max(account_age, 0),
            subscription_status=company.subscription_status if company else None,
            subscription_tier=company.subscription_tier if company else None,
            last_login=profile.last_login,
            account_health_score=health.score if health else None,
            risk_level=health.risk_level if health else None,
            recent_actions=tuple(self._store.recent_activity(profile.id, self._activity_limit)),
            integration_status=integration_status,
            support_history=SupportHistory(
                total_tickets=len(tickets),
                open_tickets=sum(1 for ticket in tickets if ticket.status == "open"),
                last_ticket_date=tickets[0].created_at if tickets else None,
            ),
        )


class SqliteKnowledgeBaseIndex(KnowledgeBaseIndex):
    def __init__(self, store: SqliteStore) -> None:
        self._store = store

    def search(self, category: str, text: str, limit: int) -> list[KnowledgeArticle]:
        try:
            return self._store.search_articles(category, limit=limit)
        except sqlite3.Error as exc:
            raise UpstreamServiceFailure(f"Knowledge base search failed: {exc}") from exc
