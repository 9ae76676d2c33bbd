"""Summary: SQLite storage implementation for BuildDesk.

Importance: Backs the ticket source, account context, knowledge base and triage output locally.
Alternatives: Use an ORM or a hosted Postgres database immediately.
"""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Iterator

from builddesk.models import (
    AiRequest,
    AiResponse,
    Company,
    KnowledgeArticle,
    Priority,
    Suggestion,
    TicketCategory,
    TicketRecord,
    UserProfile,
)


@dataclass(frozen=True)
class StoredTicket:
    """Summary: Ticket row summary used for support history."""

    id: str
    subject: str
    status: str
    priority: str | None
    category: str | None
    created_at: str


@dataclass(frozen=True)
class StoredCompany:
    id: int
    name: str
    created_at: str
    subscription_status: str | None
    subscription_tier: str | None
    financial_integration: bool
    mobile_access: bool


@dataclass(frozen=True)
class StoredProfile:
    id: int
    email: str
    display_name: str
    company_id: int | None
    last_login: str | None


@dataclass(frozen=True)
class StoredHealthScore:
    company_id: int
    score: float
    risk_level: str | None
    created_at: str


@dataclass(frozen=True)
class StoredSuggestion:
    """Summary: Persisted suggestion row.

    Importance: Lets agents review what the triage engine proposed.
    Alternatives: Keep suggestions only in the API response.
    """

    id: int
    ticket_id: str
    suggestion_type: str
    confidence_score: float
    suggested_category: str | None
    suggested_priority: str | None
    suggested_content: str | None
    created_at: str


@dataclass(frozen=True)
class StoredAiRequest:
    id: int
    provider: str
    model: str
    purpose: str
    timestamp: str


class SqliteStore:
    """Summary: SQLite-backed storage for BuildDesk.

    Importance: Enables local-first persistence with minimal dependencies.
    Alternatives: Use Postgres and SQLAlchemy from day one.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = Path(db_path)

    def initialize(self) -> None:
        """Summary: Create tables if they do not exist.

        Importance: Ensures the database is ready for ingestion and triage.
        Alternatives: Run migrations using a dedicated migration tool.
        """

        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS tickets (
                    id TEXT PRIMARY KEY,
                    subject TEXT NOT NULL,
                    body TEXT NOT NULL,
                    customer_email TEXT,
                    priority TEXT,
                    category TEXT,
                    status TEXT NOT NULL DEFAULT 'open',
                    created_at TEXT NOT NULL
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS companies (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    subscription_status TEXT,
                    subscription_tier TEXT,
                    financial_integration INTEGER NOT NULL DEFAULT 0,
                    mobile_access INTEGER NOT NULL DEFAULT 0
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS user_profiles (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    email TEXT NOT NULL UNIQUE,
                    display_name TEXT NOT NULL,
                    company_id INTEGER,
                    last_login TEXT
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS account_health_scores (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    company_id INTEGER NOT NULL,
                    score REAL NOT NULL,
                    risk_level TEXT,
                    created_at TEXT NOT NULL
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS user_activity (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL,
                    action TEXT NOT NULL,
                    timestamp TEXT NOT NULL
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS kb_articles (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    category TEXT NOT NULL,
                    content TEXT NOT NULL,
                    tags TEXT NOT NULL DEFAULT '',
                    helpful_count INTEGER NOT NULL DEFAULT 0,
                    not_helpful_count INTEGER NOT NULL DEFAULT 0
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS support_suggestions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    ticket_id TEXT NOT NULL,
                    suggestion_type TEXT NOT NULL,
                    confidence_score REAL NOT NULL,
                    suggested_category TEXT,
                    suggested_priority TEXT,
                    suggested_content TEXT,
                    created_at TEXT NOT NULL
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS ticket_context (
                    ticket_id TEXT PRIMARY KEY,
                    payload TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS ai_requests (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    provider TEXT NOT NULL,
                    model TEXT NOT NULL,
                    prompt TEXT NOT NULL,
                    purpose TEXT NOT NULL,
                    timestamp TEXT NOT NULL
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS ai_responses (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    request_id INTEGER NOT NULL,
                    response_text TEXT NOT NULL,
                    latency_ms INTEGER NOT NULL,
                    token_estimate INTEGER NOT NULL
                )
                """
            )
            connection.commit()

    def save_ticket(self, record: TicketRecord) -> str:
        """Summary: Persist a support ticket and return its id.

        Importance: Tickets are the record source the triage engine reads from.
        Alternatives: Accept tickets only inline in analyze requests.
        """

        created_at = (record.created_at or datetime.utcnow()).isoformat()
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                """
                INSERT OR REPLACE INTO tickets (
                    id, subject, body, customer_email, priority, status, created_at
                ) VALUES (?, ?, ?, ?, ?, 'open', ?)
                """,
                (
                    record.ticket_id,
                    record.subject,
                    record.body,
                    record.customer_email,
                    record.priority.value if record.priority else None,
                    created_at,
                ),
            )
            connection.commit()
        return record.ticket_id

    def get_ticket(self, ticket_id: str) -> TicketRecord | None:
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                """
                SELECT id, subject, body, customer_email, priority, created_at
                FROM tickets
                WHERE id = ?
                """,
                (ticket_id,),
            )
            row = cursor.fetchone()
        if not row:
            return None
        return TicketRecord.from_mapping(
            {
                "ticket_id": row[0],
                "subject": row[1],
                "body": row[2],
                "customer_email": row[3],
                "priority": row[4],
                "created_at": row[5],
            }
        )

    def get_ticket_summary(self, ticket_id: str) -> StoredTicket | None:
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                """
                SELECT id, subject, status, priority, category, created_at
                FROM tickets
                WHERE id = ?
                """,
                (ticket_id,),
            )
            row = cursor.fetchone()
        return StoredTicket(*row) if row else None

    def list_tickets_by_email(self, email: str, limit: int = 5) -> list[StoredTicket]:
        """Summary: Return a reporter's most recent tickets.

        Importance: Feeds the support history section of the user context.
        Alternatives: Count tickets with an aggregate query only.
        """

        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                """
                SELECT id, subject, status, priority, category, created_at
                FROM tickets
                WHERE customer_email = ?
                ORDER BY created_at DESC
                LIMIT ?
                """,
                (email, limit),
            )
            rows = cursor.fetchall()
        return [StoredTicket(*row) for row in rows]

    def update_ticket_triage(
        self, ticket_id: str, category: TicketCategory, priority: Priority
    ) -> None:
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                "UPDATE tickets SET category = ?, priority = ? WHERE id = ?",
                (category.value, priority.value, ticket_id),
            )
            connection.commit()

    def create_company(self, company: Company) -> int:
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                """
                INSERT INTO companies (
                    name, created_at, subscription_status, subscription_tier,
                    financial_integration, mobile_access
                ) VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    company.name,
                    company.created_at.isoformat(),
                    company.subscription_status,
                    company.subscription_tier,
                    int(company.financial_integration),
                    int(company.mobile_access),
                ),
            )
            company_id = cursor.lastrowid
            connection.commit()
        return int(company_id)

    def get_company(self, company_id: int) -> StoredCompany | None:
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                """
                SELECT id, name, created_at, subscription_status, subscription_tier,
                       financial_integration, mobile_access
                FROM companies
                WHERE id = ?
                """,
                (company_id,),
            )
            row = cursor.fetchone()
        if not row:
            return None
        return StoredCompany(*row[:5], bool(row[5]), bool(row[6]))

    def save_profile(self, profile: UserProfile) -> int:
        """Summary: Ensure a user profile exists and return its id.

        Importance: Profiles link ticket reporters to companies.
        Alternatives: Resolve reporters from an external identity provider.
        """

        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                """
                INSERT OR IGNORE INTO user_profiles (email, display_name, company_id, last_login)
                VALUES (?, ?, ?, ?)
                """,
                (
                    profile.email.lower(),
                    profile.display_name,
                    profile.company_id,
                    profile.last_login.isoformat() if profile.last_login else None,
                ),
            )
            if cursor.rowcount:
                profile_id = cursor.lastrowid
            else:
                cursor.execute(
                    "SELECT id FROM user_profiles WHERE email = ?", (profile.email.lower(),)
                )
                row = cursor.fetchone()
                profile_id = int(row[0]) if row else 0
            connection.commit()
        return int(profile_id)

    def get_profile_by_email(self, email: str) -> StoredProfile | None:
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                """
                SELECT id, email, display_name, company_id, last_login
                FROM user_profiles
                WHERE email = ?
                """,
                (email.lower(),),
            )
            row = cursor.fetchone()
        return StoredProfile(*row) if row else None

    def record_health_score(
        self, company_id: int, score: float, risk_level: str | None, created_at: datetime
    ) -> None:
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                """
                INSERT INTO account_health_scores (company_id, score, risk_level, created_at)
                VALUES (?, ?, ?, ?)
                """,
                (company_id, score, risk_level, created_at.isoformat()),
            )
            connection.commit()

    def latest_health_score(self, company_id: int) -> StoredHealthScore | None:
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                """
                SELECT company_id, score, risk_level, created_at
                FROM account_health_scores
                WHERE company_id = ?
                ORDER BY created_at DESC, id DESC
                LIMIT 1
                """,
                (company_id,),
            )
            row = cursor.fetchone()
        return StoredHealthScore(*row) if row else None

    def log_activity(self, user_id: int, action: str, timestamp: datetime) -> None:
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                "INSERT INTO user_activity (user_id, action, timestamp) VALUES (?, ?, ?)",
                (user_id, action, timestamp.isoformat()),
            )
            connection.commit()

    def recent_activity(self, user_id: int, limit: int = 10) -> list[str]:
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                """
                SELECT action FROM user_activity
                WHERE user_id = ?
                ORDER BY timestamp DESC, id DESC
                LIMIT ?
                """,
                (user_id, limit),
            )
            rows = cursor.fetchall()
        return [row[0] for row in rows]

    def add_article(
        self,
        title: str,
        category: str,
        content: str,
        tags: Iterable[str] = (),
        helpful_count: int = 0,
        not_helpful_count: int = 0,
    ) -> int:
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                """
                INSERT INTO kb_articles (
                    title, category, content, tags, helpful_count, not_helpful_count
                ) VALUES (?, ?, ?, ?, ?, ?)
                """,
                (title, category, content, ",".join(tags), helpful_count, not_helpful_count),
            )
            article_id = cursor.lastrowid
            connection.commit()
        return int(article_id)

    def search_articles(self, category: str, limit: int = 10) -> list[KnowledgeArticle]:
        """Summary: Find articles filed under or mentioning a category.

        Importance: Supplies candidate articles for keyword-overlap ranking.
        Alternatives: Use SQLite FTS5 for full-text search.
        """

        phrase = f"%{category.replace('_', ' ')}%"
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                """
                SELECT id, title, category, content, tags, helpful_count, not_helpful_count
                FROM kb_articles
                WHERE category = ? OR title LIKE ? OR content LIKE ?
                ORDER BY helpful_count DESC, id ASC
                LIMIT ?
                """,
                (category, phrase, phrase, limit),
            )
            rows = cursor.fetchall()
        return [_article_from_row(row) for row in rows]

    def list_articles(self) -> list[KnowledgeArticle]:
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                """
                SELECT id, title, category, content, tags, helpful_count, not_helpful_count
                FROM kb_articles
                ORDER BY id ASC
                """
            )
            rows = cursor.fetchall()
        return [_article_from_row(row) for row in rows]

    def save_suggestions(
        self, ticket_id: str, suggestions: Iterable[Suggestion], created_at: datetime
    ) -> list[int]:
        ids: list[int] = []
        with self._connection() as connection:
            cursor = connection.cursor()
            for suggestion in suggestions:
                cursor.execute(
                    """
                    INSERT INTO support_suggestions (
                        ticket_id, suggestion_type, confidence_score, suggested_category,
                        suggested_priority, suggested_content, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        ticket_id,
                        suggestion.suggestion_type.value,
                        suggestion.confidence_score,
                        suggestion.category.value if suggestion.category else None,
                        suggestion.priority.value if suggestion.priority else None,
                        suggestion.content,
                        created_at.isoformat(),
                    ),
                )
                ids.append(int(cursor.lastrowid))
            connection.commit()
        return ids

    def list_suggestions(self, ticket_id: str) -> list[StoredSuggestion]:
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                """
                SELECT id, ticket_id, suggestion_type, confidence_score, suggested_category,
                       suggested_priority, suggested_content, created_at
                FROM support_suggestions
                WHERE ticket_id = ?
                ORDER BY id ASC
                """,
                (ticket_id,),
            )
            rows = cursor.fetchall()
        return [StoredSuggestion(*row) for row in rows]

    def save_ticket_context(
        self, ticket_id: str, payload: dict[str, Any], updated_at: datetime
    ) -> None:
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                """
                INSERT INTO ticket_context (ticket_id, payload, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(ticket_id) DO UPDATE SET
                    payload = excluded.payload,
                    updated_at = excluded.updated_at
                """,
                (ticket_id, json.dumps(payload), updated_at.isoformat()),
            )
            connection.commit()

    def get_ticket_context(self, ticket_id: str) -> dict[str, Any] | None:
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute("SELECT payload FROM ticket_context WHERE ticket_id = ?", (ticket_id,))
            row = cursor.fetchone()
        return json.loads(row[0]) if row else None

    def log_ai_request(self, request: AiRequest) -> int:
        """Summary: Persist an AI request for auditing.

        Importance: Tracks prompts and providers used by the system.
        Alternatives: Use structured logs instead of database storage.
        """

        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                """
                INSERT INTO ai_requests (provider, model, prompt, purpose, timestamp)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    request.provider,
                    request.model,
                    request.prompt,
                    request.purpose,
                    request.timestamp.isoformat(),
                ),
            )
            request_id = cursor.lastrowid
            connection.commit()
        return int(request_id)

    def log_ai_response(self, response: AiResponse) -> int:
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                """
                INSERT INTO ai_responses (request_id, response_text, latency_ms, token_estimate)
                VALUES (?, ?, ?, ?)
                """,
                (
                    response.request_id,
                    response.response_text,
                    response.latency_ms,
                    response.token_estimate,
                ),
            )
            response_id = cursor.lastrowid
            connection.commit()
        return int(response_id)

    def list_ai_requests(self, limit: int = 20) -> list[StoredAiRequest]:
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                """
                SELECT id, provider, model, purpose, timestamp
                FROM ai_requests
                ORDER BY id DESC
                LIMIT ?
                """,
                (limit,),
            )
            rows = cursor.fetchall()
        return [StoredAiRequest(*row) for row in rows]

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Summary: Context manager for SQLite connections.

        Importance: Ensures connections are closed cleanly after use.
        Alternatives: Keep a single long-lived connection.
        """

        connection = sqlite3.connect(self._db_path)
        try:
            yield connection
        finally:
            connection.close()


def _article_from_row(row: tuple[Any, ...]) -> KnowledgeArticle:
    tags = tuple(tag for tag in (row[4] or "").split(",") if tag)
    return KnowledgeArticle(
        article_id=int(row[0]),
        title=row[1],
        category=row[2],
        content=row[3],
        tags=tags,
        helpful_count=int(row[5]),
        not_helpful_count=int(row[6]),
    )