"""Summary: Application factory wiring core services.

Importance: Centralizes dependency creation for CLI and API layers.
Alternatives: Instantiate services manually in each entrypoint.
"""

from __future__ import annotations

from dataclasses import dataclass

from builddesk.ai import AiProvider, AiProviderFactory
from builddesk.classifier import TicketClassifier
from builddesk.config import AppConfig
from builddesk.content import GenerationSettings
from builddesk.context import SqliteContextProvider, SqliteKnowledgeBaseIndex, SqliteTicketSource
from builddesk.keywords import default_keyword_tables
from builddesk.services import (
    AccountService,
    ContentService,
    KnowledgeBaseService,
    TicketService,
    TriageService,
)
from builddesk.storage.sqlite_store import SqliteStore
from builddesk.suggestions import ResponseSettings


@dataclass(frozen=True)
class AppServices:
    """Summary: Bundle of core services for BuildDesk.

    Importance: Simplifies passing dependencies to CLI or API layers.
    Alternatives: Use a dependency injection container.
    """

    tickets: TicketService
    accounts: AccountService
    knowledge_base: KnowledgeBaseService
    triage: TriageService
    content: ContentService
    store: SqliteStore
    ai_provider: AiProvider
    config: AppConfig


def build_classifier(config: AppConfig) -> TicketClassifier:
    """Summary: Build a classifier using the configured priority vocabulary."""

    tables = default_keyword_tables().with_priority_keywords(
        urgent=config.priority_urgent_keywords,
        high=config.priority_high_keywords,
        low=config.priority_low_keywords,
    )
    return TicketClassifier(tables=tables)


def build_services(config: AppConfig) -> AppServices:
    """Summary: Build core services from configuration.

    Importance: Provides a single construction path for the application.
    Alternatives: Instantiate services directly within the CLI entrypoint.
    """

    store = SqliteStore(config.db_path)
    store.initialize()
    ai_provider = AiProviderFactory(config).build()
    triage = TriageService(
        store=store,
        classifier=build_classifier(config),
        tickets=SqliteTicketSource(store),
        contexts=SqliteContextProvider(store),
        knowledge_base=SqliteKnowledgeBaseIndex(store),
        response_settings=ResponseSettings(
            team_name=config.support_team_name,
            knowledge_base_url=config.knowledge_base_url,
        ),
    )
    content = ContentService(
        store=store,
        ai_provider=ai_provider,
        provider_name=config.ai_provider,
        settings=GenerationSettings(
            preferred_model=config.model_name,
            fallback_model=config.fallback_model_name,
            temperature=config.blog_temperature,
            target_word_count=config.blog_target_word_count,
        ),
    )
    return AppServices(
        tickets=TicketService(store=store),
        accounts=AccountService(store=store),
        knowledge_base=KnowledgeBaseService(store=store),
        triage=triage,
        content=content,
        store=store,
        ai_provider=ai_provider,
        config=config,
    )
