"""Summary: FastAPI application for BuildDesk.

Importance: Exposes ticket triage, project health and content generation over HTTP.
Alternatives: Use a CLI-only workflow or a different web framework.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import datetime
from typing import Any

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from builddesk.app import build_services
from builddesk.config import AppConfig
from builddesk.content import FallbackTemplate
from builddesk.errors import (
    DivisionByZero,
    InvalidInput,
    RecordNotFound,
    UndefinedAggregate,
    UpstreamServiceFailure,
)
from builddesk.health import ProjectSnapshot, score_project


class TicketCreateRequest(BaseModel):
    """Summary: Request payload for ticket intake.

    Importance: Keeps ticket inputs explicit for API clients.
    Alternatives: Accept tickets from an email gateway only.
    """

    subject: str
    body: str
    customer_email: str | None = None
    priority: str | None = None


class ClassifyRequest(BaseModel):
    """Summary: Request payload for ad-hoc classification."""

    subject: str
    body: str
    priority: str | None = None


class IncidentPayload(BaseModel):
    severity: str = "minor"
    occurred_at: datetime


class TimeEntryPayload(BaseModel):
    worker_id: str
    clock_in: datetime


class ProjectHealthRequest(BaseModel):
    """Summary: Request payload for project health scoring.

    Importance: Carries every input the five health dimensions need.
    Alternatives: Score projects by id from a stored project table.
    """

    start_date: datetime
    end_date: datetime | None = None
    expected_completion_date: datetime | None = None
    completion_percentage: float = 0
    total_budget: float
    expenses: list[float] = Field(default_factory=list)
    incidents: list[IncidentPayload] = Field(default_factory=list)
    assigned_team_size: int = 0
    time_entries: list[TimeEntryPayload] = Field(default_factory=list)
    as_of: datetime | None = None


class ArticleCreateRequest(BaseModel):
    """Summary: Request payload for knowledge-base articles."""

    title: str
    category: str
    content: str = ""
    tags: list[str] = Field(default_factory=list)
    helpful_count: int = Field(default=0, ge=0)
    not_helpful_count: int = Field(default=0, ge=0)


class BlogRequest(BaseModel):
    """Summary: Request payload for blog content generation."""

    topic: str
    year: int | None = None


class ProfileCreateRequest(BaseModel):
    """Summary: Request payload for registering a customer profile."""

    email: str
    display_name: str
    company_name: str | None = None
    subscription_tier: str | None = None


def _error_response(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


def create_app(config: AppConfig) -> FastAPI:
    """Summary: Create a FastAPI app with configured services.

    Importance: Enables API access to BuildDesk capabilities.
    Alternatives: Instantiate services globally outside the factory.
    """

    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    app = FastAPI(title="BuildDesk API", version="0.1.0")
    services = build_services(config)

    @app.exception_handler(RecordNotFound)
    def not_found(request: Request, exc: RecordNotFound) -> JSONResponse:
        return _error_response(404, exc)

    @app.exception_handler(InvalidInput)
    def invalid_input(request: Request, exc: InvalidInput) -> JSONResponse:
        return _error_response(422, exc)

    @app.exception_handler(DivisionByZero)
    def division_by_zero(request: Request, exc: DivisionByZero) -> JSONResponse:
        return _error_response(400, exc)

    @app.exception_handler(UndefinedAggregate)
    def undefined_aggregate(request: Request, exc: UndefinedAggregate) -> JSONResponse:
        return _error_response(400, exc)

    @app.exception_handler(UpstreamServiceFailure)
    def upstream_failure(request: Request, exc: UpstreamServiceFailure) -> JSONResponse:
        return _error_response(502, exc)

    def require_api_key(x_api_key: str | None = Header(default=None)) -> None:
        """Summary: Enforce API key authentication when configured.

        Importance: Adds a minimal security layer for local and private deployments.
        Alternatives: Use OAuth or session-based authentication.
        """

        if not config.api_key:
            return
        if x_api_key != config.api_key:
            raise HTTPException(status_code=401, detail="Invalid API key")

    @app.get("/health")
    def health() -> dict[str, str]:
        """Summary: Health check endpoint.

        Importance: Supports uptime checks in local and cloud deployments.
        Alternatives: Use a metrics endpoint only.
        """

        return {"status": "ok"}

    @app.post("/tickets", dependencies=[Depends(require_api_key)])
    def create_ticket(payload: TicketCreateRequest) -> dict[str, Any]:
        record = services.tickets.create_ticket(
            subject=payload.subject,
            body=payload.body,
            customer_email=payload.customer_email,
            priority=payload.priority,
        )
        return {"ticket_id": record.ticket_id}

    @app.get("/tickets/{ticket_id}", dependencies=[Depends(require_api_key)])
    def get_ticket(ticket_id: str) -> dict[str, Any]:
        """Summary: Return a ticket with its stored triage output.

        Importance: Lets agents revisit a previous analysis without re-running it.
        Alternatives: Re-analyze on every read.
        """

        summary = services.store.get_ticket_summary(ticket_id)
        if summary is None:
            raise HTTPException(status_code=404, detail="Ticket not found")
        return {
            "ticket": asdict(summary),
            "context": services.store.get_ticket_context(ticket_id),
            "suggestions": [asdict(item) for item in services.store.list_suggestions(ticket_id)],
        }

    @app.post("/tickets/{ticket_id}/analyze", dependencies=[Depends(require_api_key)])
    def analyze_ticket(ticket_id: str) -> dict[str, Any]:
        """Summary: Run full triage on a stored ticket.

        Importance: Core support workflow for agents and automations.
        Alternatives: Classify tickets in a batch job.
        """

        analysis = services.triage.analyze_ticket(ticket_id)
        return {"success": True, **analysis.to_dict()}

    @app.get("/tickets/{ticket_id}/draft", dependencies=[Depends(require_api_key)])
    def draft_ticket_response(ticket_id: str) -> dict[str, Any]:
        return {"draft": services.triage.draft_response(ticket_id)}

    @app.post("/classify", dependencies=[Depends(require_api_key)])
    def classify(payload: ClassifyRequest) -> dict[str, Any]:
        result = services.triage.classify_text(payload.subject, payload.body, payload.priority)
        return result.to_dict()

    @app.post("/projects/health", dependencies=[Depends(require_api_key)])
    def project_health(payload: ProjectHealthRequest) -> dict[str, Any]:
        """Summary: Score a project's health across all dimensions.

        Importance: Gives project managers one number plus a per-dimension breakdown.
        Alternatives: Score each dimension from separate endpoints.
        """

        data = payload.model_dump()
        as_of = data.pop("as_of") or datetime.utcnow()
        snapshot = ProjectSnapshot.from_mapping(data, as_of=as_of)
        return score_project(snapshot).to_dict()

    @app.post("/kb/articles", dependencies=[Depends(require_api_key)])
    def add_article(payload: ArticleCreateRequest) -> dict[str, Any]:
        article_id = services.store.add_article(
            title=payload.title,
            category=payload.category,
            content=payload.content,
            tags=payload.tags,
            helpful_count=payload.helpful_count,
            not_helpful_count=payload.not_helpful_count,
        )
        return {"article_id": article_id}

    @app.post("/profiles", dependencies=[Depends(require_api_key)])
    def add_profile(payload: ProfileCreateRequest) -> dict[str, Any]:
        profile_id = services.accounts.add_profile(
            email=payload.email,
            display_name=payload.display_name,
            company_name=payload.company_name,
            subscription_tier=payload.subscription_tier,
        )
        return {"profile_id": profile_id}

    @app.post("/content/blog", dependencies=[Depends(require_api_key)])
    def generate_blog(payload: BlogRequest) -> dict[str, Any]:
        """Summary: Generate a blog article for a topic.

        Importance: Always returns content; `fallback` marks templated output.
        Alternatives: Return 502 when every model fails.
        """

        outcome = services.content.generate_blog_post(payload.topic, payload.year)
        is_fallback = isinstance(outcome, FallbackTemplate)
        return {
            "content": outcome.content.to_dict(),
            "fallback": is_fallback,
            "model": None if is_fallback else outcome.model,
            "attempts": len(outcome.attempts),
        }

    return app
