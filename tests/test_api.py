"""Summary: API integration tests.

Importance: Validates FastAPI endpoints against core workflows.
Alternatives: Use manual curl testing only.
"""

from __future__ import annotations

from pathlib import Path

from fastapi.testclient import TestClient

from builddesk.api import create_app
from builddesk.config import AppConfig


def _build_config(db_path: str, api_key: str = "") -> AppConfig:
    """Summary: Build an AppConfig for API tests.

    Importance: Ensures tests use isolated storage.
    Alternatives: Load AppConfig from environment variables.
    """

    return AppConfig(
        db_path=db_path,
        ai_provider="mock",
        openai_api_key=None,
        openai_model="gpt-4o-mini",
        anthropic_api_key=None,
        anthropic_model="claude-sonnet-4-20250514",
        anthropic_fallback_model="claude-3-5-haiku-20241022",
        ollama_url="http://localhost:11434",
        ollama_model="llama3",
        ai_timeout_seconds=5,
        api_host="127.0.0.1",
        api_port=8000,
        api_key=api_key,
        support_team_name="BuildDesk Support Team",
        knowledge_base_url="https://builddesk.com/knowledge-base",
        priority_urgent_keywords=["urgent", "broken", "not working"],
        priority_high_keywords=["error", "unable"],
        priority_low_keywords=["suggestion"],
        blog_target_word_count=1200,
        blog_temperature=0.7,
    )


def _client(tmp_path: Path, api_key: str = "") -> TestClient:
    return TestClient(create_app(_build_config(str(tmp_path / "api.db"), api_key)))


def test_api_health(tmp_path: Path) -> None:
    response = _client(tmp_path).get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_api_ticket_analysis_flow(tmp_path: Path) -> None:
    """Summary: Verify tickets can be created, analyzed and read back.

    Importance: Confirms the HTTP layer wires into triage and storage.
    Alternatives: Validate only the CLI triage workflow.
    """

    client = _client(tmp_path)
    client.post(
        "/profiles",
        json={"email": "pm@acme.com", "display_name": "Dana", "company_name": "Acme Builders"},
    )
    client.post(
        "/kb/articles",
        json={
            "title": "Connecting QuickBooks",
            "category": "integration_issue",
            "tags": ["quickbooks", "sync"],
            "helpful_count": 4,
        },
    )
    created = client.post(
        "/tickets",
        json={
            "subject": "URGENT: QuickBooks sync is broken",
            "body": "nothing works!!!",
            "customer_email": "pm@acme.com",
        },
    )
    assert created.status_code == 200
    ticket_id = created.json()["ticket_id"]

    analyzed = client.post(f"/tickets/{ticket_id}/analyze")
    assert analyzed.status_code == 200
    payload = analyzed.json()
    assert payload["success"] is True
    assert payload["analysis"]["category"] == "integration_issue"
    assert payload["analysis"]["priority"] == "urgent"
    assert payload["analysis"]["sentiment"] == "frustrated"
    assert payload["context"]["company_name"] == "Acme Builders"
    assert payload["suggestions"][0]["suggestion_type"] == "routing"
    assert payload["kb_articles"][0]["title"] == "Connecting QuickBooks"

    stored = client.get(f"/tickets/{ticket_id}").json()
    assert stored["ticket"]["category"] == "integration_issue"
    assert stored["context"]["user_found"] is True
    assert len(stored["suggestions"]) == 1

    draft = client.get(f"/tickets/{ticket_id}/draft").json()
    assert draft["draft"].startswith("Hi Acme Builders,")


def test_api_maps_domain_errors(tmp_path: Path) -> None:
    """Summary: Verify domain errors map to HTTP status codes.

    Importance: Clients can tell missing records from bad input.
    Alternatives: Return 500 for every failure.
    """

    client = _client(tmp_path)
    assert client.post("/tickets/missing/analyze").status_code == 404
    assert client.get("/tickets/missing").status_code == 404
    assert client.post("/classify", json={"subject": " ", "body": ""}).status_code == 422
    assert client.post(
        "/classify", json={"subject": "Hi", "body": "there", "priority": "someday"}
    ).status_code == 422
    zero_budget = client.post(
        "/projects/health",
        json={
            "start_date": "2024-01-01T00:00:00",
            "end_date": "2024-03-01T00:00:00",
            "total_budget": 0,
            "as_of": "2024-01-31T00:00:00",
        },
    )
    assert zero_budget.status_code == 400


def test_api_classify(tmp_path: Path) -> None:
    response = _client(tmp_path).post(
        "/classify", json={"subject": "Refund", "body": "I was charged twice on my invoice"}
    )
    assert response.status_code == 200
    assert response.json()["category"] == "billing_question"


def test_api_project_health(tmp_path: Path) -> None:
    response = _client(tmp_path).post(
        "/projects/health",
        json={
            "start_date": "2024-01-01T00:00:00",
            "end_date": "2024-03-01T00:00:00",
            "completion_percentage": 55,
            "total_budget": 100000,
            "expenses": [30000, 20000],
            "assigned_team_size": 4,
            "time_entries": [
                {"worker_id": "w1", "clock_in": "2024-01-30T08:00:00"},
                {"worker_id": "w2", "clock_in": "2024-01-29T08:00:00"},
                {"worker_id": "w3", "clock_in": "2024-01-28T08:00:00"},
            ],
            "as_of": "2024-01-31T00:00:00",
        },
    )
    assert response.status_code == 200
    payload = response.json()
    assert payload["overall_score"] == 83
    assert payload["overall_status"] == "good"
    assert [dimension["name"] for dimension in payload["dimensions"]] == [
        "schedule",
        "budget",
        "safety",
        "team",
        "progress",
    ]


def test_api_blog_falls_back_with_mock_provider(tmp_path: Path) -> None:
    """Summary: Verify blog generation returns templated content when models fail.

    Importance: The mock provider never returns JSON, so the template path is exercised.
    Alternatives: Stub the generator inside the app.
    """

    response = _client(tmp_path).post(
        "/content/blog", json={"topic": "Jobsite Safety", "year": 2025}
    )
    assert response.status_code == 200
    payload = response.json()
    assert payload["fallback"] is True
    assert payload["attempts"] == 2
    assert payload["content"]["seo_title"] == "Jobsite Safety Guide for Construction | 2025"


def test_api_key_is_enforced(tmp_path: Path) -> None:
    client = _client(tmp_path, api_key="secret")
    body = {"subject": "Refund", "body": "Charged twice"}
    assert client.post("/classify", json=body).status_code == 401
    assert client.post("/classify", json=body, headers={"X-API-Key": "secret"}).status_code == 200
    assert client.get("/health").status_code == 200


def test_api_project_health_accepts_utc_dates(tmp_path: Path) -> None:
    """Summary: Verify ISO dates with a Z suffix score without an as_of value.

    Importance: The default as_of is naive UTC and must mix with aware payload dates.
    Alternatives: Require clients to strip timezone offsets.
    """

    response = _client(tmp_path).post(
        "/projects/health",
        json={
            "start_date": "2024-01-01T00:00:00Z",
            "expected_completion_date": "2024-03-01T00:00:00Z",
            "completion_percentage": 100,
            "total_budget": 100000,
            "incidents": [{"severity": "minor", "occurred_at": "2024-01-20T10:00:00Z"}],
            "assigned_team_size": 2,
            "time_entries": [{"worker_id": "w1", "clock_in": "2024-01-30T08:00:00Z"}],
        },
    )
    assert response.status_code == 200
    dimensions = {item["name"]: item for item in response.json()["dimensions"]}
    assert dimensions["schedule"]["status"] == "critical"
    assert dimensions["safety"]["score"] == 100
    assert dimensions["team"]["status"] == "critical"


def test_api_project_health_requires_an_end_date(tmp_path: Path) -> None:
    response = _client(tmp_path).post(
        "/projects/health",
        json={"start_date": "2024-01-01T00:00:00Z", "total_budget": 1000},
    )
    assert response.status_code == 422
