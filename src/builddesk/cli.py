"""Summary: Command-line interface for BuildDesk.

Importance: Provides a local-first entry point for triage and scoring workflows.
Alternatives: Build a web UI or desktop client first.
"""

from __future__ import annotations

import argparse
import json
import logging
from datetime import datetime
from pathlib import Path

from builddesk.app import build_services
from builddesk.config import AppConfig
from builddesk.content import FallbackTemplate
from builddesk.health import ProjectSnapshot, score_project


def build_parser() -> argparse.ArgumentParser:
    """Summary: Build the CLI argument parser.

    Importance: Defines supported commands for local operation.
    Alternatives: Use a CLI framework like Typer or Click.
    """

    parser = argparse.ArgumentParser(description="BuildDesk CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create database tables")

    add_ticket = subparsers.add_parser("add-ticket", help="Store a support ticket")
    add_ticket.add_argument("subject", type=str)
    add_ticket.add_argument("body", type=str)
    add_ticket.add_argument("--email", type=str, default=None)
    add_ticket.add_argument("--priority", type=str, default=None)

    analyze = subparsers.add_parser("analyze-ticket", help="Run full triage on a ticket")
    analyze.add_argument("ticket_id", type=str)

    classify = subparsers.add_parser("classify", help="Classify ad-hoc ticket text")
    classify.add_argument("subject", type=str)
    classify.add_argument("body", type=str)
    classify.add_argument("--priority", type=str, default=None)

    draft = subparsers.add_parser("draft-response", help="Render a reply for a ticket")
    draft.add_argument("ticket_id", type=str)

    load_kb = subparsers.add_parser("load-kb", help="Load knowledge-base articles from JSON")
    load_kb.add_argument(
        "--fixture", type=str, default=str(Path("data") / "kb_articles.json")
    )

    add_profile = subparsers.add_parser("add-profile", help="Register a customer profile")
    add_profile.add_argument("email", type=str)
    add_profile.add_argument("display_name", type=str)
    add_profile.add_argument("--company", type=str, default=None)
    add_profile.add_argument("--tier", type=str, default=None)

    health = subparsers.add_parser("project-health", help="Score a project from a JSON file")
    health.add_argument("path", type=str)
    health.add_argument("--as-of", type=str, default=None)

    blog = subparsers.add_parser("generate-blog", help="Generate a blog article")
    blog.add_argument("topic", type=str)
    blog.add_argument("--year", type=int, default=None)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", type=str, default=None)
    serve.add_argument("--port", type=int, default=None)

    return parser


def run_cli(argv: list[str] | None = None) -> None:
    """Summary: Execute CLI commands based on arguments.

    Importance: Drives triage and scoring without the HTTP API.
    Alternatives: Invoke services via an HTTP API.
    """

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    parser = build_parser()
    args = parser.parse_args(argv)
    config = AppConfig.from_env()

    if args.command == "serve":
        import uvicorn

        from builddesk.api import create_app

        uvicorn.run(
            create_app(config),
            host=args.host or config.api_host,
            port=args.port or config.api_port,
        )
        return

    services = build_services(config)

    if args.command == "init-db":
        print(f"Initialized database at {config.db_path}.")
        return

    if args.command == "add-ticket":
        record = services.tickets.create_ticket(
            args.subject, args.body, customer_email=args.email, priority=args.priority
        )
        print(f"Created ticket {record.ticket_id}.")
        return

    if args.command == "analyze-ticket":
        analysis = services.triage.analyze_ticket(args.ticket_id)
        print(json.dumps(analysis.to_dict(), indent=2))
        return

    if args.command == "classify":
        result = services.triage.classify_text(args.subject, args.body, args.priority)
        print(json.dumps(result.to_dict(), indent=2))
        return

    if args.command == "draft-response":
        print(services.triage.draft_response(args.ticket_id))
        return

    if args.command == "load-kb":
        ids = services.knowledge_base.load_fixture(Path(args.fixture))
        print(f"Loaded {len(ids)} articles.")
        return

    if args.command == "add-profile":
        profile_id = services.accounts.add_profile(
            args.email, args.display_name, company_name=args.company, subscription_tier=args.tier
        )
        print(f"Registered profile {profile_id}.")
        return

    if args.command == "project-health":
        data = json.loads(Path(args.path).read_text(encoding="utf-8"))
        as_of = datetime.fromisoformat(args.as_of) if args.as_of else datetime.utcnow()
        result = score_project(ProjectSnapshot.from_mapping(data, as_of=as_of))
        print(json.dumps(result.to_dict(), indent=2))
        return

    if args.command == "generate-blog":
        outcome = services.content.generate_blog_post(args.topic, args.year)
        if isinstance(outcome, FallbackTemplate):
            print(f"Model generation failed ({outcome.reason}); using template.")
        print(json.dumps(outcome.content.to_dict(), indent=2))
        return


if __name__ == "__main__":
    run_cli()
