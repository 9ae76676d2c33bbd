"""Summary: Application configuration for BuildDesk.

Importance: Centralizes environment, .env, and config defaults for consistent behavior.
Alternatives: Use a dedicated settings library like Pydantic Settings.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class AppConfig:
    """Summary: Holds configuration values for providers, storage and triage vocabulary.

    Importance: Ensures all services derive settings from a single source of truth.
    Alternatives: Store settings in a shared config file and parse at startup.
    """

    db_path: str
    ai_provider: str
    openai_api_key: str | None
    openai_model: str
    anthropic_api_key: str | None
    anthropic_model: str
    anthropic_fallback_model: str
    ollama_url: str
    ollama_model: str
    ai_timeout_seconds: int
    api_host: str
    api_port: int
    api_key: str
    support_team_name: str
    knowledge_base_url: str
    priority_urgent_keywords: list[str]
    priority_high_keywords: list[str]
    priority_low_keywords: list[str]
    blog_target_word_count: int
    blog_temperature: float

    @property
    def model_name(self) -> str:
        """Summary: Model name of the configured provider, for audit records."""

        if self.ai_provider == "openai":
            return self.openai_model
        if self.ai_provider == "anthropic":
            return self.anthropic_model
        if self.ai_provider == "ollama":
            return self.ollama_model
        return "mock"

    @property
    def fallback_model_name(self) -> str:
        if self.ai_provider == "anthropic":
            return self.anthropic_fallback_model
        return self.model_name

    @staticmethod
    def from_env() -> "AppConfig":
        """Summary: Build configuration from defaults, .env, and environment.

        Importance: Keeps all variables defined in config defaults while allowing overrides.
        Alternatives: Parse only environment variables without a defaults file.
        """

        defaults = load_defaults(Path("config") / "defaults.json")
        load_dotenv(Path(".env"))
        return AppConfig(
            db_path=os.getenv("BUILDDESK_DB_PATH", defaults["db_path"]),
            ai_provider=os.getenv("BUILDDESK_AI_PROVIDER", defaults["ai_provider"]),
            openai_api_key=os.getenv("OPENAI_API_KEY") or defaults["openai_api_key"] or None,
            openai_model=os.getenv("OPENAI_MODEL", defaults["openai_model"]),
            anthropic_api_key=os.getenv("ANTHROPIC_API_KEY") or defaults["anthropic_api_key"] or None,
            anthropic_model=os.getenv("ANTHROPIC_MODEL", defaults["anthropic_model"]),
            anthropic_fallback_model=os.getenv(
                "ANTHROPIC_FALLBACK_MODEL", defaults["anthropic_fallback_model"]
            ),
            ollama_url=os.getenv("OLLAMA_URL", defaults["ollama_url"]),
            ollama_model=os.getenv("OLLAMA_MODEL", defaults["ollama_model"]),
            ai_timeout_seconds=int(
                os.getenv("BUILDDESK_AI_TIMEOUT_SECONDS", defaults["ai_timeout_seconds"])
            ),
            api_host=os.getenv("BUILDDESK_API_HOST", defaults["api_host"]),
            api_port=int(os.getenv("BUILDDESK_API_PORT", defaults["api_port"])),
            api_key=os.getenv("BUILDDESK_API_KEY", defaults["api_key"]),
            support_team_name=os.getenv(
                "BUILDDESK_SUPPORT_TEAM_NAME", defaults["support_team_name"]
            ),
            knowledge_base_url=os.getenv(
                "BUILDDESK_KNOWLEDGE_BASE_URL", defaults["knowledge_base_url"]
            ),
            priority_urgent_keywords=split_keywords(
                os.getenv("BUILDDESK_PRIORITY_URGENT_KEYWORDS", defaults["priority_urgent_keywords"])
            ),
            priority_high_keywords=split_keywords(
                os.getenv("BUILDDESK_PRIORITY_HIGH_KEYWORDS", defaults["priority_high_keywords"])
            ),
            priority_low_keywords=split_keywords(
                os.getenv("BUILDDESK_PRIORITY_LOW_KEYWORDS", defaults["priority_low_keywords"])
            ),
            blog_target_word_count=int(
                os.getenv("BUILDDESK_BLOG_TARGET_WORD_COUNT", defaults["blog_target_word_count"])
            ),
            blog_temperature=float(
                os.getenv("BUILDDESK_BLOG_TEMPERATURE", defaults["blog_temperature"])
            ),
        )


def split_keywords(raw: str | None) -> list[str]:
    """Summary: Split a comma-separated keyword string into a clean list.

    Importance: Lets keyword lists live in env vars and JSON defaults alike.
    Alternatives: Store keyword lists as JSON arrays only.
    """

    if not raw:
        return []
    return [item.strip().lower() for item in raw.split(",") if item.strip()]


def load_defaults(path: Path) -> dict[str, Any]:
    """Summary: Load configuration defaults from JSON.

    Importance: Ensures all variables exist in a single config file.
    Alternatives: Inline defaults in the AppConfig initializer.
    """

    if not path.exists():
        raise FileNotFoundError(f"Defaults file not found: {path}")
    return json.loads(path.read_text(encoding="utf-8"))


def load_dotenv(path: Path) -> None:
    """Summary: Load key-value pairs from a .env file into the environment.

    Importance: Keeps secrets out of code while supporting local workflows.
    Alternatives: Use python-dotenv or OS-specific secret stores.
    """

    if not path.exists():
        return
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        os.environ.setdefault(key.strip(), value.strip())
