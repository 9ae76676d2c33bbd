"""Summary: Tests for configuration loading.

Importance: Ensures defaults, .env, and environment overrides behave correctly.
Alternatives: Validate configuration manually during runtime.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from builddesk.config import AppConfig, load_defaults, load_dotenv, split_keywords

DEFAULTS = {
    "db_path": "test.db",
    "ai_provider": "mock",
    "openai_api_key": "",
    "openai_model": "gpt-4o-mini",
    "anthropic_api_key": "",
    "anthropic_model": "claude-sonnet-4-20250514",
    "anthropic_fallback_model": "claude-3-5-haiku-20241022",
    "ollama_url": "http://localhost:11434",
    "ollama_model": "llama3",
    "ai_timeout_seconds": "60",
    "api_host": "127.0.0.1",
    "api_port": "8000",
    "api_key": "",
    "support_team_name": "BuildDesk Support Team",
    "knowledge_base_url": "https://builddesk.com/knowledge-base",
    "priority_urgent_keywords": "urgent,asap,Not Working",
    "priority_high_keywords": "error,failed",
    "priority_low_keywords": "suggestion",
    "blog_target_word_count": "1200",
    "blog_temperature": "0.7",
}

_ENV_KEYS = (
    "BUILDDESK_DB_PATH",
    "BUILDDESK_AI_PROVIDER",
    "BUILDDESK_API_PORT",
    "BUILDDESK_PRIORITY_URGENT_KEYWORDS",
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
)


def _write_defaults(root: Path) -> None:
    (root / "config").mkdir()
    (root / "config" / "defaults.json").write_text(json.dumps(DEFAULTS), encoding="utf-8")


def test_load_defaults_reads_json(tmp_path: Path) -> None:
    """Summary: Verify defaults are parsed from JSON.

    Importance: Confirms config file is the source of truth for variables.
    Alternatives: Hardcode defaults in the test.
    """

    defaults_path = tmp_path / "defaults.json"
    defaults_path.write_text("{\"db_path\": \"test.db\"}", encoding="utf-8")
    defaults = load_defaults(defaults_path)
    assert defaults["db_path"] == "test.db"


def test_load_defaults_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_defaults(tmp_path / "missing.json")


def test_load_dotenv_sets_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Summary: Ensure .env values populate environment variables.

    Importance: Validates local secret loading without external tools.
    Alternatives: Assume OS environment is always set.
    """

    env_path = tmp_path / ".env"
    env_path.write_text(
        "# comment\nBUILDDESK_DOTENV_PROBE=ollama\nBUILDDESK_DOTENV_KEPT=from-file\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("BUILDDESK_DOTENV_PROBE", "placeholder")
    monkeypatch.delenv("BUILDDESK_DOTENV_PROBE")
    monkeypatch.setenv("BUILDDESK_DOTENV_KEPT", "from-env")
    load_dotenv(env_path)
    assert os.getenv("BUILDDESK_DOTENV_PROBE") == "ollama"
    assert os.getenv("BUILDDESK_DOTENV_KEPT") == "from-env"


def test_app_config_uses_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Summary: Verify AppConfig honors defaults when env is absent.

    Importance: Confirms config file remains the baseline for variables.
    Alternatives: Inline defaults directly in the AppConfig class.
    """

    _write_defaults(tmp_path)
    monkeypatch.chdir(tmp_path)
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    config = AppConfig.from_env()
    assert config.db_path == "test.db"
    assert config.ai_provider == "mock"
    assert config.openai_api_key is None
    assert config.api_port == 8000
    assert config.ai_timeout_seconds == 60
    assert config.blog_temperature == 0.7
    assert config.priority_urgent_keywords == ["urgent", "asap", "not working"]
    assert config.model_name == "mock"


def test_app_config_env_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _write_defaults(tmp_path)
    monkeypatch.chdir(tmp_path)
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("BUILDDESK_DB_PATH", "override.db")
    monkeypatch.setenv("BUILDDESK_API_PORT", "9001")
    monkeypatch.setenv("BUILDDESK_PRIORITY_URGENT_KEYWORDS", "outage, site down")
    config = AppConfig.from_env()
    assert config.db_path == "override.db"
    assert config.api_port == 9001
    assert config.priority_urgent_keywords == ["outage", "site down"]


def test_split_keywords() -> None:
    assert split_keywords(None) == []
    assert split_keywords(" a, ,B ") == ["a", "b"]
