"""Shared pytest fixtures."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ.setdefault("ENVIRONMENT", "test")

from app.config import Settings  # noqa: E402
from app.main import create_app  # noqa: E402
from app.prompts import PromptBuilder, load_templates  # noqa: E402


@pytest.fixture(autouse=True)
def configure_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure required environment variables are present during tests."""

    monkeypatch.setenv("OPENAI_API_KEY", "test-key")
    monkeypatch.setenv("ENVIRONMENT", "test")


@pytest.fixture
def settings() -> Settings:
    return Settings(CHAT_BACKOFF_BASE=0)


@pytest.fixture
def prompt_builder() -> PromptBuilder:
    return PromptBuilder(load_templates())


@pytest.fixture
def app(settings: Settings):
    return create_app(settings)
