"""Shared fixtures."""

import pytest

ENV_VARS = (
    "SMTP_HOST",
    "SMTP_PORT",
    "SMTP_USER",
    "SMTP_PASS",
    "SMTP_SENDER_NAME",
    "SMTP_SENDER_EMAIL",
    "LOG_LEVEL",
    "DATABASE_URL",
    "PUSH_GATEWAY_URL",
    "PUSH_API_TOKEN",
    "ENVIRONMENT",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every variable the engine reads from the environment."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def mock_env_vars(clean_env):
    """Minimal valid environment: an unauthenticated local SMTP relay."""
    clean_env.setenv("SMTP_HOST", "smtp.example.com")
    clean_env.setenv("SMTP_PORT", "587")
    return clean_env
