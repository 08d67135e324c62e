"""
Fixtures for CLI tests.

main() reconfigures root logging and reads the process environment, so
both are isolated per test.
"""

import logging

import pytest

from ticketsync.adapters.config.schema import ENV_KEYS


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove ticketsync variables inherited from the real environment."""
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def restore_logging():
    """Put back root handlers replaced by setup_logging."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            handler.close()
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


@pytest.fixture
def jira_env(monkeypatch):
    """Enable Jira ticketing through environment variables."""
    monkeypatch.setenv("TICKETING_INTEGRATION_ENABLED", "true")
    monkeypatch.setenv("TICKETING_SYSTEM", "jira")
    monkeypatch.setenv("JIRA_BASE_URL", "https://example.atlassian.net")
    monkeypatch.setenv("JIRA_EMAIL", "dev@example.com")
    monkeypatch.setenv("JIRA_API_TOKEN", "jira-secret-token")
    monkeypatch.setenv("JIRA_PROJECT_KEY", "PROJ")
