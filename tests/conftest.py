"""
Shared pytest fixtures for the ticketsync test suite.

Fixture Categories:
- Data: sample tasks.json documents
- Storage: JsonTaskStore over a temporary file
- Configuration: enabled / disabled TicketingConfig
- Mocks: a TicketingProviderPort mock with working link storage
- Services: TicketingSyncService wired to the above
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from ticketsync.adapters.storage import JsonTaskStore
from ticketsync.application.sync import TicketingSyncService
from ticketsync.core.domain.enums import TicketingSystem
from ticketsync.core.ports.config_provider import JiraConfig, TicketingConfig
from ticketsync.core.ports.ticketing import CreatedTicket, TicketingProviderPort


# =============================================================================
# Sample Data
# =============================================================================


def make_tasks_document(task_count: int = 2, subtasks_per_task: int = 0) -> dict[str, Any]:
    """Build a tasks.json document with sequential ids and no links."""
    return {
        "tasks": [
            {
                "id": task_id,
                "title": f"Task {task_id}",
                "description": f"Description {task_id}",
                "details": "",
                "status": "pending",
                "priority": "high" if task_id % 2 else "low",
                "dependencies": [],
                "testStrategy": "",
                "subtasks": [
                    {
                        "id": sub_id,
                        "title": f"Subtask {task_id}.{sub_id}",
                        "description": "",
                        "status": "pending",
                        "dependencies": [],
                    }
                    for sub_id in range(1, subtasks_per_task + 1)
                ],
            }
            for task_id in range(1, task_count + 1)
        ]
    }


@pytest.fixture
def document_factory():
    """The make_tasks_document factory."""
    return make_tasks_document


@pytest.fixture
def sample_document() -> dict[str, Any]:
    """
    Tasks document with two tasks; task 1 has two subtasks.

    Task 2 is already linked to PROJ-20 and carries its ref id.
    """
    return {
        "meta": {"projectName": "demo"},
        "tasks": [
            {
                "id": 1,
                "title": "Set up CI",
                "description": "Pipeline for tests",
                "details": "Use GitHub Actions",
                "status": "pending",
                "priority": "high",
                "dependencies": [],
                "testStrategy": "Pipeline runs green",
                "subtasks": [
                    {
                        "id": 1,
                        "title": "Write workflow",
                        "description": "YAML file",
                        "status": "pending",
                        "dependencies": [],
                    },
                    {
                        "id": 2,
                        "title": "Add badge",
                        "description": "",
                        "status": "done",
                        "dependencies": [1],
                    },
                ],
            },
            {
                "id": 2,
                "title": "Release",
                "description": "Tag and publish",
                "status": "in-progress",
                "priority": "medium",
                "dependencies": [1],
                "subtasks": [],
                "metadata": {"refId": "US002", "remoteTicketKey": "PROJ-20"},
            },
        ],
    }


# =============================================================================
# Storage
# =============================================================================


@pytest.fixture
def tasks_file(tmp_path: Path, sample_document: dict[str, Any]) -> Path:
    """Write the sample document to tasks/tasks.json under tmp_path."""
    path = tmp_path / "tasks" / "tasks.json"
    path.parent.mkdir()
    path.write_text(json.dumps(sample_document, indent=2), encoding="utf-8")
    return path


@pytest.fixture
def store(tasks_file: Path) -> JsonTaskStore:
    """JsonTaskStore over the sample tasks file."""
    return JsonTaskStore(tasks_file)


@pytest.fixture
def read_tasks(tasks_file: Path):
    """Return a callable that loads the current tasks file as a dict."""

    def _read() -> dict[str, Any]:
        return json.loads(tasks_file.read_text(encoding="utf-8"))

    return _read


# =============================================================================
# Configuration
# =============================================================================


@pytest.fixture
def jira_config() -> JiraConfig:
    """A complete Jira configuration."""
    return JiraConfig(
        url="https://example.atlassian.net",
        email="dev@example.com",
        api_token="jira-secret-token",
        project_key="PROJ",
    )


@pytest.fixture
def ticketing_config(jira_config: JiraConfig) -> TicketingConfig:
    """Enabled Jira ticketing configuration."""
    return TicketingConfig(enabled=True, system=TicketingSystem.JIRA, jira=jira_config)


@pytest.fixture
def disabled_config() -> TicketingConfig:
    """Ticketing integration switched off."""
    return TicketingConfig(enabled=False)


# =============================================================================
# Mocks
# =============================================================================


def make_mock_provider(start_key: int = 1, prefix: str = "PROJ") -> MagicMock:
    """
    Create a provider mock that behaves like an empty remote project.

    - create_story / create_task return sequential keys (PROJ-1, PROJ-2, ...)
    - find_ticket_by_ref_id finds nothing
    - ticket_exists is True; updates and delete_ticket succeed
    - get_ticket_id / store_ticket_id use the real metadata storage
    """
    provider = MagicMock(spec=TicketingProviderPort)
    provider.name = "Mock"
    provider.is_configured.return_value = True
    provider.test_connection.return_value = True

    counter = {"next": start_key}

    def create(*args: Any, **kwargs: Any) -> CreatedTicket:
        key = f"{prefix}-{counter['next']}"
        counter["next"] += 1
        return CreatedTicket(key=key)

    provider.create_story.side_effect = create
    provider.create_task.side_effect = create
    provider.find_ticket_by_ref_id.return_value = None
    provider.ticket_exists.return_value = True
    provider.update_ticket_status.return_value = True
    provider.update_ticket.return_value = True
    provider.delete_ticket.return_value = True
    provider.get_ticket_id.side_effect = lambda item: TicketingProviderPort.get_ticket_id(
        provider, item
    )
    provider.store_ticket_id.side_effect = lambda item, key: TicketingProviderPort.store_ticket_id(
        provider, item, key
    )
    return provider


@pytest.fixture
def mock_provider() -> MagicMock:
    """Provider mock handing out PROJ-1, PROJ-2, ..."""
    return make_mock_provider()


@pytest.fixture
def provider_factory():
    """The make_mock_provider factory, for tests needing a custom key range."""
    return make_mock_provider


# =============================================================================
# Services
# =============================================================================


@pytest.fixture
def sync_service(
    ticketing_config: TicketingConfig,
    mock_provider: MagicMock,
    store: JsonTaskStore,
) -> TicketingSyncService:
    """Sync service with integration enabled and a mock provider."""
    return TicketingSyncService(ticketing_config, mock_provider, store)


@pytest.fixture
def disabled_service(
    disabled_config: TicketingConfig,
    mock_provider: MagicMock,
    store: JsonTaskStore,
) -> TicketingSyncService:
    """Sync service with integration switched off."""
    return TicketingSyncService(disabled_config, mock_provider, store)
