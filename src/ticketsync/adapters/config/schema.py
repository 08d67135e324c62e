"""
Config Schema - Key names shared by the configuration providers.

Every source (config file, .env, environment, CLI) is normalized to the same
snake_case keys before an AppConfig is built.
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any

from ticketsync.core.domain.enums import TicketingSystem
from ticketsync.core.exceptions import ConfigError
from ticketsync.core.ports.config_provider import (
    AppConfig,
    AzureDevOpsConfig,
    GitHubConfig,
    JiraConfig,
    TicketingConfig,
)


# camelCase keys of the project config file
FILE_KEYS = {
    "ticketingIntegrationEnabled": "ticketing_enabled",
    "ticketingSystem": "ticketing_system",
    "jiraBaseUrl": "jira_url",
    "jiraEmail": "jira_email",
    "jiraApiToken": "jira_api_token",
    "jiraProjectKey": "jira_project_key",
    "jiraIssueType": "jira_story_type",
    "jiraSubtaskType": "jira_subtask_type",
    "jiraDefaultPriority": "jira_default_priority",
    "githubToken": "github_token",
    "githubOwner": "github_owner",
    "githubRepository": "github_repo",
    "githubBaseUrl": "github_base_url",
    "githubLabels": "github_labels",
    "githubSubtaskLabel": "github_subtask_label",
    "githubAssignee": "github_assignee",
    "azureOrganization": "azure_organization",
    "azureProjectName": "azure_project",
    "azurePersonalAccessToken": "azure_pat",
    "azureBaseUrl": "azure_base_url",
    "azureWorkItemType": "azure_story_type",
    "azureSubtaskWorkItemType": "azure_task_type",
    "azureAreaPath": "azure_area_path",
    "tasksFile": "tasks_path",
}

# Environment variables (and .env entries)
ENV_KEYS = {
    "TICKETING_INTEGRATION_ENABLED": "ticketing_enabled",
    "TICKETING_SYSTEM": "ticketing_system",
    "JIRA_BASE_URL": "jira_url",
    "JIRA_EMAIL": "jira_email",
    "JIRA_API_TOKEN": "jira_api_token",
    "JIRA_PROJECT_KEY": "jira_project_key",
    "GITHUB_TOKEN": "github_token",
    "GITHUB_OWNER": "github_owner",
    "GITHUB_REPOSITORY": "github_repo",
    "GITHUB_API_URL": "github_base_url",
    "AZURE_ORGANIZATION": "azure_organization",
    "AZURE_PROJECT_NAME": "azure_project",
    "AZURE_PERSONAL_ACCESS_TOKEN": "azure_pat",
    "TICKETSYNC_TASKS_FILE": "tasks_path",
    "TICKETSYNC_DRY_RUN": "dry_run",
    "TICKETSYNC_VERBOSE": "verbose",
}


BOOL_KEYS = frozenset({"ticketing_enabled", "dry_run", "verbose"})


def coerce_value(raw: str) -> Any:
    """Convert boolean-ish strings; leave everything else untouched."""
    lowered = raw.strip().lower()
    if lowered in ("true", "1", "yes", "on"):
        return True
    if lowered in ("false", "0", "no", "off"):
        return False
    return raw


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return coerce_value(value) is True
    return bool(value)


def _as_list(value: Any) -> list[str]:
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return [str(v) for v in value]


def build_app_config(get: Callable[..., Any], project_root: Path) -> AppConfig:
    """
    Build an AppConfig from a normalized key lookup.

    Args:
        get: ``get(key, default)`` over normalized keys.
        project_root: Directory relative paths are resolved against.

    Raises:
        ConfigError: If ticketingSystem names an unsupported system.
    """
    system_name = get("ticketing_system")
    system: TicketingSystem | None = None
    if system_name:
        try:
            system = TicketingSystem.from_string(str(system_name))
        except ValueError as e:
            raise ConfigError(str(e), cause=e) from e

    jira = JiraConfig(
        url=get("jira_url", "") or "",
        email=get("jira_email", "") or "",
        api_token=get("jira_api_token", "") or "",
        project_key=get("jira_project_key", "") or "",
        story_type=get("jira_story_type") or "Story",
        subtask_type=get("jira_subtask_type") or "Sub-task",
        default_priority=get("jira_default_priority") or "Medium",
    )
    github = GitHubConfig(
        token=get("github_token", "") or "",
        owner=get("github_owner", "") or "",
        repo=get("github_repo", "") or "",
        base_url=get("github_base_url") or "https://api.github.com",
        subtask_label=get("github_subtask_label") or "subtask",
        assignee=get("github_assignee"),
    )
    labels = get("github_labels")
    if labels:
        github.labels = _as_list(labels)
    azure = AzureDevOpsConfig(
        organization=get("azure_organization", "") or "",
        project=get("azure_project", "") or "",
        pat=get("azure_pat", "") or "",
        base_url=get("azure_base_url") or "https://dev.azure.com",
        story_type=get("azure_story_type") or "User Story",
        task_type=get("azure_task_type") or "Task",
        area_path=get("azure_area_path"),
    )

    tasks_path = get("tasks_path")
    if tasks_path:
        tasks_path = Path(tasks_path)
        if not tasks_path.is_absolute():
            tasks_path = project_root / tasks_path

    return AppConfig(
        ticketing=TicketingConfig(
            enabled=_as_bool(get("ticketing_enabled", False)),
            system=system,
            jira=jira,
            github=github,
            azure_devops=azure,
        ),
        project_root=project_root,
        tasks_path=tasks_path,
        dry_run=_as_bool(get("dry_run", False)),
        verbose=_as_bool(get("verbose", False)),
    )
